"""Admin and moderation endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import require_admin, require_editor
from ..container import Services
from ..deps import get_db, get_services
from ..pagination import Pagination, get_pagination

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


# ============================================================================
# MODERATION (editor or admin)
# ============================================================================


@router.get("/analytics", response_model=schemas.Analytics)
def analytics(
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    _editor: models.User = Depends(require_editor),
) -> schemas.Analytics:
    return services.admin.analytics(db)


@router.get("/posts", response_model=schemas.Page[schemas.PostSummary])
def moderation_queue(
    status_filter: schemas.PostStatusName | None = Query(None, alias="status"),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    _editor: models.User = Depends(require_editor),
):
    """All posts in any status, most recently updated first."""
    posts, total = services.posts.moderation_queue(db, pagination, status=status_filter)
    return pagination.page_response(posts, total)


@router.put("/posts/{post_id}/approve", response_model=schemas.PostDetail)
def approve_post(
    post_id: int,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(require_editor),
) -> models.Post:
    """Publish a draft, pending or rejected post and notify its author."""
    return services.posts.approve(db, current_user, post_id)


@router.put("/posts/{post_id}/reject", response_model=schemas.PostDetail)
def reject_post(
    post_id: int,
    payload: schemas.RejectRequest | None = None,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(require_editor),
) -> models.Post:
    """Reject a post with an optional note for the author."""
    note = payload.note if payload is not None else ""
    return services.posts.reject(db, current_user, post_id, note)


# ============================================================================
# ADMINISTRATION (admin only)
# ============================================================================


@router.delete("/posts/{post_id}", response_model=schemas.MessageResponse)
def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(require_admin),
) -> schemas.MessageResponse:
    services.posts.delete(db, current_user, post_id)
    return schemas.MessageResponse(message="Post deleted")


@router.get("/users", response_model=schemas.Page[schemas.UserFull])
def list_users(
    search: str | None = Query(None, max_length=100),
    role: schemas.RoleName | None = Query(None),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    _admin: models.User = Depends(require_admin),
):
    users, total = services.users.list_users(db, pagination, search=search, role=role)
    return pagination.page_response(users, total)


@router.put("/users/{user_id}", response_model=schemas.UserFull)
def update_user(
    user_id: int,
    payload: schemas.AdminUserUpdate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(require_admin),
) -> models.User:
    """Change a user's role or suspension flag. Admins cannot do either to themselves."""
    return services.users.admin_update(db, current_user, user_id, payload)


@router.delete("/users/{user_id}", response_model=schemas.MessageResponse)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(require_admin),
) -> schemas.MessageResponse:
    services.users.admin_delete(db, current_user, user_id)
    return schemas.MessageResponse(message="User deleted")


@router.get("/logs", response_model=schemas.Page[schemas.ActivityLog])
def activity_logs(
    user_id: int | None = Query(None),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    _admin: models.User = Depends(require_admin),
):
    logs, total = services.admin.activity_logs(db, pagination, user_id=user_id)
    return pagination.page_response(logs, total)


# ============================================================================
# SITE SETTINGS (admin only)
# ============================================================================


@router.get("/seo", response_model=schemas.SeoSettings)
def get_seo_settings(
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    _admin: models.User = Depends(require_admin),
) -> models.SeoSettings:
    return services.admin.get_seo_settings(db)


@router.put("/seo", response_model=schemas.SeoSettings)
def update_seo_settings(
    payload: schemas.SeoSettingsUpdate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(require_admin),
) -> models.SeoSettings:
    """Update the site-wide SEO fields. Omitted fields keep their value."""
    return services.admin.update_seo_settings(db, current_user, payload)


@router.get("/ads", response_model=list[schemas.AdPlacement])
def list_ads(
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    _admin: models.User = Depends(require_admin),
) -> list[models.AdPlacement]:
    return services.admin.list_ads(db)


@router.post("/ads", response_model=schemas.AdPlacement, status_code=status.HTTP_201_CREATED)
def create_ad(
    payload: schemas.AdPlacementCreate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(require_admin),
) -> models.AdPlacement:
    return services.admin.create_ad(db, current_user, payload)


@router.put("/ads/{ad_id}", response_model=schemas.AdPlacement)
def update_ad(
    ad_id: int,
    payload: schemas.AdPlacementUpdate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(require_admin),
) -> models.AdPlacement:
    return services.admin.update_ad(db, current_user, ad_id, payload)


@router.delete("/ads/{ad_id}", response_model=schemas.MessageResponse)
def delete_ad(
    ad_id: int,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(require_admin),
) -> schemas.MessageResponse:
    services.admin.delete_ad(db, current_user, ad_id)
    return schemas.MessageResponse(message="Ad placement deleted")

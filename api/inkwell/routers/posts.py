"""Post endpoints: public reading, authoring and the author's own list."""

from __future__ import annotations

import logging
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user, get_current_user_optional, require_subscriber
from ..container import Services
from ..deps import get_db, get_services
from ..pagination import Pagination, get_pagination

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["Posts"])


@router.get("", response_model=schemas.Page[schemas.PostSummary])
def list_posts(
    category: str | None = Query(None, description="Category slug"),
    tag: str | None = Query(None, description="Tag slug"),
    author: str | None = Query(None, description="Author id or username"),
    featured: bool | None = Query(None),
    search: str | None = Query(None, max_length=200),
    sort: Literal["newest", "oldest", "trending"] | None = Query(None),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User | None = Depends(get_current_user_optional),
):
    """
    List published posts.

    Filters combine with AND. ``sort=trending`` orders by views.
    """
    posts, total = services.posts.list_published(
        db,
        pagination,
        viewer=current_user,
        category=category,
        tag=tag,
        author=author,
        featured=featured,
        search=search,
        sort=sort,
    )
    return pagination.page_response(posts, total)


@router.get("/trending", response_model=list[schemas.PostSummary])
def trending_posts(
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> list[models.Post]:
    """Most viewed posts published in the last seven days."""
    return services.posts.trending(db, viewer=current_user)


@router.get("/mine", response_model=schemas.Page[schemas.PostSummary])
def my_posts(
    status_filter: schemas.PostStatusName | None = Query(None, alias="status"),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(get_current_user),
):
    posts, total = services.posts.list_for_author(db, current_user, pagination, status=status_filter)
    return pagination.page_response(posts, total)


@router.get("/{slug}", response_model=schemas.PostDetail)
def get_post(
    slug: str,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> models.Post:
    """
    Fetch a post by slug and count the view.

    Unpublished posts are only visible to their author and to editors/admins;
    everyone else gets 404.
    """
    return services.posts.get_by_slug(db, slug, viewer=current_user)


@router.post("", response_model=schemas.PostDetail, status_code=status.HTTP_201_CREATED)
def create_post(
    payload: schemas.PostCreate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(require_subscriber),
) -> models.Post:
    return services.posts.create(db, current_user, payload)


@router.put("/{post_id}", response_model=schemas.PostDetail)
def update_post(
    post_id: int,
    payload: schemas.PostUpdate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(get_current_user),
) -> models.Post:
    """Partial update. Only the fields present in the body change."""
    return services.posts.update(db, current_user, post_id, payload)


@router.put("/{post_id}/submit", response_model=schemas.PostDetail)
def submit_post(
    post_id: int,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(get_current_user),
) -> models.Post:
    return services.posts.submit(db, current_user, post_id)


@router.delete("/{post_id}", response_model=schemas.MessageResponse)
def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MessageResponse:
    services.posts.delete(db, current_user, post_id)
    return schemas.MessageResponse(message="Post deleted")


@router.post("/{post_id}/like", response_model=schemas.LikeResponse)
def toggle_like(
    post_id: int,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(get_current_user),
) -> schemas.LikeResponse:
    """Like the post, or remove the like if it is already there."""
    return services.social.toggle_like(db, current_user, post_id)

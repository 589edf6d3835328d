"""Category endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import require_admin, require_editor
from ..container import Services
from ..deps import get_db, get_services

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("", response_model=list[schemas.Category])
def list_categories(
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
) -> list[models.Category]:
    """All categories with their published post counts."""
    return services.taxonomy.list_categories(db)


@router.get("/{slug}", response_model=schemas.Category)
def get_category(
    slug: str,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
) -> models.Category:
    return services.taxonomy.get_category(db, slug)


@router.post("", response_model=schemas.Category, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: schemas.CategoryCreate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    _editor: models.User = Depends(require_editor),
) -> models.Category:
    return services.taxonomy.create_category(db, payload)


@router.put("/{category_id}", response_model=schemas.Category)
def update_category(
    category_id: int,
    payload: schemas.CategoryUpdate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    _editor: models.User = Depends(require_editor),
) -> models.Category:
    return services.taxonomy.update_category(db, category_id, payload)


@router.delete("/{category_id}", response_model=schemas.MessageResponse)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    _admin: models.User = Depends(require_admin),
) -> schemas.MessageResponse:
    services.taxonomy.delete_category(db, category_id)
    return schemas.MessageResponse(message="Category deleted")

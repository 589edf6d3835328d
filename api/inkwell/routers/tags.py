"""Tag endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import require_admin, require_editor
from ..container import Services
from ..deps import get_db, get_services

router = APIRouter(prefix="/tags", tags=["Tags"])


@router.get("", response_model=list[schemas.Tag])
def list_tags(
    search: str | None = Query(None, max_length=100),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
) -> list[models.Tag]:
    """Tags ordered by published post count (at most 100)."""
    return services.taxonomy.list_tags(db, search=search)


@router.post("", response_model=schemas.Tag, status_code=status.HTTP_201_CREATED)
def create_tag(
    payload: schemas.TagCreate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    _editor: models.User = Depends(require_editor),
) -> models.Tag:
    return services.taxonomy.create_tag(db, payload.name)


@router.delete("/{tag_id}", response_model=schemas.MessageResponse)
def delete_tag(
    tag_id: int,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    _admin: models.User = Depends(require_admin),
) -> schemas.MessageResponse:
    services.taxonomy.delete_tag(db, tag_id)
    return schemas.MessageResponse(message="Tag deleted")

"""Media library endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user
from ..container import Services
from ..deps import get_db, get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/media", tags=["Media"])


@router.post("/upload", response_model=schemas.Media, status_code=status.HTTP_201_CREATED)
async def upload_media(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(get_current_user),
) -> models.Media:
    """
    Upload an image, video or PDF.

    Allowed: jpeg, png, gif, webp, svg, mp4, pdf. The file is served back from
    ``/uploads/{user_id}/{filename}``.
    """
    content = await file.read()
    media = services.media.upload(
        db,
        current_user,
        content,
        original_name=file.filename,
        mime_type=file.content_type,
    )
    logger.info(f"User {current_user.id} uploaded media {media.id} ({media.size} bytes)")
    return media


@router.get("/mine", response_model=list[schemas.Media])
def my_media(
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(get_current_user),
) -> list[models.Media]:
    return services.media.list_for_user(db, current_user)


@router.delete("/{media_id}", response_model=schemas.MessageResponse)
def delete_media(
    media_id: int,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MessageResponse:
    services.media.delete(db, current_user, media_id)
    return schemas.MessageResponse(message="Media deleted")

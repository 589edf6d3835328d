"""Bookmark endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user
from ..container import Services
from ..deps import get_db, get_services
from ..pagination import Pagination, get_pagination

router = APIRouter(prefix="/bookmarks", tags=["Bookmarks"])


@router.get("", response_model=schemas.Page[schemas.PostSummary])
def list_bookmarks(
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(get_current_user),
):
    posts, total = services.social.list_bookmarks(db, current_user, pagination)
    return pagination.page_response(posts, total)


@router.post("", response_model=schemas.MessageResponse, status_code=status.HTTP_201_CREATED)
def add_bookmark(
    payload: schemas.BookmarkCreate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MessageResponse:
    services.social.add_bookmark(db, current_user, payload.post_id)
    return schemas.MessageResponse(message="Post bookmarked")


@router.delete("/{post_id}", response_model=schemas.MessageResponse)
def remove_bookmark(
    post_id: int,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MessageResponse:
    services.social.remove_bookmark(db, current_user, post_id)
    return schemas.MessageResponse(message="Bookmark removed")

"""Comment endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user
from ..container import Services
from ..deps import get_db, get_services
from ..pagination import Pagination, get_pagination

router = APIRouter(prefix="/comments", tags=["Comments"])


@router.get("", response_model=schemas.Page[schemas.Comment])
def list_comments(
    post_id: int = Query(..., description="Post the comments belong to"),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    comments, total = services.social.list_comments(db, post_id, pagination)
    return pagination.page_response(comments, total)


@router.post("", response_model=schemas.Comment, status_code=status.HTTP_201_CREATED)
def create_comment(
    payload: schemas.CommentCreate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(get_current_user),
) -> models.Comment:
    """
    Comment on a published post, optionally as a reply.

    The post author is notified unless they wrote the comment.
    """
    return services.social.create_comment(db, current_user, payload)


@router.delete("/{comment_id}", response_model=schemas.MessageResponse)
def delete_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MessageResponse:
    services.social.delete_comment(db, current_user, comment_id)
    return schemas.MessageResponse(message="Comment deleted")

"""Notification endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user, require_admin
from ..container import Services
from ..deps import get_db, get_services

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=schemas.NotificationList)
def list_notifications(
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(get_current_user),
) -> schemas.NotificationList:
    """
    The caller's notifications plus broadcasts, newest first (at most 50).

    ``unread_count`` covers everything, not just the returned page.
    """
    return services.notifications.list_for_user(db, current_user)


@router.put("/read-all", response_model=schemas.MessageResponse)
def mark_all_read(
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MessageResponse:
    services.notifications.mark_all_read(db, current_user)
    return schemas.MessageResponse(message="All notifications marked as read")


@router.put("/{notification_id}/read", response_model=schemas.MessageResponse)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MessageResponse:
    services.notifications.mark_read(db, current_user, notification_id)
    return schemas.MessageResponse(message="Notification marked as read")


@router.delete("/{notification_id}", response_model=schemas.MessageResponse)
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(get_current_user),
) -> schemas.MessageResponse:
    services.notifications.delete(db, current_user, notification_id)
    return schemas.MessageResponse(message="Notification deleted")


@router.post(
    "/broadcast",
    response_model=schemas.Notification,
    status_code=status.HTTP_201_CREATED,
)
def broadcast(
    payload: schemas.BroadcastNotificationRequest,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    _admin: models.User = Depends(require_admin),
) -> schemas.Notification:
    """Send a notification to every user."""
    notification = services.notifications.broadcast(
        db, title=payload.title, message=payload.message, link=payload.link
    )
    return schemas.Notification(
        id=notification.id,
        type=notification.type,
        title=notification.title,
        message=notification.message,
        link=notification.link,
        is_read=False,
        is_broadcast=True,
        created_at=notification.created_at,
    )

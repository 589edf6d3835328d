"""Service for managing notifications."""

from __future__ import annotations

import logging

from sqlalchemy import and_, exists, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import is_admin
from ..errors import AuthorizationError, NotFound

logger = logging.getLogger(__name__)

MAX_LISTED = 50


class NotificationService:
    """
    Creates and manages notifications.

    A row with ``user_id`` NULL is a broadcast to every user. Targeted rows
    carry their own ``is_read`` flag; broadcast read state lives in
    per-user NotificationReceipt rows.
    """

    def notify(
        self,
        db: Session,
        user_id: int,
        notification_type: str,
        title: str,
        message: str | None = None,
        link: str | None = None,
        actor_id: int | None = None,
    ) -> models.Notification | None:
        """
        Best-effort: the caller's own work must already be committed.

        Returns None when skipped (self-notification) or when the insert failed.
        """
        # Don't notify users about their own actions
        if actor_id is not None and actor_id == user_id:
            return None

        notification = models.Notification(
            user_id=user_id,
            type=notification_type,
            title=title,
            message=message,
            link=link,
            is_read=False,
        )
        try:
            db.add(notification)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"Failed to create {notification_type} notification for user {user_id}: {e}")
            return None

        logger.info(f"Created {notification_type} notification {notification.id} for user {user_id}")
        return notification

    def broadcast(
        self,
        db: Session,
        title: str,
        message: str | None = None,
        link: str | None = None,
    ) -> models.Notification:
        notification = models.Notification(
            user_id=None,
            type="broadcast",
            title=title,
            message=message,
            link=link,
            is_read=False,
        )
        db.add(notification)
        db.commit()
        db.refresh(notification)
        logger.info(f"Broadcast notification {notification.id} created: {title}")
        return notification

    def _visible_to(self, user: models.User):
        return or_(models.Notification.user_id == user.id, models.Notification.user_id.is_(None))

    def _receipt_exists(self, user: models.User):
        return exists().where(
            and_(
                models.NotificationReceipt.notification_id == models.Notification.id,
                models.NotificationReceipt.user_id == user.id,
            )
        )

    def list_for_user(self, db: Session, user: models.User) -> schemas.NotificationList:
        """Newest first, at most 50, with the overall unread count."""
        rows = (
            db.query(models.Notification)
            .filter(self._visible_to(user))
            .order_by(models.Notification.created_at.desc(), models.Notification.id.desc())
            .limit(MAX_LISTED)
            .all()
        )

        broadcast_ids = [n.id for n in rows if n.user_id is None]
        read_broadcasts: set[int] = set()
        if broadcast_ids:
            read_broadcasts = {
                notification_id
                for (notification_id,) in db.query(models.NotificationReceipt.notification_id).filter(
                    models.NotificationReceipt.user_id == user.id,
                    models.NotificationReceipt.notification_id.in_(broadcast_ids),
                )
            }

        items = [
            schemas.Notification(
                id=n.id,
                type=n.type,
                title=n.title,
                message=n.message,
                link=n.link,
                is_read=(n.id in read_broadcasts) if n.user_id is None else bool(n.is_read),
                is_broadcast=n.user_id is None,
                created_at=n.created_at,
            )
            for n in rows
        ]
        return schemas.NotificationList(items=items, unread_count=self.unread_count(db, user))

    def unread_count(self, db: Session, user: models.User) -> int:
        targeted = (
            db.query(models.Notification)
            .filter(models.Notification.user_id == user.id, models.Notification.is_read.is_(False))
            .count()
        )
        broadcasts = (
            db.query(models.Notification)
            .filter(models.Notification.user_id.is_(None), ~self._receipt_exists(user))
            .count()
        )
        return targeted + broadcasts

    def _get_visible(self, db: Session, user: models.User, notification_id: int) -> models.Notification:
        notification = (
            db.query(models.Notification)
            .filter(models.Notification.id == notification_id, self._visible_to(user))
            .first()
        )
        if not notification:
            raise NotFound("Notification not found")
        return notification

    def _add_receipt(self, db: Session, notification_id: int, user_id: int) -> None:
        existing = (
            db.query(models.NotificationReceipt)
            .filter(
                models.NotificationReceipt.notification_id == notification_id,
                models.NotificationReceipt.user_id == user_id,
            )
            .first()
        )
        if not existing:
            db.add(models.NotificationReceipt(notification_id=notification_id, user_id=user_id))

    def mark_read(self, db: Session, user: models.User, notification_id: int) -> None:
        notification = self._get_visible(db, user, notification_id)
        if notification.user_id is None:
            self._add_receipt(db, notification.id, user.id)
        else:
            notification.is_read = True
        db.commit()

    def mark_all_read(self, db: Session, user: models.User) -> None:
        (
            db.query(models.Notification)
            .filter(models.Notification.user_id == user.id, models.Notification.is_read.is_(False))
            .update({models.Notification.is_read: True}, synchronize_session=False)
        )
        unread_broadcast_ids = [
            notification_id
            for (notification_id,) in db.query(models.Notification.id).filter(
                models.Notification.user_id.is_(None), ~self._receipt_exists(user)
            )
        ]
        for notification_id in unread_broadcast_ids:
            db.add(models.NotificationReceipt(notification_id=notification_id, user_id=user.id))
        db.commit()

    def delete(self, db: Session, user: models.User, notification_id: int) -> None:
        """Users delete their own notifications; only admins delete broadcasts."""
        notification = self._get_visible(db, user, notification_id)
        if notification.user_id is None and not is_admin(user):
            raise AuthorizationError("Only admins can delete broadcast notifications")
        db.delete(notification)
        db.commit()

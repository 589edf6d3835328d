"""Newsletter subscriptions and broadcasts."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from .. import models
from ..errors import Conflict, ValidationError
from ..utils.transactions import commit_or_conflict

logger = logging.getLogger(__name__)


def _clean_email(email: str) -> str:
    email = (email or "").strip().lower()
    if "@" not in email:
        raise ValidationError("A valid email address is required")
    return email


class NewsletterService:
    def subscribe(self, db: Session, email: str) -> models.NewsletterSubscriber:
        """New addresses are added; inactive ones are reactivated; active ones conflict."""
        email = _clean_email(email)
        subscriber = (
            db.query(models.NewsletterSubscriber)
            .filter(models.NewsletterSubscriber.email == email)
            .first()
        )
        if subscriber:
            if subscriber.is_active:
                raise Conflict("Already subscribed")
            subscriber.is_active = True
        else:
            subscriber = models.NewsletterSubscriber(email=email, is_active=True)
            db.add(subscriber)

        commit_or_conflict(db, "Already subscribed")
        db.refresh(subscriber)
        logger.info(f"Newsletter subscription for {email}")
        return subscriber

    def unsubscribe(self, db: Session, email: str) -> None:
        """Deactivate the address. Unknown addresses are a no-op."""
        email = _clean_email(email)
        (
            db.query(models.NewsletterSubscriber)
            .filter(models.NewsletterSubscriber.email == email)
            .update({models.NewsletterSubscriber.is_active: False}, synchronize_session=False)
        )
        db.commit()

    def list_subscribers(self, db: Session) -> list[models.NewsletterSubscriber]:
        return (
            db.query(models.NewsletterSubscriber)
            .order_by(models.NewsletterSubscriber.created_at.desc(), models.NewsletterSubscriber.id.desc())
            .all()
        )

    def active_emails(self, db: Session) -> list[str]:
        return [
            email
            for (email,) in db.query(models.NewsletterSubscriber.email).filter(
                models.NewsletterSubscriber.is_active.is_(True)
            )
        ]

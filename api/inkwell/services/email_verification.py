"""Email verification links sent after registration.

Only a SHA-256 digest of each link token is stored. An account has at most one
live link: issuing a new one discards any earlier unused links.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from .. import models

logger = logging.getLogger(__name__)

LINK_LIFETIME = timedelta(hours=24)


def _digest(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def _utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back; stored values are UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def create_verification_token(db: Session, user_id: int, email: str) -> str:
    """Issue a verification link token for ``email`` and return it in plain form."""
    (
        db.query(models.EmailVerificationToken)
        .filter(
            models.EmailVerificationToken.user_id == user_id,
            models.EmailVerificationToken.used_at.is_(None),
        )
        .delete(synchronize_session=False)
    )

    token = secrets.token_urlsafe(32)
    link = models.EmailVerificationToken(
        user_id=user_id,
        token_hash=_digest(token),
        email=email,
        expires_at=datetime.now(timezone.utc) + LINK_LIFETIME,
    )
    db.add(link)
    db.commit()

    logger.info(f"Issued verification link for user {user_id} (valid {LINK_LIFETIME})")
    return token


def _redeemable_link(db: Session, token: str) -> models.EmailVerificationToken | None:
    link = (
        db.query(models.EmailVerificationToken)
        .filter(models.EmailVerificationToken.token_hash == _digest(token))
        .first()
    )
    if link is None:
        logger.info("Verification link rejected: unknown token")
        return None
    if link.used_at is not None:
        logger.info(f"Verification link for user {link.user_id} rejected: already redeemed")
        return None
    if _utc(link.expires_at) < datetime.now(timezone.utc):
        logger.info(f"Verification link for user {link.user_id} rejected: expired")
        return None
    return link


def mark_email_verified(db: Session, token: str) -> models.User | None:
    """Redeem a link and flag its account as verified. Returns None for a dead link."""
    link = _redeemable_link(db, token)
    if link is None:
        return None

    user = link.user
    link.used_at = datetime.now(timezone.utc)
    user.email = link.email
    user.is_verified = True
    db.commit()
    db.refresh(user)

    logger.info(f"User {user.id} verified {user.email}")
    return user

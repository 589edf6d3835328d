"""Audit logging utility for post status changes."""

from __future__ import annotations

from sqlalchemy.orm import Session

from .. import models


def log_status_change(
    db: Session,
    post: models.Post,
    actor_id: int | None,
    old_status: str | None,
    new_status: str,
    note: str | None = None,
) -> models.PostStatusLog:
    """
    Append a row to the post status log.

    The row is added to the session but not committed, so it lands in the same
    transaction as the status change it records.

    Args:
        db: Database session
        post: The post whose status changed
        actor_id: ID of the user performing the change
        old_status: Status before the change
        new_status: Status after the change
        note: Moderator note (rejection reason, etc.)

    Returns:
        The pending PostStatusLog entry
    """
    entry = models.PostStatusLog(
        post_id=post.id,
        changed_by=actor_id,
        old_status=old_status,
        new_status=new_status,
        note=note,
    )
    db.add(entry)
    return entry

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import Conflict

logger = logging.getLogger(__name__)


def commit_or_conflict(db: Session, message: str = "Already exists") -> None:
    """
    Commit the session, turning a unique-constraint violation into ``Conflict``.

    The session is rolled back before raising so it stays usable.
    """
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        error_str = str(e.orig) if hasattr(e, "orig") else str(e)
        logger.warning(f"Integrity error on commit: {error_str}")
        raise Conflict(message) from e

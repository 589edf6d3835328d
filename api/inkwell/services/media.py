"""Media library: uploads owned by a user."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from .. import models
from ..auth import is_admin
from ..errors import AuthorizationError, NotFound, ValidationError
from ..media_storage import MediaStorage

logger = logging.getLogger(__name__)


class MediaService:
    def __init__(self, storage: MediaStorage) -> None:
        self.storage = storage

    def upload(
        self,
        db: Session,
        owner: models.User,
        content: bytes,
        original_name: str | None,
        mime_type: str | None,
    ) -> models.Media:
        try:
            extension = self.storage.validate(original_name, mime_type, len(content))
        except ValueError as e:
            raise ValidationError(str(e))

        filename, url = self.storage.save(owner.id, content, extension)
        media = models.Media(
            user_id=owner.id,
            filename=filename,
            original_name=original_name,
            mime_type=(mime_type or "").lower(),
            size=len(content),
            url=url,
        )
        db.add(media)
        db.commit()
        db.refresh(media)
        return media

    def list_for_user(self, db: Session, owner: models.User) -> list[models.Media]:
        return (
            db.query(models.Media)
            .filter(models.Media.user_id == owner.id)
            .order_by(models.Media.created_at.desc(), models.Media.id.desc())
            .all()
        )

    def delete(self, db: Session, actor: models.User, media_id: int) -> None:
        """Owner or admin. The row goes even if the file is already missing."""
        media = db.query(models.Media).filter(models.Media.id == media_id).first()
        if not media:
            raise NotFound("Media not found")
        if media.user_id != actor.id and not is_admin(actor):
            raise AuthorizationError("You don't have permission to delete this file")

        self.storage.try_delete(media.user_id, media.filename)
        db.delete(media)
        db.commit()
        logger.info(f"Media {media_id} deleted by user {actor.id}")

"""Admin dashboard: analytics, the activity log, SEO settings and ad placements."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models, schemas
from ..errors import NotFound
from ..models import PostStatus
from ..pagination import Pagination, paginate

logger = logging.getLogger(__name__)

RECENT_WINDOW = timedelta(days=7)
TOP_LIMIT = 5


class AdminService:
    def analytics(self, db: Session) -> schemas.Analytics:
        since = datetime.now(timezone.utc) - RECENT_WINDOW

        def count_posts(*criteria) -> int:
            return db.query(models.Post).filter(*criteria).count()

        counts = schemas.AnalyticsCounts(
            users=db.query(models.User).count(),
            posts=count_posts(),
            published=count_posts(models.Post.status == PostStatus.PUBLISHED.value),
            pending=count_posts(models.Post.status == PostStatus.PENDING.value),
            comments=db.query(models.Comment).count(),
            views=db.query(func.coalesce(func.sum(models.Post.views), 0)).scalar() or 0,
            reports=db.query(models.Report).count(),
            new_users_7d=db.query(models.User).filter(models.User.created_at >= since).count(),
            new_posts_7d=count_posts(models.Post.created_at >= since),
        )

        top_posts = (
            db.query(models.Post)
            .filter(models.Post.status == PostStatus.PUBLISHED.value)
            .order_by(models.Post.views.desc(), models.Post.id.desc())
            .limit(TOP_LIMIT)
            .all()
        )
        recent_users = (
            db.query(models.User)
            .order_by(models.User.created_at.desc(), models.User.id.desc())
            .limit(TOP_LIMIT)
            .all()
        )
        return schemas.Analytics(
            counts=counts,
            top_posts=[schemas.TopPost.model_validate(p) for p in top_posts],
            recent_users=[schemas.UserFull.model_validate(u) for u in recent_users],
        )

    def activity_logs(
        self, db: Session, pagination: Pagination, user_id: int | None = None
    ) -> tuple[list[models.ActivityLog], int]:
        query = db.query(models.ActivityLog)
        if user_id is not None:
            query = query.filter(models.ActivityLog.user_id == user_id)
        query = query.order_by(models.ActivityLog.created_at.desc(), models.ActivityLog.id.desc())
        return paginate(query, pagination)

    # ------------------------------------------------------------------
    # SEO settings
    # ------------------------------------------------------------------

    def get_seo_settings(self, db: Session) -> models.SeoSettings:
        """Return the settings row, creating it with defaults when missing."""
        settings = db.get(models.SeoSettings, 1)
        if settings is None:
            settings = models.SeoSettings(id=1, site_name="Inkwell")
            db.add(settings)
            db.commit()
            db.refresh(settings)
        return settings

    def update_seo_settings(
        self, db: Session, actor: models.User, payload: schemas.SeoSettingsUpdate
    ) -> models.SeoSettings:
        settings = self.get_seo_settings(db)
        fields = payload.model_dump(exclude_unset=True)
        # site_name is required on the row, so an explicit null leaves it alone
        if fields.get("site_name") is None:
            fields.pop("site_name", None)
        for field, value in fields.items():
            setattr(settings, field, value)
        db.commit()
        db.refresh(settings)
        logger.info(f"SEO settings updated by user {actor.id}: {sorted(fields)}")
        return settings

    # ------------------------------------------------------------------
    # Ad placements
    # ------------------------------------------------------------------

    def list_ads(self, db: Session) -> list[models.AdPlacement]:
        return (
            db.query(models.AdPlacement)
            .order_by(models.AdPlacement.created_at.desc(), models.AdPlacement.id.desc())
            .all()
        )

    def _get_ad(self, db: Session, ad_id: int) -> models.AdPlacement:
        ad = db.get(models.AdPlacement, ad_id)
        if ad is None:
            raise NotFound("Ad placement not found")
        return ad

    def create_ad(
        self, db: Session, actor: models.User, payload: schemas.AdPlacementCreate
    ) -> models.AdPlacement:
        ad = models.AdPlacement(
            name=payload.name.strip(),
            position=payload.position,
            code=payload.code,
            is_active=payload.is_active,
        )
        db.add(ad)
        db.commit()
        db.refresh(ad)
        logger.info(f"Ad placement {ad.id} ({ad.position}) created by user {actor.id}")
        return ad

    def update_ad(
        self, db: Session, actor: models.User, ad_id: int, payload: schemas.AdPlacementUpdate
    ) -> models.AdPlacement:
        ad = self._get_ad(db, ad_id)
        fields = payload.model_dump(exclude_unset=True)
        if fields.get("name") is not None:
            ad.name = fields["name"].strip()
        if fields.get("position") is not None:
            ad.position = fields["position"]
        if "code" in fields:
            ad.code = fields["code"]
        if fields.get("is_active") is not None:
            ad.is_active = fields["is_active"]
        db.commit()
        db.refresh(ad)
        logger.info(f"Ad placement {ad_id} updated by user {actor.id}")
        return ad

    def delete_ad(self, db: Session, actor: models.User, ad_id: int) -> None:
        ad = self._get_ad(db, ad_id)
        db.delete(ad)
        db.commit()
        logger.info(f"Ad placement {ad_id} deleted by user {actor.id}")

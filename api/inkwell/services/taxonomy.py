"""Categories and tags."""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .. import models, schemas
from ..errors import Conflict, NotFound, ValidationError
from ..models import PostStatus
from ..utils.slugs import slugify
from ..utils.transactions import commit_or_conflict

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_COLOR = "#6366f1"
MAX_TAGS_LISTED = 100


def _published_count(link_table, link_column, owner_id_column):
    """Correlated count of published posts linked through ``link_table``."""
    return (
        select(func.count(models.Post.id))
        .select_from(link_table.join(models.Post, models.Post.id == link_table.c.post_id))
        .where(link_column == owner_id_column, models.Post.status == PostStatus.PUBLISHED.value)
        .scalar_subquery()
    )


class TaxonomyService:
    """Category and tag management, plus resolving them for posts."""

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def _category_count(self):
        return _published_count(
            models.post_categories, models.post_categories.c.category_id, models.Category.id
        ).label("post_count")

    def list_categories(self, db: Session) -> list[models.Category]:
        rows = (
            db.query(models.Category, self._category_count())
            .order_by(models.Category.name.asc())
            .all()
        )
        categories = []
        for category, post_count in rows:
            category.post_count = post_count or 0
            categories.append(category)
        return categories

    def get_category(self, db: Session, slug: str) -> models.Category:
        row = (
            db.query(models.Category, self._category_count())
            .filter(models.Category.slug == slug)
            .first()
        )
        if not row:
            raise NotFound("Category not found")
        category, post_count = row
        category.post_count = post_count or 0
        return category

    def _get_category_by_id(self, db: Session, category_id: int) -> models.Category:
        category = db.query(models.Category).filter(models.Category.id == category_id).first()
        if not category:
            raise NotFound("Category not found")
        return category

    def _category_slug(self, db: Session, name: str, exclude_id: int | None = None) -> str:
        slug = slugify(name)
        if not slug:
            raise ValidationError("Category name must contain letters or numbers")
        query = db.query(models.Category.id).filter(models.Category.slug == slug)
        if exclude_id is not None:
            query = query.filter(models.Category.id != exclude_id)
        if query.first():
            raise Conflict("Category already exists")
        return slug

    def create_category(self, db: Session, payload: schemas.CategoryCreate) -> models.Category:
        name = payload.name.strip()
        category = models.Category(
            name=name,
            slug=self._category_slug(db, name),
            description=payload.description,
            color=payload.color or DEFAULT_CATEGORY_COLOR,
        )
        db.add(category)
        commit_or_conflict(db, "Category already exists")
        db.refresh(category)
        category.post_count = 0
        logger.info(f"Created category {category.id} ({category.slug})")
        return category

    def update_category(
        self, db: Session, category_id: int, payload: schemas.CategoryUpdate
    ) -> models.Category:
        category = self._get_category_by_id(db, category_id)
        fields = payload.model_dump(exclude_unset=True)

        if fields.get("name") is not None:
            name = fields["name"].strip()
            if name != category.name:
                category.slug = self._category_slug(db, name, exclude_id=category.id)
                category.name = name
        if "description" in fields:
            category.description = fields["description"]
        if fields.get("color") is not None:
            category.color = fields["color"]

        commit_or_conflict(db, "Category already exists")
        return self.get_category(db, category.slug)

    def delete_category(self, db: Session, category_id: int) -> None:
        category = self._get_category_by_id(db, category_id)
        db.delete(category)
        db.commit()
        logger.info(f"Deleted category {category_id}")

    def load_categories(self, db: Session, category_ids: Iterable[int]) -> list[models.Category]:
        """Resolve category ids for linking to a post. Unknown ids are rejected."""
        wanted = list(dict.fromkeys(category_ids))
        if not wanted:
            return []
        found = db.query(models.Category).filter(models.Category.id.in_(wanted)).all()
        by_id = {category.id: category for category in found}
        missing = [category_id for category_id in wanted if category_id not in by_id]
        if missing:
            raise ValidationError(f"Unknown category id(s): {', '.join(str(i) for i in missing)}")
        return [by_id[category_id] for category_id in wanted]

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def list_tags(self, db: Session, search: str | None = None) -> list[models.Tag]:
        """Tags ordered by published post count, at most 100."""
        post_count = _published_count(
            models.post_tags, models.post_tags.c.tag_id, models.Tag.id
        ).label("post_count")
        query = db.query(models.Tag, post_count)
        if search:
            query = query.filter(models.Tag.name.ilike(f"%{search}%"))
        rows = (
            query.order_by(post_count.desc(), models.Tag.name.asc())
            .limit(MAX_TAGS_LISTED)
            .all()
        )
        tags = []
        for tag, count in rows:
            tag.post_count = count or 0
            tags.append(tag)
        return tags

    def create_tag(self, db: Session, name: str) -> models.Tag:
        name = name.strip()
        slug = slugify(name)
        if not slug:
            raise ValidationError("Tag name must contain letters or numbers")
        if db.query(models.Tag.id).filter(models.Tag.slug == slug).first():
            raise Conflict("Tag already exists")
        tag = models.Tag(name=name, slug=slug)
        db.add(tag)
        commit_or_conflict(db, "Tag already exists")
        db.refresh(tag)
        tag.post_count = 0
        return tag

    def delete_tag(self, db: Session, tag_id: int) -> None:
        tag = db.query(models.Tag).filter(models.Tag.id == tag_id).first()
        if not tag:
            raise NotFound("Tag not found")
        db.delete(tag)
        db.commit()
        logger.info(f"Deleted tag {tag_id}")

    def resolve_tags(self, db: Session, names: Iterable[str]) -> list[models.Tag]:
        """
        Find or create tags by name. Names are matched on their slug, and names
        that slugify to nothing are skipped.
        """
        tags: list[models.Tag] = []
        seen: set[str] = set()
        for raw_name in names:
            name = (raw_name or "").strip()
            slug = slugify(name)
            if not slug or slug in seen:
                continue
            seen.add(slug)
            tag = db.query(models.Tag).filter(models.Tag.slug == slug).first()
            if not tag:
                tag = models.Tag(name=name, slug=slug)
                db.add(tag)
                db.flush()
            tags.append(tag)
        return tags

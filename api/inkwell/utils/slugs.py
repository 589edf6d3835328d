"""Slug generation and uniqueness probing."""

from __future__ import annotations

from slugify import slugify as _transliterate_slug
from sqlalchemy.orm import Session

FALLBACK_SLUG = "post"


def slugify(text: str | None) -> str:
    """
    Transliterate to ASCII, lower-case, and join words with single hyphens.

    Returns an empty string when nothing survives.
    """
    if not text:
        return ""
    return _transliterate_slug(text)


def unique_slug(
    db: Session,
    model,
    text: str | None,
    exclude_id: int | None = None,
    fallback: str = FALLBACK_SLUG,
) -> str:
    """
    Find a free slug for ``model`` by linear probing: base, base-1, base-2, ...

    ``exclude_id`` lets a row keep its own slug while being re-slugged.
    """
    base = slugify(text) or fallback
    candidate = base
    counter = 1
    while _slug_taken(db, model, candidate, exclude_id):
        candidate = f"{base}-{counter}"
        counter += 1
    return candidate


def _slug_taken(db: Session, model, slug: str, exclude_id: int | None) -> bool:
    query = db.query(model.id).filter(model.slug == slug)
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    return query.first() is not None

from __future__ import annotations

import logging

from . import models
from .db import SessionLocal
from .models import Role
from .services.credentials import hash_password
from .settings import SEED_ADMIN_EMAIL, SEED_ADMIN_PASSWORD, SEED_ADMIN_USERNAME
from .utils.slugs import slugify

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES: list[tuple[str, str, str]] = [
    ("Artificial Intelligence", "Machine learning, LLMs and everything AI", "#6366f1"),
    ("Web Development", "Frontend, backend and the web platform", "#06b6d4"),
    ("Gadgets", "Hardware, devices and reviews", "#f59e0b"),
    ("Software Reviews", "Hands-on looks at apps and tools", "#10b981"),
    ("Cybersecurity", "Threats, defenses and privacy", "#ef4444"),
    ("App Development", "Mobile and desktop app building", "#8b5cf6"),
    ("Tech News", "What happened this week", "#ec4899"),
]


def ensure_default_categories(db) -> int:
    """Insert any missing default categories. Returns how many were created."""
    created = 0
    for name, description, color in DEFAULT_CATEGORIES:
        slug = slugify(name)
        if db.query(models.Category.id).filter(models.Category.slug == slug).first():
            continue
        db.add(models.Category(name=name, slug=slug, description=description, color=color))
        created += 1
    db.commit()
    return created


def ensure_admin_user(db) -> bool:
    """Create the bootstrap admin when SEED_ADMIN_EMAIL and SEED_ADMIN_PASSWORD are set."""
    if not SEED_ADMIN_EMAIL or not SEED_ADMIN_PASSWORD:
        return False

    email = SEED_ADMIN_EMAIL.strip().lower()
    existing = (
        db.query(models.User)
        .filter((models.User.email == email) | (models.User.username == SEED_ADMIN_USERNAME))
        .first()
    )
    if existing:
        return False

    db.add(
        models.User(
            username=SEED_ADMIN_USERNAME,
            email=email,
            password_hash=hash_password(SEED_ADMIN_PASSWORD),
            display_name="Administrator",
            role=Role.ADMIN.value,
            is_verified=True,
        )
    )
    db.commit()
    return True


def ensure_seed_data() -> None:
    db = SessionLocal()
    try:
        created = ensure_default_categories(db)
        logger.info(f"ensure_seed_data: {created} default categories created.")
        if ensure_admin_user(db):
            logger.info(f"ensure_seed_data: Created admin user '{SEED_ADMIN_USERNAME}'.")
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level="INFO")
    ensure_seed_data()

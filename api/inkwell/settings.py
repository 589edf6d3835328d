"""Centralized environment-driven settings.

Keep this module lightweight: stdlib and dotenv only, no app imports, to avoid circular deps.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _list_env(name: str, default: str) -> list[str]:
    raw = os.getenv(name) or default
    return [item.strip() for item in raw.split(",") if item.strip()]


LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# JWT
JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = _int_env("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", 7 * 24 * 60)

# Password hashing cost. Tests lower this to keep bcrypt fast.
BCRYPT_ROUNDS: int = _int_env("BCRYPT_ROUNDS", 12)

# Role handed out by /auth/register
DEFAULT_USER_ROLE: str = os.getenv("DEFAULT_USER_ROLE", "author")

# Pagination: page >= 1, 1 <= limit <= PAGE_MAX_LIMIT
PAGE_DEFAULT_LIMIT: int = _int_env("PAGE_DEFAULT_LIMIT", 12)
PAGE_MAX_LIMIT: int = _int_env("PAGE_MAX_LIMIT", 50)

# Media uploads
UPLOADS_DIR: str = os.getenv("UPLOADS_DIR", "./uploads")
MEDIA_MAX_BYTES: int = _int_env("MEDIA_MAX_BYTES", 10 * 1024 * 1024)

# Email (Resend)
RESEND_API_KEY: str | None = os.getenv("RESEND_API_KEY")
EMAIL_FROM: str = os.getenv("EMAIL_FROM", "Inkwell <noreply@inkwell.local>")
CLIENT_URL: str = os.getenv("CLIENT_URL", "http://localhost:5173")

TWO_FACTOR_ISSUER: str = os.getenv("TWO_FACTOR_ISSUER", "Inkwell")

CORS_ORIGINS: list[str] = _list_env(
    "CORS_ORIGINS",
    "http://localhost:5173,http://localhost:5174,http://localhost:5175",
)

# Optional bootstrap admin created by the seed step
SEED_ADMIN_EMAIL: str | None = os.getenv("SEED_ADMIN_EMAIL")
SEED_ADMIN_USERNAME: str = os.getenv("SEED_ADMIN_USERNAME", "admin")
SEED_ADMIN_PASSWORD: str | None = os.getenv("SEED_ADMIN_PASSWORD")

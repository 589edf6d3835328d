"""HTTP middleware: activity logging and security headers."""

from __future__ import annotations

import logging
import os
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from . import models
from .auth import get_client_ip
from .db import SessionLocal

logger = logging.getLogger(__name__)

# Only state-changing requests are recorded
LOGGED_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

EXCLUDED_PATH_PREFIXES = (
    "/uploads/",  # Static file serving
)


class ActivityLogMiddleware(BaseHTTPMiddleware):
    """
    Record state-changing API calls in the activity log.

    The user is whatever the auth dependency resolved for this request
    (``request.state.user_id``). Recording happens after the response is
    produced and never fails the request.
    """

    def __init__(self, app, session_factory: Callable = SessionLocal) -> None:
        super().__init__(app)
        self.session_factory = session_factory

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        if self._should_record(request):
            self._record(request)

        return response

    def _should_record(self, request: Request) -> bool:
        if request.method not in LOGGED_METHODS:
            return False
        if request.url.path.startswith(EXCLUDED_PATH_PREFIXES):
            return False
        return True

    def _record(self, request: Request) -> None:
        user_agent = request.headers.get("user-agent")
        entry = models.ActivityLog(
            user_id=getattr(request.state, "user_id", None),
            action=f"{request.method} {request.url.path}"[:255],
            ip_address=get_client_ip(request)[:45],
            user_agent=user_agent[:200] if user_agent else None,
        )
        db = self.session_factory()
        try:
            db.add(entry)
            db.commit()
        except Exception as e:
            # Log error but don't fail the request
            db.rollback()
            logger.warning(f"Failed to record activity for {request.method} {request.url.path}: {e}")
        finally:
            db.close()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.

    Implements OWASP recommended security headers to protect against
    common web vulnerabilities.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"

        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"

        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"

        environment = os.getenv("ENVIRONMENT", "development")
        if environment == "production" or request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        # JSON API; uploaded media is served from the same origin
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; img-src 'self' data:; frame-ancestors 'none'; base-uri 'self'"
        )

        return response

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from fastapi import Query

from .settings import PAGE_DEFAULT_LIMIT, PAGE_MAX_LIMIT


@dataclass
class Pagination:
    """Clamped page/limit pair. Out-of-range values are pulled into bounds, never rejected."""

    page: int = 1
    limit: int = PAGE_DEFAULT_LIMIT

    @classmethod
    def clamp(cls, page: Any = None, limit: Any = None) -> "Pagination":
        return cls(
            page=max(1, _as_int(page, 1)),
            limit=min(PAGE_MAX_LIMIT, max(1, _as_int(limit, PAGE_DEFAULT_LIMIT))),
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def apply(self, query):
        """Apply LIMIT/OFFSET to a SQLAlchemy query."""
        return query.offset(self.offset).limit(self.limit)

    def page_response(self, items: list, total: int) -> dict[str, Any]:
        return {
            "items": items,
            "page": self.page,
            "limit": self.limit,
            "total": total,
            "pages": math.ceil(total / self.limit) if total else 0,
        }


def _as_int(value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def get_pagination(
    page: str | None = Query(None, description="Page number, starting at 1"),
    limit: str | None = Query(None, description=f"Page size, 1..{PAGE_MAX_LIMIT}"),
) -> Pagination:
    """Query-string dependency. Accepts any input and clamps it."""
    return Pagination.clamp(page, limit)


def paginate(query, pagination: Pagination) -> tuple[list, int]:
    """Run ``query`` for one page. Returns (rows, total)."""
    total = query.order_by(None).count()
    rows = pagination.apply(query).all()
    return rows, total

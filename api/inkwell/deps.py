from __future__ import annotations

from typing import TYPE_CHECKING, Generator

from fastapi import Request
from sqlalchemy.orm import Session

from .db import get_session

if TYPE_CHECKING:
    from .container import Services


def get_db() -> Generator[Session, None, None]:
    yield from get_session()


def get_services(request: Request) -> "Services":
    return request.app.state.services

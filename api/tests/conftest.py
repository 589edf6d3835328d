from __future__ import annotations

import os
import tempfile
from typing import Callable, Generator

# Settings are read at import time, so the environment must be in place first
_TMP_DIR = tempfile.mkdtemp(prefix="inkwell-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'inkwell.db')}"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["UPLOADS_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ.pop("RESEND_API_KEY", None)
os.environ.pop("SEED_ADMIN_EMAIL", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from inkwell import models
from inkwell.auth import create_access_token
from inkwell.db import Base, SessionLocal, engine
from inkwell.main import app
from inkwell.services.credentials import hash_password

PASSWORD = "correct-horse-battery"


@pytest.fixture(autouse=True)
def reset_database() -> Generator[None, None, None]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def client() -> TestClient:
    # No context manager: the lifespan (migrations, seeding) is not needed here
    return TestClient(app)


@pytest.fixture()
def db() -> Generator[Session, None, None]:
    """Create a database session for testing."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def make_user(db: Session) -> Callable[..., models.User]:
    counter = {"n": 0}

    def factory(role: str = "author", username: str | None = None, **fields) -> models.User:
        counter["n"] += 1
        username = username or f"{role}{counter['n']}"
        user = models.User(
            username=username,
            email=f"{username}@example.com",
            password_hash=hash_password(PASSWORD),
            display_name=username.title(),
            role=role,
            is_verified=True,
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return factory


def auth_headers(user: models.User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture()
def author(make_user) -> models.User:
    return make_user("author", username="alice")


@pytest.fixture()
def other_author(make_user) -> models.User:
    return make_user("author", username="bob")


@pytest.fixture()
def subscriber(make_user) -> models.User:
    return make_user("subscriber", username="sam")


@pytest.fixture()
def editor(make_user) -> models.User:
    return make_user("editor", username="erin")


@pytest.fixture()
def admin(make_user) -> models.User:
    return make_user("admin", username="root")


@pytest.fixture()
def category(db: Session) -> models.Category:
    category = models.Category(name="Tech News", slug="tech-news", color="#ec4899")
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@pytest.fixture()
def create_post(client: TestClient) -> Callable[..., dict]:
    """Create a post through the API as ``user`` and return the response body."""

    def factory(user: models.User, **payload) -> dict:
        payload.setdefault("title", "Hello World")
        payload.setdefault("content", "<p>Some words here</p>")
        response = client.post("/posts", json=payload, headers=auth_headers(user))
        assert response.status_code == 201, response.text
        return response.json()

    return factory


@pytest.fixture()
def published_post(create_post, author, editor, client) -> dict:
    post = create_post(author, title="Published Story", status="pending")
    response = client.put(f"/admin/posts/{post['id']}/approve", headers=auth_headers(editor))
    assert response.status_code == 200, response.text
    return response.json()

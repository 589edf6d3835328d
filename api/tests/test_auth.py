"""Test authentication functionality."""

from __future__ import annotations

import jwt
from sqlalchemy.orm import Session

from conftest import PASSWORD, auth_headers
from inkwell import models
from inkwell.auth import JWT_SECRET_KEY, create_access_token
from inkwell.services.email_verification import create_verification_token


def _register(client, username="newbie", email="newbie@example.com", password="longenough1"):
    return client.post(
        "/auth/register",
        json={"username": username, "email": email, "password": password},
    )


def test_create_access_token_claims(author: models.User):
    """Test JWT access token creation."""
    token = create_access_token(author)
    payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=["HS256"])
    assert payload["user_id"] == str(author.uuid)
    assert payload["role"] == "author"
    assert payload["type"] == "access"
    assert payload["exp"] > payload["iat"]


def test_register_returns_token_and_user(client):
    response = _register(client)
    assert response.status_code == 201
    body = response.json()
    assert body["token"]
    assert body["user"]["username"] == "newbie"
    assert body["user"]["role"] == "author"
    assert body["user"]["is_verified"] is False

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "newbie@example.com"


def test_register_duplicate_is_conflict(client):
    assert _register(client).status_code == 201
    response = _register(client, email="other@example.com")
    assert response.status_code == 409
    assert response.json() == {"error": "Email or username already taken"}


def test_register_short_password_is_400(client):
    response = _register(client, password="short")
    assert response.status_code == 400
    assert "password" in response.json()["error"]


def test_login_by_email_and_username(client, author):
    by_email = client.post("/auth/login", json={"email": author.email, "password": PASSWORD})
    assert by_email.status_code == 200
    assert by_email.json()["token"]
    assert by_email.json()["requires_2fa"] is False

    by_username = client.post("/auth/login", json={"email": author.username, "password": PASSWORD})
    assert by_username.status_code == 200
    assert by_username.json()["user"]["id"] == author.id


def test_login_wrong_password(client, author):
    response = client.post("/auth/login", json={"email": author.email, "password": "nope-nope"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials"}


def test_missing_token_is_401(client):
    response = client.get("/auth/me")
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_garbage_token_is_401(client):
    response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_expired_token_is_401(client, author):
    token = create_access_token(author, expires_in_seconds=-10)
    response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_suspended_user_rejected_on_login_and_token(client, make_user):
    user = make_user("author", username="suspended", is_suspended=True)
    headers = auth_headers(user)

    login = client.post("/auth/login", json={"email": user.email, "password": PASSWORD})
    assert login.status_code == 403
    assert login.json() == {"error": "Account suspended"}

    me = client.get("/auth/me", headers=headers)
    assert me.status_code == 403


def test_suspension_checked_before_role(client, make_user):
    user = make_user("admin", username="suspendedadmin", is_suspended=True)
    response = client.get("/admin/users", headers=auth_headers(user))
    assert response.status_code == 403
    assert response.json() == {"error": "Account suspended"}


def test_verify_email(client, db: Session, author):
    author.is_verified = False
    db.commit()
    token = create_verification_token(db, author.id, author.email)

    response = client.get("/auth/verify-email", params={"token": token})
    assert response.status_code == 200
    assert response.json()["verified"] is True

    db.expire_all()
    assert db.get(models.User, author.id).is_verified is True

    # Tokens are single use
    again = client.get("/auth/verify-email", params={"token": token})
    assert again.status_code == 400


def test_new_verification_link_replaces_older_one(client, db: Session, author):
    author.is_verified = False
    db.commit()
    stale = create_verification_token(db, author.id, author.email)
    fresh = create_verification_token(db, author.id, author.email)

    assert client.get("/auth/verify-email", params={"token": stale}).status_code == 400
    assert client.get("/auth/verify-email", params={"token": fresh}).status_code == 200


def test_verify_email_unknown_token(client):
    response = client.get("/auth/verify-email", params={"token": "bogus"})
    assert response.status_code == 400


def test_update_profile_and_password(client, author):
    headers = auth_headers(author)
    response = client.put(
        "/users/profile",
        json={"display_name": "Alice A.", "bio": "Writes things"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["display_name"] == "Alice A."

    wrong = client.put(
        "/users/profile",
        json={"current_password": "wrong-password", "new_password": "brand-new-pass"},
        headers=headers,
    )
    assert wrong.status_code == 400

    changed = client.put(
        "/users/profile",
        json={"current_password": PASSWORD, "new_password": "brand-new-pass"},
        headers=headers,
    )
    assert changed.status_code == 200

    login = client.post("/auth/login", json={"email": author.email, "password": "brand-new-pass"})
    assert login.status_code == 200

"""Accounts: registration, login, profiles, two-factor and admin user management."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import check_user_can_authenticate, create_access_token
from ..errors import (
    AuthenticationError,
    AuthorizationError,
    Conflict,
    NotFound,
    ValidationError,
)
from ..models import ROLE_RANK, PostStatus, Role
from ..pagination import Pagination, paginate
from ..settings import DEFAULT_USER_ROLE
from ..two_factor import OneTimeCodeVerifier
from ..utils.transactions import commit_or_conflict
from .credentials import hash_password, verify_password
from .email_verification import create_verification_token, mark_email_verified

logger = logging.getLogger(__name__)

DUPLICATE_ACCOUNT = "Email or username already taken"


@dataclass
class Registration:
    user: models.User
    access_token: str
    verification_token: str


@dataclass
class LoginResult:
    user: models.User | None = None
    access_token: str | None = None
    requires_2fa: bool = False


def _normalize_email(email: str) -> str:
    email = email.strip().lower()
    local, _, domain = email.partition("@")
    if not local or not domain or "." not in domain:
        raise ValidationError("A valid email address is required")
    return email


class UserService:
    def __init__(self, verifier: OneTimeCodeVerifier) -> None:
        self.verifier = verifier

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, db: Session, user_id: int) -> models.User:
        user = db.query(models.User).filter(models.User.id == user_id).first()
        if not user:
            raise NotFound("User not found")
        return user

    def resolve(self, db: Session, id_or_username: str) -> models.User:
        """Find a user by numeric id or by username."""
        condition = models.User.username == id_or_username
        if id_or_username.isdigit():
            condition = or_(condition, models.User.id == int(id_or_username))
        user = db.query(models.User).filter(condition).first()
        if not user:
            raise NotFound("User not found")
        return user

    # ------------------------------------------------------------------
    # Registration & login
    # ------------------------------------------------------------------

    def register(self, db: Session, payload: schemas.RegisterRequest) -> Registration:
        email = _normalize_email(payload.email)
        username = payload.username.strip()

        existing = (
            db.query(models.User.id)
            .filter(or_(models.User.email == email, models.User.username == username))
            .first()
        )
        if existing:
            raise Conflict(DUPLICATE_ACCOUNT)

        role = DEFAULT_USER_ROLE if DEFAULT_USER_ROLE in ROLE_RANK else Role.AUTHOR.value
        user = models.User(
            username=username,
            email=email,
            password_hash=hash_password(payload.password),
            display_name=(payload.display_name or "").strip() or username,
            role=role,
            is_verified=False,
        )
        db.add(user)
        commit_or_conflict(db, DUPLICATE_ACCOUNT)
        db.refresh(user)

        verification_token = create_verification_token(db, user.id, email)
        logger.info(f"Registered user {user.id} ({username}) with role {role}")
        return Registration(
            user=user,
            access_token=create_access_token(user),
            verification_token=verification_token,
        )

    def login(
        self, db: Session, login: str, password: str, totp_code: str | None = None
    ) -> LoginResult:
        """
        Log in by email or username.

        Admins with two-factor enabled get ``requires_2fa`` back until they send a code.
        """
        login = login.strip()
        user = (
            db.query(models.User)
            .filter(or_(models.User.email == login.lower(), models.User.username == login))
            .first()
        )
        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid credentials")

        check_user_can_authenticate(user)

        if user.role == Role.ADMIN.value and user.two_factor_enabled:
            if not totp_code:
                return LoginResult(requires_2fa=True)
            if not self.verifier.verify(user.two_factor_secret, totp_code, tolerance=1):
                logger.warning(f"Invalid 2FA code for admin user {user.id}")
                raise AuthenticationError("Invalid 2FA code")

        return LoginResult(user=user, access_token=create_access_token(user))

    def verify_email(self, db: Session, token: str) -> models.User:
        user = mark_email_verified(db, token)
        if not user:
            raise ValidationError("Invalid or expired verification token")
        return user

    # ------------------------------------------------------------------
    # Two-factor (admins)
    # ------------------------------------------------------------------

    def setup_two_factor(self, db: Session, user: models.User) -> schemas.TwoFactorSetupResponse:
        """Store a fresh secret. It is not enforced until enabled with a valid code."""
        secret = self.verifier.new_secret()
        user.two_factor_secret = secret
        user.two_factor_enabled = False
        db.commit()
        uri = self.verifier.provisioning_uri(secret, user.email)
        return schemas.TwoFactorSetupResponse(secret=secret, uri=uri)

    def enable_two_factor(self, db: Session, user: models.User, code: str) -> None:
        if not user.two_factor_secret:
            raise ValidationError("2FA setup not started")
        if not self.verifier.verify(user.two_factor_secret, code, tolerance=1):
            raise ValidationError("Invalid code")
        user.two_factor_enabled = True
        db.commit()
        logger.info(f"2FA enabled for user {user.id}")

    def disable_two_factor(self, db: Session, user: models.User) -> None:
        user.two_factor_enabled = False
        user.two_factor_secret = None
        db.commit()
        logger.info(f"2FA disabled for user {user.id}")

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def profile(self, db: Session, user: models.User, viewer: models.User | None = None) -> models.User:
        """Attach public counters to ``user``."""
        user.follower_count = (
            db.query(models.Follow).filter(models.Follow.following_id == user.id).count()
        )
        user.following_count = (
            db.query(models.Follow).filter(models.Follow.follower_id == user.id).count()
        )
        post_count, total_views = (
            db.query(func.count(models.Post.id), func.coalesce(func.sum(models.Post.views), 0))
            .filter(
                models.Post.author_id == user.id,
                models.Post.status == PostStatus.PUBLISHED.value,
            )
            .one()
        )
        user.post_count = post_count or 0
        user.total_views = total_views or 0
        user.comment_count = (
            db.query(models.Comment).filter(models.Comment.user_id == user.id).count()
        )
        user.is_following = bool(
            viewer is not None
            and db.query(models.Follow.id)
            .filter(models.Follow.follower_id == viewer.id, models.Follow.following_id == user.id)
            .first()
        )
        return user

    def update_profile(
        self, db: Session, user: models.User, payload: schemas.ProfileUpdate
    ) -> models.User:
        fields = payload.model_dump(exclude_unset=True)

        new_password = fields.pop("new_password", None)
        current_password = fields.pop("current_password", None)
        if new_password:
            if not verify_password(current_password or "", user.password_hash):
                raise ValidationError("Current password is incorrect")
            user.password_hash = hash_password(new_password)
            logger.info(f"User {user.id} changed their password")

        for field, value in fields.items():
            setattr(user, field, value)

        db.commit()
        db.refresh(user)
        return user

    # ------------------------------------------------------------------
    # Admin user management
    # ------------------------------------------------------------------

    def list_users(
        self,
        db: Session,
        pagination: Pagination,
        search: str | None = None,
        role: str | None = None,
    ) -> tuple[list[models.User], int]:
        query = db.query(models.User)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(models.User.username.ilike(pattern), models.User.email.ilike(pattern))
            )
        if role:
            query = query.filter(models.User.role == role)
        query = query.order_by(models.User.created_at.desc(), models.User.id.desc())
        return paginate(query, pagination)

    def admin_update(
        self, db: Session, actor: models.User, user_id: int, payload: schemas.AdminUserUpdate
    ) -> models.User:
        user = self.get(db, user_id)

        if payload.role is not None and payload.role != user.role:
            if user.id == actor.id:
                raise AuthorizationError("You cannot change your own role")
            logger.info(f"Admin {actor.id} changed role of user {user.id}: {user.role} -> {payload.role}")
            user.role = payload.role

        if payload.is_suspended is not None and payload.is_suspended != user.is_suspended:
            if user.id == actor.id:
                raise AuthorizationError("You cannot suspend yourself")
            logger.info(
                f"Admin {actor.id} {'suspended' if payload.is_suspended else 'reinstated'} user {user.id}"
            )
            user.is_suspended = payload.is_suspended

        db.commit()
        db.refresh(user)
        return user

    def admin_delete(self, db: Session, actor: models.User, user_id: int) -> None:
        """Hard delete. Owned posts, comments, follows, likes, bookmarks and media go with the account."""
        user = self.get(db, user_id)
        if user.id == actor.id:
            raise AuthorizationError("You cannot delete your own account")
        db.delete(user)
        db.commit()
        logger.info(f"Admin {actor.id} deleted user {user_id}")

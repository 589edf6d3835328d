"""Public profiles, own profile updates and the follow graph."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user, get_current_user_optional
from ..container import Services
from ..deps import get_db, get_services
from ..pagination import Pagination, get_pagination

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.put("/profile", response_model=schemas.UserFull)
def update_profile(
    payload: schemas.ProfileUpdate,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(get_current_user),
) -> models.User:
    """
    Update own profile.

    Changing the password requires ``current_password`` alongside ``new_password``.
    """
    return services.users.update_profile(db, current_user, payload)


@router.get("/{id_or_username}", response_model=schemas.UserProfile)
def get_profile(
    id_or_username: str,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User | None = Depends(get_current_user_optional),
) -> models.User:
    user = services.users.resolve(db, id_or_username)
    return services.users.profile(db, user, viewer=current_user)


@router.get("/{id_or_username}/posts", response_model=schemas.Page[schemas.PostSummary])
def get_user_posts(
    id_or_username: str,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User | None = Depends(get_current_user_optional),
):
    """Published posts by this user, newest first."""
    user = services.users.resolve(db, id_or_username)
    posts, total = services.posts.list_published_by_user(db, user.id, pagination, viewer=current_user)
    return pagination.page_response(posts, total)


@router.get("/{id_or_username}/followers", response_model=schemas.Page[schemas.UserSummary])
def get_followers(
    id_or_username: str,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    user = services.users.resolve(db, id_or_username)
    users, total = services.social.followers(db, user.id, pagination)
    return pagination.page_response(users, total)


@router.get("/{id_or_username}/following", response_model=schemas.Page[schemas.UserSummary])
def get_following(
    id_or_username: str,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
):
    user = services.users.resolve(db, id_or_username)
    users, total = services.social.following(db, user.id, pagination)
    return pagination.page_response(users, total)


@router.post("/{user_id}/follow", response_model=schemas.FollowResponse)
def follow_user(
    user_id: int,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(get_current_user),
) -> schemas.FollowResponse:
    """Follow a user. Following yourself is rejected, following twice is a conflict."""
    follower_count = services.social.follow(db, current_user, user_id)
    return schemas.FollowResponse(following=True, follower_count=follower_count)


@router.delete("/{user_id}/follow", response_model=schemas.FollowResponse)
def unfollow_user(
    user_id: int,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(get_current_user),
) -> schemas.FollowResponse:
    follower_count = services.social.unfollow(db, current_user, user_id)
    return schemas.FollowResponse(following=False, follower_count=follower_count)

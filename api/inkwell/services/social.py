"""Follows, likes, bookmarks and comments."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session, selectinload

from .. import models, schemas
from ..auth import require_ownership
from ..errors import Conflict, NotFound, ValidationError
from ..models import PostStatus
from ..pagination import Pagination, paginate
from ..utils.transactions import commit_or_conflict
from .notifications import NotificationService
from .posts import PostService

logger = logging.getLogger(__name__)


def _display(user: models.User) -> str:
    return user.display_name or user.username


class SocialService:
    def __init__(self, posts: PostService, notifications: NotificationService) -> None:
        self.posts = posts
        self.notifications = notifications

    # ------------------------------------------------------------------
    # Follows
    # ------------------------------------------------------------------

    def _get_user(self, db: Session, user_id: int) -> models.User:
        user = db.query(models.User).filter(models.User.id == user_id).first()
        if not user:
            raise NotFound("User not found")
        return user

    def follower_count(self, db: Session, user_id: int) -> int:
        return db.query(models.Follow).filter(models.Follow.following_id == user_id).count()

    def following_count(self, db: Session, user_id: int) -> int:
        return db.query(models.Follow).filter(models.Follow.follower_id == user_id).count()

    def is_following(self, db: Session, follower_id: int, following_id: int) -> bool:
        return (
            db.query(models.Follow.id)
            .filter(models.Follow.follower_id == follower_id, models.Follow.following_id == following_id)
            .first()
            is not None
        )

    def follow(self, db: Session, actor: models.User, target_id: int) -> int:
        """Follow a user. Returns the target's new follower count."""
        if target_id == actor.id:
            raise ValidationError("You cannot follow yourself")
        target = self._get_user(db, target_id)

        if self.is_following(db, actor.id, target.id):
            raise Conflict("Already following this user")

        db.add(models.Follow(follower_id=actor.id, following_id=target.id))
        commit_or_conflict(db, "Already following this user")

        self.notifications.notify(
            db,
            user_id=target.id,
            notification_type="follow",
            title="New follower",
            message=f"{_display(actor)} started following you",
            link=f"/profile/{actor.username}",
            actor_id=actor.id,
        )
        return self.follower_count(db, target.id)

    def unfollow(self, db: Session, actor: models.User, target_id: int) -> int:
        """Remove a follow edge. Missing edges are a no-op."""
        (
            db.query(models.Follow)
            .filter(models.Follow.follower_id == actor.id, models.Follow.following_id == target_id)
            .delete(synchronize_session=False)
        )
        db.commit()
        return self.follower_count(db, target_id)

    def followers(self, db: Session, user_id: int, pagination: Pagination) -> tuple[list[models.User], int]:
        self._get_user(db, user_id)
        query = (
            db.query(models.User)
            .join(models.Follow, models.Follow.follower_id == models.User.id)
            .filter(models.Follow.following_id == user_id)
            .order_by(models.Follow.created_at.desc(), models.Follow.id.desc())
        )
        return paginate(query, pagination)

    def following(self, db: Session, user_id: int, pagination: Pagination) -> tuple[list[models.User], int]:
        self._get_user(db, user_id)
        query = (
            db.query(models.User)
            .join(models.Follow, models.Follow.following_id == models.User.id)
            .filter(models.Follow.follower_id == user_id)
            .order_by(models.Follow.created_at.desc(), models.Follow.id.desc())
        )
        return paginate(query, pagination)

    # ------------------------------------------------------------------
    # Likes
    # ------------------------------------------------------------------

    def toggle_like(self, db: Session, user: models.User, post_id: int) -> schemas.LikeResponse:
        """First call likes the post, the second call unlikes it."""
        post = self.posts.get(db, post_id)
        if not self.posts.can_view(post, user):
            raise NotFound("Post not found")

        existing = (
            db.query(models.PostLike)
            .filter(models.PostLike.user_id == user.id, models.PostLike.post_id == post.id)
            .first()
        )
        if existing:
            db.delete(existing)
            liked = False
        else:
            db.add(models.PostLike(user_id=user.id, post_id=post.id))
            liked = True
        commit_or_conflict(db, "Like already recorded")

        like_count = db.query(models.PostLike).filter(models.PostLike.post_id == post.id).count()
        return schemas.LikeResponse(liked=liked, like_count=like_count)

    # ------------------------------------------------------------------
    # Bookmarks
    # ------------------------------------------------------------------

    def add_bookmark(self, db: Session, user: models.User, post_id: int) -> None:
        post = self.posts.get(db, post_id)
        if not self.posts.can_view(post, user):
            raise NotFound("Post not found")

        existing = (
            db.query(models.Bookmark)
            .filter(models.Bookmark.user_id == user.id, models.Bookmark.post_id == post.id)
            .first()
        )
        if existing:
            raise Conflict("Post already bookmarked")

        db.add(models.Bookmark(user_id=user.id, post_id=post.id))
        commit_or_conflict(db, "Post already bookmarked")

    def remove_bookmark(self, db: Session, user: models.User, post_id: int) -> None:
        (
            db.query(models.Bookmark)
            .filter(models.Bookmark.user_id == user.id, models.Bookmark.post_id == post_id)
            .delete(synchronize_session=False)
        )
        db.commit()

    def list_bookmarks(
        self, db: Session, user: models.User, pagination: Pagination
    ) -> tuple[list[models.Post], int]:
        query = (
            db.query(models.Post)
            .join(models.Bookmark, models.Bookmark.post_id == models.Post.id)
            .options(
                selectinload(models.Post.author),
                selectinload(models.Post.categories),
                selectinload(models.Post.tags),
            )
            .filter(models.Bookmark.user_id == user.id)
            .order_by(models.Bookmark.created_at.desc(), models.Post.id.desc())
        )
        posts, total = paginate(query, pagination)
        return self.posts.annotate(db, posts, user), total

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def list_comments(
        self, db: Session, post_id: int, pagination: Pagination
    ) -> tuple[list[models.Comment], int]:
        """Approved comments in the order they were written."""
        query = (
            db.query(models.Comment)
            .options(selectinload(models.Comment.author))
            .filter(models.Comment.post_id == post_id, models.Comment.is_approved.is_(True))
            .order_by(models.Comment.created_at.asc(), models.Comment.id.asc())
        )
        return paginate(query, pagination)

    def create_comment(
        self, db: Session, actor: models.User, payload: schemas.CommentCreate
    ) -> models.Comment:
        content = (payload.content or "").strip()
        if not content:
            raise ValidationError("Comment content is required")

        post = db.query(models.Post).filter(models.Post.id == payload.post_id).first()
        if not post or post.status != PostStatus.PUBLISHED.value:
            raise NotFound("Post not found")

        if payload.parent_id is not None:
            parent = db.query(models.Comment).filter(models.Comment.id == payload.parent_id).first()
            if not parent or parent.post_id != post.id:
                raise ValidationError("Parent comment must belong to the same post")

        comment = models.Comment(
            post_id=post.id,
            user_id=actor.id,
            parent_id=payload.parent_id,
            content=content,
        )
        db.add(comment)
        db.commit()
        db.refresh(comment)

        self.notifications.notify(
            db,
            user_id=post.author_id,
            notification_type="comment",
            title="New comment on your post",
            message=f"{_display(actor)} commented on your post",
            link=f"/post/{post.slug}",
            actor_id=actor.id,
        )
        return comment

    def delete_comment(self, db: Session, actor: models.User, comment_id: int) -> None:
        """Removes the comment and its replies."""
        comment = db.query(models.Comment).filter(models.Comment.id == comment_id).first()
        if not comment:
            raise NotFound("Comment not found")
        require_ownership(comment.user_id, actor)
        db.delete(comment)
        db.commit()
        logger.info(f"Comment {comment_id} deleted by user {actor.id}")

"""
Post lifecycle: authoring, the draft/pending/published/rejected workflow,
and the public read paths.

State changes that go through moderation (submit, approve, reject, and
status changes made through update) append a PostStatusLog row in the same
transaction. Notifications are sent after the commit and never undo it.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from .. import models, schemas
from ..auth import is_privileged, require_ownership
from ..errors import AuthorizationError, InvalidTransition, NotFound
from ..models import PostStatus
from ..pagination import Pagination, paginate
from ..utils.audit import log_status_change
from ..utils.content import read_time
from ..utils.slugs import unique_slug
from ..utils.transactions import commit_or_conflict
from .notifications import NotificationService
from .taxonomy import TaxonomyService

logger = logging.getLogger(__name__)

DRAFT = PostStatus.DRAFT.value
PENDING = PostStatus.PENDING.value
PUBLISHED = PostStatus.PUBLISHED.value
REJECTED = PostStatus.REJECTED.value

APPROVABLE_FROM = frozenset({DRAFT, PENDING, REJECTED})
REJECTABLE_FROM = frozenset({DRAFT, PENDING, PUBLISHED})

TRENDING_WINDOW = timedelta(days=7)
TRENDING_LIMIT = 5

SLUG_CONFLICT = "A post with this slug already exists, please retry"

_TEXT_FIELDS = ("content", "excerpt", "featured_image", "seo_title", "seo_description")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _post_loader_options():
    return (
        selectinload(models.Post.author),
        selectinload(models.Post.categories),
        selectinload(models.Post.tags),
    )


class PostService:
    def __init__(self, taxonomy: TaxonomyService, notifications: NotificationService) -> None:
        self.taxonomy = taxonomy
        self.notifications = notifications

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def get(self, db: Session, post_id: int) -> models.Post:
        post = db.query(models.Post).filter(models.Post.id == post_id).first()
        if not post:
            raise NotFound("Post not found")
        return post

    def _requested_status(self, actor: models.User, requested: str) -> str:
        """Rejection only happens through moderation; non-editors cannot self-publish."""
        if requested == REJECTED:
            raise InvalidTransition("Posts can only be rejected through moderation")
        if requested == PUBLISHED and not is_privileged(actor):
            return PENDING
        return requested

    def annotate(
        self, db: Session, posts: list[models.Post], viewer: models.User | None = None
    ) -> list[models.Post]:
        """
        Attach comment_count, like_count and user_liked in three grouped queries.
        """
        if not posts:
            return posts

        post_ids = [post.id for post in posts]

        comment_counts = dict(
            db.query(models.Comment.post_id, func.count(models.Comment.id))
            .filter(models.Comment.post_id.in_(post_ids), models.Comment.is_approved.is_(True))
            .group_by(models.Comment.post_id)
            .all()
        )
        like_counts = dict(
            db.query(models.PostLike.post_id, func.count(models.PostLike.user_id))
            .filter(models.PostLike.post_id.in_(post_ids))
            .group_by(models.PostLike.post_id)
            .all()
        )
        liked: set[int] = set()
        if viewer is not None:
            liked = {
                post_id
                for (post_id,) in db.query(models.PostLike.post_id).filter(
                    models.PostLike.user_id == viewer.id,
                    models.PostLike.post_id.in_(post_ids),
                )
            }

        for post in posts:
            post.comment_count = comment_counts.get(post.id, 0)
            post.like_count = like_counts.get(post.id, 0)
            post.user_liked = post.id in liked
        return posts

    # ------------------------------------------------------------------
    # Authoring
    # ------------------------------------------------------------------

    def create(self, db: Session, author: models.User, payload: schemas.PostCreate) -> models.Post:
        if (payload.is_featured or payload.is_sponsored) and not is_privileged(author):
            raise AuthorizationError("Only editors and admins can feature or sponsor posts")

        status = self._requested_status(author, payload.status)
        categories = self.taxonomy.load_categories(db, payload.categories)
        tags = self.taxonomy.resolve_tags(db, payload.tags)

        post = models.Post(
            author_id=author.id,
            title=payload.title,
            slug=unique_slug(db, models.Post, payload.title),
            content=payload.content or "",
            excerpt=payload.excerpt,
            featured_image=payload.featured_image,
            seo_title=payload.seo_title,
            seo_description=payload.seo_description,
            status=status,
            read_time=read_time(payload.content),
            is_featured=payload.is_featured,
            is_sponsored=payload.is_sponsored,
            published_at=_now() if status == PUBLISHED else None,
        )
        db.add(post)
        post.categories = categories
        post.tags = tags
        commit_or_conflict(db, SLUG_CONFLICT)
        db.refresh(post)

        if payload.status == PUBLISHED and status != PUBLISHED:
            logger.info(f"Post {post.id} by user {author.id} downgraded from published to {status}")
        logger.info(f"Created post {post.id} ({post.slug}) with status {status}")
        return self.annotate(db, [post], author)[0]

    def update(
        self, db: Session, actor: models.User, post_id: int, payload: schemas.PostUpdate
    ) -> models.Post:
        post = self.get(db, post_id)
        require_ownership(post.author_id, actor)

        fields = payload.model_dump(exclude_unset=True)

        if ("is_featured" in fields or "is_sponsored" in fields) and not is_privileged(actor):
            raise AuthorizationError("Only editors and admins can feature or sponsor posts")

        old_status = post.status
        new_status = old_status
        if fields.get("status") is not None:
            new_status = self._requested_status(actor, fields["status"])

        if fields.get("title") is not None and fields["title"] != post.title:
            post.slug = unique_slug(db, models.Post, fields["title"], exclude_id=post.id)
            post.title = fields["title"]

        for field in _TEXT_FIELDS:
            if field in fields:
                value = fields[field]
                if field == "content" and value is None:
                    value = ""
                setattr(post, field, value)
        post.read_time = read_time(post.content)

        for flag in ("is_featured", "is_sponsored"):
            if fields.get(flag) is not None:
                setattr(post, flag, fields[flag])

        if fields.get("categories") is not None:
            post.categories = self.taxonomy.load_categories(db, fields["categories"])
        if fields.get("tags") is not None:
            post.tags = self.taxonomy.resolve_tags(db, fields["tags"])

        if new_status in (DRAFT, PENDING):
            post.rejection_note = None
        if new_status == PUBLISHED and old_status != PUBLISHED and post.published_at is None:
            post.published_at = _now()
        post.status = new_status
        post.updated_at = _now()

        if new_status != old_status:
            log_status_change(db, post, actor.id, old_status, new_status)

        commit_or_conflict(db, SLUG_CONFLICT)
        db.refresh(post)
        return self.annotate(db, [post], actor)[0]

    def submit(self, db: Session, actor: models.User, post_id: int) -> models.Post:
        """Author sends a draft to the moderation queue."""
        post = self.get(db, post_id)
        if post.author_id != actor.id:
            raise AuthorizationError("Only the author can submit this post")
        if post.status != DRAFT:
            raise InvalidTransition(f"Only drafts can be submitted (post is {post.status})")

        post.status = PENDING
        post.rejection_note = None
        post.updated_at = _now()
        log_status_change(db, post, actor.id, DRAFT, PENDING)
        db.commit()
        db.refresh(post)
        logger.info(f"Post {post.id} submitted for review by user {actor.id}")
        return self.annotate(db, [post], actor)[0]

    def delete(self, db: Session, actor: models.User, post_id: int) -> None:
        post = self.get(db, post_id)
        require_ownership(post.author_id, actor)
        db.delete(post)
        db.commit()
        logger.info(f"Post {post_id} deleted by user {actor.id}")

    # ------------------------------------------------------------------
    # Moderation
    # ------------------------------------------------------------------

    def approve(self, db: Session, actor: models.User, post_id: int) -> models.Post:
        if not is_privileged(actor):
            raise AuthorizationError("Editor or admin role required")

        post = self.get(db, post_id)
        old_status = post.status
        if old_status not in APPROVABLE_FROM:
            raise InvalidTransition(f"Cannot approve a post that is {old_status}")

        post.status = PUBLISHED
        if post.published_at is None:
            post.published_at = _now()
        post.rejection_note = None
        post.updated_at = _now()
        log_status_change(db, post, actor.id, old_status, PUBLISHED)
        db.commit()
        db.refresh(post)

        logger.info(f"Post {post.id} approved by user {actor.id} (was {old_status})")
        self.notifications.notify(
            db,
            user_id=post.author_id,
            notification_type="post_approved",
            title="Post Approved!",
            message=f'Your post "{post.title}" has been approved and published.',
            link=f"/post/{post.slug}",
        )
        return self.annotate(db, [post], actor)[0]

    def reject(self, db: Session, actor: models.User, post_id: int, note: str | None = "") -> models.Post:
        if not is_privileged(actor):
            raise AuthorizationError("Editor or admin role required")

        post = self.get(db, post_id)
        old_status = post.status
        if old_status not in REJECTABLE_FROM:
            raise InvalidTransition("Post is already rejected")

        note = note or ""
        post.status = REJECTED
        post.rejection_note = note
        post.updated_at = _now()
        log_status_change(db, post, actor.id, old_status, REJECTED, note)
        db.commit()
        db.refresh(post)

        logger.info(f"Post {post.id} rejected by user {actor.id} (was {old_status})")
        message = f'Your post "{post.title}" was rejected.'
        if note:
            message = f"{message} {note}"
        self.notifications.notify(
            db,
            user_id=post.author_id,
            notification_type="post_rejected",
            title="Post Rejected",
            message=message,
            link="/dashboard/posts",
        )
        return self.annotate(db, [post], actor)[0]

    def moderation_queue(
        self, db: Session, pagination: Pagination, status: str | None = None
    ) -> tuple[list[models.Post], int]:
        query = db.query(models.Post).options(*_post_loader_options())
        if status:
            query = query.filter(models.Post.status == status)
        query = query.order_by(models.Post.updated_at.desc(), models.Post.id.desc())
        posts, total = paginate(query, pagination)
        return self.annotate(db, posts), total

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def can_view(self, post: models.Post, viewer: models.User | None) -> bool:
        if post.status == PUBLISHED:
            return True
        if viewer is None:
            return False
        return viewer.id == post.author_id or is_privileged(viewer)

    def get_by_slug(self, db: Session, slug: str, viewer: models.User | None = None) -> models.Post:
        """Fetch one post and count the view. The returned views include this fetch."""
        post = db.query(models.Post).filter(models.Post.slug == slug).first()
        if not post or not self.can_view(post, viewer):
            raise NotFound("Post not found")

        (
            db.query(models.Post)
            .filter(models.Post.id == post.id)
            .update({models.Post.views: models.Post.views + 1}, synchronize_session=False)
        )
        db.commit()
        db.refresh(post)

        self.annotate(db, [post], viewer)
        post.is_bookmarked = bool(
            viewer is not None
            and db.query(models.Bookmark)
            .filter(models.Bookmark.user_id == viewer.id, models.Bookmark.post_id == post.id)
            .first()
        )
        return post

    def list_published(
        self,
        db: Session,
        pagination: Pagination,
        viewer: models.User | None = None,
        category: str | None = None,
        tag: str | None = None,
        author: str | None = None,
        featured: bool | None = None,
        search: str | None = None,
        sort: str | None = None,
    ) -> tuple[list[models.Post], int]:
        query = (
            db.query(models.Post)
            .join(models.User, models.User.id == models.Post.author_id)
            .filter(models.Post.status == PUBLISHED)
        )

        if category:
            query = query.filter(models.Post.categories.any(models.Category.slug == category))
        if tag:
            query = query.filter(models.Post.tags.any(models.Tag.slug == tag))
        if author:
            author_filter = models.User.username == author
            if author.isdigit():
                author_filter = or_(author_filter, models.User.id == int(author))
            query = query.filter(author_filter)
        if featured:
            query = query.filter(models.Post.is_featured.is_(True))
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(models.Post.title.ilike(pattern), models.Post.excerpt.ilike(pattern))
            )

        if sort == "trending":
            query = query.order_by(models.Post.views.desc(), models.Post.id.desc())
        elif sort == "oldest":
            query = query.order_by(models.Post.published_at.asc(), models.Post.id.asc())
        else:
            query = query.order_by(models.Post.published_at.desc(), models.Post.id.desc())

        posts, total = paginate(query.options(*_post_loader_options()), pagination)
        return self.annotate(db, posts, viewer), total

    def trending(self, db: Session, viewer: models.User | None = None) -> list[models.Post]:
        """Top published posts of the last week by views."""
        cutoff = _now() - TRENDING_WINDOW
        posts = (
            db.query(models.Post)
            .options(*_post_loader_options())
            .filter(models.Post.status == PUBLISHED, models.Post.published_at >= cutoff)
            .order_by(models.Post.views.desc(), models.Post.id.desc())
            .limit(TRENDING_LIMIT)
            .all()
        )
        return self.annotate(db, posts, viewer)

    def list_for_author(
        self,
        db: Session,
        author: models.User,
        pagination: Pagination,
        status: str | None = None,
    ) -> tuple[list[models.Post], int]:
        """The caller's own posts in any status."""
        query = db.query(models.Post).options(*_post_loader_options()).filter(
            models.Post.author_id == author.id
        )
        if status:
            query = query.filter(models.Post.status == status)
        query = query.order_by(models.Post.updated_at.desc(), models.Post.id.desc())
        posts, total = paginate(query, pagination)
        return self.annotate(db, posts, author), total

    def list_published_by_user(
        self,
        db: Session,
        user_id: int,
        pagination: Pagination,
        viewer: models.User | None = None,
    ) -> tuple[list[models.Post], int]:
        query = (
            db.query(models.Post)
            .options(*_post_loader_options())
            .filter(models.Post.author_id == user_id, models.Post.status == PUBLISHED)
            .order_by(models.Post.published_at.desc(), models.Post.id.desc())
        )
        posts, total = paginate(query, pagination)
        return self.annotate(db, posts, viewer), total

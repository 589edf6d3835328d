from __future__ import annotations

import enum
import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import relationship

from .db import Base


class Role(str, enum.Enum):
    """Account roles, ordered by privilege."""

    SUBSCRIBER = "subscriber"
    AUTHOR = "author"
    EDITOR = "editor"
    ADMIN = "admin"


ROLE_RANK: dict[str, int] = {
    Role.SUBSCRIBER.value: 0,
    Role.AUTHOR.value: 1,
    Role.EDITOR.value: 2,
    Role.ADMIN.value: 3,
}


class PostStatus(str, enum.Enum):
    """Moderation state of a post."""

    DRAFT = "draft"
    PENDING = "pending"
    PUBLISHED = "published"
    REJECTED = "rejected"


# ============================================================================
# USERS
# ============================================================================


class User(Base):
    """User account with credentials, role and profile information."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    uuid = Column(Uuid, unique=True, nullable=False, default=uuid.uuid4, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    # Profile
    display_name = Column(String(100), nullable=True)
    bio = Column(Text, nullable=True)
    avatar = Column(String(500), nullable=True)
    website = Column(String(500), nullable=True)
    twitter = Column(String(100), nullable=True)
    github = Column(String(100), nullable=True)

    # Role & account state
    role = Column(String(20), nullable=False, default=Role.AUTHOR.value, index=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    is_suspended = Column(Boolean, nullable=False, default=False, index=True)

    # Two-factor (only enforced for admin logins)
    two_factor_secret = Column(String(64), nullable=True)
    two_factor_enabled = Column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    # Relationships (owned content goes with the account)
    posts = relationship("Post", back_populates="author", cascade="all, delete-orphan")
    comments = relationship("Comment", back_populates="author", cascade="all, delete-orphan")
    likes = relationship("PostLike", back_populates="user", cascade="all, delete-orphan")
    bookmarks = relationship("Bookmark", back_populates="user", cascade="all, delete-orphan")
    media = relationship("Media", back_populates="owner", cascade="all, delete-orphan")
    notifications = relationship(
        "Notification", back_populates="user", cascade="all, delete-orphan"
    )
    reports = relationship("Report", back_populates="reporter", cascade="all, delete-orphan")
    following_edges = relationship(
        "Follow",
        foreign_keys="Follow.follower_id",
        back_populates="follower",
        cascade="all, delete-orphan",
    )
    follower_edges = relationship(
        "Follow",
        foreign_keys="Follow.following_id",
        back_populates="following",
        cascade="all, delete-orphan",
    )
    email_verification_tokens = relationship(
        "EmailVerificationToken", back_populates="user", cascade="all, delete-orphan"
    )


class EmailVerificationToken(Base):
    """Verification link issued at registration. Only the token digest is stored."""

    __tablename__ = "email_verification_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token_hash = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False)  # address the link confirms
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    used_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )

    user = relationship("User", back_populates="email_verification_tokens")


# ============================================================================
# CONTENT
# ============================================================================


post_categories = Table(
    "post_categories",
    Base.metadata,
    Column("post_id", Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True
    ),
)

post_tags = Table(
    "post_tags",
    Base.metadata,
    Column("post_id", Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Post(Base):
    """Blog post moving through the draft/pending/published/rejected workflow."""

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    uuid = Column(Uuid, unique=True, nullable=False, default=uuid.uuid4, index=True)
    author_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Content
    title = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    content = Column(Text, nullable=False, default="")
    excerpt = Column(Text, nullable=True)
    featured_image = Column(String(500), nullable=True)
    seo_title = Column(String(255), nullable=True)
    seo_description = Column(Text, nullable=True)
    read_time = Column(Integer, nullable=False, default=1)  # minutes

    # Workflow
    status = Column(String(20), nullable=False, default=PostStatus.DRAFT.value, index=True)
    rejection_note = Column(Text, nullable=True)  # only meaningful while rejected
    published_at = Column(DateTime(timezone=True), nullable=True, index=True)  # set once

    # Counters & flags
    views = Column(Integer, nullable=False, default=0)
    is_featured = Column(Boolean, nullable=False, default=False, index=True)
    is_sponsored = Column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    author = relationship("User", back_populates="posts")
    categories = relationship("Category", secondary=post_categories, back_populates="posts")
    tags = relationship("Tag", secondary=post_tags, back_populates="posts")
    comments = relationship("Comment", back_populates="post", cascade="all, delete-orphan")
    likes = relationship("PostLike", back_populates="post", cascade="all, delete-orphan")
    bookmarks = relationship("Bookmark", back_populates="post", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_posts_status_published", status, published_at.desc()),
        Index("ix_posts_author_updated", author_id, updated_at.desc()),
    )


class PostStatusLog(Base):
    """Append-only audit trail of post status changes."""

    __tablename__ = "post_status_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Rows outlive their post and actor; references are nulled, never the row
    post_id = Column(
        Integer, ForeignKey("posts.id", ondelete="SET NULL"), nullable=True, index=True
    )
    changed_by = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    old_status = Column(String(20), nullable=True)
    new_status = Column(String(20), nullable=False)
    note = Column(Text, nullable=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )


class Category(Base):
    """Post category."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(120), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    color = Column(String(20), nullable=False, default="#6366f1")

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    posts = relationship("Post", secondary=post_categories, back_populates="categories")


class Tag(Base):
    """Flat post tag."""

    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(120), unique=True, nullable=False, index=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    posts = relationship("Post", secondary=post_tags, back_populates="tags")


# ============================================================================
# SOCIAL FEATURES
# ============================================================================


class Comment(Base):
    """Comment on a post; replies point at their parent comment."""

    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    post_id = Column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    parent_id = Column(
        Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True, index=True
    )

    content = Column(Text, nullable=False)
    is_approved = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    post = relationship("Post", back_populates="comments")
    author = relationship("User", back_populates="comments")
    parent = relationship("Comment", remote_side=[id], back_populates="replies")
    replies = relationship("Comment", back_populates="parent", cascade="all, delete-orphan")

    __table_args__ = (Index("ix_comments_post_created", post_id, created_at),)


class Follow(Base):
    """User following relationship."""

    __tablename__ = "follows"

    id = Column(Integer, primary_key=True, autoincrement=True)
    follower_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    following_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )

    follower = relationship("User", foreign_keys=[follower_id], back_populates="following_edges")
    following = relationship("User", foreign_keys=[following_id], back_populates="follower_edges")

    __table_args__ = (
        UniqueConstraint(
            "follower_id", "following_id", name="uq_follow_follower_following"
        ),
        CheckConstraint("follower_id != following_id", name="ck_follow_not_self"),
    )


class PostLike(Base):
    """A user liking a post. Presence of the row is the like."""

    __tablename__ = "post_likes"

    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    post_id = Column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True, index=True
    )

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    user = relationship("User", back_populates="likes")
    post = relationship("Post", back_populates="likes")


class Bookmark(Base):
    """A post saved by a user for later."""

    __tablename__ = "bookmarks"

    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    post_id = Column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True, index=True
    )

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )

    user = relationship("User", back_populates="bookmarks")
    post = relationship("Post", back_populates="bookmarks")


# ============================================================================
# NOTIFICATIONS
# ============================================================================


class Notification(Base):
    """Notification for one user, or a broadcast to everyone when user_id is NULL."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    type = Column(String(50), nullable=False, index=True)  # post_approved, follow, comment, broadcast...
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=True)
    link = Column(String(500), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)  # targeted rows only

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )

    user = relationship("User", back_populates="notifications")
    receipts = relationship(
        "NotificationReceipt", back_populates="notification", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_notifications_user_created", user_id, created_at.desc()),
    )


class NotificationReceipt(Base):
    """Per-user read marker for broadcast notifications."""

    __tablename__ = "notification_receipts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    notification_id = Column(
        Integer, ForeignKey("notifications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    read_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    notification = relationship("Notification", back_populates="receipts")

    __table_args__ = (
        UniqueConstraint("notification_id", "user_id", name="uq_receipt_notification_user"),
    )


# ============================================================================
# MEDIA, NEWSLETTER, REPORTS, ACTIVITY
# ============================================================================


class Media(Base):
    """Uploaded file stored under the uploads directory."""

    __tablename__ = "media"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    filename = Column(String(255), nullable=False)
    original_name = Column(String(255), nullable=True)
    mime_type = Column(String(100), nullable=False)
    size = Column(Integer, nullable=False)
    url = Column(String(500), nullable=False)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )

    owner = relationship("User", back_populates="media")


class NewsletterSubscriber(Base):
    """Email address subscribed to the newsletter."""

    __tablename__ = "newsletter_subscribers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )


class Report(Base):
    """User-submitted report against a post, comment or user."""

    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    reporter_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    target_type = Column(String(20), nullable=False)  # post, comment, user
    target_id = Column(String(50), nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

    reporter = relationship("User", back_populates="reports")


class ActivityLog(Base):
    """State-changing API request, recorded by the activity middleware."""

    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    action = Column(String(255), nullable=False)  # "METHOD /path"
    entity_type = Column(String(50), nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(200), nullable=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )


# ============================================================================
# SITE SETTINGS
# ============================================================================


class SeoSettings(Base):
    """Site-wide SEO settings. The table holds a single row with id 1."""

    __tablename__ = "seo_settings"
    __table_args__ = (CheckConstraint("id = 1", name="ck_seo_settings_single_row"),)

    id = Column(Integer, primary_key=True, default=1)
    site_name = Column(String(100), nullable=False, default="Inkwell")
    site_tagline = Column(String(200), nullable=True)
    meta_description = Column(Text, nullable=True)
    og_image = Column(String(500), nullable=True)
    google_analytics = Column(String(50), nullable=True)
    robots_txt = Column(Text, nullable=True)

    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


class AdPlacement(Base):
    """Ad snippet rendered at a named position of the site layout."""

    __tablename__ = "ad_placements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    position = Column(String(50), nullable=False, index=True)  # header, sidebar, in_content, footer
    code = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())

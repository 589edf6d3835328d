from __future__ import annotations

from datetime import datetime
from typing import Generic, Literal, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================================
# BASE SCHEMAS
# ============================================================================

T = TypeVar("T")

RoleName = Literal["subscriber", "author", "editor", "admin"]
PostStatusName = Literal["draft", "pending", "published", "rejected"]
ReportStatusName = Literal["pending", "reviewed", "resolved", "dismissed"]


class Page(BaseModel, Generic[T]):
    """Generic offset-paginated response."""

    items: list[T]
    page: int
    limit: int
    total: int
    pages: int


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["ok"] = "ok"
    uptime_s: float | None = None


# ============================================================================
# USER SCHEMAS
# ============================================================================


class UserSummary(BaseModel):
    """Author/actor reference embedded in other resources."""

    id: int
    username: str
    display_name: str | None = None
    avatar: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserPublic(BaseModel):
    """Public user profile."""

    id: int
    uuid: UUID
    username: str
    display_name: str | None = None
    bio: str | None = None
    avatar: str | None = None
    website: str | None = None
    twitter: str | None = None
    github: str | None = None
    role: RoleName
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserFull(UserPublic):
    """Full user record (for the user themselves or an admin)."""

    email: str
    is_verified: bool = False
    is_suspended: bool = False
    two_factor_enabled: bool = False
    updated_at: datetime | None = None


class UserProfile(UserPublic):
    """Public profile with social counters."""

    follower_count: int = 0
    following_count: int = 0
    post_count: int = 0
    total_views: int = 0
    comment_count: int = 0
    is_following: bool = False


class ProfileUpdate(BaseModel):
    """Update own profile. Password change requires the current password."""

    display_name: str | None = Field(None, max_length=100)
    bio: str | None = Field(None, max_length=2000)
    avatar: str | None = Field(None, max_length=500)
    website: str | None = Field(None, max_length=500)
    twitter: str | None = Field(None, max_length=100)
    github: str | None = Field(None, max_length=100)
    current_password: str | None = Field(None, max_length=100)
    new_password: str | None = Field(None, min_length=8, max_length=100)


class AdminUserUpdate(BaseModel):
    role: RoleName | None = None
    is_suspended: bool | None = None


class FollowResponse(BaseModel):
    following: bool
    follower_count: int


# ============================================================================
# AUTH SCHEMAS
# ============================================================================


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=8, max_length=100)
    display_name: str | None = Field(None, max_length=100)


class LoginRequest(BaseModel):
    """Login with email or username."""

    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=100)
    totp_code: str | None = Field(None, max_length=12)


class AuthResponse(BaseModel):
    token: str
    user: UserFull
    message: str | None = None


class LoginResponse(BaseModel):
    """Either a token, or ``requires_2fa`` when an admin still has to send a code."""

    token: str | None = None
    user: UserFull | None = None
    requires_2fa: bool = False


class VerifyEmailResponse(BaseModel):
    message: str = "Email verified successfully"
    verified: bool = True


class TwoFactorSetupResponse(BaseModel):
    secret: str
    uri: str


class TwoFactorCodeRequest(BaseModel):
    totp_code: str = Field(..., min_length=6, max_length=12)


# ============================================================================
# TAXONOMY SCHEMAS
# ============================================================================


class CategoryBrief(BaseModel):
    id: int
    name: str
    slug: str
    color: str | None = None

    model_config = ConfigDict(from_attributes=True)


class Category(CategoryBrief):
    description: str | None = None
    post_count: int = 0
    created_at: datetime | None = None


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=2000)
    color: str | None = Field(None, pattern=r"^#[0-9A-Fa-f]{3,8}$")


class CategoryUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=2000)
    color: str | None = Field(None, pattern=r"^#[0-9A-Fa-f]{3,8}$")


class TagBrief(BaseModel):
    id: int
    name: str
    slug: str

    model_config = ConfigDict(from_attributes=True)


class Tag(TagBrief):
    post_count: int = 0


class TagCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


# ============================================================================
# POST SCHEMAS
# ============================================================================


class PostBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = ""
    excerpt: str | None = None
    featured_image: str | None = Field(None, max_length=500)
    seo_title: str | None = Field(None, max_length=255)
    seo_description: str | None = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        return value


class PostCreate(PostBase):
    """Create post request. ``published`` is downgraded to ``pending`` for non-editors."""

    status: PostStatusName = "draft"
    categories: list[int] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    is_featured: bool = False
    is_sponsored: bool = False


class PostUpdate(BaseModel):
    """Partial update: only fields present in the request body change."""

    title: str | None = Field(None, min_length=1, max_length=255)
    content: str | None = None
    excerpt: str | None = None
    featured_image: str | None = Field(None, max_length=500)
    seo_title: str | None = Field(None, max_length=255)
    seo_description: str | None = None
    status: PostStatusName | None = None
    categories: list[int] | None = None
    tags: list[str] | None = None
    is_featured: bool | None = None
    is_sponsored: bool | None = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str | None) -> str | None:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        return value


class PostSummary(BaseModel):
    """Post as it appears in listings."""

    id: int
    uuid: UUID
    title: str
    slug: str
    excerpt: str | None = None
    featured_image: str | None = None
    status: PostStatusName
    views: int = 0
    read_time: int = 1
    is_featured: bool = False
    is_sponsored: bool = False
    published_at: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None
    author: UserSummary
    categories: list[CategoryBrief] = Field(default_factory=list)
    tags: list[TagBrief] = Field(default_factory=list)

    # Annotated by the post service
    comment_count: int = 0
    like_count: int = 0
    user_liked: bool = False

    model_config = ConfigDict(from_attributes=True)


class PostDetail(PostSummary):
    """Full post, including content and moderation fields."""

    content: str
    seo_title: str | None = None
    seo_description: str | None = None
    rejection_note: str | None = None
    is_bookmarked: bool = False


class LikeResponse(BaseModel):
    liked: bool
    like_count: int


class RejectRequest(BaseModel):
    note: str = Field("", max_length=2000)


# ============================================================================
# COMMENT SCHEMAS
# ============================================================================


class CommentCreate(BaseModel):
    """Create comment request."""

    post_id: int
    content: str = Field(..., max_length=5000)
    parent_id: int | None = None


class Comment(BaseModel):
    id: int
    post_id: int
    parent_id: int | None = None
    content: str
    is_approved: bool = True
    created_at: datetime
    author: UserSummary

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# BOOKMARK SCHEMAS
# ============================================================================


class BookmarkCreate(BaseModel):
    post_id: int


# ============================================================================
# NOTIFICATION SCHEMAS
# ============================================================================


class Notification(BaseModel):
    id: int
    type: str
    title: str
    message: str | None = None
    link: str | None = None
    is_read: bool = False
    is_broadcast: bool = False
    created_at: datetime


class NotificationList(BaseModel):
    items: list[Notification]
    unread_count: int


class BroadcastNotificationRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    message: str | None = Field(None, max_length=5000)
    link: str | None = Field(None, max_length=500)


# ============================================================================
# MEDIA SCHEMAS
# ============================================================================


class Media(BaseModel):
    id: int
    filename: str
    original_name: str | None = None
    mime_type: str
    size: int
    url: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# NEWSLETTER SCHEMAS
# ============================================================================


class NewsletterSubscribeRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)


class NewsletterSubscriber(BaseModel):
    id: int
    email: str
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NewsletterBroadcastRequest(BaseModel):
    subject: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)


class NewsletterBroadcastResponse(BaseModel):
    message: str
    recipient_count: int


# ============================================================================
# REPORT SCHEMAS
# ============================================================================


class ReportCreate(BaseModel):
    target_type: Literal["post", "comment", "user"]
    target_id: str = Field(..., min_length=1, max_length=50)
    reason: str = Field(..., min_length=1, max_length=2000)

    @field_validator("target_id", mode="before")
    @classmethod
    def coerce_target_id(cls, value):
        return str(value) if isinstance(value, int) else value


class ReportUpdate(BaseModel):
    status: ReportStatusName


class Report(BaseModel):
    id: int
    target_type: str
    target_id: str
    reason: str
    status: ReportStatusName
    created_at: datetime
    updated_at: datetime | None = None
    reporter: UserSummary | None = None

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# ADMIN SCHEMAS
# ============================================================================


class AnalyticsCounts(BaseModel):
    users: int
    posts: int
    published: int
    pending: int
    comments: int
    views: int
    reports: int
    new_users_7d: int
    new_posts_7d: int


class TopPost(BaseModel):
    id: int
    title: str
    slug: str
    views: int
    published_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class Analytics(BaseModel):
    counts: AnalyticsCounts
    top_posts: list[TopPost]
    recent_users: list[UserFull]


class ActivityLog(BaseModel):
    id: int
    user_id: int | None = None
    action: str
    entity_type: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SeoSettings(BaseModel):
    site_name: str
    site_tagline: str | None = None
    meta_description: str | None = None
    og_image: str | None = None
    google_analytics: str | None = None
    robots_txt: str | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class SeoSettingsUpdate(BaseModel):
    site_name: str | None = Field(None, min_length=1, max_length=100)
    site_tagline: str | None = Field(None, max_length=200)
    meta_description: str | None = Field(None, max_length=500)
    og_image: str | None = Field(None, max_length=500)
    google_analytics: str | None = Field(None, max_length=50)
    robots_txt: str | None = Field(None, max_length=5000)


AdPositionName = Literal["header", "sidebar", "in_content", "footer"]


class AdPlacementCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    position: AdPositionName
    code: str | None = Field(None, max_length=10000)
    is_active: bool = True


class AdPlacementUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    position: AdPositionName | None = None
    code: str | None = Field(None, max_length=10000)
    is_active: bool | None = None


class AdPlacement(BaseModel):
    id: int
    name: str
    position: str
    code: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)

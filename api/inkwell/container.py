"""Service objects, built once at startup and shared by every request."""

from __future__ import annotations

from dataclasses import dataclass

from .media_storage import MediaStorage
from .services.admin import AdminService
from .services.email import EmailService
from .services.media import MediaService
from .services.newsletter import NewsletterService
from .services.notifications import NotificationService
from .services.posts import PostService
from .services.reports import ReportService
from .services.social import SocialService
from .services.taxonomy import TaxonomyService
from .services.users import UserService
from .two_factor import OneTimeCodeVerifier, TOTPVerifier


@dataclass
class Services:
    users: UserService
    posts: PostService
    taxonomy: TaxonomyService
    social: SocialService
    notifications: NotificationService
    media: MediaService
    newsletter: NewsletterService
    reports: ReportService
    admin: AdminService
    email: EmailService


def build_services(
    verifier: OneTimeCodeVerifier | None = None,
    email: EmailService | None = None,
    storage: MediaStorage | None = None,
) -> Services:
    notifications = NotificationService()
    taxonomy = TaxonomyService()
    posts = PostService(taxonomy=taxonomy, notifications=notifications)
    return Services(
        users=UserService(verifier=verifier or TOTPVerifier()),
        posts=posts,
        taxonomy=taxonomy,
        social=SocialService(posts=posts, notifications=notifications),
        notifications=notifications,
        media=MediaService(storage=storage or MediaStorage()),
        newsletter=NewsletterService(),
        reports=ReportService(),
        admin=AdminService(),
        email=email or EmailService(),
    )

"""Email service using Resend for sending transactional emails."""

from __future__ import annotations

import logging
from typing import Any, Iterable

import resend

from ..settings import CLIENT_URL, EMAIL_FROM, RESEND_API_KEY

logger = logging.getLogger(__name__)


class EmailService:
    """
    Thin wrapper around the Resend SDK.

    Every send is best-effort: failures are logged and reported as ``None``,
    never raised, because sends run as background tasks after the response.
    """

    def __init__(
        self,
        api_key: str | None = RESEND_API_KEY,
        from_email: str = EMAIL_FROM,
        client_url: str = CLIENT_URL,
    ) -> None:
        self.api_key = api_key
        self.from_email = from_email
        self.client_url = client_url.rstrip("/")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def send(self, to: str | list[str], subject: str, html: str, text: str | None = None) -> dict[str, Any] | None:
        if not self.enabled:
            logger.info(f"Email sending disabled - would send '{subject}' to {to}")
            return None

        resend.api_key = self.api_key
        params: resend.Emails.SendParams = {
            "from": self.from_email,
            "to": to if isinstance(to, list) else [to],
            "subject": subject,
            "html": html,
        }
        if text:
            params["text"] = text

        try:
            response = resend.Emails.send(params)
            logger.info(f"Email '{subject}' sent to {to}, id: {response.get('id', 'unknown')}")
            return response
        except Exception as e:
            logger.error(f"Failed to send email '{subject}' to {to}: {e}")
            return None

    def send_verification_email(self, to_email: str, token: str, username: str | None = None) -> dict[str, Any] | None:
        """Send the account verification link. The token is the plain value, not the hash."""
        verification_url = f"{self.client_url}/verify-email?token={token}"
        greeting = f"Hi {username}!" if username else "Hi there!"

        html_content = f"""
<!DOCTYPE html>
<html>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <h2 style="color: #6366f1;">Welcome to Inkwell!</h2>
    <p>{greeting}</p>
    <p>Please verify your email address by clicking the link below:</p>
    <p style="text-align: center; margin: 30px 0;">
        <a href="{verification_url}"
           style="background: #6366f1; color: #fff; padding: 10px 24px; border-radius: 6px; text-decoration: none;">
            Verify Email
        </a>
    </p>
    <p style="color: #666; font-size: 14px;">
        If the button doesn't work, copy and paste this link into your browser:<br>
        <a href="{verification_url}" style="color: #6366f1;">{verification_url}</a>
    </p>
    <p style="color: #999; font-size: 12px;">This link expires in 24 hours.</p>
</body>
</html>
"""

        text_content = f"""{greeting}

Welcome to Inkwell! Please verify your email address:
{verification_url}

This link expires in 24 hours.
"""
        return self.send(to_email, "Verify your Inkwell account", html_content, text_content)

    def send_newsletter(self, recipients: Iterable[str], subject: str, html: str) -> int:
        """Send one newsletter issue to each recipient separately. Returns the number delivered."""
        delivered = 0
        for email in recipients:
            if self.send(email, subject, html) is not None:
                delivered += 1
        logger.info(f"Newsletter '{subject}' delivered to {delivered} subscriber(s)")
        return delivered

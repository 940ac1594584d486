"""Resend email provider implementation.

Uses the Resend Python SDK for email sending via Resend API.
"""

import asyncio

import resend
from pydantic import BaseModel, ConfigDict

from credvault.core.config import MailerSettings
from credvault.core.exceptions import NotificationFailure
from credvault.core.logging import get_logger
from credvault.infrastructure.services.email.email_provider import EmailMessage, EmailProvider

logger = get_logger(__name__)


class ResendSettings(BaseModel):
    """Configuration settings for the Resend provider."""

    model_config = ConfigDict(from_attributes=True)

    api_key: str
    from_email: str
    from_name: str = "credvault"
    reply_to: str | None = None

    @classmethod
    def from_mailer(cls, mailer: MailerSettings) -> "ResendSettings":
        return cls(
            api_key=mailer.resend_api_key,
            from_email=mailer.from_email,
            from_name=mailer.from_name,
            reply_to=mailer.reply_to,
        )


class ResendProvider(EmailProvider):
    """Resend email provider implementation.

    Sends emails using the Resend API via the Resend Python SDK.
    """

    def __init__(self, settings: ResendSettings) -> None:
        """Initialize the Resend provider.

        Args:
            settings: Resend configuration settings.
        """
        self.settings = settings
        resend.api_key = settings.api_key

    async def send_email(self, message: EmailMessage) -> bool:
        """Send an email via Resend.

        Args:
            message: The message to send.

        Returns:
            True if email was sent successfully.

        Raises:
            NotificationFailure: If Resend sending fails.
        """
        params = {
            "from": f"{self.settings.from_name} <{self.settings.from_email}>",
            "to": message.to,
            "subject": message.subject,
            "html": message.html_body,
        }
        if message.text_body:
            params["text"] = message.text_body
        if message.cc:
            params["cc"] = message.cc
        if message.bcc:
            params["bcc"] = message.bcc

        reply_addr = message.reply_to or self.settings.reply_to
        if reply_addr:
            params["reply_to"] = reply_addr

        try:
            # Resend SDK is synchronous, so we run it in a thread pool
            response = await asyncio.to_thread(resend.Emails.send, params)
        except Exception as e:
            error_message = str(e)
            if "Invalid API key" in error_message or "Unauthorized" in error_message:
                logger.error("Resend authentication failed", error=error_message)
            elif "rate limit" in error_message.lower():
                logger.error("Resend rate limit exceeded", error=error_message)
            else:
                logger.error("Resend API error", error=error_message)
            raise NotificationFailure(f"Resend delivery failed: {error_message}") from e

        logger.info("Email sent via Resend", email_id=response.get("id"), recipients=len(message.to))
        return True

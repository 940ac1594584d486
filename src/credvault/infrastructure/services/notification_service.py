"""Outbound notifications (email and SMS).

Delivery is best effort: every send reports a boolean outcome and never
raises, so a failed notification cannot fail the operation that
triggered it. A channel without configuration always reports False.
"""

from collections.abc import Iterable
from typing import Any

from credvault.core.config import Settings
from credvault.core.exceptions import NotificationFailure
from credvault.core.logging import get_logger
from credvault.domain.entities import CredentialRecord
from credvault.infrastructure.services.email.email_provider import EmailMessage, EmailProvider
from credvault.infrastructure.services.email.resend_provider import ResendProvider, ResendSettings
from credvault.infrastructure.services.email.smtp_provider import SMTPProvider, SMTPSettings
from credvault.infrastructure.services.email.template_renderer import (
    VALIDATION_EMAIL_HTML,
    VALIDATION_EMAIL_SUBJECT,
    VALIDATION_SMS_TEXT,
    TemplateRenderer,
)
from credvault.infrastructure.services.sms.sms_provider import SMSProvider
from credvault.infrastructure.services.sms.twilio_provider import TwilioProvider

logger = get_logger(__name__)


class NotificationService:
    """Sends emails and text messages through the configured providers."""

    def __init__(
        self,
        email_provider: EmailProvider | None = None,
        sms_provider: SMSProvider | None = None,
        app_name: str = "credvault",
        renderer: TemplateRenderer | None = None,
    ) -> None:
        """Initialize the notification service.

        Args:
            email_provider: Provider for email, or None if email is not configured.
            sms_provider: Provider for SMS, or None if SMS is not configured.
            app_name: Application name used in message texts.
            renderer: Template renderer for message bodies.
        """
        self.email_provider = email_provider
        self.sms_provider = sms_provider
        self.app_name = app_name
        self.renderer = renderer or TemplateRenderer()

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotificationService":
        """Pick providers from configuration.

        Resend is used when an API key is set, SMTP when credentials are
        set; Twilio when none of its credentials is left at a placeholder.
        """
        email_provider: EmailProvider | None = None
        if settings.mailer.resend_configured:
            email_provider = ResendProvider(ResendSettings.from_mailer(settings.mailer))
        elif settings.mailer.smtp_configured:
            email_provider = SMTPProvider(SMTPSettings.from_mailer(settings.mailer))

        sms_provider: SMSProvider | None = None
        if settings.twilio.is_configured:
            sms_provider = TwilioProvider(settings.twilio)
        elif settings.phone_validation_required:
            logger.warning(
                "Phone validation is enabled but Twilio is not configured; "
                "set CREDVAULT_TWILIO__ACCOUNT_SID, CREDVAULT_TWILIO__AUTH_TOKEN "
                "and CREDVAULT_TWILIO__FROM_NUMBER"
            )

        return cls(email_provider, sms_provider, app_name=settings.app_name)

    async def send_email(
        self,
        recipients: Iterable[str],
        subject: str,
        html_body: str,
        options: dict[str, Any] | None = None,
    ) -> bool:
        """Send an email to a set of recipients.

        Args:
            recipients: Recipient addresses; duplicates and blanks are dropped.
            subject: Subject line.
            html_body: HTML body.
            options: Optional ``text_body``, ``cc``, ``bcc`` and ``reply_to``.

        Returns:
            True if the provider accepted the message, False otherwise.
        """
        to = sorted({r for r in recipients if r})
        if not to:
            return False
        if self.email_provider is None:
            logger.debug("Email not configured, message dropped", subject=subject)
            return False

        options = options or {}
        message = EmailMessage(
            to=to,
            subject=subject,
            html_body=html_body,
            text_body=options.get("text_body", ""),
            cc=list(options.get("cc", [])),
            bcc=list(options.get("bcc", [])),
            reply_to=options.get("reply_to"),
        )
        try:
            return await self.email_provider.send_email(message)
        except NotificationFailure as e:
            logger.warning("Email delivery failed", subject=subject, recipients=len(to), error=str(e))
            return False

    async def send_sms(self, recipient: str | None, body: str) -> bool:
        """Send a text message.

        Returns:
            True if the provider accepted the message, False otherwise.
        """
        if not recipient or self.sms_provider is None:
            return False
        try:
            return await self.sms_provider.send_sms(recipient, body)
        except NotificationFailure as e:
            logger.warning("SMS delivery failed", error=str(e))
            return False

    async def email_record(
        self,
        record: CredentialRecord,
        subject: str,
        html_body: str,
        options: dict[str, Any] | None = None,
    ) -> bool:
        """Send an email to the owner of a record."""
        return await self.send_email([record.email], subject, html_body, options)

    async def email_records(
        self,
        records: Iterable[CredentialRecord],
        subject: str,
        html_body: str,
        options: dict[str, Any] | None = None,
    ) -> bool:
        """Send one email to the owners of several records."""
        return await self.send_email([r.email for r in records], subject, html_body, options)

    async def sms_record(self, record: CredentialRecord, body: str) -> bool:
        """Send a text message to the owner of a record."""
        return await self.send_sms(record.phone, body)

    async def send_validation_code(
        self,
        record: CredentialRecord,
        contact_type: str,
        code: str,
        ttl_seconds: int = 0,
    ) -> bool:
        """Deliver a contact validation code over the channel being validated."""
        if contact_type == "phone":
            body = self.renderer.render(
                VALIDATION_SMS_TEXT, {"app_name": self.app_name, "code": code}
            )
            return await self.sms_record(record, body)

        html_body = self.renderer.render(
            VALIDATION_EMAIL_HTML,
            {
                "name": record.full_name,
                "email": record.email,
                "code": code,
                "ttl_days": ttl_seconds // 86400,
            },
        )
        return await self.email_record(record, VALIDATION_EMAIL_SUBJECT, html_body)

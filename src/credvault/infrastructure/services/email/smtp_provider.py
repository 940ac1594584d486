"""SMTP email provider implementation.

Uses aiosmtplib for asynchronous email sending via SMTP.
"""

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib
from pydantic import BaseModel, ConfigDict

from credvault.core.config import MailerSettings
from credvault.core.exceptions import NotificationFailure
from credvault.core.logging import get_logger
from credvault.infrastructure.services.email.email_provider import EmailMessage, EmailProvider

logger = get_logger(__name__)


class SMTPSettings(BaseModel):
    """Configuration settings for the SMTP provider."""

    model_config = ConfigDict(from_attributes=True)

    host: str
    port: int = 587
    username: str
    password: str
    use_tls: bool = True
    use_ssl: bool = False
    from_email: str
    from_name: str = "credvault"
    reply_to: str | None = None
    timeout: int = 10

    @classmethod
    def from_mailer(cls, mailer: MailerSettings) -> "SMTPSettings":
        return cls(
            host=mailer.smtp_host,
            port=mailer.smtp_port,
            username=mailer.smtp_username,
            password=mailer.smtp_password,
            use_tls=mailer.smtp_use_tls,
            use_ssl=mailer.smtp_use_ssl,
            from_email=mailer.from_email,
            from_name=mailer.from_name,
            reply_to=mailer.reply_to,
            timeout=mailer.smtp_timeout,
        )


class SMTPProvider(EmailProvider):
    """SMTP email provider implementation.

    Sends emails using the SMTP protocol via aiosmtplib.
    """

    def __init__(self, settings: SMTPSettings) -> None:
        """Initialize the SMTP provider.

        Args:
            settings: SMTP configuration settings.
        """
        self.settings = settings

    def _build(self, message: EmailMessage) -> MIMEMultipart:
        mime = MIMEMultipart("alternative")
        mime["Subject"] = message.subject
        mime["From"] = f"{self.settings.from_name} <{self.settings.from_email}>"
        mime["To"] = ", ".join(message.to)
        if message.cc:
            mime["Cc"] = ", ".join(message.cc)

        reply_addr = message.reply_to or self.settings.reply_to
        if reply_addr:
            mime["Reply-To"] = reply_addr

        if message.text_body:
            mime.attach(MIMEText(message.text_body, "plain"))
        mime.attach(MIMEText(message.html_body, "html"))
        return mime

    async def send_email(self, message: EmailMessage) -> bool:
        """Send an email via SMTP.

        Args:
            message: The message to send.

        Returns:
            True if email was sent successfully.

        Raises:
            NotificationFailure: If SMTP connection or sending fails.
        """
        mime = self._build(message)
        recipients = message.to + message.cc + message.bcc

        try:
            async with aiosmtplib.SMTP(
                hostname=self.settings.host,
                port=self.settings.port,
                use_tls=self.settings.use_ssl,  # aiosmtplib uses use_tls for SSL/TLS on connection
                timeout=self.settings.timeout,
            ) as smtp:
                if self.settings.use_tls and not self.settings.use_ssl:
                    await smtp.starttls()

                await smtp.login(self.settings.username, self.settings.password)
                await smtp.send_message(mime, recipients=recipients)

            return True
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email via SMTP", host=self.settings.host, error=str(e))
            raise NotificationFailure(f"SMTP delivery failed: {e}") from e

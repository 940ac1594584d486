"""Email providers."""

from credvault.infrastructure.services.email.email_provider import EmailMessage, EmailProvider
from credvault.infrastructure.services.email.resend_provider import ResendProvider, ResendSettings
from credvault.infrastructure.services.email.smtp_provider import SMTPProvider, SMTPSettings

__all__ = [
    "EmailMessage",
    "EmailProvider",
    "ResendProvider",
    "ResendSettings",
    "SMTPProvider",
    "SMTPSettings",
]

"""Abstract base class for email providers.

Defines the interface that all email providers must implement.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class EmailMessage:
    """An outbound email.

    Attributes:
        to: Recipient addresses.
        subject: Subject line.
        html_body: HTML body.
        text_body: Plain text alternative (optional).
        cc: Carbon-copy recipients.
        bcc: Blind carbon-copy recipients.
        reply_to: Reply-to address overriding the provider default.
    """

    to: list[str]
    subject: str
    html_body: str
    text_body: str = ""
    cc: list[str] = field(default_factory=list)
    bcc: list[str] = field(default_factory=list)
    reply_to: str | None = None


class EmailProvider(ABC):
    """Abstract base class for email providers.

    All email providers (SMTP, Resend) must implement this interface.
    """

    @abstractmethod
    async def send_email(self, message: EmailMessage) -> bool:
        """Send an email.

        Args:
            message: The message to send.

        Returns:
            True if email was sent successfully.

        Raises:
            NotificationFailure: If the provider rejected or could not deliver the message.
        """

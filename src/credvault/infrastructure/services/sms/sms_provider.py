"""Abstract base class for SMS providers."""

from abc import ABC, abstractmethod


class SMSProvider(ABC):
    """Abstract base class for SMS providers."""

    @abstractmethod
    async def send_sms(self, to: str, body: str) -> bool:
        """Send a text message.

        Args:
            to: Recipient phone number in international format.
            body: Message text.

        Returns:
            True if the message was accepted for delivery.

        Raises:
            NotificationFailure: If the provider rejected or could not deliver the message.
        """

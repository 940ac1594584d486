"""Twilio SMS provider implementation.

Sends text messages through the Twilio SDK.
"""

import asyncio

from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from credvault.core.config import TwilioSettings
from credvault.core.exceptions import NotificationFailure
from credvault.core.logging import get_logger
from credvault.infrastructure.services.sms.sms_provider import SMSProvider

logger = get_logger(__name__)


class TwilioProvider(SMSProvider):
    """Sends text messages through Twilio."""

    def __init__(self, settings: TwilioSettings, client: Client | None = None) -> None:
        """Initialize the Twilio provider.

        Args:
            settings: Twilio credentials and sender number.
            client: Optional pre-built Twilio client (used by tests).
        """
        self.settings = settings
        self.client = client or Client(
            settings.account_sid,
            settings.auth_token,
            http_client=TwilioHttpClient(timeout=settings.timeout),
        )

    async def send_sms(self, to: str, body: str) -> bool:
        """Send a text message via Twilio.

        Args:
            to: Recipient phone number in international format.
            body: Message text.

        Returns:
            True if Twilio accepted the message.

        Raises:
            NotificationFailure: If the request fails, Twilio rejects it or
                its response cannot be read.
        """

        def _send():
            return self.client.messages.create(to=to, from_=self.settings.from_number, body=body)

        try:
            # Twilio SDK is synchronous, so we run it in a thread pool
            message = await asyncio.to_thread(_send)
        except TwilioRestException as e:
            logger.error("Twilio rejected message", status_code=e.status, code=e.code, error=e.msg)
            raise NotificationFailure(f"Twilio rejected message: HTTP {e.status}") from e
        except (TwilioException, OSError, ValueError) as e:
            # requests errors are OSErrors; an unreadable response body is a ValueError
            logger.error("Twilio request failed", error=str(e))
            raise NotificationFailure(f"Twilio request failed: {e}") from e

        logger.info("SMS sent via Twilio", message_sid=message.sid, status=message.status)
        return True

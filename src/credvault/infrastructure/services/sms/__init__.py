"""SMS providers."""

from credvault.infrastructure.services.sms.sms_provider import SMSProvider
from credvault.infrastructure.services.sms.twilio_provider import TwilioProvider

__all__ = ["SMSProvider", "TwilioProvider"]

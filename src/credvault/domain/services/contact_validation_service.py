"""Contact validation attempts (email and phone confirmation codes).

Each contact channel that has to be confirmed gets one validation attempt
on the record. A numeric code is issued when the attempt starts; the
user proves ownership of the channel by sending it back. Tries and
resends are bounded.

Operations return an updated copy of the record and never mutate the
one passed in.
"""

import hmac
import secrets
from dataclasses import replace

from credvault.core.config import ValidationSettings
from credvault.core.exceptions import ValidationLimitExceeded
from credvault.domain.entities import CredentialRecord, ValidationAttempt
from credvault.domain.entities.credential_record import utcnow


class ContactValidationService:
    """Issues and checks contact validation codes."""

    def __init__(self, settings: ValidationSettings) -> None:
        self.settings = settings

    def channels_to_validate(self) -> list[str]:
        """Contact channels configured to require validation."""
        return [
            name
            for name in ("email", "phone")
            if getattr(self.settings, name).validate_contact
        ]

    def generate_code(self) -> str:
        return "".join(str(secrets.randbelow(10)) for _ in range(self.settings.code_length))

    @staticmethod
    def _with_attempt(record: CredentialRecord, attempt: ValidationAttempt) -> CredentialRecord:
        validations = [attempt if v.type == attempt.type else v for v in record.validations]
        if record.get_validation(attempt.type) is None:
            validations.append(attempt)
        return replace(record, validations=validations, updated_at=utcnow())

    def start(self, record: CredentialRecord, contact_type: str) -> tuple[CredentialRecord, str]:
        """Start (or restart) the validation of a channel.

        Returns:
            Tuple of (updated record, code to deliver).
        """
        code = self.generate_code()
        attempt = ValidationAttempt(type=contact_type, code=code)
        return self._with_attempt(record, attempt), code

    def resend(self, record: CredentialRecord, contact_type: str) -> tuple[CredentialRecord, str]:
        """Count a re-delivery of the current code.

        Starts a new attempt when the channel has none yet.

        Raises:
            ValidationLimitExceeded: If the code was re-sent too often.
        """
        attempt = record.get_validation(contact_type)
        if attempt is None or attempt.validated or not attempt.code:
            return self.start(record, contact_type)
        if attempt.resends >= self.settings.max_resends:
            raise ValidationLimitExceeded(contact_type, "resends")
        updated = replace(attempt, resends=attempt.resends + 1)
        return self._with_attempt(record, updated), attempt.code

    def confirm(
        self, record: CredentialRecord, contact_type: str, code: str
    ) -> tuple[CredentialRecord, bool]:
        """Check a code sent back by the user.

        Returns:
            Tuple of (updated record, whether the channel is now validated).

        Raises:
            ValidationLimitExceeded: If the attempt ran out of tries.
        """
        attempt = record.get_validation(contact_type)
        if attempt is None:
            return record, False
        if attempt.validated:
            return record, True
        if attempt.tries >= self.settings.max_tries:
            raise ValidationLimitExceeded(contact_type, "tries")

        matched = bool(attempt.code) and hmac.compare_digest(
            attempt.code.encode("utf-8"), (code or "").encode("utf-8")
        )
        updated = replace(
            attempt,
            tries=attempt.tries + 1,
            last_try_at=utcnow(),
            validated=matched,
            code=None if matched else attempt.code,
        )
        return self._with_attempt(record, updated), matched

"""Exceptions raised by the credential management core."""

from collections.abc import Sequence


class CredentialError(Exception):
    """Base class for all credvault errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class PolicyViolation(CredentialError):
    """Raised when a password fails the strength policy.

    Carries every violated rule, not only the first one, so callers can
    report all problems at once.
    """

    def __init__(self, violations: Sequence, field: str = "password") -> None:
        self.violations = list(violations)
        self.field = field
        super().__init__(" ".join(v.message for v in self.violations))

    @property
    def messages(self) -> list[str]:
        return [v.message for v in self.violations]


class RoleInvalid(CredentialError):
    """Raised when a role is not recognized by the role validator."""

    def __init__(self, role: str) -> None:
        self.role = role
        super().__init__(f"The role is invalid: {role}")


class ContactInvalid(CredentialError):
    """Raised when an email address or phone number is malformed or missing."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)


class HashingUnavailable(CredentialError):
    """Raised when a hashing primitive is unavailable or misconfigured."""


class GenerationFailure(CredentialError):
    """Raised when the passphrase generator cannot produce a compliant result."""


class NotificationFailure(CredentialError):
    """Raised by notification providers when a message cannot be delivered.

    The notification service converts it into a ``False`` outcome.
    """


class ValidationLimitExceeded(CredentialError):
    """Raised when a contact validation ran out of tries or resends."""

    def __init__(self, contact_type: str, limit: str) -> None:
        self.contact_type = contact_type
        self.limit = limit
        super().__init__(f"Too many {limit} for {contact_type} validation")

"""Password strength policy.

Validates passwords against OWASP-style rules:

Mandatory rules (always checked):
- Minimum length
- Maximum length
- No run of repeated characters above a threshold
- Not in the blocklist of common passwords

Character-class rule (checked unless the password is a passphrase):
- Characters from at least N of: lowercase, uppercase, digit, symbol

Every violated rule is reported, in the order above.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass

from credvault.core.config import PasswordSettings
from credvault.domain.entities import LOCAL_PROVIDER


@dataclass(frozen=True)
class PasswordRuleViolation:
    """Represents a violated password rule.

    Attributes:
        field: The field name (always 'password').
        message: Human-readable error message.
        code: Machine-readable error code.
    """

    field: str
    message: str
    code: str


@dataclass(frozen=True)
class PolicyResult:
    """Outcome of a policy evaluation."""

    violations: tuple[PasswordRuleViolation, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.violations

    @property
    def messages(self) -> list[str]:
        return [v.message for v in self.violations]


_CHARACTER_CLASSES = (
    ("lowercase", re.compile(r"[a-z]"), "The password must contain at least one lowercase letter."),
    ("uppercase", re.compile(r"[A-Z]"), "The password must contain at least one uppercase letter."),
    ("digit", re.compile(r"[0-9]"), "The password must contain at least one number."),
    ("special", re.compile(r"[^A-Za-z0-9]"), "The password must contain at least one special character."),
)


class PasswordPolicy:
    """Evaluates password strength.

    Default policy:
    - 10 to 128 characters
    - No character repeated three or more times in a row
    - Not a common password
    - Lowercase, uppercase, digit and special character, unless the
      password is a passphrase of 20 characters or more
    """

    def __init__(
        self,
        min_length: int = 10,
        max_length: int = 128,
        max_repeating: int = 2,
        blocklist: Iterable[str] = (),
        min_character_classes: int = 4,
        allow_passphrases: bool = True,
        min_passphrase_length: int = 20,
    ) -> None:
        """Initialize the password policy.

        Args:
            min_length: Minimum password length.
            max_length: Maximum password length.
            max_repeating: Longest allowed run of one repeated character.
            blocklist: Passwords that are rejected outright (case-insensitive).
            min_character_classes: How many character classes must be present.
            allow_passphrases: Exempt long passwords from the character-class rule.
            min_passphrase_length: Length from which a password is a passphrase.
        """
        self.min_length = min_length
        self.max_length = max_length
        self.max_repeating = max_repeating
        self.blocklist = frozenset(p.lower() for p in blocklist)
        self.min_character_classes = min_character_classes
        self.allow_passphrases = allow_passphrases
        self.min_passphrase_length = min_passphrase_length
        self._repeating = re.compile(r"(.)\1{%d,}" % max_repeating)

    @classmethod
    def from_settings(cls, settings: PasswordSettings) -> "PasswordPolicy":
        return cls(
            min_length=settings.min_length,
            max_length=settings.max_length,
            max_repeating=settings.max_repeating,
            blocklist=settings.blocklist,
            min_character_classes=settings.min_character_classes,
            allow_passphrases=settings.allow_passphrases,
            min_passphrase_length=settings.min_passphrase_length,
        )

    @staticmethod
    def applies_to(provider: str, password_changed: bool) -> bool:
        """Only local accounts setting a new password are checked."""
        return provider == LOCAL_PROVIDER and password_changed

    def is_passphrase(self, password: str) -> bool:
        return self.allow_passphrases and len(password) >= self.min_passphrase_length

    def has_repeating_run(self, password: str) -> bool:
        return self._repeating.search(password) is not None

    def evaluate(self, password: str, mandatory_only: bool = False) -> PolicyResult:
        """Evaluate a password against the policy.

        Args:
            password: The password to evaluate.
            mandatory_only: Skip the character-class rule.

        Returns:
            PolicyResult listing every violated rule.
        """
        violations: list[PasswordRuleViolation] = []

        if len(password) < self.min_length:
            violations.append(
                PasswordRuleViolation(
                    field="password",
                    message=f"The password must be at least {self.min_length} characters long.",
                    code="password_too_short",
                )
            )

        if len(password) > self.max_length:
            violations.append(
                PasswordRuleViolation(
                    field="password",
                    message=f"The password must be fewer than {self.max_length} characters.",
                    code="password_too_long",
                )
            )

        if self.has_repeating_run(password):
            violations.append(
                PasswordRuleViolation(
                    field="password",
                    message=(
                        "The password may not contain sequences of "
                        f"{self.max_repeating + 1} or more repeated characters."
                    ),
                    code="password_repeating_characters",
                )
            )

        if password.lower() in self.blocklist:
            violations.append(
                PasswordRuleViolation(
                    field="password",
                    message="The password is too common.",
                    code="password_too_common",
                )
            )

        if not mandatory_only and not self.is_passphrase(password):
            violations.extend(self._character_class_violations(password))

        return PolicyResult(violations=tuple(violations))

    def _character_class_violations(self, password: str) -> list[PasswordRuleViolation]:
        missing = [
            (name, message)
            for name, pattern, message in _CHARACTER_CLASSES
            if not pattern.search(password)
        ]
        if len(_CHARACTER_CLASSES) - len(missing) >= self.min_character_classes:
            return []
        return [
            PasswordRuleViolation(field="password", message=message, code=f"password_no_{name}")
            for name, message in missing
        ]

    def is_valid(self, password: str) -> bool:
        """Check if a password is valid.

        Args:
            password: The password to validate.

        Returns:
            True if password meets all requirements, False otherwise.
        """
        return self.evaluate(password).ok

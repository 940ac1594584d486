"""Password changes, authentication and public projection of records.

These run synchronously and touch no storage: a password change returns a
new record for the caller to persist, or raises before anything is
written.
"""

from dataclasses import replace
from typing import Any

from credvault.core.config import Settings
from credvault.core.exceptions import HashingUnavailable, PolicyViolation
from credvault.core.logging import get_logger
from credvault.domain.entities import CredentialRecord, HashAlgorithm
from credvault.domain.entities.credential_record import utcnow
from credvault.domain.services.password_policy import PasswordPolicy
from credvault.infrastructure.auth.password_hasher import PasswordHasher

logger = get_logger(__name__)

# Never part of an external projection, whatever the configuration says
SECRET_ATTRS = frozenset({"password", "password_hash", "salt"})


class CredentialLifecycle:
    """Applies the password policy and hashing around record changes."""

    def __init__(
        self,
        hasher: PasswordHasher,
        policy: PasswordPolicy,
        default_algorithm: HashAlgorithm | str = HashAlgorithm.STRENGTHENED,
        private_attrs: list[str] | None = None,
        protected_attrs: list[str] | None = None,
    ) -> None:
        """Initialize the lifecycle helper.

        Args:
            hasher: Password hasher.
            policy: Password strength policy.
            default_algorithm: Algorithm for new passwords when none is chosen.
            private_attrs: Extra attributes removed from public projections.
            protected_attrs: Attributes callers may not set through updates.
        """
        self.hasher = hasher
        self.policy = policy
        self.default_algorithm = HashAlgorithm(default_algorithm)
        self.private_attrs = list(private_attrs or [])
        self.protected_attrs = list(protected_attrs or [])

    @classmethod
    def from_settings(cls, settings: Settings) -> "CredentialLifecycle":
        return cls(
            hasher=PasswordHasher.from_settings(settings.password),
            policy=PasswordPolicy.from_settings(settings.password),
            default_algorithm=settings.password.default_algorithm,
            private_attrs=settings.profile.private_attrs,
            protected_attrs=settings.profile.protected_attrs,
        )

    def prepare_password_change(
        self,
        record: CredentialRecord,
        new_password: str,
        algorithm: HashAlgorithm | str | None = None,
    ) -> CredentialRecord:
        """Check and hash a new password.

        Local accounts must pass the strength policy. A fresh salt is drawn
        for the target algorithm; the algorithm is the one given, or the
        configured default. An empty password clears the credential.

        Args:
            record: The record whose password changes (not modified).
            new_password: The new plaintext password.
            algorithm: Algorithm to hash with.

        Returns:
            A new record holding the new hash, salt and algorithm tag.

        Raises:
            PolicyViolation: If the password breaks one or more rules.
            HashingUnavailable: If the algorithm cannot be used.
        """
        if self.policy.applies_to(record.provider, bool(new_password)):
            result = self.policy.evaluate(new_password)
            if not result.ok:
                logger.info(
                    "Password rejected by policy",
                    user_id=record.id,
                    codes=[v.code for v in result.violations],
                )
                raise PolicyViolation(result.violations)

        if not new_password:
            return replace(record, password_hash="", salt=None, updated_at=utcnow())

        try:
            target = HashAlgorithm(algorithm) if algorithm else self.default_algorithm
        except ValueError as e:
            raise HashingUnavailable(f"Unsupported hash algorithm: {algorithm}") from e
        salt = self.hasher.generate_salt(target)
        password_hash = self.hasher.hash(new_password, salt, target)

        return replace(
            record,
            password_hash=password_hash,
            salt=salt if target.stores_salt else None,
            algorithm=target,
            updated_at=utcnow(),
        )

    def authenticate(self, record: CredentialRecord | None, candidate: str) -> bool:
        """Check a candidate password against a record.

        Uses the algorithm stored with the record. A missing record, a
        record without password and a wrong password all give False after
        comparable work.
        """
        if record is None or not record.has_password or not candidate:
            return self.hasher.verify_dummy(candidate, self.default_algorithm)
        return self.hasher.verify(candidate, record.password_hash, record.salt, record.algorithm)

    def needs_rehash(self, record: CredentialRecord) -> bool:
        """Whether the record's hash predates the configured default algorithm."""
        return record.has_password and self.hasher.needs_rehash(
            record.algorithm, self.default_algorithm
        )

    def to_public_dict(self, record: CredentialRecord) -> dict[str, Any]:
        """Project a record for external use.

        The password hash, salt and validation codes are never included.
        """
        data: dict[str, Any] = {
            "id": record.id,
            "email": record.email,
            "username": record.username,
            "first_name": record.first_name,
            "last_name": record.last_name,
            "full_name": record.full_name,
            "phone": record.phone,
            "provider": record.provider,
            "roles": list(record.roles),
            "validations": [
                {
                    "type": v.type,
                    "validated": v.validated,
                    "resends": v.resends,
                    "tries": v.tries,
                    "created_at": v.created_at.isoformat(),
                    "last_try_at": v.last_try_at.isoformat() if v.last_try_at else None,
                }
                for v in record.validations
            ],
            "provider_data": dict(record.provider_data),
            "created_at": record.created_at.isoformat(),
            "updated_at": record.updated_at.isoformat(),
        }
        for attr in self.private_attrs:
            data.pop(attr, None)
        return data

    def sanitize_input(self, data: dict[str, Any]) -> dict[str, Any]:
        """Drop attributes a caller may not set directly from an update payload."""
        blocked = SECRET_ATTRS.union(self.protected_attrs)
        return {k: v for k, v in data.items() if k not in blocked}

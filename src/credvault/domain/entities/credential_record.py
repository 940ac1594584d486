"""Credential record entity.

A credential record is a user's identity document: profile fields, the
stored form of the password and the validation state of each contact
channel (email, phone) that has to be verified.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

LOCAL_PROVIDER = "local"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HashAlgorithm(str, Enum):
    """Password hashing algorithms a record can be tagged with.

    The values are the tags found on stored records, so they must not change.
    """

    LEGACY_KDF = "crypto"
    STRENGTHENED = "bcrypt"
    ARGON2ID = "argon2id"

    @property
    def stores_salt(self) -> bool:
        """Whether the salt is kept next to the hash instead of inside it."""
        return self is HashAlgorithm.LEGACY_KDF


class ContactType(str, Enum):
    """Contact channels that can require validation."""

    EMAIL = "email"
    PHONE = "phone"


@dataclass
class ValidationAttempt:
    """Validation state of one contact channel.

    Attributes:
        type: Contact channel ('email' or 'phone').
        validated: Whether the channel has been confirmed.
        code: Code sent to the user (never exposed externally).
        resends: How many times the code was re-sent.
        tries: How many confirmation attempts were made.
        created_at: When the attempt was started.
        last_try_at: When the last confirmation attempt was made.
    """

    type: str
    validated: bool = False
    code: str | None = None
    resends: int = 0
    tries: int = 0
    created_at: datetime = field(default_factory=utcnow)
    last_try_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "validated": self.validated,
            "code": self.code,
            "resends": self.resends,
            "tries": self.tries,
            "created_at": self.created_at.isoformat(),
            "last_try_at": self.last_try_at.isoformat() if self.last_try_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ValidationAttempt":
        created_at = data.get("created_at")
        last_try_at = data.get("last_try_at")
        return cls(
            type=data["type"],
            validated=bool(data.get("validated", False)),
            code=data.get("code"),
            resends=int(data.get("resends", 0)),
            tries=int(data.get("tries", 0)),
            created_at=datetime.fromisoformat(created_at) if created_at else utcnow(),
            last_try_at=datetime.fromisoformat(last_try_at) if last_try_at else None,
        )


@dataclass
class CredentialRecord:
    """User identity record holding profile data and the stored password.

    An empty ``password_hash`` means no password is set, which is the normal
    state of accounts coming from a federated provider.

    ``algorithm`` defaults to the legacy KDF because records stored before
    algorithm tagging existed were all hashed with it. New passwords are
    hashed with the configured default algorithm instead.

    Attributes:
        email: Email address (lower-cased).
        provider: Identity provider ('local' for password accounts).
        username: Login name (lower-cased).
        first_name: First name(s).
        last_name: Last name.
        phone: Phone number in international format.
        password_hash: Encoded hash of the current password.
        salt: Base64 salt, only for algorithms that store it separately.
        algorithm: Algorithm the current hash was produced with.
        roles: Role names assigned to the user.
        validations: Validation state per contact channel.
        provider_data: Opaque data returned by a federated provider.
        id: Unique identifier (UUID string).
        created_at: Timestamp when the record was created.
        updated_at: Timestamp when the record was last updated.
    """

    email: str
    provider: str = LOCAL_PROVIDER
    username: str = ""
    first_name: str = ""
    last_name: str = ""
    phone: str | None = None
    password_hash: str = ""
    salt: str | None = None
    algorithm: HashAlgorithm = HashAlgorithm.LEGACY_KDF
    roles: list[str] = field(default_factory=list)
    validations: list[ValidationAttempt] = field(default_factory=list)
    provider_data: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        """Normalize fields and check the hash/salt invariant."""
        if not self.provider:
            raise ValueError("Provider is required")
        self.email = (self.email or "").strip().lower()
        self.username = (self.username or "").strip().lower()
        self.first_name = (self.first_name or "").strip()
        self.last_name = (self.last_name or "").strip()
        if self.phone is not None:
            self.phone = self.phone.strip().lower() or None
        self.algorithm = HashAlgorithm(self.algorithm or HashAlgorithm.LEGACY_KDF)
        if self.password_hash and self.algorithm.stores_salt and not self.salt:
            raise ValueError(f"A salt is required for '{self.algorithm.value}' hashes")

    @property
    def is_local(self) -> bool:
        return self.provider == LOCAL_PROVIDER

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    @property
    def full_name(self) -> str:
        """Display name: first names capitalized, last name upper-cased."""
        parts = []
        if self.first_name:
            parts.append(" ".join(w.capitalize() for w in self.first_name.split(" ")))
        if self.last_name:
            parts.append(self.last_name.upper())
        return " ".join(parts)

    def get_validation(self, contact_type: str) -> ValidationAttempt | None:
        for attempt in self.validations:
            if attempt.type == contact_type:
                return attempt
        return None

    def is_validated(self, contact_type: str) -> bool:
        attempt = self.get_validation(contact_type)
        return attempt is not None and attempt.validated

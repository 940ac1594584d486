"""Domain entities for credvault."""

from credvault.domain.entities.credential_record import (
    LOCAL_PROVIDER,
    ContactType,
    CredentialRecord,
    HashAlgorithm,
    ValidationAttempt,
)

__all__ = [
    "LOCAL_PROVIDER",
    "ContactType",
    "CredentialRecord",
    "HashAlgorithm",
    "ValidationAttempt",
]

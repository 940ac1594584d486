"""Domain services for credvault.

Services contain business logic that doesn't naturally fit within a single entity.
"""

from credvault.domain.services.contact_validation_service import ContactValidationService
from credvault.domain.services.contact_validator import validate_email, validate_phone
from credvault.domain.services.credential_lifecycle import CredentialLifecycle
from credvault.domain.services.credential_service import CredentialService, RoleValidator
from credvault.domain.services.expiry_policy import (
    ExpiryPolicyEngine,
    ExpiryState,
    ReconcileOutcome,
)
from credvault.domain.services.passphrase_generator import PassphraseGenerator
from credvault.domain.services.password_policy import (
    PasswordPolicy,
    PasswordRuleViolation,
    PolicyResult,
)

__all__ = [
    "ContactValidationService",
    "CredentialLifecycle",
    "CredentialService",
    "ExpiryPolicyEngine",
    "ExpiryState",
    "PassphraseGenerator",
    "PasswordPolicy",
    "PasswordRuleViolation",
    "PolicyResult",
    "ReconcileOutcome",
    "RoleValidator",
    "validate_email",
    "validate_phone",
]

"""Service for account creation, password changes and authentication.

Hashing is CPU-bound (bcrypt and Argon2 deliberately so) and runs in a
worker thread to keep the event loop responsive.
"""

import asyncio
from dataclasses import replace
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from credvault.core.config import Settings
from credvault.core.exceptions import ContactInvalid, RoleInvalid
from credvault.core.logging import get_logger
from credvault.domain.entities import LOCAL_PROVIDER, CredentialRecord, HashAlgorithm
from credvault.domain.entities.credential_record import utcnow
from credvault.domain.services.contact_validation_service import ContactValidationService
from credvault.domain.services.contact_validator import validate_email, validate_phone
from credvault.domain.services.credential_lifecycle import CredentialLifecycle
from credvault.infrastructure.persistence.repositories.user_repository import UserRepository
from credvault.infrastructure.services.notification_service import NotificationService

logger = get_logger(__name__)

PROFILE_FIELDS = frozenset({"username", "first_name", "last_name", "phone", "provider_data"})


class RoleValidator(Protocol):
    """Anything that can tell whether a role exists."""

    async def role_exists(self, name: str) -> bool: ...


class CredentialService:
    """Service for handling credential records."""

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings,
        user_repo: UserRepository,
        role_validator: RoleValidator,
        notifications: NotificationService,
        lifecycle: CredentialLifecycle | None = None,
    ) -> None:
        """Initialize the credential service.

        Args:
            session: SQLAlchemy async session.
            settings: Application settings.
            user_repo: Repository for credential records.
            role_validator: Checks role names on assignment.
            notifications: Delivers validation codes.
            lifecycle: Password policy and hashing helper.
        """
        self.session = session
        self.settings = settings
        self.user_repo = user_repo
        self.role_validator = role_validator
        self.notifications = notifications
        self.lifecycle = lifecycle or CredentialLifecycle.from_settings(settings)
        self.contact_validation = ContactValidationService(settings.validations)

    async def _check_roles(self, roles: list[str]) -> None:
        if not roles:
            raise RoleInvalid("")
        for role in roles:
            if not await self.role_validator.role_exists(role):
                raise RoleInvalid(role)

    def _check_contacts(self, record: CredentialRecord, is_update: bool) -> None:
        mandatory = self.settings.validations.mandatory
        if "email" in mandatory and not record.email:
            raise ContactInvalid("email", "Please fill a valid email address")
        if record.email and not validate_email(record.email):
            raise ContactInvalid("email", "Please fill a valid email address")
        if "phone" in mandatory and not record.phone:
            raise ContactInvalid("phone", "Please fill a valid phone number")
        if not validate_phone(record.phone, record.provider, is_update):
            raise ContactInvalid("phone", "Please fill a valid phone number")

    async def create_account(
        self,
        email: str,
        password: str = "",
        provider: str = LOCAL_PROVIDER,
        algorithm: HashAlgorithm | str | None = None,
        roles: list[str] | None = None,
        **profile: Any,
    ) -> CredentialRecord:
        """Create an account and start validation of its contact channels.

        Validation codes are sent after the record is stored; a failed
        delivery is logged and does not fail the account creation.

        Args:
            email: Email address.
            password: Plaintext password (optional for federated accounts).
            provider: Identity provider.
            algorithm: Hash algorithm for the password (defaults to configuration).
            roles: Role names (defaults to configuration).
            **profile: username, first_name, last_name, phone, provider_data.
                Any other attribute (hash, salt, validations, timestamps) is ignored.

        Returns:
            The stored record.

        Raises:
            PolicyViolation: If the password is too weak.
            RoleInvalid: If a role does not exist.
            ContactInvalid: If email or phone is invalid, missing or taken.
            HashingUnavailable: If the password cannot be hashed.
        """
        profile = {
            k: v for k, v in self.lifecycle.sanitize_input(profile).items() if k in PROFILE_FIELDS
        }
        record = CredentialRecord(
            email=email,
            provider=provider,
            roles=list(roles if roles is not None else self.settings.roles.default),
            **profile,
        )
        self._check_contacts(record, is_update=False)
        if record.email and await self.user_repo.email_exists(record.email):
            raise ContactInvalid("email", "email already exists")
        if record.username and await self.user_repo.username_exists(record.username):
            raise ContactInvalid("username", "username already exists")
        await self._check_roles(record.roles)

        if password:
            record = await asyncio.to_thread(
                self.lifecycle.prepare_password_change, record, password, algorithm
            )

        codes: dict[str, str] = {}
        for contact_type in self.contact_validation.channels_to_validate():
            if contact_type == "phone" and not record.phone:
                continue
            record, codes[contact_type] = self.contact_validation.start(record, contact_type)

        await self.user_repo.create(record)
        await self.session.commit()
        logger.info("Account created", user_id=record.id, provider=record.provider)

        for contact_type, code in codes.items():
            await self._deliver_code(record, contact_type, code)

        return record

    async def _deliver_code(self, record: CredentialRecord, contact_type: str, code: str) -> bool:
        ttl = getattr(self.settings.validations, contact_type).ttl
        sent = await self.notifications.send_validation_code(record, contact_type, code, ttl)
        if not sent:
            logger.warning(
                "Validation code not delivered",
                user_id=record.id,
                contact_type=contact_type,
            )
        return sent

    async def change_password(
        self,
        record_id: str,
        new_password: str,
        algorithm: HashAlgorithm | str | None = None,
    ) -> CredentialRecord:
        """Change a password, re-hashing with the chosen or default algorithm.

        Raises:
            LookupError: If the record does not exist.
            PolicyViolation: If the password is too weak; nothing is written.
        """
        record = await self.user_repo.get_by_id(record_id)
        if record is None:
            raise LookupError(f"User {record_id} not found")

        updated = await asyncio.to_thread(
            self.lifecycle.prepare_password_change, record, new_password, algorithm
        )
        await self.user_repo.update(updated)
        await self.session.commit()
        logger.info("Password changed", user_id=record_id, algorithm=updated.algorithm.value)
        return updated

    async def update_profile(self, record_id: str, changes: dict[str, Any]) -> CredentialRecord:
        """Apply a profile update; secret and protected attributes are ignored.

        Raises:
            LookupError: If the record does not exist.
            ContactInvalid: If the new email or phone is invalid, or the new
                email or username is taken.
        """
        record = await self.user_repo.get_by_id(record_id)
        if record is None:
            raise LookupError(f"User {record_id} not found")

        allowed = PROFILE_FIELDS | {"email"}
        changes = {k: v for k, v in self.lifecycle.sanitize_input(changes).items() if k in allowed}
        updated = replace(record, updated_at=utcnow(), **changes)
        self._check_contacts(updated, is_update=True)
        if updated.email != record.email and await self.user_repo.email_exists(updated.email):
            raise ContactInvalid("email", "email already exists")
        if (
            updated.username
            and updated.username != record.username
            and await self.user_repo.username_exists(updated.username)
        ):
            raise ContactInvalid("username", "username already exists")

        await self.user_repo.update(updated)
        await self.session.commit()
        return updated

    async def get_by_email(self, email: str) -> dict[str, Any] | None:
        """Public projection of the record with the given email, if any."""
        record = await self.user_repo.get_by_email(email)
        if record is None:
            return None
        return self.lifecycle.to_public_dict(record)

    async def authenticate(self, login: str, password: str) -> CredentialRecord | None:
        """Authenticate by email or username.

        Returns:
            The record if the password matches, None otherwise. An unknown
            login and a wrong password are indistinguishable.
        """
        record = await self.user_repo.get_by_login(login)
        matched = await asyncio.to_thread(self.lifecycle.authenticate, record, password)
        if not matched:
            logger.info("Authentication failed")
            return None
        if self.lifecycle.needs_rehash(record):
            logger.info(
                "Password hash uses a previous algorithm",
                user_id=record.id,
                algorithm=record.algorithm.value,
            )
        return record

    async def resend_validation(self, record_id: str, contact_type: str) -> bool:
        """Re-send the validation code of a channel.

        Raises:
            LookupError: If the record does not exist.
            ValidationLimitExceeded: If the code was re-sent too often.
        """
        record = await self.user_repo.get_by_id(record_id)
        if record is None:
            raise LookupError(f"User {record_id} not found")

        record, code = self.contact_validation.resend(record, contact_type)
        await self.user_repo.update(record)
        await self.session.commit()
        return await self._deliver_code(record, contact_type, code)

    async def confirm_contact(self, record_id: str, contact_type: str, code: str) -> bool:
        """Confirm a channel with the code the user received.

        Raises:
            LookupError: If the record does not exist.
            ValidationLimitExceeded: If the attempt ran out of tries.
        """
        record = await self.user_repo.get_by_id(record_id)
        if record is None:
            raise LookupError(f"User {record_id} not found")

        updated, validated = self.contact_validation.confirm(record, contact_type, code)
        if updated is not record:
            await self.user_repo.update(updated)
            await self.session.commit()
        logger.info(
            "Contact validation attempt",
            user_id=record_id,
            contact_type=contact_type,
            validated=validated,
        )
        return validated

    async def delete_account(self, record_id: str) -> bool:
        """Delete an account.

        Returns:
            True if the account existed.
        """
        deleted = await self.user_repo.delete(record_id)
        await self.session.commit()
        if deleted:
            logger.info("Account deleted", user_id=record_id)
        return deleted

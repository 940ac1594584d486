"""User repository for database operations.

Maps between ``CredentialRecord`` entities and rows of the users table.
"""

from datetime import datetime, timezone

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from credvault.domain.entities import CredentialRecord, HashAlgorithm, ValidationAttempt
from credvault.infrastructure.persistence.models import UserModel


def to_naive_utc(value: datetime) -> datetime:
    """Convert a datetime to the naive UTC form stored in the database."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def to_aware_utc(value: datetime) -> datetime:
    """Attach UTC to a datetime read back from the database."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_entity(model: UserModel) -> CredentialRecord:
    return CredentialRecord(
        id=model.id,
        email=model.email,
        username=model.username,
        phone=model.phone,
        first_name=model.first_name,
        last_name=model.last_name,
        provider=model.provider,
        password_hash=model.password_hash or "",
        salt=model.salt,
        algorithm=HashAlgorithm(model.algorithm or HashAlgorithm.LEGACY_KDF),
        roles=list(model.roles or []),
        validations=[ValidationAttempt.from_dict(v) for v in model.validations or []],
        provider_data=dict(model.provider_data or {}),
        created_at=to_aware_utc(model.created_at),
        updated_at=to_aware_utc(model.updated_at),
    )


def _apply(model: UserModel, record: CredentialRecord) -> UserModel:
    model.email = record.email
    model.username = record.username
    model.phone = record.phone
    model.first_name = record.first_name
    model.last_name = record.last_name
    model.provider = record.provider
    model.password_hash = record.password_hash
    model.salt = record.salt
    model.algorithm = record.algorithm.value
    model.roles = list(record.roles)
    model.validations = [v.to_dict() for v in record.validations]
    model.provider_data = dict(record.provider_data)
    model.created_at = to_naive_utc(record.created_at)
    model.updated_at = to_naive_utc(record.updated_at)
    return model


class UserRepository:
    """Repository for credential record database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def create(self, record: CredentialRecord) -> CredentialRecord:
        """Create a new record.

        Args:
            record: Record to store.

        Returns:
            The stored record.
        """
        self.session.add(_apply(UserModel(id=record.id), record))
        await self.session.flush()
        return record

    async def update(self, record: CredentialRecord) -> CredentialRecord:
        """Overwrite a stored record.

        Raises:
            LookupError: If the record does not exist.
        """
        model = await self.session.get(UserModel, record.id)
        if model is None:
            raise LookupError(f"User {record.id} not found")
        _apply(model, record)
        await self.session.flush()
        return record

    async def get_by_id(self, record_id: str) -> CredentialRecord | None:
        """Get a record by ID."""
        model = await self.session.get(UserModel, record_id)
        return to_entity(model) if model is not None else None

    async def get_by_email(self, email: str) -> CredentialRecord | None:
        """Get a record by email address (case-insensitive)."""
        result = await self.session.execute(
            select(UserModel).where(UserModel.email == email.strip().lower())
        )
        model = result.scalars().first()
        return to_entity(model) if model is not None else None

    async def get_by_login(self, login: str) -> CredentialRecord | None:
        """Get a record by email address or username."""
        value = login.strip().lower()
        if not value:
            return None
        result = await self.session.execute(
            select(UserModel).where(or_(UserModel.email == value, UserModel.username == value))
        )
        model = result.scalars().first()
        return to_entity(model) if model is not None else None

    async def email_exists(self, email: str) -> bool:
        """Check if an email address is already taken."""
        result = await self.session.execute(
            select(func.count()).select_from(UserModel).where(UserModel.email == email)
        )
        return result.scalar_one() > 0

    async def username_exists(self, username: str) -> bool:
        """Check if a username is already taken."""
        result = await self.session.execute(
            select(func.count()).select_from(UserModel).where(UserModel.username == username)
        )
        return result.scalar_one() > 0

    async def count(self) -> int:
        """Count stored records."""
        result = await self.session.execute(select(func.count()).select_from(UserModel))
        return result.scalar_one()

    async def delete(self, record_id: str) -> bool:
        """Delete a record.

        Returns:
            True if a record was deleted.
        """
        result = await self.session.execute(delete(UserModel).where(UserModel.id == record_id))
        return result.rowcount > 0

"""Unit tests for UserRepository and RoleRepository."""

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from credvault.domain.entities import CredentialRecord, HashAlgorithm, ValidationAttempt
from credvault.infrastructure.persistence.repositories.role_repository import RoleRepository
from credvault.infrastructure.persistence.repositories.user_repository import (
    UserRepository,
    to_aware_utc,
    to_naive_utc,
)


def make_record(**overrides) -> CredentialRecord:
    data = {
        "email": "alice@example.com",
        "username": "alice",
        "password_hash": "$2b$04$abcdefghijklmnopqrstuu",
        "algorithm": HashAlgorithm.STRENGTHENED,
        "roles": ["user"],
        "validations": [ValidationAttempt(type="email", code="123456")],
    }
    data.update(overrides)
    return CredentialRecord(**data)


def test_naive_utc_conversion():
    """Test conversion between aware and stored naive datetimes."""
    aware = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    naive = to_naive_utc(aware)

    assert naive.tzinfo is None
    assert to_aware_utc(naive) == aware


@pytest.mark.asyncio
async def test_username_unique_once_set(db_session):
    """Test that a username can only be stored once while empty ones repeat."""
    repo = UserRepository(db_session)
    await repo.create(make_record(username=""))
    await repo.create(make_record(email="bob@example.com", username=""))
    await repo.create(make_record(email="carol@example.com"))
    await db_session.commit()

    with pytest.raises(IntegrityError):
        await repo.create(make_record(email="dave@example.com"))
    await db_session.rollback()

    assert await repo.count() == 3


@pytest.mark.asyncio
async def test_create_and_get(db_session):
    """Test storing and loading a record."""
    repo = UserRepository(db_session)
    record = make_record()

    await repo.create(record)
    await db_session.commit()
    loaded = await repo.get_by_id(record.id)

    assert loaded is not None
    assert loaded.email == "alice@example.com"
    assert loaded.algorithm is HashAlgorithm.STRENGTHENED
    assert loaded.roles == ["user"]
    assert loaded.get_validation("email").code == "123456"
    assert loaded.created_at == record.created_at
    assert loaded.created_at.tzinfo is not None


@pytest.mark.asyncio
async def test_get_by_email_and_login(db_session):
    """Test lookups by email address and username."""
    repo = UserRepository(db_session)
    record = make_record()
    await repo.create(record)

    assert (await repo.get_by_email("ALICE@example.com")).id == record.id
    assert (await repo.get_by_login("alice")).id == record.id
    assert (await repo.get_by_login("alice@example.com")).id == record.id
    assert await repo.get_by_login("") is None
    assert await repo.get_by_email("bob@example.com") is None


@pytest.mark.asyncio
async def test_exists_and_count(db_session):
    """Test uniqueness checks and counting."""
    repo = UserRepository(db_session)
    await repo.create(make_record())

    assert await repo.email_exists("alice@example.com") is True
    assert await repo.email_exists("bob@example.com") is False
    assert await repo.username_exists("alice") is True
    assert await repo.count() == 1


@pytest.mark.asyncio
async def test_update(db_session):
    """Test overwriting a stored record."""
    repo = UserRepository(db_session)
    record = make_record()
    await repo.create(record)

    record.first_name = "Alice"
    await repo.update(record)
    loaded = await repo.get_by_id(record.id)

    assert loaded.first_name == "Alice"


@pytest.mark.asyncio
async def test_update_missing(db_session):
    """Test that updating an unknown record raises."""
    repo = UserRepository(db_session)

    with pytest.raises(LookupError):
        await repo.update(make_record())


@pytest.mark.asyncio
async def test_delete(db_session):
    """Test deleting a record."""
    repo = UserRepository(db_session)
    record = make_record()
    await repo.create(record)

    assert await repo.delete(record.id) is True
    assert await repo.delete(record.id) is False
    assert await repo.get_by_id(record.id) is None


@pytest.mark.asyncio
async def test_untagged_record_loads_as_legacy(db_session):
    """Test that records stored before tagging are read as the legacy KDF."""
    repo = UserRepository(db_session)
    record = make_record(password_hash="aGFzaA==", salt="c2FsdA==", algorithm=HashAlgorithm.LEGACY_KDF)
    await repo.create(record)

    loaded = await repo.get_by_id(record.id)

    assert loaded.algorithm is HashAlgorithm.LEGACY_KDF
    assert loaded.salt == "c2FsdA=="


@pytest.mark.asyncio
async def test_role_repository(db_session):
    """Test role creation and existence checks."""
    repo = RoleRepository(db_session)
    await repo.create("user", "Default role")
    await repo.create("admin")

    assert await repo.role_exists("user") is True
    assert await repo.role_exists("root") is False
    assert await repo.list_names() == ["admin", "user"]

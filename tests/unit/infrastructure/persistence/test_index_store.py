"""Unit tests for TTL indexes and the expiry sweep."""

from datetime import datetime, timedelta, timezone

import pytest

from credvault.domain.entities import CredentialRecord, ValidationAttempt
from credvault.infrastructure.persistence.index_store import (
    IndexOptionsConflict,
    SQLAlchemyIndexStore,
    matches_filter,
)
from credvault.infrastructure.persistence.repositories.user_repository import UserRepository

UNVALIDATED_EMAIL = {"validations": {"$elemMatch": {"type": "email", "validated": False}}}
THIRTY_DAYS = 30 * 24 * 3600


class TestMatchesFilter:
    """Tests for partial filter matching."""

    def test_elem_match_requires_same_element(self):
        """Test that $elemMatch conditions must hold on one element."""
        document = {
            "validations": [
                {"type": "email", "validated": True},
                {"type": "phone", "validated": False},
            ]
        }

        assert matches_filter(document, UNVALIDATED_EMAIL) is False
        assert matches_filter(document, {"validations.type": "email", "validations.validated": False}) is True

    def test_elem_match(self):
        """Test a matching element."""
        document = {"validations": [{"type": "email", "validated": False}]}

        assert matches_filter(document, UNVALIDATED_EMAIL) is True

    def test_missing_field(self):
        """Test that a missing field does not match."""
        assert matches_filter({"validations": []}, UNVALIDATED_EMAIL) is False
        assert matches_filter({}, {"provider": "local"}) is False

    def test_false_does_not_match_zero(self):
        """Test that booleans are not confused with integers."""
        assert matches_filter({"tries": 0}, {"tries": False}) is False


@pytest.mark.asyncio
async def test_create_index_is_idempotent(db_session):
    """Test that creating the same index twice keeps a single index."""
    store = SQLAlchemyIndexStore(db_session)

    name1 = await store.create_index("created_at", THIRTY_DAYS, UNVALIDATED_EMAIL, name="ttl")
    name2 = await store.create_index("created_at", THIRTY_DAYS, UNVALIDATED_EMAIL, name="ttl")

    assert name1 == name2 == "ttl"
    indexes = await store.list_indexes()
    assert len(indexes) == 1
    assert indexes[0].expire_after_seconds == THIRTY_DAYS
    assert indexes[0].partial_filter == UNVALIDATED_EMAIL


@pytest.mark.asyncio
async def test_create_index_default_name(db_session):
    """Test the default index name."""
    store = SQLAlchemyIndexStore(db_session)

    assert await store.create_index("created_at", 60) == "created_at_1"


@pytest.mark.asyncio
async def test_create_index_conflict(db_session):
    """Test that reusing a name with other options is an error."""
    store = SQLAlchemyIndexStore(db_session)
    await store.create_index("created_at", 100, UNVALIDATED_EMAIL, name="ttl")

    with pytest.raises(IndexOptionsConflict):
        await store.create_index("created_at", 200, UNVALIDATED_EMAIL, name="ttl")


@pytest.mark.asyncio
async def test_create_index_unknown_field(db_session):
    """Test that indexes can only be created on existing columns."""
    store = SQLAlchemyIndexStore(db_session)

    with pytest.raises(ValueError):
        await store.create_index("nope", 100)


@pytest.mark.asyncio
async def test_unknown_collection(db_session):
    """Test that only known collections can be indexed."""
    with pytest.raises(ValueError):
        SQLAlchemyIndexStore(db_session, collection="nope")


@pytest.mark.asyncio
async def test_drop_index(db_session):
    """Test that dropping is idempotent."""
    store = SQLAlchemyIndexStore(db_session)
    await store.create_index("created_at", 100, name="ttl")

    assert await store.drop_index("ttl") is True
    assert await store.drop_index("ttl") is False
    assert await store.list_indexes() == []


@pytest.mark.asyncio
async def test_purge_removes_old_unvalidated_records(db_session):
    """Test the sweep over a 2-year-old unvalidated record with a 30-day TTL."""
    now = datetime.now(timezone.utc)
    two_years_ago = now - timedelta(days=730)
    repo = UserRepository(db_session)

    stale = CredentialRecord(
        email="stale@example.com",
        created_at=two_years_ago,
        validations=[ValidationAttempt(type="email", validated=False, created_at=two_years_ago)],
    )
    validated = CredentialRecord(
        email="validated@example.com",
        created_at=two_years_ago,
        validations=[ValidationAttempt(type="email", validated=True, created_at=two_years_ago)],
    )
    recent = CredentialRecord(
        email="recent@example.com",
        validations=[ValidationAttempt(type="email", validated=False)],
    )
    for record in (stale, validated, recent):
        await repo.create(record)
    await db_session.commit()

    store = SQLAlchemyIndexStore(db_session)
    await store.create_index("created_at", THIRTY_DAYS, UNVALIDATED_EMAIL, name="created_at_email_ttl")

    removed = await store.purge_expired(now=now)

    assert removed == 1
    assert await repo.get_by_id(stale.id) is None
    assert await repo.get_by_id(validated.id) is not None
    assert await repo.get_by_id(recent.id) is not None


@pytest.mark.asyncio
async def test_purge_without_indexes(db_session):
    """Test that nothing expires without a TTL index."""
    repo = UserRepository(db_session)
    old = datetime.now(timezone.utc) - timedelta(days=730)
    await repo.create(CredentialRecord(email="old@example.com", created_at=old))
    await db_session.commit()

    assert await SQLAlchemyIndexStore(db_session).purge_expired() == 0
    assert await repo.count() == 1

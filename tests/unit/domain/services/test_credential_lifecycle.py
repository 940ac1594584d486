"""Unit tests for password changes and authentication of records."""

import pytest

from credvault.core.exceptions import HashingUnavailable, PolicyViolation
from credvault.domain.entities import CredentialRecord, HashAlgorithm, ValidationAttempt
from credvault.domain.services.credential_lifecycle import CredentialLifecycle


@pytest.fixture
def lifecycle(settings) -> CredentialLifecycle:
    return CredentialLifecycle.from_settings(settings)


@pytest.fixture
def record() -> CredentialRecord:
    return CredentialRecord(email="alice@example.com", first_name="alice")


class TestPreparePasswordChange:
    """Tests for prepare_password_change."""

    def test_strengthened_hash_scenario(self, lifecycle, record):
        """Test that a strong password is hashed and then authenticates."""
        updated = lifecycle.prepare_password_change(
            record, "Abc123!@#xyz", HashAlgorithm.STRENGTHENED
        )

        assert updated.algorithm is HashAlgorithm.STRENGTHENED
        assert updated.password_hash.startswith("$2b$")
        assert updated.salt is None
        assert lifecycle.authenticate(updated, "Abc123!@#xyz") is True
        assert lifecycle.authenticate(updated, "wrong") is False

    def test_does_not_mutate_input(self, lifecycle, record):
        """Test that the original record is left untouched."""
        lifecycle.prepare_password_change(record, "Abc123!@#xyz")

        assert record.password_hash == ""
        assert record.has_password is False

    def test_default_algorithm(self, lifecycle, record):
        """Test that the configured default is used when none is chosen."""
        updated = lifecycle.prepare_password_change(record, "Abc123!@#xyz")

        assert updated.algorithm is HashAlgorithm.STRENGTHENED

    def test_legacy_kdf_stores_salt(self, lifecycle, record):
        """Test that the legacy KDF keeps its salt on the record."""
        updated = lifecycle.prepare_password_change(record, "Abc123!@#xyz", "crypto")

        assert updated.algorithm is HashAlgorithm.LEGACY_KDF
        assert updated.salt
        assert lifecycle.authenticate(updated, "Abc123!@#xyz") is True

    def test_fresh_salt_per_change(self, lifecycle, record):
        """Test that setting the same password twice gives different hashes."""
        first = lifecycle.prepare_password_change(record, "Abc123!@#xyz", "crypto")
        second = lifecycle.prepare_password_change(first, "Abc123!@#xyz", "crypto")

        assert first.salt != second.salt
        assert first.password_hash != second.password_hash

    def test_weak_password_rejected(self, lifecycle, record):
        """Test that 'aaa' is rejected with a minimum-length violation."""
        with pytest.raises(PolicyViolation) as exc_info:
            lifecycle.prepare_password_change(record, "aaa")

        violation = exc_info.value
        assert violation.field == "password"
        assert "password_too_short" in [v.code for v in violation.violations]
        assert len(violation.messages) > 1
        assert record.password_hash == ""

    def test_weak_password_leaves_existing_hash(self, lifecycle, record):
        """Test that a rejected change keeps the previous credential."""
        current = lifecycle.prepare_password_change(record, "Abc123!@#xyz", "crypto")

        with pytest.raises(PolicyViolation):
            lifecycle.prepare_password_change(current, "aaa")

        assert lifecycle.authenticate(current, "Abc123!@#xyz") is True

    def test_federated_account_bypasses_policy(self, lifecycle):
        """Test that federated accounts are not subject to the policy."""
        record = CredentialRecord(email="bob@example.com", provider="google")

        updated = lifecycle.prepare_password_change(record, "short")

        assert lifecycle.authenticate(updated, "short") is True

    def test_empty_password_clears_credential(self, lifecycle, record):
        """Test that an empty password removes the credential."""
        current = lifecycle.prepare_password_change(record, "Abc123!@#xyz", "crypto")

        cleared = lifecycle.prepare_password_change(current, "")

        assert cleared.has_password is False
        assert cleared.salt is None
        assert lifecycle.authenticate(cleared, "") is False

    def test_unknown_algorithm(self, lifecycle, record):
        """Test that an unknown algorithm aborts the change."""
        with pytest.raises(HashingUnavailable):
            lifecycle.prepare_password_change(record, "Abc123!@#xyz", "md5")

    def test_unavailable_algorithm(self, settings, record):
        """Test that an unregistered algorithm raises HashingUnavailable."""
        lifecycle = CredentialLifecycle.from_settings(settings)
        lifecycle.hasher._strategies.pop(HashAlgorithm.ARGON2ID)

        with pytest.raises(HashingUnavailable):
            lifecycle.prepare_password_change(record, "Abc123!@#xyz", HashAlgorithm.ARGON2ID)


class TestAuthenticate:
    """Tests for authenticate."""

    def test_missing_record(self, lifecycle):
        """Test that an unknown account fails like a wrong password."""
        assert lifecycle.authenticate(None, "Abc123!@#xyz") is False

    def test_record_without_password(self, lifecycle, record):
        """Test that an account without password never authenticates."""
        assert lifecycle.authenticate(record, "Abc123!@#xyz") is False

    def test_uses_stored_algorithm(self, lifecycle, record):
        """Test that old hashes verify after the default algorithm changed."""
        legacy = lifecycle.prepare_password_change(record, "Abc123!@#xyz", "crypto")
        lifecycle.default_algorithm = HashAlgorithm.ARGON2ID

        assert lifecycle.authenticate(legacy, "Abc123!@#xyz") is True
        assert lifecycle.needs_rehash(legacy) is True


class TestProjection:
    """Tests for public projection and input sanitizing."""

    def test_public_dict_strips_secrets(self, lifecycle, record):
        """Test that hashes, salts and codes never leave the core."""
        current = lifecycle.prepare_password_change(record, "Abc123!@#xyz", "crypto")
        current.validations.append(ValidationAttempt(type="email", code="123456"))
        current.provider_data["token"] = "secret"

        data = lifecycle.to_public_dict(current)

        assert "password_hash" not in data
        assert "salt" not in data
        assert "provider_data" not in data
        assert "code" not in data["validations"][0]
        assert data["full_name"] == "Alice"

    def test_sanitize_input(self, lifecycle):
        """Test that secret and protected attributes are dropped from updates."""
        data = lifecycle.sanitize_input(
            {"first_name": "Eve", "password_hash": "x", "salt": "y", "roles": ["admin"]}
        )

        assert data == {"first_name": "Eve"}

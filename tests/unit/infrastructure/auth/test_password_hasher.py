"""Unit tests for the algorithm-tagged password hasher."""

import base64

import pytest

from credvault.core.config import PasswordSettings
from credvault.core.exceptions import HashingUnavailable
from credvault.domain.entities import HashAlgorithm
from credvault.infrastructure.auth.password_hasher import (
    BcryptStrategy,
    PasswordHasher,
    Pbkdf2Strategy,
)

ALGORITHMS = [HashAlgorithm.LEGACY_KDF, HashAlgorithm.STRENGTHENED, HashAlgorithm.ARGON2ID]


@pytest.fixture
def hasher() -> PasswordHasher:
    """Hasher with every algorithm registered and a cheap bcrypt cost."""
    return PasswordHasher.from_settings(PasswordSettings(bcrypt_rounds=4))


class TestHashAndVerify:
    """Tests for hash and verify across algorithms."""

    @pytest.mark.parametrize("algorithm", ALGORITHMS)
    def test_verify_correct_password(self, hasher, algorithm):
        """Test that a password verifies against its own hash."""
        salt = hasher.generate_salt(algorithm)
        stored = hasher.hash("Abc123!@#xyz", salt, algorithm)

        assert hasher.verify("Abc123!@#xyz", stored, salt, algorithm) is True

    @pytest.mark.parametrize("algorithm", ALGORITHMS)
    def test_verify_wrong_password(self, hasher, algorithm):
        """Test that any other password is rejected."""
        salt = hasher.generate_salt(algorithm)
        stored = hasher.hash("Abc123!@#xyz", salt, algorithm)

        assert hasher.verify("wrong", stored, salt, algorithm) is False
        assert hasher.verify("abc123!@#xyz", stored, salt, algorithm) is False

    def test_legacy_kdf_format(self, hasher):
        """Test PBKDF2 output is a base64 64-byte key with a base64 16-byte salt."""
        salt = hasher.generate_salt(HashAlgorithm.LEGACY_KDF)
        stored = hasher.hash("Abc123!@#xyz", salt, HashAlgorithm.LEGACY_KDF)

        assert len(base64.b64decode(salt)) == 16
        assert len(base64.b64decode(stored)) == 64

    def test_legacy_kdf_fresh_salts_give_different_hashes(self, hasher):
        """Test that the same password hashed twice with fresh salts differs."""
        salt1 = hasher.generate_salt(HashAlgorithm.LEGACY_KDF)
        salt2 = hasher.generate_salt(HashAlgorithm.LEGACY_KDF)

        assert salt1 != salt2
        assert hasher.hash("Abc123!@#xyz", salt1, HashAlgorithm.LEGACY_KDF) != hasher.hash(
            "Abc123!@#xyz", salt2, HashAlgorithm.LEGACY_KDF
        )

    def test_legacy_kdf_is_deterministic_for_a_salt(self, hasher):
        """Test that a given salt always derives the same key."""
        salt = hasher.generate_salt(HashAlgorithm.LEGACY_KDF)

        assert hasher.hash("secret", salt, "crypto") == hasher.hash("secret", salt, "crypto")

    def test_legacy_kdf_without_salt_does_not_verify(self, hasher):
        """Test that a PBKDF2 hash cannot be checked without its salt."""
        salt = hasher.generate_salt(HashAlgorithm.LEGACY_KDF)
        stored = hasher.hash("secret", salt, HashAlgorithm.LEGACY_KDF)

        assert hasher.verify("secret", stored, None, HashAlgorithm.LEGACY_KDF) is False

    def test_bcrypt_embeds_salt(self, hasher):
        """Test that a bcrypt hash verifies without the separate salt."""
        salt = hasher.generate_salt(HashAlgorithm.STRENGTHENED)
        stored = hasher.hash("Abc123!@#xyz", salt, HashAlgorithm.STRENGTHENED)

        assert stored.startswith("$2b$04$")
        assert hasher.verify("Abc123!@#xyz", stored, None, HashAlgorithm.STRENGTHENED) is True

    def test_bcrypt_long_password_truncated(self, hasher):
        """Test that passwords beyond 72 bytes hash without error."""
        password = "x" * 100
        salt = hasher.generate_salt(HashAlgorithm.STRENGTHENED)
        stored = hasher.hash(password, salt, HashAlgorithm.STRENGTHENED)

        assert hasher.verify(password, stored, None, HashAlgorithm.STRENGTHENED) is True

    def test_argon2_hash_format(self, hasher):
        """Test that Argon2 produces an argon2id hash."""
        salt = hasher.generate_salt(HashAlgorithm.ARGON2ID)
        stored = hasher.hash("Abc123!@#xyz", salt, HashAlgorithm.ARGON2ID)

        assert stored.startswith("$argon2id$")


class TestEmptyInputs:
    """Tests for calls without a password or salt."""

    @pytest.mark.parametrize("algorithm", ALGORITHMS)
    def test_hash_without_password_returns_input(self, hasher, algorithm):
        """Test that hashing an empty password is a no-op."""
        salt = hasher.generate_salt(algorithm)

        assert hasher.hash("", salt, algorithm) == ""

    @pytest.mark.parametrize("algorithm", ALGORITHMS)
    def test_hash_without_salt_returns_input(self, hasher, algorithm):
        """Test that hashing without a salt is a no-op."""
        assert hasher.hash("secret", "", algorithm) == "secret"

    def test_verify_without_stored_hash(self, hasher):
        """Test that an unset credential never verifies."""
        assert hasher.verify("secret", "", None, HashAlgorithm.STRENGTHENED) is False

    def test_verify_without_password(self, hasher):
        """Test that an empty candidate never verifies."""
        salt = hasher.generate_salt(HashAlgorithm.LEGACY_KDF)
        stored = hasher.hash("secret", salt, HashAlgorithm.LEGACY_KDF)

        assert hasher.verify("", stored, salt, HashAlgorithm.LEGACY_KDF) is False


class TestErrors:
    """Tests for unavailable algorithms and malformed input."""

    def test_unknown_algorithm(self, hasher):
        """Test that an unknown algorithm tag is reported, not ignored."""
        with pytest.raises(HashingUnavailable):
            hasher.generate_salt("md5")

    def test_unregistered_algorithm(self):
        """Test that an algorithm without a strategy is unavailable."""
        hasher = PasswordHasher({HashAlgorithm.LEGACY_KDF: Pbkdf2Strategy()})

        with pytest.raises(HashingUnavailable):
            hasher.hash("secret", "salt", HashAlgorithm.STRENGTHENED)

    def test_invalid_pbkdf2_salt(self, hasher):
        """Test that a salt that is not base64 is rejected."""
        with pytest.raises(HashingUnavailable):
            hasher.hash("secret", "not base64!", HashAlgorithm.LEGACY_KDF)

    def test_malformed_bcrypt_hash(self, hasher):
        """Test that a corrupted bcrypt hash is reported."""
        with pytest.raises(HashingUnavailable):
            hasher.verify("secret", "not-a-bcrypt-hash", None, HashAlgorithm.STRENGTHENED)

    def test_malformed_argon2_hash(self, hasher):
        """Test that a corrupted Argon2 hash is reported."""
        with pytest.raises(HashingUnavailable):
            hasher.verify("secret", "not-an-argon2-hash", None, HashAlgorithm.ARGON2ID)

    def test_random_source_failure(self, hasher, monkeypatch):
        """Test that a failing random source surfaces as HashingUnavailable."""

        def failing_urandom(n):
            raise OSError("no entropy")

        monkeypatch.setattr("credvault.infrastructure.auth.password_hasher.os.urandom", failing_urandom)

        with pytest.raises(HashingUnavailable):
            hasher.generate_salt(HashAlgorithm.LEGACY_KDF)


class TestHelpers:
    """Tests for salt storage, dummy verification and rehash hints."""

    def test_stores_salt(self, hasher):
        """Test that only the legacy KDF keeps a separate salt."""
        assert hasher.stores_salt(HashAlgorithm.LEGACY_KDF) is True
        assert hasher.stores_salt(HashAlgorithm.STRENGTHENED) is False
        assert hasher.stores_salt(HashAlgorithm.ARGON2ID) is False

    def test_verify_dummy_always_false(self, hasher):
        """Test that the timing-equalizing check never succeeds."""
        assert hasher.verify_dummy("dummy_password_for_timing_safety", "bcrypt") is False
        assert hasher.verify_dummy("", HashAlgorithm.LEGACY_KDF) is False

    def test_needs_rehash(self, hasher):
        """Test that hashes from another algorithm are flagged."""
        assert hasher.needs_rehash("crypto", "bcrypt") is True
        assert hasher.needs_rehash(HashAlgorithm.STRENGTHENED, "bcrypt") is False

    def test_pbkdf2_iterations_from_settings(self):
        """Test that the configured iteration count changes the derived key."""
        fast = Pbkdf2Strategy(iterations=10000)
        slow = Pbkdf2Strategy(iterations=20000)
        salt = fast.generate_salt()

        assert fast.derive("secret", salt) != slow.derive("secret", salt)

    def test_bcrypt_rounds(self):
        """Test that the bcrypt cost is encoded in the salt."""
        assert BcryptStrategy(rounds=5).generate_salt().startswith("$2b$05$")

"""Password hashing under interchangeable, record-tagged algorithms.

Every stored hash carries the tag of the algorithm that produced it, and
verification always dispatches on that tag. Records hashed with an older
algorithm keep working after the default changes; they move to the new
algorithm the next time their password is changed.

Supported algorithms:
- ``crypto``: PBKDF2-HMAC-SHA512, 10,000+ iterations, 64-byte key. The
  16-byte random salt is stored next to the hash, both base64 encoded.
- ``bcrypt``: adaptive hash; the salt is embedded in the hash string.
- ``argon2id``: Argon2id via argon2-cffi; the salt is embedded as well.
"""

import base64
import binascii
import hashlib
import hmac
import os
from abc import ABC, abstractmethod
from collections.abc import Mapping

import bcrypt
from argon2 import PasswordHasher as Argon2Hasher
from argon2.exceptions import InvalidHashError, VerificationError

from credvault.core.config import PasswordSettings
from credvault.core.exceptions import HashingUnavailable
from credvault.core.logging import get_logger
from credvault.domain.entities import HashAlgorithm

logger = get_logger(__name__)

# bcrypt only reads the first 72 bytes of its input
BCRYPT_MAX_PASSWORD_BYTES = 72

_DUMMY_PASSWORD = "dummy_password_for_timing_safety"


class HashStrategy(ABC):
    """One password hashing algorithm."""

    @abstractmethod
    def generate_salt(self) -> str:
        """Return a fresh random salt in the form ``derive`` expects."""

    @abstractmethod
    def derive(self, password: str, salt: str) -> str:
        """Return the stored form of ``password``."""

    @abstractmethod
    def verify(self, password: str, stored_hash: str, salt: str | None) -> bool:
        """Check ``password`` against a stored hash."""


class Pbkdf2Strategy(HashStrategy):
    """PBKDF2-HMAC-SHA512 with a separately stored salt."""

    digest = "sha512"
    key_length = 64
    salt_bytes = 16

    def __init__(self, iterations: int = 10000) -> None:
        self.iterations = iterations

    def generate_salt(self) -> str:
        return base64.b64encode(os.urandom(self.salt_bytes)).decode("ascii")

    def derive(self, password: str, salt: str) -> str:
        try:
            raw_salt = base64.b64decode(salt, validate=True)
        except (binascii.Error, ValueError) as e:
            raise HashingUnavailable(f"Invalid salt for PBKDF2: {e}") from e

        key = hashlib.pbkdf2_hmac(
            self.digest,
            password.encode("utf-8"),
            raw_salt,
            self.iterations,
            dklen=self.key_length,
        )
        return base64.b64encode(key).decode("ascii")

    def verify(self, password: str, stored_hash: str, salt: str | None) -> bool:
        if not salt:
            return False
        candidate = self.derive(password, salt)
        return hmac.compare_digest(candidate.encode("utf-8"), stored_hash.encode("utf-8"))


class BcryptStrategy(HashStrategy):
    """bcrypt with the salt embedded in the hash."""

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds

    @staticmethod
    def _encode(password: str) -> bytes:
        return password.encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]

    def generate_salt(self) -> str:
        return bcrypt.gensalt(rounds=self.rounds).decode("ascii")

    def derive(self, password: str, salt: str) -> str:
        try:
            return bcrypt.hashpw(self._encode(password), salt.encode("ascii")).decode("ascii")
        except (ValueError, UnicodeEncodeError) as e:
            raise HashingUnavailable(f"Invalid bcrypt salt: {e}") from e

    def verify(self, password: str, stored_hash: str, salt: str | None) -> bool:
        try:
            return bcrypt.checkpw(self._encode(password), stored_hash.encode("ascii"))
        except (ValueError, UnicodeEncodeError) as e:
            raise HashingUnavailable(f"Malformed bcrypt hash: {e}") from e


class Argon2Strategy(HashStrategy):
    """Argon2id with the salt embedded in the hash."""

    salt_bytes = 16

    def __init__(self, hasher: Argon2Hasher | None = None) -> None:
        self._hasher = hasher or Argon2Hasher(salt_len=self.salt_bytes)

    def generate_salt(self) -> str:
        return base64.b64encode(os.urandom(self.salt_bytes)).decode("ascii")

    def derive(self, password: str, salt: str) -> str:
        try:
            raw_salt = base64.b64decode(salt, validate=True)
        except (binascii.Error, ValueError) as e:
            raise HashingUnavailable(f"Invalid salt for Argon2: {e}") from e
        return self._hasher.hash(password, salt=raw_salt)

    def verify(self, password: str, stored_hash: str, salt: str | None) -> bool:
        try:
            return self._hasher.verify(stored_hash, password)
        except InvalidHashError as e:
            raise HashingUnavailable(f"Malformed Argon2 hash: {e}") from e
        except VerificationError:
            return False


class PasswordHasher:
    """Dispatches hashing and verification to the strategy of an algorithm.

    Adding an algorithm means adding a ``HashAlgorithm`` member and an entry
    in the strategy table; callers are unaffected.
    """

    def __init__(self, strategies: Mapping[HashAlgorithm, HashStrategy]) -> None:
        self._strategies = dict(strategies)
        self._dummy_hashes: dict[HashAlgorithm, tuple[str, str]] = {}

    @classmethod
    def from_settings(cls, settings: PasswordSettings) -> "PasswordHasher":
        """Build a hasher with every supported algorithm registered."""
        return cls(
            {
                HashAlgorithm.LEGACY_KDF: Pbkdf2Strategy(iterations=settings.pbkdf2_iterations),
                HashAlgorithm.STRENGTHENED: BcryptStrategy(rounds=settings.bcrypt_rounds),
                HashAlgorithm.ARGON2ID: Argon2Strategy(),
            }
        )

    def _strategy(self, algorithm: HashAlgorithm | str) -> HashStrategy:
        try:
            return self._strategies[HashAlgorithm(algorithm)]
        except (KeyError, ValueError) as e:
            logger.error("Hash algorithm unavailable", algorithm=str(algorithm))
            raise HashingUnavailable(f"Unsupported hash algorithm: {algorithm}") from e

    @property
    def algorithms(self) -> list[HashAlgorithm]:
        return list(self._strategies)

    def generate_salt(self, algorithm: HashAlgorithm | str) -> str:
        """Generate a fresh salt for ``algorithm``.

        Raises:
            HashingUnavailable: If the algorithm is unknown or the random source fails.
        """
        strategy = self._strategy(algorithm)
        try:
            return strategy.generate_salt()
        except OSError as e:
            raise HashingUnavailable(f"Random source unavailable: {e}") from e

    def stores_salt(self, algorithm: HashAlgorithm | str) -> bool:
        """Whether records hashed with ``algorithm`` keep their salt in a separate field."""
        self._strategy(algorithm)
        return HashAlgorithm(algorithm).stores_salt

    def hash(self, password: str, salt: str, algorithm: HashAlgorithm | str) -> str:
        """Hash a password.

        Without a password or a salt there is nothing to hash and the
        password is returned as given; callers treat an empty result as
        "no password".

        Args:
            password: The plaintext password.
            salt: Salt produced by ``generate_salt`` for the same algorithm.
            algorithm: Algorithm to hash with.

        Returns:
            The stored form of the password.

        Raises:
            HashingUnavailable: If the algorithm or salt is unusable.
        """
        if not password or not salt:
            return password
        return self._strategy(algorithm).derive(password, salt)

    def verify(
        self,
        password: str,
        stored_hash: str,
        salt: str | None,
        algorithm: HashAlgorithm | str,
    ) -> bool:
        """Verify a password against a stored hash.

        Args:
            password: The candidate plaintext password.
            stored_hash: The stored hash.
            salt: The stored salt (ignored by algorithms that embed it).
            algorithm: The algorithm tag stored with the hash.

        Returns:
            True if the password matches, False otherwise.

        Raises:
            HashingUnavailable: If the algorithm is unknown or the stored hash is malformed.
        """
        strategy = self._strategy(algorithm)
        if not password or not stored_hash:
            return False
        return strategy.verify(password, stored_hash, salt)

    def verify_dummy(self, password: str, algorithm: HashAlgorithm | str) -> bool:
        """Spend the same work as a real verification and return False.

        Used when there is no stored hash to check against, so that the
        response time does not reveal that the account has no password.
        """
        algorithm = HashAlgorithm(algorithm)
        if algorithm not in self._dummy_hashes:
            salt = self.generate_salt(algorithm)
            self._dummy_hashes[algorithm] = (self.hash(_DUMMY_PASSWORD, salt, algorithm), salt)
        stored_hash, salt = self._dummy_hashes[algorithm]
        self.verify(password or _DUMMY_PASSWORD, stored_hash, salt, algorithm)
        return False

    def needs_rehash(self, algorithm: HashAlgorithm | str, target: HashAlgorithm | str) -> bool:
        """Check if a hash produced with ``algorithm`` should move to ``target``.

        This is advisory: the record is only re-hashed when its password
        changes, since the plaintext is needed to do so.
        """
        return HashAlgorithm(algorithm) != HashAlgorithm(target)

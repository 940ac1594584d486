"""Password hashing infrastructure."""

from credvault.infrastructure.auth.password_hasher import (
    Argon2Strategy,
    BcryptStrategy,
    HashStrategy,
    PasswordHasher,
    Pbkdf2Strategy,
)

__all__ = [
    "Argon2Strategy",
    "BcryptStrategy",
    "HashStrategy",
    "PasswordHasher",
    "Pbkdf2Strategy",
]

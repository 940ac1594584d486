"""Pytest configuration for all tests."""

import pytest

from credvault.core.config import PasswordSettings, Settings


@pytest.fixture
def settings() -> Settings:
    """Settings for tests.

    Uses the minimum bcrypt cost so hashing stays fast, and never reads
    a local .env file.
    """
    return Settings(
        _env_file=None,
        environment="testing",
        database_url="sqlite+aiosqlite:///:memory:",
        password=PasswordSettings(bcrypt_rounds=4),
    )

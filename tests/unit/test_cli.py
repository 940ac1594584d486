"""Unit tests for the credvault CLI."""

import re
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from credvault.cli import cli
from credvault.core.config import ChannelValidationSettings, Settings, ValidationSettings


@pytest.fixture
def cli_settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file."""
    return Settings(
        _env_file=None,
        environment="testing",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'cv.db'}",
        validations=ValidationSettings(
            email=ChannelValidationSettings(validate=True, ttl=2592000),
        ),
    )


def invoke(settings: Settings, args: list[str], **kwargs):
    runner = CliRunner()
    with patch("credvault.cli.get_settings", return_value=settings), patch(
        "credvault.cli.configure_logging"
    ):
        return runner.invoke(cli, args, **kwargs)


def test_passphrase(cli_settings):
    """Test that generated passphrases are printed one per line."""
    result = invoke(cli_settings, ["passphrase", "-n", "3"])

    assert result.exit_code == 0
    passphrases = [line for line in result.output.splitlines() if re.fullmatch(r"[A-Za-z0-9]{20,39}", line)]
    assert len(passphrases) == 3


def test_check_password_ok(cli_settings):
    """Test that a strong password is accepted."""
    result = invoke(cli_settings, ["check-password", "--password", "Abc123!@#xyz"])

    assert result.exit_code == 0
    assert "Password is acceptable." in result.output


def test_check_password_lists_violations(cli_settings):
    """Test that every broken rule is listed."""
    result = invoke(cli_settings, ["check-password"], input="aaa\n")

    assert result.exit_code == 1
    assert "at least 10 characters" in result.output
    assert "uppercase letter" in result.output


def test_init_db_refused_in_production(cli_settings):
    """Test that init-db requires --force in production."""
    settings = cli_settings.model_copy(update={"environment": "production"})

    result = invoke(settings, ["init-db"])

    assert result.exit_code == 1


def test_database_commands(cli_settings):
    """Test init-db, reconcile-expiry and purge-expired against a file database."""
    result = invoke(cli_settings, ["init-db", "--force"])
    assert result.exit_code == 0, result.output
    assert "Database initialized successfully." in result.output

    result = invoke(cli_settings, ["reconcile-expiry"])
    assert result.exit_code == 0, result.output
    assert "created created_at_email_ttl" in result.output

    result = invoke(cli_settings, ["reconcile-expiry"])
    assert result.exit_code == 0, result.output
    assert "created created_at_email_ttl" not in result.output

    result = invoke(cli_settings, ["purge-expired"])
    assert result.exit_code == 0, result.output
    assert "Removed 0 expired account(s)." in result.output

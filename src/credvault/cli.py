"""Command-line interface for credvault.

This module provides the CLI commands for managing credential storage
and checking passwords against the configured policy.
"""

import asyncio
from typing import NoReturn

import click

from credvault import __version__
from credvault.core.config import get_settings
from credvault.core.logging import LoggingContext, configure_logging, get_logger


@click.group()
@click.version_option(version=__version__, prog_name="credvault")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    default=None,
    help="Set log level (overrides configuration)",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """credvault - password hashing, policy and account expiry."""
    settings = get_settings()
    if log_level:
        settings = settings.model_copy(update={"log_level": log_level})
    configure_logging(settings)
    ctx.obj = settings


@cli.command()
@click.option("--count", "-n", type=int, default=1, show_default=True, help="Number of passphrases")
@click.pass_obj
def passphrase(settings, count: int) -> None:
    """Generate passphrases that satisfy the password policy."""
    from credvault.core.exceptions import GenerationFailure
    from credvault.domain.services import PassphraseGenerator, PasswordPolicy

    policy = PasswordPolicy.from_settings(settings.password)
    generator = PassphraseGenerator.from_settings(settings.password, policy)

    for _ in range(count):
        try:
            click.echo(generator.generate())
        except GenerationFailure as e:
            click.echo(f"Error: {e.message}", err=True)
            raise SystemExit(1)


@cli.command()
@click.option(
    "--password",
    type=str,
    default=None,
    help="Password to check (prompts if not provided)",
)
@click.pass_obj
def check_password(settings, password: str | None) -> None:
    """Check a password against the password policy."""
    from credvault.domain.services import PasswordPolicy

    if password is None:
        password = click.prompt("Password", hide_input=True)

    result = PasswordPolicy.from_settings(settings.password).evaluate(password)
    if result.ok:
        click.echo("Password is acceptable.")
        return

    for violation in result.violations:
        click.echo(f"  - {violation.message}", err=True)
    raise SystemExit(1)


@cli.command()
@click.pass_obj
def reconcile_expiry(settings) -> None:
    """Create or update the expiry rules of unvalidated accounts."""
    from credvault.domain.services import ExpiryPolicyEngine
    from credvault.infrastructure.persistence.database import DatabaseManager
    from credvault.infrastructure.persistence.index_store import SQLAlchemyIndexStore

    logger = get_logger(__name__)

    async def reconcile() -> None:
        db = DatabaseManager(settings)
        try:
            async with db.session() as session:
                engine = ExpiryPolicyEngine(SQLAlchemyIndexStore(session), settings.validations)
                outcome = await engine.reconcile()
        finally:
            await db.disconnect()

        if not outcome.enabled:
            click.echo("Expiry is disabled for all contact channels.")
            return
        click.echo(f"Expiry enabled for: {', '.join(outcome.enabled)}")
        for name in outcome.created:
            click.echo(f"  created {name}")
        for name in outcome.dropped:
            click.echo(f"  dropped {name}")
        logger.info("Expiry reconciled via CLI", enabled=outcome.enabled)

    with LoggingContext(operation="reconcile-expiry"):
        asyncio.run(reconcile())


@cli.command()
@click.pass_obj
def purge_expired(settings) -> None:
    """Remove unvalidated accounts whose expiry has passed."""
    from credvault.infrastructure.persistence.database import DatabaseManager
    from credvault.infrastructure.persistence.index_store import SQLAlchemyIndexStore

    async def purge() -> int:
        db = DatabaseManager(settings)
        try:
            async with db.session() as session:
                return await SQLAlchemyIndexStore(session).purge_expired()
        finally:
            await db.disconnect()

    with LoggingContext(operation="purge-expired"):
        removed = asyncio.run(purge())
    click.echo(f"Removed {removed} expired account(s).")


@cli.command()
@click.option(
    "--force",
    is_flag=True,
    help="Skip confirmation prompt",
)
@click.pass_obj
def init_db(settings, force: bool) -> None:
    """Initialize the database.

    Creates all database tables and seeds the default roles. Use this only in
    development. In production, use migrations instead.
    """
    from credvault.infrastructure.persistence.database import DatabaseManager, init_database

    if settings.is_production and not force:
        click.echo(
            "ERROR: Running in production mode. Use migrations instead of init-db.",
            err=True,
        )
        raise SystemExit(1)

    if not force:
        click.confirm(
            "This will create all database tables. Continue?",
            abort=True,
            default=False,
        )

    async def initialize() -> None:
        db = DatabaseManager(settings)
        try:
            await init_database(db)
            click.echo("Database initialized successfully.")
        finally:
            await db.disconnect()

    asyncio.run(initialize())


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `credvault` command is run
    or when using `python -m credvault`.
    """
    cli()


if __name__ == "__main__":
    main()

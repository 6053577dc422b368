"""
Command line interface.

Usage:
    stravhat init-db
    stravhat create-user --email me@example.com
    stravhat set-credentials --user-id <id> --client-id ... --client-secret ... --redirect-uri ...
    stravhat authorize-url --user-id <id>
    stravhat connect --user-id <id> --code <code>
    stravhat import --user-id <id>
    stravhat disconnect --user-id <id>
"""

import asyncio
import logging
import sys

import click

from stravhat.config import settings
from stravhat.db.session import AsyncSessionLocal, init_db
from stravhat.features.strava import (
    CredentialResolver,
    CredentialService,
    ImportService,
    StravaConfigurationError,
    StravaError,
    StravaOAuth,
    TokenManager,
)
from stravhat.features.users import UserRepository
from stravhat.shared.security import SecretCodec, SecretDecryptionError


def _setup_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


def _run(coro):
    """Run a coroutine, turning known failures into a CLI error."""
    try:
        return asyncio.run(coro)
    except StravaConfigurationError as e:
        raise click.ClickException(f"Setup incomplete: {e}") from e
    except (StravaError, SecretDecryptionError, ValueError) as e:
        raise click.ClickException(str(e)) from e


@click.group()
def cli():
    """Stravhat: import Strava activities."""
    _setup_logging()


@cli.command("init-db")
def init_db_command():
    """Create database tables."""
    asyncio.run(init_db())
    click.echo("Database initialized")


@cli.command("generate-key")
def generate_key():
    """Print a new value for STRAVA_CREDENTIALS_ENCRYPTION_KEY."""
    click.echo(SecretCodec.generate_key())


@cli.command("create-user")
@click.option("--email", default=None, help="Optional email")
@click.option("--weight-kg", default=None, type=float)
@click.option("--hr-max", default=190, type=int, show_default=True)
def create_user(email, weight_kg, hr_max):
    """Create a user and print its ID."""

    async def _create():
        async with AsyncSessionLocal() as session:
            user = await UserRepository(session).create(
                email=email, weight_kg=weight_kg, hr_max=hr_max
            )
            await session.commit()
            return user.id

    click.echo(_run(_create()))


@cli.command("set-credentials")
@click.option("--user-id", required=True)
@click.option("--client-id", required=True)
@click.option(
    "--client-secret", default="", prompt=True, hide_input=True,
    help="Leave blank to keep the stored secret",
)
@click.option("--redirect-uri", required=True)
def set_credentials(user_id, client_id, client_secret, redirect_uri):
    """Store the user's Strava app credentials (drops the current token)."""

    async def _save():
        async with AsyncSessionLocal() as session:
            service = CredentialService(session, SecretCodec.from_settings(settings))
            await service.save(user_id, client_id, client_secret, redirect_uri)

    _run(_save())
    click.echo("Credentials saved. Reconnect Strava to continue.")


@cli.command("authorize-url")
@click.option("--user-id", required=True)
@click.option("--state", default=None, help="Opaque CSRF state")
def authorize_url(user_id, state):
    """Print the Strava authorization URL for the user's app."""

    async def _url():
        async with AsyncSessionLocal() as session:
            resolver = CredentialResolver(session, SecretCodec.from_settings(settings))
            credentials = await resolver.resolve(user_id)
        return StravaOAuth().get_authorization_url(credentials, state)

    click.echo(_run(_url()))


@cli.command()
@click.option("--user-id", required=True)
@click.option("--code", required=True, help="Code from the OAuth callback")
def connect(user_id, code):
    """Exchange an authorization code and store the token."""

    async def _connect():
        async with AsyncSessionLocal() as session:
            manager = TokenManager(session, SecretCodec.from_settings(settings))
            await manager.connect(user_id, code)

    _run(_connect())
    click.echo("Strava connected")


@cli.command("import")
@click.option("--user-id", required=True)
def import_activities(user_id):
    """Import the user's full Strava history."""

    async def _import():
        async with AsyncSessionLocal() as session:
            service = ImportService(session, SecretCodec.from_settings(settings))
            return await service.import_all(user_id)

    result = _run(_import())
    click.echo(f"Imported {result.imported} activities ({result.pages} pages)")


@cli.command()
@click.option("--user-id", required=True)
def disconnect(user_id):
    """Delete the user's Strava token."""

    async def _disconnect():
        async with AsyncSessionLocal() as session:
            return await TokenManager(
                session, SecretCodec.from_settings(settings)
            ).disconnect(user_id)

    if _run(_disconnect()):
        click.echo("Strava disconnected")
    else:
        click.echo("Strava was not connected")


if __name__ == "__main__":
    cli()

"""Command-line entry point for reordenar."""

import asyncio
import logging
import sys
from typing import Any

import click

from reordenar.auth.exceptions import OAuthError
from reordenar.auth.token_store import EncryptedFileSecretStore, MemorySecretStore, SecretStore, TokenStore
from reordenar.constants import APP_NAME, APP_VERSION, ServiceName
from reordenar.logging import configure_logging
from reordenar.playlists.library import PlaylistLibrary
from reordenar.settings import AppSettings, get_settings
from reordenar.spotify.client import SpotifyClient
from reordenar.spotify.exceptions import NotAuthenticatedError, SpotifyClientError

logger = logging.getLogger(__name__)


def build_secret_store(settings: AppSettings) -> SecretStore:
    """Encrypted file store when a key is configured, otherwise memory only."""
    if settings.TOKEN_ENCRYPTION_KEY:
        return EncryptedFileSecretStore(settings.TOKEN_STORE_PATH, settings.TOKEN_ENCRYPTION_KEY)
    logger.warning("TOKEN_ENCRYPTION_KEY is not set; credentials will not survive a restart")
    return MemorySecretStore()


def build_client(settings: AppSettings) -> SpotifyClient:
    return SpotifyClient(settings, TokenStore(build_secret_store(settings)))


def _print_login_url(client: SpotifyClient) -> None:
    click.echo(f"Open this URL to sign in, then run `{APP_NAME} callback <redirect url>`:")
    click.echo(client.authorization_url())


async def complete_sign_in(client: SpotifyClient, redirect_url: str) -> int:
    """Exchange the redirect for tokens; returns the process exit code."""
    try:
        await client.handle_callback(redirect_url)
    except (OAuthError, SpotifyClientError) as exc:
        logger.error("Sign-in failed: %s", exc)
        click.echo(f"Sign-in failed: {exc}", err=True)
        return 1
    user = client.current_user
    click.echo(f"Signed in as {user.display_name or user.id}." if user else "Signed in.")
    return 0


async def list_playlists(client: SpotifyClient, settings: AppSettings) -> int:
    """Print playlists, recently played ones first and marked with ``*``."""
    library = PlaylistLibrary(client, settings)
    try:
        playlists = await library.refresh_playlists()
    except NotAuthenticatedError:
        click.echo(f"Session expired. Run `{APP_NAME} login` to sign in again.", err=True)
        return 1
    finally:
        library.close()

    if library.error_message:
        click.echo(library.error_message, err=True)
        return 1
    for playlist in playlists:
        marker = "*" if playlist.id in library.activity else " "
        click.echo(f"{marker} {playlist.name} ({playlist.track_count} tracks)")
    return 0


@click.group(invoke_without_command=True)
@click.version_option(APP_VERSION, prog_name=APP_NAME)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Reorder and prune Spotify playlists.

    Without a command, lists playlists (or prints the sign-in URL when
    signed out).
    """
    settings = get_settings()
    configure_logging(ServiceName.CLI, settings.LOG_LEVEL)
    ctx.obj = {"settings": settings, "client": build_client(settings)}
    if ctx.invoked_subcommand is None:
        ctx.invoke(playlists)


@cli.command()
@click.pass_obj
def login(obj: dict[str, Any]) -> None:
    """Print the Spotify authorization URL."""
    _print_login_url(obj["client"])


@cli.command()
@click.argument("url")
@click.pass_obj
def callback(obj: dict[str, Any], url: str) -> None:
    """Complete sign-in with the redirect URL."""
    sys.exit(asyncio.run(complete_sign_in(obj["client"], url)))


@cli.command()
@click.pass_obj
def logout(obj: dict[str, Any]) -> None:
    """Forget stored credentials."""
    obj["client"].logout()
    click.echo("Signed out.")


@cli.command()
@click.pass_obj
def playlists(obj: dict[str, Any]) -> None:
    """List playlists, most recently played first."""
    client: SpotifyClient = obj["client"]
    if not client.is_authenticated:
        _print_login_url(client)
        return
    sys.exit(asyncio.run(list_playlists(client, obj["settings"])))


def run() -> None:
    cli()


if __name__ == "__main__":
    run()

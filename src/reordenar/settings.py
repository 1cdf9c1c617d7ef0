"""Application settings loaded from environment variables."""

import functools

from pydantic_settings import BaseSettings

from reordenar.constants import (
    DEFAULT_OAUTH_STATE_TTL_SECONDS,
    DEFAULT_SPOTIFY_REDIRECT_URI,
    DEFAULT_SYNC_PACING_SECONDS,
    DEFAULT_TOKEN_EXPIRY_BUFFER_SECONDS,
    DEFAULT_TOKEN_STORE_PATH,
    DEFAULT_TRACKS_PAGE_SIZE,
)


class AppSettings(BaseSettings):
    """reordenar configuration."""

    # Spotify credentials
    SPOTIFY_CLIENT_ID: str = ""
    SPOTIFY_CLIENT_SECRET: str = ""
    SPOTIFY_REDIRECT_URI: str = DEFAULT_SPOTIFY_REDIRECT_URI

    # Token storage
    TOKEN_ENCRYPTION_KEY: str = ""  # Fernet key; empty keeps tokens in memory only
    TOKEN_STORE_PATH: str = DEFAULT_TOKEN_STORE_PATH
    TOKEN_EXPIRY_BUFFER_SECONDS: int = DEFAULT_TOKEN_EXPIRY_BUFFER_SECONDS
    OAUTH_STATE_TTL_SECONDS: int = DEFAULT_OAUTH_STATE_TTL_SECONDS

    # Playlist editing
    TRACKS_PAGE_SIZE: int = DEFAULT_TRACKS_PAGE_SIZE
    SYNC_PACING_SECONDS: float = DEFAULT_SYNC_PACING_SECONDS

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config = {"env_prefix": ""}


@functools.lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return cached application settings singleton."""
    return AppSettings()

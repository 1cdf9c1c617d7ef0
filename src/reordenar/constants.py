"""Centralized constants for reordenar."""

import enum

# --- Application metadata ---

APP_NAME = "reordenar"
APP_VERSION = "0.1.0"


class ServiceName(enum.StrEnum):
    """Component names used for logging and identification."""

    CLIENT = "client"
    CLI = "cli"


# --- Spotify OAuth ---

SPOTIFY_SCOPES = "playlist-read-private playlist-modify-private playlist-modify-public user-read-recently-played"

DEFAULT_SPOTIFY_REDIRECT_URI = "reordenar://callback"
DEFAULT_OAUTH_STATE_TTL_SECONDS = 300  # 5 minutes
DEFAULT_TOKEN_EXPIRY_BUFFER_SECONDS = 0
DEFAULT_TOKEN_STORE_PATH = "~/.reordenar/tokens.json"


# --- Secret store keys ---


class SecretKey(enum.StrEnum):
    """Fixed identifiers under which credentials are kept in the secret store."""

    ACCESS_TOKEN = "spotify_access_token"
    REFRESH_TOKEN = "spotify_refresh_token"
    TOKEN_EXPIRATION = "spotify_token_expiration"
    USER_DATA = "spotify_user_data"


# --- Playlist editing ---

UNKNOWN_ARTIST = "Unknown Artist"
DEFAULT_TRACKS_PAGE_SIZE = 50
DEFAULT_SYNC_PACING_SECONDS = 0.1

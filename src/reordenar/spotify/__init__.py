"""Spotify API client and models."""

from reordenar.spotify.client import SpotifyClient
from reordenar.spotify.exceptions import (
    AuthExchangeFailedError,
    DeleteFailedError,
    InsufficientScopeError,
    InvalidResponseError,
    NoRefreshTokenError,
    NotAuthenticatedError,
    RefreshFailedError,
    ReorderFailedError,
    SpotifyApiError,
    SpotifyClientError,
    SpotifyRateLimitError,
    SpotifyServerError,
)

__all__ = [
    "AuthExchangeFailedError",
    "DeleteFailedError",
    "InsufficientScopeError",
    "InvalidResponseError",
    "NoRefreshTokenError",
    "NotAuthenticatedError",
    "RefreshFailedError",
    "ReorderFailedError",
    "SpotifyApiError",
    "SpotifyClient",
    "SpotifyClientError",
    "SpotifyRateLimitError",
    "SpotifyServerError",
]

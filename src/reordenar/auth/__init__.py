"""Credential storage and OAuth callback handling."""

from reordenar.auth.callback import parse_callback
from reordenar.auth.exceptions import (
    AuthorizationDeniedError,
    InvalidStateError,
    MissingAuthorizationCodeError,
    OAuthError,
    SecretNotFoundError,
)
from reordenar.auth.state import OAuthStateManager
from reordenar.auth.token_store import EncryptedFileSecretStore, MemorySecretStore, SecretStore, TokenStore

__all__ = [
    "AuthorizationDeniedError",
    "EncryptedFileSecretStore",
    "InvalidStateError",
    "MemorySecretStore",
    "MissingAuthorizationCodeError",
    "OAuthError",
    "OAuthStateManager",
    "SecretNotFoundError",
    "SecretStore",
    "TokenStore",
    "parse_callback",
]

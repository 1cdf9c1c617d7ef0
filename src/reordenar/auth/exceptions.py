"""Domain exceptions for the auth module."""


class SecretNotFoundError(Exception):
    """No secret is stored under the requested key."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"No secret stored under {key!r}")


class OAuthError(Exception):
    """Base exception for OAuth callback errors."""


class AuthorizationDeniedError(OAuthError):
    """The authorization redirect carried an ``error`` parameter."""

    def __init__(self, error: str) -> None:
        self.error = error
        super().__init__(f"Authorization failed: {error}")


class MissingAuthorizationCodeError(OAuthError):
    """The authorization redirect carried neither ``code`` nor ``error``."""

    def __init__(self) -> None:
        super().__init__("Missing authorization code")


class InvalidStateError(OAuthError):
    """OAuth state parameter validation failed (CSRF protection)."""

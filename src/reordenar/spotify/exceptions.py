"""Spotify API client exceptions."""


class SpotifyClientError(Exception):
    """Base exception for Spotify client errors."""


class AuthExchangeFailedError(SpotifyClientError):
    """The token endpoint rejected an authorization-code exchange."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(
            f"Failed to exchange code for tokens: HTTP {status_code}" + (f": {detail}" if detail else "")
        )


class NoRefreshTokenError(SpotifyClientError):
    """A refresh was requested but no refresh token is held."""

    def __init__(self) -> None:
        super().__init__("No refresh token available")


class RefreshFailedError(SpotifyClientError):
    """The token endpoint rejected a refresh-token grant."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Failed to refresh access token: HTTP {status_code}" + (f": {detail}" if detail else ""))


class NotAuthenticatedError(SpotifyClientError):
    """The client has no usable credentials; the user has been signed out."""

    def __init__(self, detail: str = "Not authenticated with Spotify") -> None:
        self.detail = detail
        super().__init__(detail)


class InvalidResponseError(SpotifyClientError):
    """Spotify returned a body that could not be decoded into the expected model."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("Invalid response from Spotify" + (f": {detail}" if detail else ""))


class SpotifyApiError(SpotifyClientError):
    """Spotify returned a non-successful status code."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Spotify API error: HTTP {status_code}" + (f": {detail}" if detail else ""))


class InsufficientScopeError(SpotifyApiError):
    """Spotify returned 403; the granted scopes do not cover the endpoint."""

    def __init__(self, detail: str = "") -> None:
        super().__init__(status_code=403, detail=detail or "Insufficient scope for this endpoint")


class SpotifyRateLimitError(SpotifyApiError):
    """Spotify returned 429 Too Many Requests and retries were exhausted."""

    def __init__(self, retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        detail = "rate limit exceeded"
        if retry_after is not None:
            detail += f" (retry-after: {retry_after}s)"
        super().__init__(status_code=429, detail=detail)


class SpotifyServerError(SpotifyApiError):
    """Spotify returned a 5xx server error and retries were exhausted."""


class ReorderFailedError(SpotifyApiError):
    """A range-move reorder request was rejected."""


class DeleteFailedError(SpotifyApiError):
    """A remove-tracks request was rejected."""

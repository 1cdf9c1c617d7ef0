"""Spotify Web API async client with token lifecycle, retry and rate-limit handling."""

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel

from reordenar.auth.callback import parse_callback
from reordenar.auth.state import OAuthStateManager
from reordenar.constants import SPOTIFY_SCOPES
from reordenar.settings import AppSettings
from reordenar.spotify.constants import (
    DEFAULT_CONCURRENCY_LIMIT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_BASE_DELAY,
    ME_URL,
    PLAYLIST_URL,
    PLAYLISTS_PAGE_LIMIT,
    RECENTLY_PLAYED_LIMIT,
    RECENTLY_PLAYED_URL,
    SPOTIFY_AUTHORIZE_URL,
    SPOTIFY_TOKEN_URL,
    TRACKS_PAGE_LIMIT,
    USER_PLAYLISTS_URL,
)
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
from reordenar.spotify.models import (
    RecentlyPlayedResponse,
    SpotifyPlaylist,
    SpotifyPlaylistTrackItem,
    SpotifyPlaylistTracks,
    SpotifyTokenResponse,
    SpotifyUser,
    TokenBundle,
    UserPlaylistsResponse,
)

if TYPE_CHECKING:
    from reordenar.auth.token_store import TokenStore

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

AuthListener = Callable[[bool], None]


class SpotifyClient:
    """Async Spotify Web API client that owns the user's credentials.

    Construct one per process and hand it to every consumer. The client loads
    the stored token bundle on construction, refreshes it when it has expired,
    and writes every new bundle back to the :class:`TokenStore`.

    Authentication failures follow a single forced-logout path: if the token
    cannot be refreshed before a call, or Spotify still answers 401 after one
    refresh-and-retry, all credentials are cleared and
    :class:`NotAuthenticatedError` is raised. Handles 429 backoff and 5xx
    retries internally.
    """

    def __init__(
        self,
        settings: AppSettings,
        token_store: "TokenStore",
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY,
        concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self._settings = settings
        self._token_store = token_store
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._semaphore = asyncio.Semaphore(concurrency_limit)
        self._request_timeout = request_timeout
        self._state_manager = OAuthStateManager(
            key=settings.TOKEN_ENCRYPTION_KEY or settings.SPOTIFY_CLIENT_SECRET,
            ttl_seconds=settings.OAUTH_STATE_TTL_SECONDS,
        )
        self._listeners: list[AuthListener] = []
        self._refresh_task: asyncio.Task[TokenBundle] | None = None

        self._tokens: TokenBundle | None = token_store.load_bundle()
        self._current_user: SpotifyUser | None = token_store.load_user() if self._tokens else None

    # -------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------

    @property
    def is_authenticated(self) -> bool:
        return self._tokens is not None

    @property
    def current_user(self) -> SpotifyUser | None:
        return self._current_user

    @property
    def tokens(self) -> TokenBundle | None:
        return self._tokens

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """Register a callback invoked with the new authentication state.

        Returns a callable that removes the listener again.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def logout(self) -> None:
        """Forget all credentials, in memory and in the token store."""
        was_authenticated = self._tokens is not None
        self._tokens = None
        self._current_user = None
        self._token_store.clear()
        if was_authenticated:
            logger.info("Signed out of Spotify")
            self._notify(False)

    def _notify(self, authenticated: bool) -> None:
        for listener in list(self._listeners):
            listener(authenticated)

    # -------------------------------------------------------------------
    # Authorization code flow
    # -------------------------------------------------------------------

    def authorization_url(self) -> str:
        """Build the Spotify authorization URL the user should open in a browser."""
        params = {
            "client_id": self._settings.SPOTIFY_CLIENT_ID,
            "response_type": "code",
            "redirect_uri": self._settings.SPOTIFY_REDIRECT_URI,
            "scope": SPOTIFY_SCOPES,
            "state": self._state_manager.generate(),
        }
        return f"{SPOTIFY_AUTHORIZE_URL}?{urlencode(params)}"

    async def handle_callback(self, url: str, *, verify_state: bool = True) -> TokenBundle:
        """Complete sign-in from the redirect URL delivered to the app.

        Raises:
            OAuthError: The redirect carried an error, no code, or a bad state.
            AuthExchangeFailedError: The token endpoint rejected the code.
        """
        code = parse_callback(url, state_manager=self._state_manager if verify_state else None)
        return await self.exchange_code(code)

    async def exchange_code(self, code: str) -> TokenBundle:
        """Exchange an authorization code for tokens, persist them and load the profile."""
        response = await self._post_token_endpoint(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self._settings.SPOTIFY_REDIRECT_URI,
            }
        )
        if response.status_code != 200:
            raise AuthExchangeFailedError(status_code=response.status_code, detail=self._error_detail(response))

        token_data = self._parse(SpotifyTokenResponse, response)
        bundle = TokenBundle.from_token_response(token_data)
        self._tokens = bundle
        self._token_store.save_bundle(bundle)
        logger.info("Authorization code exchanged, token valid for %ds", token_data.expires_in)
        self._notify(True)

        await self.fetch_current_user()
        return bundle

    async def refresh(self) -> TokenBundle:
        """Refresh the access token using the held refresh token.

        Concurrent callers share one in-flight refresh instead of each
        posting their own grant.

        Raises:
            NoRefreshTokenError: No refresh token is held.
            RefreshFailedError: The token endpoint rejected the grant.
        """
        task = self._refresh_task
        if task is None:
            task = asyncio.create_task(self._refresh_tokens())
            self._refresh_task = task
            task.add_done_callback(self._clear_refresh_task)
        return await asyncio.shield(task)

    def _clear_refresh_task(self, task: "asyncio.Task[TokenBundle]") -> None:
        if self._refresh_task is task:
            self._refresh_task = None

    async def _refresh_tokens(self) -> TokenBundle:
        refresh_token = self._tokens.refresh_token if self._tokens else None
        if not refresh_token:
            raise NoRefreshTokenError()

        logger.info("Refreshing Spotify access token")
        response = await self._post_token_endpoint({"grant_type": "refresh_token", "refresh_token": refresh_token})
        if response.status_code != 200:
            logger.warning("Token refresh failed with HTTP %d", response.status_code)
            raise RefreshFailedError(status_code=response.status_code, detail=self._error_detail(response))

        token_data = self._parse(SpotifyTokenResponse, response)
        bundle = TokenBundle.from_token_response(token_data, previous_refresh_token=refresh_token)
        self._tokens = bundle
        self._token_store.save_bundle(bundle)
        logger.info("Access token refreshed successfully")
        return bundle

    async def _post_token_endpoint(self, form: dict[str, str]) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self._request_timeout) as client:
            return await client.post(
                SPOTIFY_TOKEN_URL,
                data=form,
                auth=(self._settings.SPOTIFY_CLIENT_ID, self._settings.SPOTIFY_CLIENT_SECRET),
            )

    # -------------------------------------------------------------------
    # Authorized requests
    # -------------------------------------------------------------------

    async def _valid_access_token(self) -> str:
        """Return an access token that has not expired locally, refreshing if needed."""
        if self._tokens is None:
            logger.info("No access token available, user needs to re-authenticate")
            self.logout()
            raise NotAuthenticatedError()

        if not self._tokens.is_expired(buffer_seconds=self._settings.TOKEN_EXPIRY_BUFFER_SECONDS):
            return self._tokens.access_token

        return (await self._refresh_or_logout()).access_token

    async def _refresh_or_logout(self) -> TokenBundle:
        try:
            return await self.refresh()
        except (SpotifyClientError, httpx.HTTPError) as exc:
            logger.warning("Token refresh failed, signing out: %s", exc)
            self.logout()
            raise NotAuthenticatedError(f"Session expired: {exc}") from exc

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str | int] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send an authorized request with the refresh and retry policy applied.

        1. Refresh first if the held token has expired locally
        2. If 2xx: return response
        3. If 401: refresh and retry once; a second 401 signs the user out
        4. If 429: sleep(Retry-After header or exponential backoff), retry
        5. If 5xx: sleep(exponential backoff), retry
        6. Other 4xx: raise immediately (403 as InsufficientScopeError)
        """
        access_token = await self._valid_access_token()
        refreshed_after_401 = False
        attempt = 0

        while True:
            async with self._semaphore:
                async with httpx.AsyncClient(timeout=self._request_timeout) as client:
                    response = await client.request(
                        method,
                        url,
                        params=params,
                        json=json_body,
                        headers={"Authorization": f"Bearer {access_token}"},
                    )

            status = response.status_code
            if 200 <= status < 300:
                return response

            if status == 401:
                can_refresh = self._tokens is not None and bool(self._tokens.refresh_token)
                if can_refresh and not refreshed_after_401:
                    refreshed_after_401 = True
                    logger.info("Spotify returned 401, attempting token refresh")
                    access_token = (await self._refresh_or_logout()).access_token
                    continue
                logger.warning("Spotify returned 401 Unauthorized, signing out")
                self.logout()
                raise NotAuthenticatedError("Spotify returned 401 Unauthorized")

            if status == 429 or status >= 500:
                if status == 429:
                    retry_after_header = response.headers.get("Retry-After")
                    delay = (
                        float(retry_after_header) if retry_after_header else self._retry_base_delay * (2**attempt)
                    )
                else:
                    delay = self._retry_base_delay * (2**attempt)

                if attempt >= self._max_retries:
                    if status == 429:
                        raise SpotifyRateLimitError(retry_after=delay)
                    raise SpotifyServerError(status_code=status, detail="Max retries exhausted")

                logger.warning(
                    "Spotify returned HTTP %d, sleeping %.1fs (attempt %d/%d)",
                    status,
                    delay,
                    attempt + 1,
                    self._max_retries,
                )
                await asyncio.sleep(delay)
                attempt += 1
                continue

            detail = self._error_detail(response)
            if status == 403:
                raise InsufficientScopeError(detail=detail)
            raise SpotifyApiError(status_code=status, detail=detail)

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        detail = f"HTTP {response.status_code}"
        try:
            error_body = response.json()
        except ValueError:
            return response.text[:200] if response.text else detail
        error = error_body.get("error") if isinstance(error_body, dict) else None
        if isinstance(error, dict):
            return str(error.get("message", detail))
        if isinstance(error, str):
            return str(error_body.get("error_description", error))
        return detail

    @staticmethod
    def _parse(model: type[M], response: httpx.Response) -> M:
        """Decode a response body into ``model`` or raise InvalidResponseError."""
        try:
            return model.model_validate(response.json())
        except ValueError as exc:
            raise InvalidResponseError(str(exc)[:200]) from exc

    # -------------------------------------------------------------------
    # User
    # -------------------------------------------------------------------

    async def fetch_current_user(self) -> SpotifyUser:
        """GET /me; also caches the profile in the token store."""
        response = await self._request("GET", ME_URL)
        user = self._parse(SpotifyUser, response)
        self._current_user = user
        self._token_store.save_user(user)
        return user

    # -------------------------------------------------------------------
    # Playlists
    # -------------------------------------------------------------------

    async def fetch_playlists_page(self, *, offset: int = 0, limit: int = PLAYLISTS_PAGE_LIMIT) -> UserPlaylistsResponse:
        """GET /me/playlists."""
        response = await self._request("GET", USER_PLAYLISTS_URL, params={"limit": limit, "offset": offset})
        return self._parse(UserPlaylistsResponse, response)

    async def fetch_all_playlists(self, *, page_size: int = PLAYLISTS_PAGE_LIMIT) -> list[SpotifyPlaylist]:
        """Fetch every playlist of the current user, following pagination."""
        playlists: list[SpotifyPlaylist] = []
        offset = 0
        while True:
            page = await self.fetch_playlists_page(offset=offset, limit=page_size)
            playlists.extend(page.items)
            offset += page_size
            if page.next is None or len(page.items) < page_size:
                break
        return playlists

    async def fetch_tracks_page(
        self,
        playlist_id: str,
        *,
        offset: int = 0,
        limit: int = TRACKS_PAGE_LIMIT,
    ) -> SpotifyPlaylistTracks:
        """GET /playlists/{id}/tracks."""
        response = await self._request(
            "GET",
            f"{PLAYLIST_URL}/{playlist_id}/tracks",
            params={"limit": limit, "offset": offset},
        )
        return self._parse(SpotifyPlaylistTracks, response)

    async def fetch_all_tracks(
        self,
        playlist_id: str,
        *,
        page_size: int = TRACKS_PAGE_LIMIT,
        max_tracks: int = 10_000,
    ) -> list[SpotifyPlaylistTrackItem]:
        """Fetch all track entries of a playlist, following pagination.

        Args:
            playlist_id: Spotify playlist ID.
            page_size: Number of entries per API request (max 100).
            max_tracks: Safety cap against runaway loops (Spotify's own limit
                is 10,000 tracks per playlist).
        """
        items: list[SpotifyPlaylistTrackItem] = []
        offset = 0
        while len(items) < max_tracks:
            page = await self.fetch_tracks_page(playlist_id, offset=offset, limit=page_size)
            items.extend(page.items)
            offset += page_size
            if page.next is None or len(page.items) < page_size:
                break
        return items[:max_tracks]

    async def fetch_recently_played(
        self,
        *,
        limit: int = RECENTLY_PLAYED_LIMIT,
        after: int | None = None,
        before: int | None = None,
    ) -> RecentlyPlayedResponse:
        """GET /me/player/recently-played.

        Requires the ``user-read-recently-played`` scope; without it Spotify
        answers 403 and :class:`InsufficientScopeError` is raised.
        """
        params: dict[str, str | int] = {"limit": limit}
        if after is not None:
            params["after"] = after
        if before is not None:
            params["before"] = before
        response = await self._request("GET", RECENTLY_PLAYED_URL, params=params)
        return self._parse(RecentlyPlayedResponse, response)

    # -------------------------------------------------------------------
    # Playlist write methods
    # -------------------------------------------------------------------

    async def reorder_range(
        self,
        playlist_id: str,
        range_start: int,
        insert_before: int,
        range_length: int = 1,
    ) -> None:
        """PUT /playlists/{id}/tracks: move ``range_length`` items starting at
        ``range_start`` to just before ``insert_before``.
        """
        try:
            await self._request(
                "PUT",
                f"{PLAYLIST_URL}/{playlist_id}/tracks",
                json_body={
                    "range_start": range_start,
                    "insert_before": insert_before,
                    "range_length": range_length,
                },
            )
        except SpotifyApiError as exc:
            raise ReorderFailedError(status_code=exc.status_code, detail=exc.detail) from exc

    async def remove_track(self, playlist_id: str, uri: str) -> None:
        """DELETE /playlists/{id}/tracks; removes every occurrence of ``uri``."""
        try:
            await self._request(
                "DELETE",
                f"{PLAYLIST_URL}/{playlist_id}/tracks",
                json_body={"tracks": [{"uri": uri}]},
            )
        except SpotifyApiError as exc:
            raise DeleteFailedError(status_code=exc.status_code, detail=exc.detail) from exc

"""Playlist browser state: the ranked playlist list and the active edit session."""

import logging
from datetime import datetime

import httpx

from reordenar.playlists.ranking import build_activity_map, rank_by_activity
from reordenar.playlists.session import PlaylistEditSession
from reordenar.settings import AppSettings
from reordenar.spotify.client import SpotifyClient
from reordenar.spotify.exceptions import InsufficientScopeError, NotAuthenticatedError, SpotifyClientError
from reordenar.spotify.models import SpotifyPlayHistoryItem, SpotifyPlaylist

logger = logging.getLogger(__name__)


class PlaylistLibrary:
    """Coordinates the user's playlists and at most one open edit session.

    Any :class:`NotAuthenticatedError` raised by the client clears all state
    held here before it propagates, and so does a sign-out triggered anywhere
    else through the client.
    """

    def __init__(self, client: SpotifyClient, settings: AppSettings) -> None:
        self._client = client
        self._settings = settings
        self.playlists: list[SpotifyPlaylist] = []
        self.recently_played: list[SpotifyPlayHistoryItem] = []
        self.activity: dict[str, datetime] = {}
        self.error_message: str | None = None
        self.is_loading = False
        self.unsynced_session: PlaylistEditSession | None = None
        self._session: PlaylistEditSession | None = None
        self._unsubscribe = client.subscribe(self._on_auth_changed)

    @property
    def session(self) -> PlaylistEditSession | None:
        return self._session

    @property
    def selected_playlist(self) -> SpotifyPlaylist | None:
        return self._session.playlist if self._session else None

    async def refresh_playlists(self) -> list[SpotifyPlaylist]:
        """Fetch listening history and every playlist, then rank them.

        A failed history fetch only costs the ranking; a failed playlist
        fetch is recorded in ``error_message``.
        """
        self.is_loading = True
        self.error_message = None
        try:
            await self._refresh_recently_played()
            playlists = await self._client.fetch_all_playlists()
        except NotAuthenticatedError:
            self.sign_out()
            raise
        except (SpotifyClientError, httpx.HTTPError) as exc:
            logger.warning("Failed to fetch playlists: %s", exc)
            self.error_message = f"Failed to fetch playlists: {exc}"
            return self.playlists
        finally:
            self.is_loading = False

        self.playlists = rank_by_activity(playlists, self.activity)
        logger.info("Loaded %d playlists (%d with recent activity)", len(self.playlists), len(self.activity))
        return self.playlists

    async def _refresh_recently_played(self) -> None:
        try:
            response = await self._client.fetch_recently_played()
        except InsufficientScopeError:
            logger.warning("Missing user-read-recently-played scope; playlists will not be ranked")
            return
        except NotAuthenticatedError:
            raise
        except (SpotifyClientError, httpx.HTTPError) as exc:
            logger.warning("Failed to fetch recently played tracks: %s", exc)
            return
        self.recently_played = response.items
        self.activity = build_activity_map(response.items)

    def refresh_playlist_order(self) -> list[SpotifyPlaylist]:
        """Re-rank the loaded playlists against the last known activity."""
        self.playlists = rank_by_activity(self.playlists, self.activity)
        return self.playlists

    async def select_playlist(self, playlist: SpotifyPlaylist) -> PlaylistEditSession:
        """Open ``playlist`` for editing and load its first page.

        Selecting the already selected playlist returns the current session
        untouched. Any other selection closes the current session, dropping
        unsaved edits.
        """
        current = self._session
        if current is not None and current.playlist.id == playlist.id:
            return current
        if current is not None:
            if current.is_dirty:
                logger.warning(
                    "Discarding unsaved changes (%s)",
                    current.changes_summary,
                    extra={"playlist_id": current.playlist.id},
                )
            current.close()

        session = PlaylistEditSession(
            playlist,
            self._client,
            page_size=self._settings.TRACKS_PAGE_SIZE,
            pacing_seconds=self._settings.SYNC_PACING_SECONDS,
        )
        self._session = session
        await self._load_first_page(session)
        return session

    async def refresh_current_playlist(self) -> PlaylistEditSession | None:
        """Reload the selected playlist from Spotify, dropping local edits."""
        current = self._session
        if current is None:
            return None
        current.close()
        session = PlaylistEditSession(
            current.playlist,
            self._client,
            page_size=self._settings.TRACKS_PAGE_SIZE,
            pacing_seconds=self._settings.SYNC_PACING_SECONDS,
        )
        self._session = session
        await self._load_first_page(session)
        return session

    async def _load_first_page(self, session: PlaylistEditSession) -> None:
        try:
            await session.load_initial()
        except NotAuthenticatedError:
            self.sign_out()
            raise
        if self._session is not session:
            logger.debug("Selection changed while loading", extra={"playlist_id": session.playlist.id})

    async def load_more(self) -> bool:
        """Fetch the next page of the selected playlist, if any."""
        session = self._session
        if session is None:
            return False
        try:
            appended = await session.load_more()
        except NotAuthenticatedError:
            self.sign_out()
            raise
        return appended and self._session is session

    async def sync(self) -> bool:
        """Push the selected playlist's edits to Spotify.

        A sign-out during the sync clears the library like any other, but the
        closed session stays reachable through ``unsynced_session`` so its
        edits survive in memory for this process.
        """
        session = self._session
        if session is None:
            return False
        try:
            return await session.sync()
        except NotAuthenticatedError:
            self.sign_out()
            self.unsynced_session = session
            raise

    def sign_out(self) -> None:
        """Forget credentials and every piece of user data held here."""
        self._client.logout()
        self._clear_state()

    def close(self) -> None:
        self._unsubscribe()
        if self._session is not None:
            self._session.close()

    def _on_auth_changed(self, authenticated: bool) -> None:
        if not authenticated:
            self._clear_state()

    def _clear_state(self) -> None:
        if self._session is not None:
            self._session.close()
        self._session = None
        self.playlists = []
        self.recently_played = []
        self.activity = {}
        self.error_message = None
        self.is_loading = False

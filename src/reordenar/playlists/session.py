"""Local edit state for one playlist and its synchronization back to Spotify."""

import asyncio
import enum
import logging
from collections.abc import Callable, Iterable

import httpx

from reordenar.constants import DEFAULT_SYNC_PACING_SECONDS, DEFAULT_TRACKS_PAGE_SIZE
from reordenar.playlists.entries import EntryKey, PlaylistEntry, entries_from_items, key_sequence
from reordenar.playlists.exceptions import EntryNotRemovableError, SessionBusyError, SyncFailedError
from reordenar.playlists.grouping import TrackGroup, from_groups, group_by_artist, primary_artist, to_groups
from reordenar.playlists.sync_plan import (
    RemoteOp,
    RemoveTrack,
    ReorderRange,
    compute_sync_plan,
    move_indices,
    split_deletions,
)
from reordenar.spotify.client import SpotifyClient
from reordenar.spotify.exceptions import NotAuthenticatedError, SpotifyClientError
from reordenar.spotify.models import SpotifyPlaylist

logger = logging.getLogger(__name__)


class SessionState(enum.StrEnum):
    """Lifecycle of an edit session."""

    EMPTY = "empty"
    LOADING = "loading"
    LOADED = "loaded"
    DIRTY = "dirty"
    SYNCING = "syncing"


class ViewMode(enum.StrEnum):
    """How the session's entries are presented."""

    TRACKS = "tracks"
    GROUPED_BY_ARTIST = "grouped_by_artist"


SessionListener = Callable[["PlaylistEditSession"], None]


class PlaylistEditSession:
    """Holds the last known remote order of a playlist next to the user's edits.

    ``original_order`` mirrors what Spotify has; ``working_order`` carries the
    local moves and deletions. Nothing reaches Spotify until :meth:`sync`,
    which replays :meth:`compute_sync_plan` one call at a time.

    Pages fetched after the first are appended to the tail of both orders, so
    existing entries are never reordered by a page arriving mid-edit.
    Listeners registered with :meth:`subscribe` are called after every state
    or order change.
    """

    def __init__(
        self,
        playlist: SpotifyPlaylist,
        client: SpotifyClient,
        *,
        page_size: int = DEFAULT_TRACKS_PAGE_SIZE,
        pacing_seconds: float = DEFAULT_SYNC_PACING_SECONDS,
    ) -> None:
        self.playlist = playlist
        self._client = client
        self._page_size = page_size
        self._pacing_seconds = pacing_seconds

        self._original: list[PlaylistEntry] = []
        self._working: list[PlaylistEntry] = []
        self._state = SessionState.EMPTY
        self._has_loaded = False
        self._closed = False
        self._listeners: list[SessionListener] = []

        self.view_mode = ViewMode.TRACKS
        self.total_remote_count = 0
        self.loaded_offset = 0
        self.is_loading_more = False
        self.error_message: str | None = None

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def original_order(self) -> list[PlaylistEntry]:
        return list(self._original)

    @property
    def working_order(self) -> list[PlaylistEntry]:
        return list(self._working)

    @property
    def is_dirty(self) -> bool:
        return key_sequence(self._working) != key_sequence(self._original)

    @property
    def has_more(self) -> bool:
        return self.loaded_offset < self.total_remote_count

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def groups(self) -> list[TrackGroup]:
        """Artist-grouped projection of the working order."""
        return to_groups(self._working)

    @property
    def deleted_count(self) -> int:
        _, deleted = split_deletions(self._original, self._working)
        return len(deleted)

    @property
    def has_reordering_changes(self) -> bool:
        """True when the surviving entries are in a different relative order."""
        kept, _ = split_deletions(self._original, self._working)
        return key_sequence(kept) != key_sequence(self._working)

    @property
    def changes_summary(self) -> str:
        changes: list[str] = []
        if self.deleted_count:
            changes.append(f"{self.deleted_count} deleted")
        if self.has_reordering_changes:
            changes.append("reordered")
        return ", ".join(changes) if changes else "Unsaved changes"

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a state-changed callback; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def close(self) -> None:
        """Stop further pagination; in-flight page results will be discarded."""
        self._closed = True
        self._listeners.clear()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_initial(self) -> None:
        """Fetch the first page, replacing both orders.

        Fetch errors other than :class:`NotAuthenticatedError` are recorded in
        ``error_message`` instead of raised.
        """
        if self._closed or self._state is SessionState.SYNCING:
            return

        self._set_state(SessionState.LOADING)
        self.error_message = None
        try:
            page = await self._client.fetch_tracks_page(self.playlist.id, offset=0, limit=self._page_size)
        except NotAuthenticatedError:
            self._settle()
            raise
        except (SpotifyClientError, httpx.HTTPError) as exc:
            logger.warning("Failed to fetch tracks: %s", exc, extra={"playlist_id": self.playlist.id})
            self.error_message = f"Failed to fetch tracks: {exc}"
            self._settle()
            return

        if self._closed:
            logger.debug("Discarding first page for closed session", extra={"playlist_id": self.playlist.id})
            self._settle()
            return

        entries = entries_from_items(page.items)
        self._original = list(entries)
        self._working = list(entries)
        self.total_remote_count = page.total
        self.loaded_offset = len(page.items)
        self._has_loaded = True
        logger.info(
            "Loaded %d of %d tracks",
            self.loaded_offset,
            self.total_remote_count,
            extra={"playlist_id": self.playlist.id},
        )
        self._settle()

    async def load_more(self) -> bool:
        """Fetch the next page and append it to both orders.

        Returns True when a page was appended.
        """
        if self._closed or self.is_loading_more or not self.has_more:
            return False
        if self._state is SessionState.SYNCING:
            return False

        self.is_loading_more = True
        try:
            page = await self._client.fetch_tracks_page(
                self.playlist.id,
                offset=self.loaded_offset,
                limit=self._page_size,
            )
        except NotAuthenticatedError:
            raise
        except (SpotifyClientError, httpx.HTTPError) as exc:
            logger.warning("Failed to load more tracks: %s", exc, extra={"playlist_id": self.playlist.id})
            self.error_message = f"Failed to load more tracks: {exc}"
            self._notify()
            return False
        finally:
            self.is_loading_more = False

        if self._closed:
            logger.debug("Discarding page for closed session", extra={"playlist_id": self.playlist.id})
            return False

        entries = entries_from_items(page.items)
        self._original.extend(entries)
        self._working.extend(entries)
        self.total_remote_count = page.total
        self.loaded_offset += len(page.items)
        if not page.items:
            # Spotify reported more than it returned; stop paging.
            self.total_remote_count = self.loaded_offset
        if self._state is SessionState.SYNCING:
            # sync() settles the state once its plan has run.
            self._notify()
        else:
            self._settle()
        return bool(entries)

    async def load_all(self) -> None:
        """Load the first page if needed, then every remaining page."""
        if not self._has_loaded:
            await self.load_initial()
        while self.has_more and not self._closed:
            if not await self.load_more():
                break

    # ------------------------------------------------------------------
    # Local edits
    # ------------------------------------------------------------------

    def move(self, from_indices: Iterable[int], to_position: int) -> None:
        """Move the entries at ``from_indices`` as a block starting at ``to_position``."""
        self._replace_working(move_indices(self._working, from_indices, to_position))

    def delete(self, entry: PlaylistEntry) -> None:
        """Remove ``entry`` (matched by identity key) from the working order.

        Raises:
            EntryNotRemovableError: The entry has no track, so it could never
                be removed on Spotify's side.
        """
        if entry.uri is None:
            raise EntryNotRemovableError(self.playlist.id, entry.added_at)
        key: EntryKey = entry.key
        self._replace_working([candidate for candidate in self._working if candidate.key != key])

    def delete_all_by_artist(self, artist_name: str) -> None:
        """Remove every entry whose primary artist is ``artist_name``.

        Entries without a track URI are kept.
        """
        self._replace_working(
            [entry for entry in self._working if entry.uri is None or primary_artist(entry) != artist_name]
        )

    def group_by_artist(self) -> None:
        """Reorder the working order into contiguous per-artist runs."""
        self._replace_working(group_by_artist(self._working))

    def toggle_grouped_view(self) -> ViewMode:
        """Switch between the flat and the artist-grouped presentation.

        Presentation only: the working order is left as it is.
        """
        if self.view_mode is ViewMode.TRACKS:
            self.view_mode = ViewMode.GROUPED_BY_ARTIST
        else:
            self.view_mode = ViewMode.TRACKS
        self._notify()
        return self.view_mode

    def move_group(self, from_indices: Iterable[int], to_position: int) -> None:
        """Reorder whole artist groups in the grouped view."""
        groups = move_indices(self.groups, from_indices, to_position)
        self._replace_working(from_groups(groups))

    def move_within_group(self, group_index: int, from_indices: Iterable[int], to_position: int) -> None:
        """Reorder entries inside one artist group in the grouped view."""
        groups = self.groups
        if not 0 <= group_index < len(groups):
            raise IndexError(f"No artist group at index {group_index}")
        group = groups[group_index]
        group.entries = move_indices(group.entries, from_indices, to_position)
        self._replace_working(from_groups(groups))

    def discard(self) -> None:
        """Drop all local edits."""
        self._replace_working(list(self._original))
        self.error_message = None

    def _replace_working(self, entries: list[PlaylistEntry]) -> None:
        if self._state is SessionState.SYNCING:
            raise SessionBusyError(self.playlist.id)
        self._working = entries
        self._settle()

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def compute_sync_plan(self) -> list[RemoteOp]:
        return compute_sync_plan(self._original, self._working)

    async def sync(self) -> bool:
        """Push the working order to Spotify.

        Returns False without doing anything when a sync is already running or
        there is nothing to sync. On success the working order becomes the new
        original order.

        Raises:
            SyncFailedError: A remote call failed. Remaining operations are
                skipped and local edits are kept.
            NotAuthenticatedError: The user was signed out mid-sync. Local
                edits are kept in memory.
        """
        if self._state is SessionState.SYNCING:
            logger.warning("Sync already in progress, ignoring request", extra={"playlist_id": self.playlist.id})
            return False
        if not self.is_dirty:
            return False

        plan = self.compute_sync_plan()
        # Pages landing mid-sync are appended past ``window`` in both orders.
        planned = list(self._working)
        window = len(self._original)
        logger.info("Syncing %d operation(s)", len(plan), extra={"playlist_id": self.playlist.id})
        self.error_message = None
        self._set_state(SessionState.SYNCING)

        for index, op in enumerate(plan):
            if index:
                await asyncio.sleep(self._pacing_seconds)
            try:
                await self._execute(op)
            except NotAuthenticatedError:
                self._settle()
                raise
            except (SpotifyClientError, httpx.HTTPError) as exc:
                logger.warning(
                    "Sync aborted at operation %d/%d: %s",
                    index + 1,
                    len(plan),
                    exc,
                    extra={"playlist_id": self.playlist.id},
                )
                self.error_message = f"Failed to sync to Spotify: {exc}"
                self._settle()
                raise SyncFailedError(self.playlist.id, op, completed=index, cause=exc) from exc

        self._original = planned + self._original[window:]
        # Removals shift every unloaded entry towards the head.
        removed = window - len(planned)
        self.loaded_offset -= removed
        self.total_remote_count -= removed
        self._settle()
        logger.info("Sync complete", extra={"playlist_id": self.playlist.id})
        return True

    async def _execute(self, op: RemoteOp) -> None:
        if isinstance(op, RemoveTrack):
            await self._client.remove_track(self.playlist.id, op.uri)
        elif isinstance(op, ReorderRange):
            await self._client.reorder_range(
                self.playlist.id,
                op.range_start,
                op.insert_before,
                op.range_length,
            )

    # ------------------------------------------------------------------
    # State bookkeeping
    # ------------------------------------------------------------------

    def _settle(self) -> None:
        """Derive the resting state from the current orders and notify."""
        if self.is_dirty:
            state = SessionState.DIRTY
        elif self._has_loaded:
            state = SessionState.LOADED
        else:
            state = SessionState.EMPTY
        self._set_state(state, force_notify=True)

    def _set_state(self, state: SessionState, *, force_notify: bool = False) -> None:
        changed = state is not self._state
        self._state = state
        if changed or force_notify:
            self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

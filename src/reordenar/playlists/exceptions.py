"""Exceptions raised by playlist edit sessions."""

from reordenar.playlists.sync_plan import RemoteOp


class PlaylistSessionError(Exception):
    """Base exception for edit-session errors."""


class SessionBusyError(PlaylistSessionError):
    """A local edit was attempted while the session is syncing."""

    def __init__(self, playlist_id: str) -> None:
        self.playlist_id = playlist_id
        super().__init__(f"Playlist {playlist_id} is syncing; edits are locked until it finishes")


class SyncFailedError(PlaylistSessionError):
    """A remote operation failed; the rest of the plan was not attempted."""

    def __init__(self, playlist_id: str, op: RemoteOp, completed: int, cause: Exception) -> None:
        self.playlist_id = playlist_id
        self.op = op
        self.completed = completed
        self.cause = cause
        super().__init__(f"Failed to sync playlist {playlist_id} at {op!r} after {completed} operation(s): {cause}")


class EntryNotRemovableError(PlaylistSessionError):
    """The entry has no track URI, so Spotify offers no way to remove it."""

    def __init__(self, playlist_id: str, added_at: str | None) -> None:
        self.playlist_id = playlist_id
        self.added_at = added_at
        super().__init__(f"Entry added at {added_at} in playlist {playlist_id} has no track and cannot be removed")

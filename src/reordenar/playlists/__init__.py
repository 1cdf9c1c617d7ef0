"""Playlist editing: entries, sync planning, sessions and ranking."""

from reordenar.playlists.entries import AbsentTrack, EntryKey, PlaylistEntry, PresentTrack, TrackSlot
from reordenar.playlists.exceptions import (
    EntryNotRemovableError,
    PlaylistSessionError,
    SessionBusyError,
    SyncFailedError,
)
from reordenar.playlists.grouping import TrackGroup, from_groups, group_by_artist, primary_artist, to_groups
from reordenar.playlists.library import PlaylistLibrary
from reordenar.playlists.ranking import build_activity_map, rank, rank_by_activity
from reordenar.playlists.session import PlaylistEditSession, SessionState, ViewMode
from reordenar.playlists.sync_plan import (
    RemoteOp,
    RemoveTrack,
    ReorderRange,
    apply_reorder,
    compute_sync_plan,
    move_indices,
    split_deletions,
)

__all__ = [
    "AbsentTrack",
    "EntryKey",
    "EntryNotRemovableError",
    "PlaylistEditSession",
    "PlaylistEntry",
    "PlaylistLibrary",
    "PlaylistSessionError",
    "PresentTrack",
    "RemoteOp",
    "RemoveTrack",
    "ReorderRange",
    "SessionBusyError",
    "SessionState",
    "SyncFailedError",
    "TrackGroup",
    "TrackSlot",
    "ViewMode",
    "apply_reorder",
    "build_activity_map",
    "compute_sync_plan",
    "from_groups",
    "group_by_artist",
    "move_indices",
    "primary_artist",
    "rank",
    "rank_by_activity",
    "split_deletions",
    "to_groups",
]

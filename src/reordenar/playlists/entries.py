"""Playlist membership records and their identity keys.

A playlist can hold the same track several times, each added at a different
moment, so entries are identified by ``(track id, added_at)`` rather than by
track id alone. Spotify returns ``track: null`` for tracks that have been
pulled from its catalogue; those entries fall back to ``(added_at, added_by)``.
"""

from dataclasses import dataclass

from reordenar.spotify.models import SpotifyPlaylistTrackItem, SpotifyTrack


@dataclass(frozen=True, slots=True)
class PresentTrack:
    """The entry's track is available."""

    track: SpotifyTrack


@dataclass(frozen=True, slots=True)
class AbsentTrack:
    """Spotify returned no track for this entry."""


TrackSlot = PresentTrack | AbsentTrack


@dataclass(frozen=True, slots=True)
class EntryKey:
    """Identity of a playlist entry across snapshots.

    ``kind`` keeps present-track keys and absent-track keys from ever
    colliding.
    """

    kind: str
    primary: str | None
    secondary: str | None


@dataclass(frozen=True, slots=True)
class PlaylistEntry:
    """A track's membership record within one playlist."""

    slot: TrackSlot
    added_at: str | None = None
    added_by_id: str | None = None
    is_local: bool = False

    @classmethod
    def from_item(cls, item: SpotifyPlaylistTrackItem) -> "PlaylistEntry":
        slot: TrackSlot = PresentTrack(item.track) if item.track is not None else AbsentTrack()
        return cls(
            slot=slot,
            added_at=item.added_at,
            added_by_id=item.added_by.id if item.added_by else None,
            is_local=item.is_local,
        )

    @property
    def track(self) -> SpotifyTrack | None:
        if isinstance(self.slot, PresentTrack):
            return self.slot.track
        return None

    @property
    def uri(self) -> str | None:
        track = self.track
        return track.uri if track is not None else None

    @property
    def key(self) -> EntryKey:
        if isinstance(self.slot, PresentTrack):
            track = self.slot.track
            # Local files carry no track id; their URI is unique per file.
            return EntryKey("track", track.id or track.uri, self.added_at)
        return EntryKey("absent", self.added_at, self.added_by_id)


def entries_from_items(items: list[SpotifyPlaylistTrackItem]) -> list[PlaylistEntry]:
    return [PlaylistEntry.from_item(item) for item in items]


def key_sequence(entries: list[PlaylistEntry]) -> list[EntryKey]:
    return [entry.key for entry in entries]

"""Stable grouping of playlist entries by primary artist."""

from dataclasses import dataclass, field

from reordenar.constants import UNKNOWN_ARTIST
from reordenar.playlists.entries import PlaylistEntry


@dataclass(slots=True)
class TrackGroup:
    """A run of entries sharing the same primary artist."""

    artist_name: str
    entries: list[PlaylistEntry] = field(default_factory=list)


def primary_artist(entry: PlaylistEntry) -> str:
    """First listed artist of the entry's track, or "Unknown Artist"."""
    track = entry.track
    if track is None:
        return UNKNOWN_ARTIST
    return track.primary_artist or UNKNOWN_ARTIST


def to_groups(entries: list[PlaylistEntry]) -> list[TrackGroup]:
    """Bucket entries by primary artist.

    Artists appear in order of first appearance and entries keep their
    relative order inside each bucket. The input is left untouched.
    """
    groups: dict[str, TrackGroup] = {}
    for entry in entries:
        artist = primary_artist(entry)
        if artist not in groups:
            groups[artist] = TrackGroup(artist_name=artist)
        groups[artist].entries.append(entry)
    return list(groups.values())


def from_groups(groups: list[TrackGroup]) -> list[PlaylistEntry]:
    """Flatten groups back into a single order."""
    return [entry for group in groups for entry in group.entries]


def group_by_artist(entries: list[PlaylistEntry]) -> list[PlaylistEntry]:
    """Reorder entries so each artist's tracks form one contiguous run."""
    return from_groups(to_groups(entries))

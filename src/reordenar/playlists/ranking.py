"""Order playlists by how recently the user listened to them."""

from collections.abc import Iterable
from datetime import datetime

from reordenar.spotify.models import SpotifyPlayHistoryItem, SpotifyPlaylist


def build_activity_map(history: Iterable[SpotifyPlayHistoryItem]) -> dict[str, datetime]:
    """Map playlist ID -> most recent ``played_at`` among plays from that playlist.

    Plays without a playlist context are ignored.
    """
    activity: dict[str, datetime] = {}
    for item in history:
        playlist_id = item.context.playlist_id if item.context else None
        if playlist_id is None:
            continue
        previous = activity.get(playlist_id)
        if previous is None or item.played_at > previous:
            activity[playlist_id] = item.played_at
    return activity


def rank_by_activity(playlists: list[SpotifyPlaylist], activity: dict[str, datetime]) -> list[SpotifyPlaylist]:
    """Sort recently played playlists first, most recent on top.

    Playlists without activity follow in their input order. ``sorted`` is
    stable even with ``reverse=True``, so equal timestamps keep input order too.
    """
    ranked = sorted(
        (playlist for playlist in playlists if playlist.id in activity),
        key=lambda playlist: activity[playlist.id],
        reverse=True,
    )
    unranked = [playlist for playlist in playlists if playlist.id not in activity]
    return ranked + unranked


def rank(playlists: list[SpotifyPlaylist], history: Iterable[SpotifyPlayHistoryItem]) -> list[SpotifyPlaylist]:
    return rank_by_activity(playlists, build_activity_map(history))

"""Tests for activity-based playlist ranking."""

from datetime import UTC, datetime

from reordenar.playlists.ranking import build_activity_map, rank, rank_by_activity
from reordenar.spotify.models import SpotifyContext, SpotifyPlayHistoryItem, SpotifyPlaylist, SpotifyTrack


def _play(hour: int, context_uri: str | None) -> SpotifyPlayHistoryItem:
    return SpotifyPlayHistoryItem(
        track=SpotifyTrack(id=f"t{hour}", name="Song"),
        played_at=datetime(2024, 1, 15, hour, 0, tzinfo=UTC),
        context=SpotifyContext(type="playlist", uri=context_uri) if context_uri else None,
    )


def _playlists(*ids: str) -> list[SpotifyPlaylist]:
    return [SpotifyPlaylist(id=pid, name=pid.upper()) for pid in ids]


def test_build_activity_map_keeps_latest_play() -> None:
    """Each playlist maps to its most recent play."""
    activity = build_activity_map(
        [
            _play(8, "spotify:playlist:p1"),
            _play(11, "spotify:playlist:p1"),
            _play(9, "spotify:playlist:p2"),
        ]
    )
    assert activity == {
        "p1": datetime(2024, 1, 15, 11, 0, tzinfo=UTC),
        "p2": datetime(2024, 1, 15, 9, 0, tzinfo=UTC),
    }


def test_build_activity_map_ignores_other_contexts() -> None:
    """Plays from albums or without context are ignored."""
    activity = build_activity_map([_play(8, "spotify:album:a1"), _play(9, None)])
    assert activity == {}


def test_rank_puts_recent_playlists_first() -> None:
    """Recently played playlists lead, newest first; the rest keep input order."""
    playlists = _playlists("p1", "p2", "p3", "p4")
    history = [_play(8, "spotify:playlist:p3"), _play(10, "spotify:playlist:p4")]
    assert [p.id for p in rank(playlists, history)] == ["p4", "p3", "p1", "p2"]


def test_rank_without_history_keeps_order() -> None:
    """Without any activity the input order is returned."""
    playlists = _playlists("p2", "p1")
    assert [p.id for p in rank_by_activity(playlists, {})] == ["p2", "p1"]


def test_rank_ties_keep_input_order() -> None:
    """Equal timestamps keep the input order."""
    when = datetime(2024, 1, 15, tzinfo=UTC)
    playlists = _playlists("p1", "p2")
    assert [p.id for p in rank_by_activity(playlists, {"p1": when, "p2": when})] == ["p1", "p2"]


def test_rank_ignores_activity_for_unknown_playlists() -> None:
    """Activity for playlists not in the list has no effect."""
    playlists = _playlists("p1")
    activity = {"gone": datetime(2024, 1, 15, tzinfo=UTC)}
    assert [p.id for p in rank_by_activity(playlists, activity)] == ["p1"]

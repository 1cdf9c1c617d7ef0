"""Tests for sync planning and index moves."""

import random

import pytest

from reordenar.playlists.entries import AbsentTrack, PlaylistEntry, PresentTrack
from reordenar.playlists.sync_plan import (
    RemoteOp,
    RemoveTrack,
    ReorderRange,
    apply_reorder,
    compute_sync_plan,
    move_indices,
    split_deletions,
)
from reordenar.spotify.models import SpotifyArtistSimplified, SpotifyTrack


def _entry(track_id: str, added_at: str = "2024-01-01T00:00:00Z") -> PlaylistEntry:
    track = SpotifyTrack(
        id=track_id,
        name=f"Track {track_id}",
        uri=f"spotify:track:{track_id}",
        artists=[SpotifyArtistSimplified(name="Artist")],
    )
    return PlaylistEntry(PresentTrack(track), added_at=added_at)


def _absent(added_at: str) -> PlaylistEntry:
    return PlaylistEntry(AbsentTrack(), added_at=added_at, added_by_id="user1")


def _remote_after(original: list[PlaylistEntry], ops: list[RemoteOp]) -> list[PlaylistEntry]:
    """Replay ops the way Spotify applies them."""
    order = list(original)
    for op in ops:
        if isinstance(op, RemoveTrack):
            order = [entry for entry in order if entry.uri != op.uri]
        else:
            order = apply_reorder(order, op)
    return order


def _keys(entries: list[PlaylistEntry]) -> list[object]:
    return [entry.key for entry in entries]


# ---------------------------------------------------------------------------
# move_indices / apply_reorder
# ---------------------------------------------------------------------------


def test_move_indices_single_item_forward() -> None:
    """Moving index 0 to position 2 puts it last."""
    assert move_indices(["a", "b", "c"], [0], 2) == ["b", "c", "a"]


def test_move_indices_single_item_backward() -> None:
    """Moving the last item to position 0 puts it first."""
    assert move_indices(["a", "b", "c"], [2], 0) == ["c", "a", "b"]


def test_move_indices_block_keeps_relative_order() -> None:
    """Several items move together and keep their order."""
    assert move_indices(["a", "b", "c", "d"], [2, 0], 1) == ["b", "a", "c", "d"]


def test_move_indices_clamps_and_ignores_bad_indices() -> None:
    """Out-of-range positions clamp; out-of-range indices are ignored."""
    assert move_indices(["a", "b", "c"], [0, 9], 99) == ["b", "c", "a"]
    assert move_indices(["a", "b", "c"], [1], -5) == ["b", "a", "c"]
    assert move_indices(["a", "b"], [], 0) == ["a", "b"]


def test_move_indices_does_not_mutate_input() -> None:
    """The input list is left as it was."""
    items = ["a", "b", "c"]
    move_indices(items, [0], 2)
    assert items == ["a", "b", "c"]


@pytest.mark.parametrize(
    ("op", "expected"),
    [
        (ReorderRange(range_start=1, insert_before=4), ["a", "c", "d", "b", "e"]),
        (ReorderRange(range_start=3, insert_before=0), ["d", "a", "b", "c", "e"]),
        (ReorderRange(range_start=0, insert_before=5), ["b", "c", "d", "e", "a"]),
        (ReorderRange(range_start=1, insert_before=5, range_length=2), ["a", "d", "e", "b", "c"]),
    ],
)
def test_apply_reorder_matches_remote_semantics(op: ReorderRange, expected: list[str]) -> None:
    """insert_before is a position in the list before the move."""
    assert apply_reorder(["a", "b", "c", "d", "e"], op) == expected


# ---------------------------------------------------------------------------
# split_deletions
# ---------------------------------------------------------------------------


def test_split_deletions_counts_duplicates() -> None:
    """Only surplus copies of a key count as deleted."""
    a, b = _entry("a"), _entry("b")
    a_copy = _entry("a")
    kept, deleted = split_deletions([a, b, a_copy], [b, a])
    assert kept == [a, b]
    assert deleted == [a_copy]


# ---------------------------------------------------------------------------
# compute_sync_plan scenarios
# ---------------------------------------------------------------------------


def test_plan_empty_when_unchanged() -> None:
    """Identical orders need no remote calls."""
    entries = [_entry("a"), _entry("b"), _entry("c")]
    assert compute_sync_plan(entries, list(entries)) == []


def test_plan_move_last_to_first() -> None:
    """Moving the last entry to the top is one reorder."""
    a, b, c = _entry("a"), _entry("b"), _entry("c")
    ops = compute_sync_plan([a, b, c], [c, a, b])
    assert ops == [ReorderRange(range_start=2, insert_before=0, range_length=1)]


def test_plan_move_first_to_last_converges() -> None:
    """Moving the first entry to the end converges using single-item moves."""
    a, b, c = _entry("a"), _entry("b"), _entry("c")
    original, working = [a, b, c], [b, c, a]
    ops = compute_sync_plan(original, working)
    assert all(isinstance(op, ReorderRange) and op.range_length == 1 for op in ops)
    assert _keys(_remote_after(original, ops)) == _keys(working)


def test_plan_single_deletion() -> None:
    """A deleted entry becomes a single RemoveTrack."""
    a, b, c = _entry("a"), _entry("b"), _entry("c")
    assert compute_sync_plan([a, b, c], [a, c]) == [RemoveTrack("spotify:track:b")]


def test_plan_deletions_precede_reorders() -> None:
    """All removals come before any reorder."""
    a, b, c, d = _entry("a"), _entry("b"), _entry("c"), _entry("d")
    original, working = [a, b, c, d], [d, a, c]
    ops = compute_sync_plan(original, working)

    assert ops[0] == RemoveTrack("spotify:track:b")
    assert all(isinstance(op, ReorderRange) for op in ops[1:])
    assert _keys(_remote_after(original, ops)) == _keys(working)


def test_plan_deduplicates_removals_by_uri() -> None:
    """Deleting two copies of one track issues one removal."""
    a1 = _entry("a", "2024-01-01T00:00:00Z")
    a2 = _entry("a", "2024-02-01T00:00:00Z")
    b = _entry("b")
    ops = compute_sync_plan([a1, b, a2], [b])
    assert ops == [RemoveTrack("spotify:track:a")]


def test_plan_distinguishes_duplicate_tracks_by_added_at() -> None:
    """Copies of the same track are reordered as distinct entries."""
    a1 = _entry("a", "2024-01-01T00:00:00Z")
    a2 = _entry("a", "2024-02-01T00:00:00Z")
    b = _entry("b")
    original, working = [a1, b, a2], [a2, b, a1]
    ops = compute_sync_plan(original, working)
    assert ops
    assert _keys(_remote_after(original, ops)) == _keys(working)


def test_plan_keeps_unavailable_tracks_in_position() -> None:
    """Entries without a track take part in reorders like any other."""
    a, gone, b = _entry("a"), _absent("2024-01-05T00:00:00Z"), _entry("b")
    original, working = [a, gone, b], [b, gone, a]
    ops = compute_sync_plan(original, working)
    assert _keys(_remote_after(original, ops)) == _keys(working)


def test_plan_cannot_remove_unavailable_track() -> None:
    """A deleted entry without a URI yields no removal and stays remote at the tail."""
    a, gone, b = _entry("a"), _absent("2024-01-05T00:00:00Z"), _entry("b")
    original, working = [a, gone, b], [b, a]
    ops = compute_sync_plan(original, working)

    assert not any(isinstance(op, RemoveTrack) for op in ops)
    assert _keys(_remote_after(original, ops)) == _keys([b, a, gone])


def test_plan_does_not_mutate_inputs() -> None:
    """Planning leaves both orders untouched."""
    a, b, c = _entry("a"), _entry("b"), _entry("c")
    original, working = [a, b, c], [c, b]
    compute_sync_plan(original, working)
    assert original == [a, b, c]
    assert working == [c, b]


# ---------------------------------------------------------------------------
# Randomised convergence
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("seed", range(25))
def test_plan_converges_for_random_edits(seed: int) -> None:
    """Replaying the plan over the original always yields the working order."""
    rng = random.Random(seed)
    size = rng.randint(0, 30)
    original = [_entry(f"t{i}", f"2024-01-{(i % 28) + 1:02d}T00:00:00Z") for i in range(size)]
    working = [entry for entry in original if rng.random() > 0.25]
    rng.shuffle(working)

    ops = compute_sync_plan(original, working)

    removals = [op for op in ops if isinstance(op, RemoveTrack)]
    reorders = [op for op in ops if isinstance(op, ReorderRange)]
    assert ops == removals + reorders
    assert len(removals) == size - len(working)
    assert len(reorders) <= len(working)
    assert _keys(_remote_after(original, ops)) == _keys(working)


def test_plan_removing_one_duplicate_removes_uri() -> None:
    """Deleting one copy of a duplicated track still removes the URI remotely."""
    x1 = _entry("x", "2024-01-01T00:00:00Z")
    b = _entry("b")
    x2 = _entry("x", "2024-03-01T00:00:00Z")
    ops = compute_sync_plan([x1, b, x2], [b, x2])
    assert ops == [RemoveTrack("spotify:track:x")]

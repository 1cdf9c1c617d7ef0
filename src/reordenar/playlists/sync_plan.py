"""Diff an original playlist order against an edited one into remote operations.

Spotify offers two mutation primitives: move one contiguous range to a new
position, and remove every occurrence of a URI. The plan therefore has two
phases, deletions first, because reorders address remote positions that
shift once tracks are removed.
"""

import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TypeVar

from reordenar.playlists.entries import PlaylistEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class RemoveTrack:
    """Remove every occurrence of ``uri`` from the remote playlist."""

    uri: str


@dataclass(frozen=True, slots=True)
class ReorderRange:
    """Move ``range_length`` items starting at ``range_start`` to just before ``insert_before``.

    ``insert_before`` is expressed in the positions the playlist had before
    the move, as Spotify expects it.
    """

    range_start: int
    insert_before: int
    range_length: int = 1


RemoteOp = RemoveTrack | ReorderRange


def move_indices(items: list[T], from_indices: Iterable[int], to_position: int) -> list[T]:
    """Return ``items`` with the entries at ``from_indices`` moved as a block.

    The moved entries keep their relative order and start at ``to_position``
    in the result, i.e. ``to_position`` indexes the list after the moved
    entries were taken out: moving index 0 to position 2 in ``[a, b, c]``
    yields ``[b, c, a]``. Out-of-range positions are clamped.
    """
    picked = sorted({i for i in from_indices if 0 <= i < len(items)})
    if not picked:
        return list(items)
    picked_set = set(picked)
    moving = [items[i] for i in picked]
    remaining = [item for i, item in enumerate(items) if i not in picked_set]
    insert_at = max(0, min(to_position, len(remaining)))
    return remaining[:insert_at] + moving + remaining[insert_at:]


def apply_reorder(items: list[T], op: ReorderRange) -> list[T]:
    """Apply one range move to ``items`` exactly as Spotify would."""
    start, length = op.range_start, op.range_length
    block = items[start : start + length]
    rest = items[:start] + items[start + length :]
    insert_at = op.insert_before if op.insert_before <= start else op.insert_before - length
    return rest[:insert_at] + block + rest[insert_at:]


def split_deletions(
    original: list[PlaylistEntry],
    working: list[PlaylistEntry],
) -> tuple[list[PlaylistEntry], list[PlaylistEntry]]:
    """Partition ``original`` into (kept, deleted) by identity key.

    Keys are matched as a multiset so an entry is only considered deleted when
    ``working`` holds fewer copies of its key than ``original`` does.
    """
    remaining = Counter(entry.key for entry in working)
    kept: list[PlaylistEntry] = []
    deleted: list[PlaylistEntry] = []
    for entry in original:
        if remaining[entry.key] > 0:
            remaining[entry.key] -= 1
            kept.append(entry)
        else:
            deleted.append(entry)
    return kept, deleted


def compute_sync_plan(original: list[PlaylistEntry], working: list[PlaylistEntry]) -> list[RemoteOp]:
    """Compute the ordered remote operations that turn ``original`` into ``working``.

    1. One :class:`RemoveTrack` per distinct URI among deleted entries, in
       their original order. The remote call removes all occurrences of the
       URI, including ones still present locally.
    2. Greedy single-item :class:`ReorderRange` moves: walk ``working`` by
       target index and move each out-of-place entry into position, keeping a
       simulated remote order in step. Always converges; not minimal.
    """
    kept, deleted = split_deletions(original, working)

    ops: list[RemoteOp] = []
    seen_uris: set[str] = set()
    stranded: list[PlaylistEntry] = []
    for entry in deleted:
        uri = entry.uri
        if uri is None:
            logger.warning("Cannot remove playlist entry without a URI (added_at=%s)", entry.added_at)
            stranded.append(entry)
            continue
        if uri not in seen_uris:
            seen_uris.add(uri)
            ops.append(RemoveTrack(uri))

    # Entries that cannot be removed stay on Spotify's side, in place.
    survivors = {id(entry) for entry in kept} | {id(entry) for entry in stranded}
    simulated = [entry for entry in original if id(entry) in survivors]

    for target, entry in enumerate(working):
        current = _find_from(simulated, entry, target)
        if current is None or current == target:
            continue
        insert_before = target if target < current else target + 1
        ops.append(ReorderRange(range_start=current, insert_before=insert_before, range_length=1))
        simulated.insert(target, simulated.pop(current))

    return ops


def _find_from(order: list[PlaylistEntry], entry: PlaylistEntry, start: int) -> int | None:
    """Index of the first entry at or after ``start`` sharing ``entry``'s key.

    Positions before ``start`` already match the target order, so duplicate
    keys resolve to the earliest unplaced copy.
    """
    key = entry.key
    for index in range(start, len(order)):
        if order[index].key == key:
            return index
    return None

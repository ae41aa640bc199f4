"""Root path reconstruction from traversal parent pointers."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dotwalk.core.graph.models import TraversalRecord


def root_path(record: TraversalRecord, handle: int) -> list[int]:
    """Path from the traversal start to ``handle``, following parents back.

    Returns an empty list for nodes the traversal never visited.
    """
    if not record.is_visited(handle):
        return []

    path = [handle]
    current = handle
    while current in record.parent:
        current = record.parent[current]
        path.append(current)
    path.reverse()
    return path


def root_paths(record: TraversalRecord, handles: Iterable[int]) -> dict[int, list[int]]:
    """Root paths for several nodes. O(sum of path lengths)."""
    return {handle: root_path(record, handle) for handle in handles}

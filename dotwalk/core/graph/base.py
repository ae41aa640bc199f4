"""Core DotGraph class with dense handles and two-way adjacency lists."""

from __future__ import annotations

from dotwalk.core.models import Direction, EdgeType


class DotGraph:
    """Directed graph parsed from DOT text.

    Every identifier gets a dense zero-based handle on first sight. Forward and
    reverse adjacency are plain lists indexed by handle, so neighbor lookup is
    O(1). Duplicate edges are kept; deduplication happens at extraction.
    """

    __slots__ = ("_ids", "_handles", "_labels", "_forward", "_reverse", "_edge_types", "_num_edges")

    def __init__(self) -> None:
        self._ids: list[str] = []
        self._handles: dict[str, int] = {}
        self._labels: dict[int, str] = {}
        self._forward: list[list[int]] = []
        self._reverse: list[list[int]] = []
        self._edge_types: dict[tuple[int, int], EdgeType | None] = {}
        self._num_edges = 0

    def ensure_node(self, identifier: str) -> int:
        """Return the handle for an identifier, registering it if new. O(1)."""
        handle = self._handles.get(identifier)
        if handle is None:
            handle = len(self._ids)
            self._handles[identifier] = handle
            self._ids.append(identifier)
            self._forward.append([])
            self._reverse.append([])
        return handle

    def add_edge(self, source: int, target: int, edge_type: EdgeType | None = None) -> bool:
        """Add a directed edge. Self-loops are dropped. O(1)."""
        if source == target:
            return False
        self._forward[source].append(target)
        self._reverse[target].append(source)
        self._edge_types[(source, target)] = edge_type
        self._num_edges += 1
        return True

    def set_label(self, handle: int, label: str | None) -> None:
        """Attach a label unless the node already has one."""
        if label and handle not in self._labels:
            self._labels[handle] = label

    def handle(self, identifier: str) -> int | None:
        return self._handles.get(identifier)

    def identifier(self, handle: int) -> str:
        return self._ids[handle]

    def label(self, handle: int) -> str | None:
        return self._labels.get(handle)

    def display_label(self, handle: int) -> str:
        """Label if recorded, otherwise the identifier."""
        return self._labels.get(handle) or self._ids[handle]

    def successors(self, handle: int) -> list[int]:
        """Targets of edges declared from this node. O(1)."""
        return self._forward[handle]

    def predecessors(self, handle: int) -> list[int]:
        """Sources of edges declared into this node. O(1)."""
        return self._reverse[handle]

    def neighbors(self, handle: int, direction: Direction) -> list[int]:
        if direction is Direction.UPSTREAM:
            return self._reverse[handle]
        return self._forward[handle]

    def has_edge(self, source: int, target: int) -> bool:
        return (source, target) in self._edge_types

    def edge_type(
        self, source: int, target: int, default: EdgeType | None = None
    ) -> EdgeType | None:
        """Type stored for the declared (source, target) pair."""
        return self._edge_types.get((source, target), default)

    def out_degree(self, handle: int) -> int:
        return len(self._forward[handle])

    def in_degree(self, handle: int) -> int:
        return len(self._reverse[handle])

    @property
    def num_nodes(self) -> int:
        return len(self._ids)

    @property
    def num_edges(self) -> int:
        return self._num_edges

    @property
    def identifiers(self) -> list[str]:
        return self._ids

    @property
    def labels(self) -> dict[str, str]:
        """Recorded labels keyed by identifier."""
        return {self._ids[h]: label for h, label in self._labels.items()}

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._handles

    def __len__(self) -> int:
        return len(self._ids)

    def __repr__(self) -> str:
        return f"DotGraph(nodes={self.num_nodes}, edges={self.num_edges})"

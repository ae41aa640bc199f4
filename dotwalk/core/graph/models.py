"""Data models for graph operations."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from dotwalk.core.models import Algorithm, Direction, EdgeRecord, EdgeType, NodeRecord


@dataclass(frozen=True)
class TraversalEdge:
    """An edge scanned during traversal, pointing the way the search moved."""

    source: int
    target: int
    level: int
    edge_type: EdgeType | None = None


@dataclass
class TraversalRecord:
    """Everything one traversal run produced."""

    start: int
    direction: Direction
    algorithm: Algorithm
    max_depth: int
    levels: dict[int, int] = field(default_factory=dict)
    parent: dict[int, int] = field(default_factory=dict)
    order: list[int] = field(default_factory=list)
    edges: list[TraversalEdge] = field(default_factory=list)

    @property
    def max_level(self) -> int:
        return max(self.levels.values(), default=0)

    def is_visited(self, handle: int) -> bool:
        return handle in self.levels

    def __len__(self) -> int:
        return len(self.order)

    def __iter__(self) -> Iterator[int]:
        return iter(self.order)


@dataclass
class ExtractedSubgraph:
    """The visited subgraph, ready for serialization or rendering."""

    nodes: list[NodeRecord]
    edges: list[EdgeRecord]
    max_level: int
    paths: dict[int, list[int]] = field(default_factory=dict)

    @property
    def extremal(self) -> list[NodeRecord]:
        return [node for node in self.nodes if node.is_extremal]

    def levels(self) -> dict[int, list[NodeRecord]]:
        """Visited nodes grouped by level, in visitation order."""
        groups: dict[int, list[NodeRecord]] = {}
        for node in self.nodes:
            groups.setdefault(node.level, []).append(node)
        return groups

    def __repr__(self) -> str:
        return (
            f"ExtractedSubgraph(nodes={len(self.nodes)}, edges={len(self.edges)}, "
            f"max_level={self.max_level})"
        )

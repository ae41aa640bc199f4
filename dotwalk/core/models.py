"""Data models for dotwalk."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

MIN_DEPTH = 1
MAX_DEPTH = 50


class EdgeType(Enum):
    """Semantic category of a lineage edge."""

    QUANTIZED = "quantized"
    MERGE = "merge"
    ADAPTER = "adapter"
    FINETUNE = "finetune"

    @property
    def abbr(self) -> str:
        return _ABBREVIATIONS[self]


_ABBREVIATIONS = {
    EdgeType.QUANTIZED: "QN",
    EdgeType.MERGE: "MR",
    EdgeType.ADAPTER: "AD",
    EdgeType.FINETUNE: "FT",
}


class Direction(Enum):
    """Which adjacency orientation a traversal walks."""

    DOWNSTREAM = "downstream"
    UPSTREAM = "upstream"

    @classmethod
    def parse(cls, value: str | Direction) -> Direction:
        """Parse "up", "upstream", "down" or "downstream" in any case."""
        if isinstance(value, Direction):
            return value
        raw = value.strip().lower()
        if raw in ("up", "upstream"):
            return cls.UPSTREAM
        if raw in ("down", "downstream"):
            return cls.DOWNSTREAM
        raise ValueError(f"Unknown direction {value!r}: expected upstream or downstream")


class Algorithm(Enum):
    """Traversal algorithm."""

    BFS = "BFS"
    DFS = "DFS"

    @classmethod
    def parse(cls, value: str | Algorithm) -> Algorithm:
        if isinstance(value, Algorithm):
            return value
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise ValueError(f"Unknown algorithm {value!r}: expected BFS or DFS") from None


class EdgeMode(Enum):
    """Which traversal edges end up in the extracted subgraph."""

    ALL = "all"
    TREE = "tree"


def clamp_depth(depth: int) -> int:
    """Clamp a requested maximum depth to [MIN_DEPTH, MAX_DEPTH]."""
    return max(MIN_DEPTH, min(MAX_DEPTH, int(depth)))


@dataclass(frozen=True)
class NodeRecord:
    """A visited node as handed to renderers."""

    handle: int
    identifier: str
    label: str
    level: int
    is_extremal: bool = False
    is_sink: bool = False
    steps: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.identifier,
            "label": self.label,
            "level": self.level,
            "is_extremal": self.is_extremal,
            "is_sink": self.is_sink,
            "steps": self.steps,
        }


@dataclass(frozen=True)
class EdgeRecord:
    """A deduplicated subgraph edge, oriented the way the search moved."""

    source: int
    target: int
    source_id: str
    target_id: str
    edge_type: EdgeType | None
    level: int

    @property
    def abbr(self) -> str | None:
        return self.edge_type.abbr if self.edge_type else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.source_id,
            "to": self.target_id,
            "type": self.edge_type.value if self.edge_type else None,
            "abbr": self.abbr,
            "level": self.level,
        }

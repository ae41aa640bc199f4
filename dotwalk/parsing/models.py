"""Data models for line classifier results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LineKind(Enum):
    """Shape of a single DOT line."""

    SKIP = "skip"
    HEADER = "header"
    NODE = "node"
    EDGE = "edge"
    BLOCK_START = "block_start"
    EDGE_BLOCK_START = "edge_block_start"
    ATTR_BLOCK_START = "attr_block_start"
    BARE_NODE = "bare_node"
    IGNORED = "ignored"


@dataclass(frozen=True)
class LineRecord:
    """A classified line (before it reaches the graph)."""

    kind: LineKind
    source: str | None = None
    target: str | None = None
    label: str | None = None
    # Attribute text that follows an unclosed "[" on any block start line
    attrs: str | None = None

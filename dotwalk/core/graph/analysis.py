"""Whole-graph analysis: statistics, sources and sinks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from dotwalk.core.graph.base import DotGraph

_SAMPLE_SIZE = 10


@dataclass
class GraphStats:
    """Summary of a parsed graph."""

    nodes: int
    edges: int
    labeled: int
    sources: int
    sinks: int
    sample: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": self.nodes,
            "edges": self.edges,
            "labeled": self.labeled,
            "sources": self.sources,
            "sinks": self.sinks,
            "sample": self.sample,
        }


def get_sources(graph: DotGraph) -> list[int]:
    """Nodes with no incoming edges (in-degree = 0). O(V)."""
    return [h for h in range(graph.num_nodes) if not graph.in_degree(h)]


def get_sinks(graph: DotGraph) -> list[int]:
    """Nodes with no outgoing edges (out-degree = 0). O(V)."""
    return [h for h in range(graph.num_nodes) if not graph.out_degree(h)]


def get_hubs(graph: DotGraph, top_k: int = 10) -> list[int]:
    """Nodes with the highest total degree. O(V log V)."""
    scored = [(h, graph.in_degree(h) + graph.out_degree(h)) for h in range(graph.num_nodes)]
    scored.sort(key=lambda x: -x[1])
    return [h for h, _ in scored[:top_k]]


def graph_stats(graph: DotGraph) -> GraphStats:
    """Compute summary statistics. O(V)."""
    return GraphStats(
        nodes=graph.num_nodes,
        edges=graph.num_edges,
        labeled=len(graph.labels),
        sources=len(get_sources(graph)),
        sinks=len(get_sinks(graph)),
        sample=graph.identifiers[:_SAMPLE_SIZE],
    )

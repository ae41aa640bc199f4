"""Subgraph extraction: visited nodes, filtered edges, extremal flags."""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

from dotwalk.core.graph.models import ExtractedSubgraph
from dotwalk.core.graph.pathfinding import root_paths
from dotwalk.core.graph.traversal import declared_edge_type
from dotwalk.core.models import EdgeMode, EdgeRecord, NodeRecord

if TYPE_CHECKING:
    from dotwalk.core.graph.base import DotGraph
    from dotwalk.core.graph.models import TraversalRecord


def is_sink(graph: DotGraph, record: TraversalRecord, handle: int) -> bool:
    """True if no neighbor in the traversal orientation was visited."""
    return not any(
        record.is_visited(neighbor) and neighbor != handle
        for neighbor in graph.neighbors(handle, record.direction)
    )


def extremal_nodes(record: TraversalRecord) -> list[int]:
    """Visited nodes at the deepest level reached, in visitation order."""
    max_level = record.max_level
    return [handle for handle in record.order if record.levels[handle] == max_level]


def iter_node_records(
    graph: DotGraph, record: TraversalRecord, paths: dict[int, list[int]]
) -> Iterator[NodeRecord]:
    """Yield one NodeRecord per visited node, in visitation order."""
    max_level = record.max_level
    for handle in record.order:
        level = record.levels[handle]
        path = paths.get(handle)
        yield NodeRecord(
            handle=handle,
            identifier=graph.identifier(handle),
            label=graph.display_label(handle),
            level=level,
            is_extremal=level == max_level,
            is_sink=is_sink(graph, record, handle),
            steps=len(path) - 1 if path else None,
        )


def iter_edge_records(
    graph: DotGraph, record: TraversalRecord, edge_mode: EdgeMode = EdgeMode.ALL
) -> Iterator[EdgeRecord]:
    """Yield deduplicated edges whose endpoints were both visited.

    The first traversal edge seen for a (source, target) pair wins.
    """
    if edge_mode is EdgeMode.TREE:
        for handle in record.order:
            parent = record.parent.get(handle)
            if parent is None or parent == handle:
                continue
            yield EdgeRecord(
                source=parent,
                target=handle,
                source_id=graph.identifier(parent),
                target_id=graph.identifier(handle),
                edge_type=declared_edge_type(graph, parent, handle, record.direction),
                level=record.levels[handle],
            )
        return

    seen: set[tuple[int, int]] = set()
    for edge in record.edges:
        key = (edge.source, edge.target)
        if edge.source == edge.target or key in seen:
            continue
        seen.add(key)
        if not (record.is_visited(edge.source) and record.is_visited(edge.target)):
            continue
        yield EdgeRecord(
            source=edge.source,
            target=edge.target,
            source_id=graph.identifier(edge.source),
            target_id=graph.identifier(edge.target),
            edge_type=edge.edge_type,
            level=edge.level,
        )


def extract_subgraph(
    graph: DotGraph, record: TraversalRecord, edge_mode: EdgeMode = EdgeMode.ALL
) -> ExtractedSubgraph:
    """Assemble the ExtractedSubgraph for one traversal. O(V + E) in subgraph."""
    paths = root_paths(record, extremal_nodes(record))
    return ExtractedSubgraph(
        nodes=list(iter_node_records(graph, record, paths)),
        edges=list(iter_edge_records(graph, record, edge_mode)),
        max_level=record.max_level,
        paths=paths,
    )

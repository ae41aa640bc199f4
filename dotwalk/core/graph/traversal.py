"""Level-bounded traversal: BFS frontier search and iterative DFS."""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING

from dotwalk.core.graph.models import TraversalEdge, TraversalRecord
from dotwalk.core.models import Algorithm, Direction

if TYPE_CHECKING:
    from dotwalk.core.graph.base import DotGraph
    from dotwalk.core.models import EdgeType

logger = logging.getLogger(__name__)


def declared_edge_type(
    graph: DotGraph, node: int, neighbor: int, direction: Direction
) -> EdgeType | None:
    """Type of the declared edge behind a scanned (node, neighbor) pair."""
    if direction is Direction.UPSTREAM:
        return graph.edge_type(neighbor, node)
    return graph.edge_type(node, neighbor)


def bfs(graph: DotGraph, start: int, direction: Direction, max_depth: int) -> TraversalRecord:
    """Unit-cost frontier search. Levels are shortest hop counts. O(V + E)."""
    record = TraversalRecord(start, direction, Algorithm.BFS, max_depth)
    record.levels[start] = 0
    queue: deque[tuple[int, int]] = deque([(start, 0)])

    while queue:
        node, depth = queue.popleft()
        record.order.append(node)

        for neighbor in graph.neighbors(node, direction):
            if neighbor == node:
                continue
            record.edges.append(
                TraversalEdge(
                    node, neighbor, depth + 1, declared_edge_type(graph, node, neighbor, direction)
                )
            )
            if neighbor not in record.levels and depth + 1 <= max_depth:
                record.levels[neighbor] = depth + 1
                record.parent[neighbor] = node
                queue.append((neighbor, depth + 1))

    logger.debug(
        "BFS from %d (%s): %d visited, %d edges scanned",
        start, direction.value, len(record.order), len(record.edges),
    )
    return record


def dfs(graph: DotGraph, start: int, direction: Direction, max_depth: int) -> TraversalRecord:
    """Iterative depth-first search with an explicit stack.

    Neighbors are pushed in reverse so they pop in declaration order. A node's
    level is the depth at which it is first popped, not necessarily the
    shortest one.
    """
    record = TraversalRecord(start, direction, Algorithm.DFS, max_depth)
    stack: list[tuple[int, int, int | None]] = [(start, 0, None)]

    while stack:
        node, depth, parent = stack.pop()
        if node in record.levels:
            continue
        record.levels[node] = depth
        if parent is not None:
            record.parent[node] = parent
        record.order.append(node)

        pending: list[tuple[int, int, int | None]] = []
        for neighbor in graph.neighbors(node, direction):
            if neighbor == node:
                continue
            record.edges.append(
                TraversalEdge(
                    node, neighbor, depth + 1, declared_edge_type(graph, node, neighbor, direction)
                )
            )
            if neighbor not in record.levels and depth + 1 <= max_depth:
                pending.append((neighbor, depth + 1, node))
        stack.extend(reversed(pending))

    logger.debug(
        "DFS from %d (%s): %d visited, %d edges scanned",
        start, direction.value, len(record.order), len(record.edges),
    )
    return record


def traverse(
    graph: DotGraph,
    start: int,
    direction: Direction = Direction.DOWNSTREAM,
    algorithm: Algorithm = Algorithm.BFS,
    max_depth: int = 5,
) -> TraversalRecord:
    """Run the requested algorithm."""
    if algorithm is Algorithm.DFS:
        return dfs(graph, start, direction, max_depth)
    return bfs(graph, start, direction, max_depth)

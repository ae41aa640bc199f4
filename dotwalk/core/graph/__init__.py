"""
Graph data structures and algorithms.

This module provides the in-memory graph operations behind one analysis:

Data Structures:
    - DotGraph: Dense handles with forward and reverse adjacency lists
    - TraversalRecord: Levels, parents, visitation order and scanned edges
    - ExtractedSubgraph: Node and edge records scoped to the visited set

Algorithms:
    - traversal: BFS frontier search and iterative DFS (bfs, dfs, traverse)
    - extraction: Dedup, visited-set filtering, extremal and sink flags
    - pathfinding: Root path reconstruction from parent pointers
    - resolve: Start-node lookup from a free-text query
    - analysis: Graph statistics, sources and sinks
"""

from dotwalk.core.graph.base import DotGraph
from dotwalk.core.graph.extraction import extract_subgraph
from dotwalk.core.graph.models import ExtractedSubgraph, TraversalEdge, TraversalRecord
from dotwalk.core.graph.resolve import find_nodes, resolve_start
from dotwalk.core.graph.traversal import bfs, dfs, traverse

__all__ = [
    "DotGraph",
    "ExtractedSubgraph",
    "TraversalEdge",
    "TraversalRecord",
    "bfs",
    "dfs",
    "extract_subgraph",
    "find_nodes",
    "resolve_start",
    "traverse",
]

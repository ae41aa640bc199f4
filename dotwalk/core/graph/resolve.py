"""Resolve a human-entered query to a start node."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dotwalk.core.exceptions import StartNodeNotFoundError
from dotwalk.parsing.lexer import unquote

if TYPE_CHECKING:
    from dotwalk.core.graph.base import DotGraph


def _find_handle(graph: DotGraph, query: str) -> int | None:
    handle = graph.handle(query)
    if handle is not None:
        return handle

    labels = [graph.label(h) for h in range(graph.num_nodes)]
    for h, label in enumerate(labels):
        if label == query:
            return h

    needle = query.lower()
    lowered = [identifier.lower() for identifier in graph.identifiers]

    for h, identifier in enumerate(lowered):
        if identifier == needle:
            return h
    for h, identifier in enumerate(lowered):
        if identifier.startswith(needle):
            return h
    for h, identifier in enumerate(lowered):
        if needle in identifier:
            return h
    for h, label in enumerate(labels):
        if label and needle in label.lower():
            return h

    # Quoted query naming a declared edge target, e.g. '"org/model"'
    literal = unquote(query)
    if literal != query:
        target = graph.handle(literal)
        if target is not None and graph.in_degree(target):
            return target
    return None


def resolve_start(graph: DotGraph, query: str) -> int:
    """Resolve a query to a node handle.

    Tries, in order: exact identifier, exact label, case-insensitive
    identifier equality, prefix and substring, case-insensitive label
    substring, and finally a quoted literal naming an edge target.

    Raises:
        StartNodeNotFoundError: if nothing matches.
    """
    query = (query or "").strip()
    handle = _find_handle(graph, query) if query else None
    if handle is None:
        raise StartNodeNotFoundError(query)
    return handle


def find_nodes(graph: DotGraph, query: str, limit: int = 50) -> list[int]:
    """Candidate handles for a query: prefix matches first, then substrings."""
    needle = query.strip().lower()
    if not needle:
        return []

    starts: list[int] = []
    contains: list[int] = []
    for h in range(graph.num_nodes):
        names = (graph.identifier(h).lower(), (graph.label(h) or "").lower())
        if any(name.startswith(needle) for name in names):
            starts.append(h)
        elif any(needle in name for name in names):
            contains.append(h)
    return (starts + contains)[:limit]

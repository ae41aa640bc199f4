"""DOT export for extracted subgraphs."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING

from dotwalk.core.models import Algorithm, Direction

if TYPE_CHECKING:
    from dotwalk.core.graph.models import ExtractedSubgraph

logger = logging.getLogger(__name__)

LEVEL_COLORS = [
    "red",
    "orange",
    "yellow",
    "lightgreen",
    "lightblue",
    "lightpink",
    "lavender",
    "lightcyan",
    "lightgray",
]

_NON_ALNUM_RE = re.compile(r"[^A-Za-z0-9]")
_WHITESPACE_RE = re.compile(r"\s+")


def sanitize(value: str) -> str:
    """Replace every non-alphanumeric character with an underscore."""
    return _NON_ALNUM_RE.sub("_", value or "")


def escape(value: str) -> str:
    return str(value).replace('"', '\\"')


def quote(value: str) -> str:
    return f'"{escape(value)}"'


def graph_title(start: str, direction: Direction) -> str:
    prefix = "Forward" if direction is Direction.DOWNSTREAM else "Backward"
    return f"{prefix}_Subgraph_Analysis_of_{sanitize(start)}"


def dot_filename(start: str, direction: Direction) -> str:
    """File name for a saved traversal, e.g. Forward_analysis_of_llama_7b.dot."""
    safe = sanitize(_WHITESPACE_RE.sub("_", (start or "model").strip()))
    prefix = "Forward" if direction is Direction.DOWNSTREAM else "Backward"
    return f"{prefix}_analysis_of_{safe}.dot"


def build_dot(
    subgraph: ExtractedSubgraph,
    *,
    start: str,
    direction: Direction,
    algorithm: Algorithm,
) -> str:
    """Render an extracted subgraph as DOT.

    Output is deterministic for a given subgraph: nodes appear in visitation
    order, one rank group per level, edges in first-traversal order.
    """
    downstream = direction is Direction.DOWNSTREAM
    marker = "[TERMINAL]" if downstream else "[BASE]"
    extremal_caption = "Terminal nodes" if downstream else "Base models"
    identifiers = {node.handle: node.identifier for node in subgraph.nodes}

    out: list[str] = [f'digraph "{graph_title(start, direction)}" {{']
    if not downstream:
        out.append("  rankdir=BT;")
    out.append("  node [shape=box, style=filled];")
    out.append("  edge [color=blue];")
    out.append("")

    out.append(f"  // Algorithm: {algorithm.value}")
    out.append(f"  // Nodes visited: {len(subgraph.nodes)}")
    out.append(f"  // Edges found: {len(subgraph.edges)}")
    out.append(f"  // Maximum depth: {subgraph.max_level} levels")
    extremal = subgraph.extremal
    if extremal:
        names = ", ".join(node.identifier for node in extremal)
        out.append(f"  // {extremal_caption}: {names}")
    out.append("")

    if extremal and subgraph.paths:
        out.append(f"  // Paths to {extremal_caption.lower()}:")
        for node in extremal:
            path = subgraph.paths.get(node.handle)
            if path:
                hops = " -> ".join(identifiers[h] for h in path)
                out.append(f"  // {node.identifier}: {hops} ({len(path) - 1} steps)")
        out.append("")

    groups = subgraph.levels()
    if groups:
        for level in range(subgraph.max_level + 1):
            members = groups.get(level)
            if members:
                ranked = "; ".join(quote(node.identifier) for node in members)
                out.append(f"  {{ rank=same; {ranked}; }}")
        out.append("")

    for node in subgraph.nodes:
        color = LEVEL_COLORS[node.level % len(LEVEL_COLORS)]
        label = f"{escape(node.label)}\\nLevel: {node.level}"
        if node.steps:
            label += f"\\nSteps: {node.steps}"
        style = ""
        if node.is_extremal:
            label += f"\\n{marker}"
            style = ', style="filled,bold", penwidth=3'
        out.append(f'  {quote(node.identifier)} [fillcolor={color}, label="{label}"{style}];')
    out.append("")

    out.append("  // Edges with level and type")
    for edge in subgraph.edges:
        parts = [f"L{edge.level}"]
        if edge.abbr:
            parts.append(edge.abbr)
        out.append(
            f'  {quote(edge.source_id)} -> {quote(edge.target_id)} [label="{" | ".join(parts)}"];'
        )
    out.append("}")
    return "\n".join(out)


def write_dot(text: str, output_path: Path) -> None:
    """Write DOT text to a file, creating parent directories.

    Args:
        text: DOT document.
        output_path: Output file path.
    """
    logger.info("Exporting DOT to %s", output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(text + "\n", encoding="utf-8")

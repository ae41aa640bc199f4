"""
DOT parsing: Turn DOT text into a DotGraph.

This module provides the parsing layer that converts (possibly streamed)
DOT text into the adjacency structure used by traversal.

Components:
    - classify_line: Tags one line as skip, header, node, edge, one of the
      attribute block starts, bare node or ignored. A trailing // comment is
      cut off first
    - classify_edge_label: Maps an edge label to quantized, merge, adapter
      or finetune
    - GraphBuilder: Incremental builder fed with text or byte chunks

The grammar is deliberately tolerant. Lines that match no known shape
(subgraphs, rank statements, global attributes) are skipped, never rejected.
"""

from dotwalk.parsing.builder import GraphBuilder, parse_chunks, parse_dot, parse_lines, parse_stream
from dotwalk.parsing.edge_types import classify_edge_label
from dotwalk.parsing.lexer import classify_line
from dotwalk.parsing.models import LineKind, LineRecord

__all__ = [
    "GraphBuilder",
    "LineKind",
    "LineRecord",
    "classify_edge_label",
    "classify_line",
    "parse_chunks",
    "parse_dot",
    "parse_lines",
    "parse_stream",
]

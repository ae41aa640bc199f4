"""MCP server implementation for dotwalk."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from dotwalk.core.graph.analysis import graph_stats
from dotwalk.core.graph.base import DotGraph
from dotwalk.core.graph.resolve import find_nodes
from dotwalk.core.models import EdgeMode
from dotwalk.core.pipeline import (
    AnalysisRequest,
    CancelledMessage,
    ErrorMessage,
    ResultMessage,
    run_analysis,
)
from dotwalk.core.settings import get_settings
from dotwalk.core.sources import open_source
from dotwalk.parsing.builder import parse_chunks

logger = logging.getLogger(__name__)

server = Server("dotwalk")

_PATH_PROPERTY = {
    "type": "string",
    "description": "Path to the DOT file (relative to the working directory)",
}


def _resolve_path(path: str) -> Path:
    resolved = Path(path)
    if not resolved.is_absolute():
        resolved = Path.cwd() / resolved
    return resolved


def _load_graph(path: str) -> DotGraph:
    settings = get_settings()
    return parse_chunks(open_source(_resolve_path(path)), settings.default_edge_type).graph


@server.list_tools()  # type: ignore[no-untyped-call, untyped-decorator]
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="dotwalk_trace",
            description=(
                "Find every node reachable from a start node within max_depth hops, "
                "downstream (along edges) or upstream (against them). Returns nodes with "
                "levels and terminal flags, typed edges, and the subgraph as DOT."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "path": _PATH_PROPERTY,
                    "start": {
                        "type": "string",
                        "description": "Start node identifier, label, or search text",
                    },
                    "direction": {
                        "type": "string",
                        "enum": ["downstream", "upstream"],
                        "default": "downstream",
                    },
                    "algorithm": {
                        "type": "string",
                        "enum": ["BFS", "DFS"],
                        "default": "BFS",
                    },
                    "max_depth": {
                        "type": "integer",
                        "description": "Maximum hops, 1 to 50 (default: 5)",
                        "default": 5,
                    },
                    "tree": {
                        "type": "boolean",
                        "description": "Keep only tree edges (default: false)",
                        "default": False,
                    },
                },
                "required": ["path", "start"],
            },
        ),
        Tool(
            name="dotwalk_find",
            description=(
                "Search node identifiers and labels in a DOT file. "
                "Prefix matches come before substring matches."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "path": _PATH_PROPERTY,
                    "query": {"type": "string", "description": "Search text"},
                    "limit": {"type": "integer", "default": 50},
                },
                "required": ["path", "query"],
            },
        ),
        Tool(
            name="dotwalk_stats",
            description="Get node, edge, source and sink counts for a DOT file.",
            inputSchema={
                "type": "object",
                "properties": {"path": _PATH_PROPERTY},
                "required": ["path"],
            },
        ),
    ]


@server.call_tool()  # type: ignore[untyped-decorator]
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    try:
        if name == "dotwalk_trace":
            result = await asyncio.to_thread(
                _handle_trace,
                arguments["path"],
                arguments["start"],
                arguments.get("direction", "downstream"),
                arguments.get("algorithm", "BFS"),
                arguments.get("max_depth", get_settings().default_max_depth),
                arguments.get("tree", False),
            )
        elif name == "dotwalk_find":
            result = _handle_find(arguments["path"], arguments["query"], arguments.get("limit", 50))
        elif name == "dotwalk_stats":
            result = _handle_stats(arguments["path"])
        else:
            result = {"error": f"Unknown tool: {name}"}

        return [TextContent(type="text", text=json.dumps(result, indent=2))]

    except Exception as e:
        logger.exception("Tool %s failed", name)
        return [TextContent(type="text", text=json.dumps({"error": str(e)}))]


def _handle_trace(
    path: str, start: str, direction: str, algorithm: str, max_depth: int, tree: bool
) -> dict[str, Any]:
    """Handle dotwalk_trace tool."""
    request = AnalysisRequest(
        start=start,
        direction=direction,
        algorithm=algorithm,
        max_depth=max_depth,
        edge_mode=EdgeMode.TREE if tree else EdgeMode.ALL,
    )
    outcome = run_analysis(request, _resolve_path(path))

    if isinstance(outcome, ResultMessage):
        return outcome.result.to_dict()
    if isinstance(outcome, ErrorMessage):
        return {"error": outcome.message, "kind": outcome.kind.value}
    if isinstance(outcome, CancelledMessage):
        return {"error": "Analysis was cancelled"}
    raise TypeError(f"Unexpected pipeline message: {outcome!r}")


def _handle_find(path: str, query: str, limit: int) -> dict[str, Any]:
    """Handle dotwalk_find tool."""
    graph = _load_graph(path)
    return {
        "results": [
            {"id": graph.identifier(h), "label": graph.label(h)}
            for h in find_nodes(graph, query, limit)
        ],
    }


def _handle_stats(path: str) -> dict[str, Any]:
    """Handle dotwalk_stats tool."""
    return graph_stats(_load_graph(path)).to_dict()


async def serve() -> None:
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())

"""
MCP server for dotwalk.

Exposes DOT reachability analysis to LLMs via the Model Context Protocol.

Tools:
    - dotwalk_trace: Level-bounded traversal with the subgraph as DOT
    - dotwalk_find: Search node identifiers and labels
    - dotwalk_stats: Node, edge, source and sink counts

Usage:
    Run: mcp-server-dotwalk
"""

import asyncio

from dotwalk.core.logs import setup_logging
from dotwalk.core.settings import get_settings
from dotwalk.mcp.server import serve as _serve


def serve() -> None:
    """Entry point for the MCP server."""
    setup_logging(get_settings().log_level)
    asyncio.run(_serve())


__all__ = ["serve"]

"""Export of extracted subgraphs."""

from dotwalk.export.dot import build_dot, dot_filename, write_dot

__all__ = ["build_dot", "dot_filename", "write_dot"]

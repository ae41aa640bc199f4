"""Streaming graph builder.

Text may arrive in arbitrary chunks. The builder keeps the partial trailing
line in a buffer and only classifies complete lines, so results do not depend
on where chunk boundaries fall. Multi-line node and edge attribute blocks are tracked
as builder state and may span chunks too.
"""

from __future__ import annotations

import codecs
import logging
from collections.abc import AsyncIterable, Callable, Iterable

from dotwalk.core.graph.base import DotGraph
from dotwalk.core.models import EdgeType
from dotwalk.parsing.edge_types import classify_edge_label
from dotwalk.parsing.lexer import (
    classify_line,
    extract_label,
    is_block_end,
    strip_comment,
)
from dotwalk.parsing.models import LineKind, LineRecord

logger = logging.getLogger(__name__)

ParseProgressCallback = Callable[[int], None]

DEFAULT_PROGRESS_INTERVAL = 4000


class GraphBuilder:
    """Accumulates a DotGraph from DOT lines or chunks."""

    def __init__(
        self,
        default_edge_type: EdgeType | None = EdgeType.FINETUNE,
        progress_interval: int = DEFAULT_PROGRESS_INTERVAL,
        on_progress: ParseProgressCallback | None = None,
    ) -> None:
        self._graph = DotGraph()
        self._default_edge_type = default_edge_type
        self._progress_interval = max(1, progress_interval)
        self._on_progress = on_progress

        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._line_count = 0
        self._closed = False

        # Open multi-line attribute block: (opening record, buffered attribute text)
        self._block: tuple[LineRecord, list[str]] | None = None

    @property
    def graph(self) -> DotGraph:
        return self._graph

    @property
    def line_count(self) -> int:
        return self._line_count

    def feed(self, chunk: str | bytes) -> None:
        """Consume a chunk of text, processing every complete line in it."""
        if self._closed:
            raise ValueError("GraphBuilder is closed")
        text = self._decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
        if not text:
            return
        self._buffer += text
        if "\n" not in text:
            return
        *lines, self._buffer = self._buffer.split("\n")
        for line in lines:
            self.feed_line(line)

    def feed_line(self, raw: str) -> None:
        """Process one complete line."""
        if raw.endswith("\r"):
            raw = raw[:-1]
        self._line_count += 1
        self._process(raw)
        if self._on_progress and self._line_count % self._progress_interval == 0:
            self._on_progress(self._line_count)

    def close(self) -> DotGraph:
        """Flush the trailing line and any open block, then return the graph."""
        if self._closed:
            return self._graph
        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        if tail:
            self.feed_line(tail)
        if self._block is not None:
            logger.debug("Input ended inside an attribute block; closing it")
            self._finish_block()
        self._closed = True
        logger.debug("Parsed %d lines into %r", self._line_count, self._graph)
        return self._graph

    def _process(self, raw: str) -> None:
        if self._block is not None:
            self._block[1].append(strip_comment(raw))
            if is_block_end(raw):
                self._finish_block()
            return

        record = classify_line(raw)
        kind = record.kind
        graph = self._graph

        if kind is LineKind.NODE:
            graph.set_label(graph.ensure_node(record.source), record.label)
        elif kind is LineKind.EDGE:
            self._add_edge(record.source, record.target, record.label)
        elif kind is LineKind.BLOCK_START:
            graph.ensure_node(record.source)
            self._block = (record, [record.attrs or ""])
        elif kind is LineKind.EDGE_BLOCK_START:
            graph.ensure_node(record.source)
            graph.ensure_node(record.target)
            self._block = (record, [record.attrs or ""])
        elif kind is LineKind.ATTR_BLOCK_START:
            self._block = (record, [])
        elif kind is LineKind.BARE_NODE:
            graph.ensure_node(record.source)

    def _add_edge(self, source_id: str, target_id: str, label: str | None) -> None:
        graph = self._graph
        source = graph.ensure_node(source_id)
        target = graph.ensure_node(target_id)
        graph.add_edge(source, target, classify_edge_label(label, self._default_edge_type))

    def _finish_block(self) -> None:
        record, parts = self._block
        self._block = None
        text = "\n".join(parts)
        if record.kind is LineKind.BLOCK_START:
            self._graph.set_label(self._graph.ensure_node(record.source), extract_label(text))
        elif record.kind is LineKind.EDGE_BLOCK_START:
            self._add_edge(record.source, record.target, extract_label(text, ignore_case=True))


def parse_lines(
    lines: Iterable[str],
    default_edge_type: EdgeType | None = EdgeType.FINETUNE,
    on_progress: ParseProgressCallback | None = None,
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL,
) -> DotGraph:
    """Parse an iterable of lines (without trailing newlines)."""
    builder = GraphBuilder(default_edge_type, progress_interval, on_progress)
    for line in lines:
        builder.feed_line(line)
    return builder.close()


def parse_chunks(
    chunks: Iterable[str | bytes],
    default_edge_type: EdgeType | None = EdgeType.FINETUNE,
    on_progress: ParseProgressCallback | None = None,
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL,
) -> GraphBuilder:
    """Parse text delivered in chunks. Returns the closed builder."""
    builder = GraphBuilder(default_edge_type, progress_interval, on_progress)
    for chunk in chunks:
        builder.feed(chunk)
    builder.close()
    return builder


async def parse_stream(
    chunks: AsyncIterable[str | bytes],
    default_edge_type: EdgeType | None = EdgeType.FINETUNE,
    on_progress: ParseProgressCallback | None = None,
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL,
) -> GraphBuilder:
    """Parse text from an async chunk stream as it arrives."""
    builder = GraphBuilder(default_edge_type, progress_interval, on_progress)
    async for chunk in chunks:
        builder.feed(chunk)
    builder.close()
    return builder


def parse_dot(text: str, default_edge_type: EdgeType | None = EdgeType.FINETUNE) -> DotGraph:
    """Parse a complete DOT document."""
    return parse_chunks([text], default_edge_type).graph

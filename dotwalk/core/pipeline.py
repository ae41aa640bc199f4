"""Analysis pipeline: fetch, parse, traverse, prepare.

One request runs the four stages strictly in sequence. Progress and the
final outcome are reported as messages (a closed set of dataclasses). Each
run carries a CancellationToken; a run that has been superseded by a newer
request stops at the next stage boundary, and the coordinator discards any
message from it that still arrives.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import AsyncIterable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

from dotwalk.core.exceptions import AnalysisCancelled, SourceReadError, StartNodeNotFoundError
from dotwalk.core.graph.extraction import (
    extract_subgraph,
    extremal_nodes,
    iter_edge_records,
    iter_node_records,
)
from dotwalk.core.graph.models import ExtractedSubgraph
from dotwalk.core.graph.pathfinding import root_paths
from dotwalk.core.graph.resolve import resolve_start
from dotwalk.core.graph.traversal import traverse
from dotwalk.core.models import (
    Algorithm,
    Direction,
    EdgeMode,
    EdgeRecord,
    NodeRecord,
    clamp_depth,
)
from dotwalk.core.settings import Settings, get_settings
from dotwalk.core.sources import Source, open_source
from dotwalk.export.dot import build_dot
from dotwalk.parsing.builder import GraphBuilder

if TYPE_CHECKING:
    from dotwalk.core.graph.base import DotGraph
    from dotwalk.core.graph.models import TraversalRecord

logger = logging.getLogger(__name__)


class Phase(Enum):
    """Pipeline stages, in the order they report progress."""

    FETCH = "fetch"
    PARSE = "parse"
    TRAVERSE = "traverse"
    PREPARE = "prepare"


class ErrorKind(Enum):
    """Category of a failed run."""

    NOT_FOUND = "not_found"
    FETCH = "fetch"
    INTERNAL = "internal"


@dataclass(frozen=True)
class AnalysisRequest:
    """What to analyze. ``max_depth`` is clamped to [1, 50]."""

    start: str
    direction: Direction = Direction.DOWNSTREAM
    algorithm: Algorithm = Algorithm.BFS
    max_depth: int = 5
    edge_mode: EdgeMode = EdgeMode.ALL

    def __post_init__(self) -> None:
        object.__setattr__(self, "direction", Direction.parse(self.direction))
        object.__setattr__(self, "algorithm", Algorithm.parse(self.algorithm))
        object.__setattr__(self, "edge_mode", EdgeMode(self.edge_mode))
        object.__setattr__(self, "max_depth", clamp_depth(self.max_depth))


@dataclass
class AnalysisStats:
    """Counts and timings of one run."""

    nodes: int = 0
    edges: int = 0
    parse_ms: float = 0.0
    traverse_ms: float = 0.0
    total_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": self.nodes,
            "edges": self.edges,
            "parse_ms": round(self.parse_ms, 1),
            "traverse_ms": round(self.traverse_ms, 1),
            "total_ms": round(self.total_ms, 1),
        }


@dataclass
class AnalysisResult:
    """Output of a successful run."""

    direction: Direction
    algorithm: Algorithm
    start: str
    max_level: int
    nodes: list[NodeRecord]
    edges: list[EdgeRecord]
    dot: str
    labels: dict[str, str]
    raw_line_count: int
    dot_truncated: bool = False
    stats: AnalysisStats = field(default_factory=AnalysisStats)

    def to_dict(self) -> dict[str, Any]:
        return {
            "direction": self.direction.value,
            "algorithm": self.algorithm.value,
            "start": self.start,
            "max_level": self.max_level,
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "dot": self.dot,
            "dot_truncated": self.dot_truncated,
            "raw_line_count": self.raw_line_count,
            "stats": self.stats.to_dict(),
        }


@dataclass(frozen=True)
class ProgressMessage:
    run_id: int
    phase: Phase
    lines: int | None = None
    algorithm: Algorithm | None = None


@dataclass(frozen=True)
class ResultMessage:
    run_id: int
    result: AnalysisResult


@dataclass(frozen=True)
class ErrorMessage:
    run_id: int
    message: str
    kind: ErrorKind = ErrorKind.INTERNAL


@dataclass(frozen=True)
class CancelledMessage:
    run_id: int


PipelineMessage = Union[ProgressMessage, ResultMessage, ErrorMessage, CancelledMessage]
MessageCallback = Callable[[PipelineMessage], None]


def is_terminal(message: PipelineMessage) -> bool:
    """True for the last message a run emits."""
    if isinstance(message, ProgressMessage):
        return False
    if isinstance(message, (ResultMessage, ErrorMessage, CancelledMessage)):
        return True
    raise TypeError(f"Unknown pipeline message: {message!r}")


class CancellationToken:
    """Tells a running pipeline whether its run is still the current one."""

    def __init__(self, run_id: int = 0, is_current: Callable[[int], bool] | None = None) -> None:
        self.run_id = run_id
        self._is_current = is_current

    @property
    def cancelled(self) -> bool:
        return self._is_current is not None and not self._is_current(self.run_id)

    def check(self) -> None:
        """Raise AnalysisCancelled if a newer run has been issued."""
        if self.cancelled:
            raise AnalysisCancelled(self.run_id)


class RunCoordinator:
    """Issues monotonically increasing run ids and filters stale messages."""

    def __init__(self) -> None:
        self._latest = 0
        self._lock = threading.Lock()

    @property
    def latest(self) -> int:
        return self._latest

    def issue(self) -> CancellationToken:
        """Start a new run, superseding every earlier one."""
        with self._lock:
            self._latest += 1
            return CancellationToken(self._latest, self.is_current)

    def is_current(self, run_id: int) -> bool:
        return run_id == self._latest

    def accept(self, message: PipelineMessage) -> bool:
        """Whether a message belongs to the latest run."""
        if self.is_current(message.run_id):
            return True
        logger.debug("Discarding %s from stale run %d", type(message).__name__, message.run_id)
        return False


def _noop(message: PipelineMessage) -> None:
    pass


def _ms(since: float) -> float:
    return (time.perf_counter() - since) * 1000


def _traverse_stage(
    graph: DotGraph,
    request: AnalysisRequest,
    token: CancellationToken,
    emit: MessageCallback,
) -> tuple[int, TraversalRecord, float]:
    token.check()
    emit(ProgressMessage(token.run_id, Phase.TRAVERSE, algorithm=request.algorithm))
    started = time.perf_counter()
    start = resolve_start(graph, request.start)
    record = traverse(graph, start, request.direction, request.algorithm, request.max_depth)
    return start, record, _ms(started)


def _build_result(
    graph: DotGraph,
    request: AnalysisRequest,
    start: int,
    subgraph: ExtractedSubgraph,
    line_count: int,
    stats: AnalysisStats,
    settings: Settings,
) -> AnalysisResult:
    start_id = graph.identifier(start)
    fits = (
        len(subgraph.nodes) <= settings.dot_max_nodes
        and len(subgraph.edges) <= settings.dot_max_edges
    )
    if fits:
        dot = build_dot(
            subgraph, start=start_id, direction=request.direction, algorithm=request.algorithm
        )
    else:
        dot = ""
        logger.info(
            "Subgraph too large for DOT output (%d nodes, %d edges)",
            len(subgraph.nodes), len(subgraph.edges),
        )

    stats.nodes = len(subgraph.nodes)
    stats.edges = len(subgraph.edges)
    return AnalysisResult(
        direction=request.direction,
        algorithm=request.algorithm,
        start=start_id,
        max_level=subgraph.max_level,
        nodes=subgraph.nodes,
        edges=subgraph.edges,
        dot=dot,
        labels=graph.labels,
        raw_line_count=line_count,
        dot_truncated=not fits,
        stats=stats,
    )


def _new_builder(
    token: CancellationToken, emit: MessageCallback, settings: Settings
) -> GraphBuilder:
    def on_progress(lines: int) -> None:
        emit(ProgressMessage(token.run_id, Phase.PARSE, lines=lines))

    return GraphBuilder(
        default_edge_type=settings.default_edge_type,
        progress_interval=settings.parse_progress_interval,
        on_progress=on_progress,
    )


def execute(
    request: AnalysisRequest,
    source: Source,
    *,
    token: CancellationToken | None = None,
    on_message: MessageCallback | None = None,
    settings: Settings | None = None,
) -> AnalysisResult:
    """Run the pipeline and return the result, raising on failure.

    Progress messages are passed to ``on_message``; the terminal message is
    left to the caller (see run_analysis).

    Raises:
        SourceReadError: if the source cannot be read.
        StartNodeNotFoundError: if the start query matches no node.
        AnalysisCancelled: if the token reports a newer run.
    """
    token = token or CancellationToken()
    emit = on_message or _noop
    settings = settings or get_settings()
    started = time.perf_counter()
    stats = AnalysisStats()

    emit(ProgressMessage(token.run_id, Phase.FETCH))
    chunks = open_source(source)
    token.check()

    builder = _new_builder(token, emit, settings)
    for chunk in chunks:
        builder.feed(chunk)
    graph = builder.close()
    emit(ProgressMessage(token.run_id, Phase.PARSE, lines=builder.line_count))
    stats.parse_ms = _ms(started)
    logger.info("Parsed %d lines: %r", builder.line_count, graph)

    start, record, stats.traverse_ms = _traverse_stage(graph, request, token, emit)

    token.check()
    emit(ProgressMessage(token.run_id, Phase.PREPARE))
    subgraph = extract_subgraph(graph, record, request.edge_mode)
    result = _build_result(graph, request, start, subgraph, builder.line_count, stats, settings)
    stats.total_ms = _ms(started)
    token.check()

    logger.info(
        "%s %s from %s: %d nodes, %d edges, max level %d",
        request.algorithm.value, request.direction.value, result.start,
        stats.nodes, stats.edges, result.max_level,
    )
    return result


def analyze(
    request: AnalysisRequest, source: Source, settings: Settings | None = None
) -> AnalysisResult:
    """Analyze a source synchronously with no progress reporting."""
    return execute(request, source, settings=settings)


def _failure(run_id: int, error: Exception) -> PipelineMessage:
    """Convert an exception raised inside the pipeline into its terminal message."""
    if isinstance(error, AnalysisCancelled):
        return CancelledMessage(run_id)
    if isinstance(error, StartNodeNotFoundError):
        return ErrorMessage(run_id, str(error), ErrorKind.NOT_FOUND)
    if isinstance(error, SourceReadError):
        return ErrorMessage(run_id, str(error), ErrorKind.FETCH)
    logger.error("Analysis run %d failed", run_id, exc_info=error)
    return ErrorMessage(run_id, str(error) or type(error).__name__, ErrorKind.INTERNAL)


def run_analysis(
    request: AnalysisRequest,
    source: Source,
    *,
    token: CancellationToken | None = None,
    on_message: MessageCallback | None = None,
    settings: Settings | None = None,
) -> PipelineMessage:
    """Run the pipeline, reporting every outcome as a message.

    Never raises for pipeline failures: the terminal message (result, error
    or cancelled) is passed to ``on_message`` last and also returned.
    """
    token = token or CancellationToken()
    emit = on_message or _noop
    try:
        result = execute(request, source, token=token, on_message=emit, settings=settings)
        message: PipelineMessage = ResultMessage(token.run_id, result)
    except Exception as e:
        message = _failure(token.run_id, e)
    emit(message)
    return message


async def analyze_stream(
    request: AnalysisRequest,
    chunks: AsyncIterable[str | bytes],
    *,
    token: CancellationToken | None = None,
    on_message: MessageCallback | None = None,
    settings: Settings | None = None,
) -> PipelineMessage:
    """Async pipeline over a chunk stream.

    Parses chunks as they arrive and yields to the event loop every
    ``settings.yield_every`` node or edge records while materializing the
    subgraph. Scheduling differs from run_analysis; results do not.
    """
    token = token or CancellationToken()
    emit = on_message or _noop
    settings = settings or get_settings()
    every = max(1, settings.yield_every)

    try:
        started = time.perf_counter()
        stats = AnalysisStats()
        emit(ProgressMessage(token.run_id, Phase.FETCH))
        token.check()

        builder = _new_builder(token, emit, settings)
        try:
            async for chunk in chunks:
                builder.feed(chunk)
        except OSError as e:
            raise SourceReadError(f"Failed to read stream: {e}") from e
        graph = builder.close()
        emit(ProgressMessage(token.run_id, Phase.PARSE, lines=builder.line_count))
        stats.parse_ms = _ms(started)

        start, record, stats.traverse_ms = _traverse_stage(graph, request, token, emit)
        await asyncio.sleep(0)

        token.check()
        emit(ProgressMessage(token.run_id, Phase.PREPARE))
        paths = root_paths(record, extremal_nodes(record))
        nodes: list[NodeRecord] = []
        for node in iter_node_records(graph, record, paths):
            nodes.append(node)
            if len(nodes) % every == 0:
                await asyncio.sleep(0)
        edges: list[EdgeRecord] = []
        for edge in iter_edge_records(graph, record, request.edge_mode):
            edges.append(edge)
            if len(edges) % every == 0:
                await asyncio.sleep(0)

        subgraph = ExtractedSubgraph(nodes, edges, record.max_level, paths)
        result = _build_result(graph, request, start, subgraph, builder.line_count, stats, settings)
        stats.total_ms = _ms(started)
        token.check()
        message: PipelineMessage = ResultMessage(token.run_id, result)
    except Exception as e:
        message = _failure(token.run_id, e)
    emit(message)
    return message


class AnalysisSession:
    """Runs requests off the event loop and delivers only current messages.

    Every submit() supersedes the previous run. ``on_message`` may be called
    from a worker thread.
    """

    def __init__(
        self, on_message: MessageCallback | None = None, settings: Settings | None = None
    ) -> None:
        self._coordinator = RunCoordinator()
        self._on_message = on_message or _noop
        self._settings = settings

    @property
    def coordinator(self) -> RunCoordinator:
        return self._coordinator

    def _deliver(self, message: PipelineMessage) -> None:
        if self._coordinator.accept(message):
            self._on_message(message)

    async def submit(self, request: AnalysisRequest, source: Source) -> PipelineMessage:
        """Start a run and wait for its terminal message."""
        token = self._coordinator.issue()
        logger.debug("Submitting run %d for %r", token.run_id, request.start)
        return await asyncio.to_thread(
            run_analysis,
            request,
            source,
            token=token,
            on_message=self._deliver,
            settings=self._settings,
        )

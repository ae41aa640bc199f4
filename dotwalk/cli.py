"""CLI entry point for dotwalk."""

import json
import logging
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from dotwalk.core.exceptions import SourceReadError
from dotwalk.core.graph.analysis import graph_stats
from dotwalk.core.graph.base import DotGraph
from dotwalk.core.graph.resolve import find_nodes
from dotwalk.core.logs import setup_logging
from dotwalk.core.models import Algorithm, Direction, EdgeMode
from dotwalk.core.pipeline import (
    AnalysisRequest,
    AnalysisResult,
    CancelledMessage,
    ErrorMessage,
    Phase,
    PipelineMessage,
    ProgressMessage,
    ResultMessage,
    run_analysis,
)
from dotwalk.core.settings import get_settings
from dotwalk.core.sources import open_source
from dotwalk.export.dot import dot_filename, write_dot
from dotwalk.parsing.builder import parse_chunks

app = typer.Typer(
    name="dotwalk",
    help="Level-bounded reachability analysis for DOT graphs.",
    no_args_is_help=True,
)
console = Console()
logger = logging.getLogger(__name__)

_PHASE_TEXT = {
    Phase.FETCH: "Loading graph file…",
    Phase.PARSE: "Parsing DOT…",
    Phase.TRAVERSE: "Traversing",
    Phase.PREPARE: "Preparing subgraph…",
}


def fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(code=1)


def load_graph(file: Path) -> DotGraph:
    """Parse a DOT file, exiting on read errors."""
    settings = get_settings()
    try:
        builder = parse_chunks(open_source(file), settings.default_edge_type)
    except SourceReadError as e:
        fail(str(e))
    return builder.graph


def describe(message: ProgressMessage) -> str:
    """Human-readable status line for a progress message."""
    text = _PHASE_TEXT[message.phase]
    if message.phase is Phase.PARSE and message.lines:
        return f"{text} {message.lines} lines"
    if message.phase is Phase.TRAVERSE and message.algorithm:
        return f"{text} ({message.algorithm.value})…"
    return text


def print_result(result: AnalysisResult) -> None:
    caption = (
        "Forward subgraph analysis"
        if result.direction is Direction.DOWNSTREAM
        else "Backward subgraph analysis"
    )
    marker = "terminal" if result.direction is Direction.DOWNSTREAM else "base"

    table = Table(title=f"{caption} of [cyan]{escape(result.start)}[/]")
    table.add_column("Level", justify="right")
    table.add_column("Node", style="cyan")
    table.add_column("Label")
    table.add_column("Steps", justify="right")
    table.add_column("")
    for node in sorted(result.nodes, key=lambda n: n.level):
        flags = f"[red]{marker}[/]" if node.is_extremal else ""
        label = node.label if node.label != node.identifier else ""
        steps = str(node.steps) if node.steps else ""
        table.add_row(f"L{node.level}", escape(node.identifier), escape(label), steps, flags)
    console.print(table)

    console.print(
        f"[green]Done![/green] {len(result.nodes)} nodes, {len(result.edges)} edges, "
        f"{result.max_level + 1} levels"
    )
    console.print(
        f"  [dim]Parsed {result.raw_line_count} lines in {result.stats.parse_ms:.1f} ms[/]"
    )
    if result.dot_truncated:
        console.print("  [yellow]Subgraph too large, DOT output skipped[/]")


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """Level-bounded reachability analysis for DOT graphs."""
    setup_logging("DEBUG" if verbose else get_settings().log_level)


@app.command()
def trace(
    file: Annotated[Path, typer.Argument(help="DOT file to analyze")],
    start: Annotated[str, typer.Argument(help="Start node: identifier, label or search text")],
    direction: Annotated[
        str, typer.Option("--direction", "-D", help="downstream or upstream")
    ] = "downstream",
    algorithm: Annotated[str, typer.Option("--algorithm", "-a", help="BFS or DFS")] = "BFS",
    max_depth: Annotated[
        int | None, typer.Option("--depth", "-d", help="Maximum hops (1-50)")
    ] = None,
    tree: Annotated[bool, typer.Option("--tree", help="Keep only tree edges")] = False,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write DOT to a file or directory")
    ] = None,
    show_dot: Annotated[bool, typer.Option("--dot", help="Print the DOT output")] = False,
    output_json: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Trace everything reachable from a node within N hops."""
    settings = get_settings()
    try:
        request = AnalysisRequest(
            start=start,
            direction=Direction.parse(direction),
            algorithm=Algorithm.parse(algorithm),
            max_depth=max_depth if max_depth is not None else settings.default_max_depth,
            edge_mode=EdgeMode.TREE if tree else EdgeMode.ALL,
        )
    except ValueError as e:
        fail(str(e))

    logger.debug("Trace request: %r", request)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
        disable=output_json,
    ) as progress:
        task = progress.add_task(f"Analyzing [cyan]{file.name}[/]", total=None)

        def on_message(message: PipelineMessage) -> None:
            if isinstance(message, ProgressMessage):
                progress.update(task, description=describe(message))

        outcome = run_analysis(request, file, on_message=on_message, settings=settings)

    if isinstance(outcome, ErrorMessage):
        if output_json:
            print(json.dumps({"error": outcome.message, "kind": outcome.kind.value}))
            raise typer.Exit(code=1)
        fail(outcome.message)
    if isinstance(outcome, CancelledMessage):
        fail("Analysis was cancelled")
    if not isinstance(outcome, ResultMessage):
        fail(f"Unexpected pipeline message: {outcome!r}")

    result = outcome.result
    if output is not None and result.dot:
        target = output
        if output.is_dir():
            target = output / dot_filename(result.start, result.direction)
        write_dot(result.dot, target)
        if not output_json:
            console.print(f"Saved: [cyan]{target}[/]")

    if output_json:
        print(json.dumps(result.to_dict()))
    elif show_dot:
        print(result.dot)
    else:
        print_result(result)


@app.command()
def stats(
    file: Annotated[Path, typer.Argument(help="DOT file to inspect")],
    output_json: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show graph statistics."""
    graph = load_graph(file)
    result = graph_stats(graph)

    if output_json:
        print(json.dumps(result.to_dict()))
        return

    console.print("Graph Statistics:")
    console.print(f"  Nodes: {result.nodes}")
    console.print(f"  Edges: {result.edges}")
    console.print(f"  Labeled nodes: {result.labeled}")
    console.print(f"  Sources: {result.sources}")
    console.print(f"  Sinks: {result.sinks}")
    if result.sample:
        more = "…" if len(result.sample) < result.nodes else ""
        console.print(f"  Sample nodes: {', '.join(result.sample)}{more}")


@app.command()
def find(
    file: Annotated[Path, typer.Argument(help="DOT file to search")],
    query: Annotated[str, typer.Argument(help="Text to search for")],
    limit: Annotated[int, typer.Option("--limit", "-n", help="Maximum results")] = 50,
    output_json: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Search node identifiers and labels (prefix matches first)."""
    graph = load_graph(file)
    handles = find_nodes(graph, query, limit)

    if output_json:
        result = [
            {
                "id": graph.identifier(h),
                "label": graph.label(h),
                "in_degree": graph.in_degree(h),
                "out_degree": graph.out_degree(h),
            }
            for h in handles
        ]
        print(json.dumps(result))
        return

    if not handles:
        console.print(f"No matches for '[cyan]{query}[/cyan]'")
        return
    for h in handles:
        label = graph.label(h)
        suffix = f" [dim]({label})[/]" if label else ""
        console.print(
            f"[cyan]{graph.identifier(h)}[/cyan]{suffix} "
            f"[dim]in {graph.in_degree(h)} / out {graph.out_degree(h)}[/]"
        )


if __name__ == "__main__":
    app()

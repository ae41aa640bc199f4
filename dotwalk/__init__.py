"""
dotwalk: Level-bounded reachability analysis for DOT graphs.

dotwalk parses a directed graph written in a tolerant subset of DOT and lets you:
- Find everything reachable from a node within K hops, downstream or upstream
- Annotate the reached subgraph with levels, terminal nodes and edge types
- Re-serialize the subgraph as DOT, grouped into one rank per level

Usage:
    from dotwalk.core.models import Direction
    from dotwalk.core.pipeline import AnalysisRequest, analyze

    request = AnalysisRequest(start="base-model", direction=Direction.DOWNSTREAM)
    result = analyze(request, Path("lineage.dot"))
    print(result.dot)
"""

__version__ = "0.1.0"

"""
Core module: data models, exceptions, settings and the analysis pipeline.

This module provides the foundational types shared by every layer:

Models (models.py):
    - NodeRecord: A visited node with level and extremal/sink flags
    - EdgeRecord: A deduplicated subgraph edge with type and level
    - EdgeType/Direction/Algorithm/EdgeMode: Enums for categorization

Exceptions (exceptions.py):
    - DotwalkError: Base exception for all dotwalk errors
    - StartNodeNotFoundError: Start query matched no node
    - SourceReadError: DOT source could not be read

Pipeline (pipeline.py, imported from dotwalk.core.pipeline):
    - AnalysisRequest/AnalysisResult: Request and output of one run
    - run_analysis/analyze: Parse, traverse, extract and serialize
    - RunCoordinator/AnalysisSession: Run ids and stale-result filtering
"""

from dotwalk.core.exceptions import (
    AnalysisCancelled,
    DotwalkError,
    SourceReadError,
    StartNodeNotFoundError,
)
from dotwalk.core.models import (
    Algorithm,
    Direction,
    EdgeMode,
    EdgeRecord,
    EdgeType,
    NodeRecord,
    clamp_depth,
)
from dotwalk.core.settings import Settings, get_settings

__all__ = [
    # Models
    "NodeRecord",
    "EdgeRecord",
    "EdgeType",
    "Direction",
    "Algorithm",
    "EdgeMode",
    "clamp_depth",
    # Exceptions
    "DotwalkError",
    "StartNodeNotFoundError",
    "SourceReadError",
    "AnalysisCancelled",
    # Settings
    "Settings",
    "get_settings",
]

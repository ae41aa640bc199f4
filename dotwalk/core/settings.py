"""
Runtime configuration.

Uses Pydantic Settings for environment-based configuration. Every field can
be overridden with a DOTWALK_-prefixed environment variable or a .env file.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from dotwalk.core.models import EdgeType


class Settings(BaseSettings):
    """Settings shared by the CLI, the MCP server and the pipeline."""

    model_config = SettingsConfigDict(
        env_prefix="DOTWALK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Edge type for edges with no label or an unrecognised one
    unlabeled_edge_type: Literal["finetune", "none"] = "finetune"

    # Parsing
    parse_progress_interval: int = 4000

    # Traversal
    default_max_depth: int = 5

    # DOT output guard
    dot_max_nodes: int = 6500
    dot_max_edges: int = 9000

    # Records materialized between cooperative yields in the async pipeline
    yield_every: int = 2000

    # Logging
    log_level: str = "WARNING"

    @property
    def default_edge_type(self) -> EdgeType | None:
        return EdgeType.FINETUNE if self.unlabeled_edge_type == "finetune" else None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()

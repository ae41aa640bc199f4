"""Classify free-text edge labels into lineage edge types."""

from __future__ import annotations

import re

from dotwalk.core.models import EdgeType

_STRIP_RE = re.compile(r"[\s_-]+")

_ADAPTER_KEYWORDS = ("adapter", "adapters", "lora", "qlora")
_FINETUNE_KEYWORDS = ("finetune", "fine-tune", "fine tune")


def classify_edge_label(
    label: str | None, default: EdgeType | None = EdgeType.FINETUNE
) -> EdgeType | None:
    """Map an edge label to an EdgeType.

    Rules are checked in order and the first hit wins, so "quant-merge" is
    QUANTIZED. Absent, blank and unrecognised labels resolve to ``default``.
    """
    if not label:
        return default
    text = label.strip().lower()
    if not text:
        return default

    if "quant" in text or "gguf" in text:
        return EdgeType.QUANTIZED
    if "merge" in text:
        return EdgeType.MERGE
    if any(keyword in text for keyword in _ADAPTER_KEYWORDS):
        return EdgeType.ADAPTER

    stripped = _STRIP_RE.sub("", text)
    if (
        any(keyword in text for keyword in _FINETUNE_KEYWORDS)
        or "finetuned" in stripped
        or "sft" in text
        or text == "dpo"
    ):
        return EdgeType.FINETUNE

    return default

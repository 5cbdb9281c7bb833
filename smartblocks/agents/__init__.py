"""AI agents and pluggable capabilities for block processing."""

from .capabilities import (
    AICapabilities,
    Summarizer,
    ReorderScorer,
    Embedder,
    ExtractionSuggester,
    truncate_summary,
    identity_order,
    hashed_embedding,
    heuristic_extraction,
)
from .registry import AgentRegistry, AgentConfig
from .runner import AgentRunner

__all__ = [
    "AICapabilities",
    "Summarizer",
    "ReorderScorer",
    "Embedder",
    "ExtractionSuggester",
    "truncate_summary",
    "identity_order",
    "hashed_embedding",
    "heuristic_extraction",
    "AgentRegistry",
    "AgentConfig",
    "AgentRunner",
]

"""
Pluggable AI capabilities.

Summarization, reordering, embedding and extraction suggestions are injected
into the engine as async callables with a fixed contract. The local defaults
here are deterministic and need no model, so everything that depends on them
stays testable offline. AgentRunner provides Ollama-backed versions.
"""

import hashlib
import math
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List

from ..extraction import extraction_title
from ..models import Block, ReorderOptions, SummarizationOptions


Summarizer = Callable[[Block, SummarizationOptions], Awaitable[str]]
ReorderScorer = Callable[[List[Block], ReorderOptions], Awaitable[List[int]]]
Embedder = Callable[[Block], Awaitable[List[float]]]
ExtractionSuggester = Callable[[Block], Awaitable[Dict[str, Any]]]

EMBEDDING_DIMENSIONS = 64


async def truncate_summary(block: Block, options: SummarizationOptions) -> str:
    """Summary placeholder: the content cut to max_length characters."""
    if len(block.content) <= options.max_length:
        return block.content
    return block.content[:options.max_length] + "..."


async def identity_order(blocks: List[Block], options: ReorderOptions) -> List[int]:
    """Reorder placeholder: keep the current order."""
    return list(range(len(blocks)))


async def hashed_embedding(block: Block) -> List[float]:
    """
    Deterministic bag-of-words vector.

    Each lower-cased word is hashed into one of EMBEDDING_DIMENSIONS buckets;
    the counts are L2 normalized. Good enough for offline clustering tests,
    not a semantic embedding.
    """
    vector = [0.0] * EMBEDDING_DIMENSIONS
    for word in block.content.lower().split():
        bucket = int(hashlib.sha256(word.encode("utf-8")).hexdigest(), 16) % EMBEDDING_DIMENSIONS
        vector[bucket] += 1.0

    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return vector
    return [value / norm for value in vector]


async def heuristic_extraction(block: Block) -> Dict[str, Any]:
    """Extraction suggestion taken from the block's own fields."""
    return {
        "title": extraction_title(block),
        "tags": list(block.tags),
        "type": block.type,
    }


@dataclass
class AICapabilities:
    """
    The set of AI functions an engine uses.
    """
    summarizer: Summarizer = truncate_summary
    scorer: ReorderScorer = identity_order
    embedder: Embedder = hashed_embedding
    extraction_suggester: ExtractionSuggester = heuristic_extraction

    @classmethod
    def from_runner(cls, runner: Any) -> "AICapabilities":
        """Use an AgentRunner for every capability."""
        return cls(
            summarizer=runner.summarize,
            scorer=runner.suggest_order,
            embedder=runner.embed,
            extraction_suggester=runner.suggest_extraction,
        )

"""Per-document block statistics."""

from collections import Counter
from typing import Optional, Sequence

from ..models import Block, BlockStatistics, SidecarMetadata


def compute_statistics(blocks: Sequence[Block], sidecar: Optional[SidecarMetadata] = None) -> BlockStatistics:
    """
    Summarize a document's blocks.

    Extraction and AI counts come from the sidecar and include entries whose
    block no longer exists.
    """
    total_length = sum(len(block.content) for block in blocks)
    entries = list(sidecar.blocks.values()) if sidecar else []

    return BlockStatistics(
        total_blocks=len(blocks),
        blocks_by_type=dict(Counter(block.type for block in blocks)),
        average_block_length=round(total_length / len(blocks)) if blocks else 0,
        reorderable_blocks=sum(1 for block in blocks if block.reorderable),
        extracted_blocks=sum(1 for entry in entries if entry.extracted_to),
        blocks_with_ai=sum(1 for entry in entries if entry.ai_summary),
        last_activity=sidecar.last_updated if sidecar else None
    )

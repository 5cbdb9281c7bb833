"""
Filtering and sorting of blocks joined with sidecar metadata.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..models import Block, BlockFilter, BlockMetadata, BlockSort, SidecarMetadata


def _metadata_for(block: Block, sidecar: Optional[SidecarMetadata]) -> Optional[BlockMetadata]:
    if sidecar is None:
        return None
    return sidecar.blocks.get(block.id)


def _matches(block: Block, criteria: BlockFilter, sidecar: Optional[SidecarMetadata]) -> bool:
    if criteria.types is not None and block.type not in criteria.types:
        return False

    if criteria.tags is not None and not any(tag in block.tags for tag in criteria.tags):
        return False

    if criteria.reorderable is not None and block.reorderable != criteria.reorderable:
        return False

    metadata = _metadata_for(block, sidecar)

    if criteria.has_ai is not None:
        has_ai = bool(metadata and metadata.ai_summary)
        if has_ai != criteria.has_ai:
            return False

    if criteria.extracted is not None:
        extracted = bool(metadata and metadata.extracted_to)
        if extracted != criteria.extracted:
            return False

    if criteria.search:
        needle = criteria.search.lower()
        haystacks = [block.content, block.title or "", *block.tags]
        if not any(needle in text.lower() for text in haystacks):
            return False

    return True


def filter_blocks(
    blocks: Sequence[Block],
    criteria: BlockFilter,
    sidecar: Optional[SidecarMetadata] = None
) -> List[Block]:
    """
    Keep the blocks that satisfy every criterion that is set.

    Args:
        blocks: Blocks to filter
        criteria: Filter criteria; unset criteria are ignored
        sidecar: Sidecar metadata for the AI-summary and extraction criteria

    Returns:
        Matching blocks in their original order
    """
    return [block for block in blocks if _matches(block, criteria, sidecar)]


def _timestamp(value: Optional[datetime]) -> float:
    return value.timestamp() if value else 0.0


def _sort_key(field: str, sidecar: Optional[SidecarMetadata]) -> Callable[[Block], Any]:
    keys: Dict[str, Callable[[Block], Any]] = {
        "position": lambda b: b.line_range[0] if b.line_range else 0,
        "type": lambda b: b.type,
        "title": lambda b: b.title or "",
        "length": lambda b: len(b.content),
    }

    def created(block: Block) -> float:
        metadata = _metadata_for(block, sidecar)
        if metadata is None:
            return 0.0
        return _timestamp(metadata.created_at or metadata.last_processed)

    def updated(block: Block) -> float:
        metadata = _metadata_for(block, sidecar)
        return _timestamp(metadata.last_processed) if metadata else 0.0

    keys["created"] = created
    keys["updated"] = updated
    return keys[field]


def sort_blocks(
    blocks: Sequence[Block],
    order: BlockSort,
    sidecar: Optional[SidecarMetadata] = None
) -> List[Block]:
    """
    Sort blocks by one field. Equal keys keep their relative order in both
    directions.
    """
    return sorted(blocks, key=_sort_key(order.field, sidecar), reverse=order.direction == "desc")


def get_filtered_blocks(
    blocks: Sequence[Block],
    criteria: Optional[BlockFilter] = None,
    order: Optional[BlockSort] = None,
    sidecar: Optional[SidecarMetadata] = None
) -> List[Block]:
    """Filter, then sort, whichever of the two is given."""
    result = list(blocks)
    if criteria is not None:
        result = filter_blocks(result, criteria, sidecar)
    if order is not None:
        result = sort_blocks(result, order, sidecar)
    return result

"""
Reorder advisor for Smart Blocks.

Scoring is delegated to a pluggable async scorer. Only reorderable blocks are
handed to it; its answer is translated back onto the full block list so that
pinned (non-reorderable) blocks never move.
"""

import logging
from typing import List, Optional, Sequence

from ..agents.capabilities import ReorderScorer, identity_order
from ..errors import ReorderError
from ..models import Block, ReorderOptions


def remap_order(blocks: Sequence[Block], suggestion: Sequence[int]) -> List[int]:
    """
    Translate a permutation of the reorderable subset onto the full list.

    ``suggestion[k]`` is the subset position that should occupy subset slot
    ``k``. The result uses the same convention over the full list: entry
    ``i`` is the original index of the block that should sit at index ``i``.
    Non-reorderable slots map to themselves.

    Raises:
        ReorderError: If the suggestion is not a permutation of the subset
    """
    reorderable_indices = [index for index, block in enumerate(blocks) if block.reorderable]

    if sorted(suggestion) != list(range(len(reorderable_indices))):
        raise ReorderError(
            [blocks[i].id for i in reorderable_indices],
            f"scorer returned {list(suggestion)}, expected a permutation of 0..{len(reorderable_indices) - 1}"
        )

    result = list(range(len(blocks)))
    for slot, chosen in enumerate(suggestion):
        result[reorderable_indices[slot]] = reorderable_indices[chosen]
    return result


async def suggest_reorder(
    blocks: Sequence[Block],
    scorer: ReorderScorer = identity_order,
    options: Optional[ReorderOptions] = None
) -> List[int]:
    """
    Propose a new order for a document's blocks.

    Args:
        blocks: All blocks of the document, in document order
        scorer: Async scorer returning a permutation of its input positions
        options: Passed through to the scorer

    Returns:
        Original indices in suggested order (identity if fewer than two
        blocks are reorderable)
    """
    reorderable = [block for block in blocks if block.reorderable]
    if len(reorderable) < 2:
        return list(range(len(blocks)))

    suggestion = await scorer(reorderable, options or ReorderOptions())
    order = remap_order(blocks, suggestion)
    logging.debug(f"Reorder suggestion for {len(reorderable)} reorderable blocks: {order}")
    return order


def apply_order(blocks: Sequence[Block], order: Sequence[int]) -> List[Block]:
    """Return the blocks arranged by an order from suggest_reorder."""
    if sorted(order) != list(range(len(blocks))):
        raise ReorderError([block.id for block in blocks], f"{list(order)} is not a permutation")
    return [blocks[index] for index in order]

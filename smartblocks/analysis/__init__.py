"""Similarity, reordering, filtering and statistics over parsed blocks."""

from .similarity import similarity, find_similar
from .reorder import suggest_reorder, remap_order, apply_order
from .filters import filter_blocks, sort_blocks, get_filtered_blocks
from .statistics import compute_statistics

__all__ = [
    "similarity",
    "find_similar",
    "suggest_reorder",
    "remap_order",
    "apply_order",
    "filter_blocks",
    "sort_blocks",
    "get_filtered_blocks",
    "compute_statistics",
]

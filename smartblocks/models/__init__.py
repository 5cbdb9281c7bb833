"""Data models for Smart Blocks."""

from .block import Block, BlockInsertionOptions, ValidationResult, ParseWarning, ParseResult, MatchResult
from .sidecar import BlockMetadata, SidecarMetadata, SIDECAR_VERSION, utc_now
from .operations import (
    ExtractionOptions,
    ExtractedDocument,
    ReorderOptions,
    SummarizationOptions,
    BlockFilter,
    BlockSort,
    BlockProcessingJob,
    BlockEvent,
    BlockStatistics,
)

__all__ = [
    "Block",
    "BlockInsertionOptions",
    "ValidationResult",
    "ParseWarning",
    "ParseResult",
    "MatchResult",
    "BlockMetadata",
    "SidecarMetadata",
    "SIDECAR_VERSION",
    "utc_now",
    "ExtractionOptions",
    "ExtractedDocument",
    "ReorderOptions",
    "SummarizationOptions",
    "BlockFilter",
    "BlockSort",
    "BlockProcessingJob",
    "BlockEvent",
    "BlockStatistics",
]

"""
Block models for Smart Blocks.

This module defines the block data structure produced by the parser and by
explicit construction, together with the structured results returned by
parsing and validation.
"""

from typing import Dict, List, Literal, Optional, Tuple
from pydantic import BaseModel, Field


class Block(BaseModel):
    """
    An addressable, typed unit of content bounded by block markers.

    Blocks are deliberately permissive at construction time: an invalid id or
    an unknown type is accepted here and reported by the validator, so that
    validation can return a structured result instead of raising.
    """

    id: str = Field(
        default="",
        description="Identifier unique within the document, charset [A-Za-z0-9_-]"
    )

    type: str = Field(
        default="note",
        description="Block type from the configured vocabulary"
    )

    title: Optional[str] = Field(
        default=None,
        description="Optional display label, percent-decoded from the marker"
    )

    tags: List[str] = Field(
        default_factory=list,
        description="Ordered tags, duplicates allowed"
    )

    reorderable: bool = Field(
        default=False,
        description="Whether automated reordering may move this block"
    )

    content: str = Field(
        default="",
        description="Text strictly between the start and end markers"
    )

    content_hash: Optional[str] = Field(
        default=None,
        description="Short fingerprint of content used for change detection"
    )

    line_range: Optional[Tuple[int, int]] = Field(
        default=None,
        description="1-indexed (start, end) lines, inclusive of the marker lines"
    )

    attributes: Dict[str, str] = Field(
        default_factory=dict,
        description="Unrecognized marker attributes, kept as raw strings"
    )


class BlockInsertionOptions(BaseModel):
    """Options for creating a block explicitly."""

    id: Optional[str] = None
    type: Optional[str] = None
    title: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    reorderable: Optional[bool] = None


class ValidationResult(BaseModel):
    """
    Outcome of validating a single block.
    """

    is_valid: bool = Field(
        ...,
        description="False if any hard error was found"
    )

    errors: List[str] = Field(
        default_factory=list,
        description="Hard errors that make the block invalid"
    )

    warnings: List[str] = Field(
        default_factory=list,
        description="Soft findings that do not affect validity"
    )


class ParseWarning(BaseModel):
    """A non-fatal structural anomaly found while parsing."""

    kind: Literal["orphaned", "nested_start"]
    block_id: str
    line: int
    message: str


class ParseResult(BaseModel):
    """Blocks parsed from a document plus the warnings raised on the way."""

    blocks: List[Block] = Field(default_factory=list)
    warnings: List[ParseWarning] = Field(default_factory=list)


class MatchResult(BaseModel):
    """A block found to be related to a query block."""

    block: Block
    confidence: float = Field(..., ge=0.0, le=1.0)
    match_type: Literal["exact", "fuzzy", "content-hash", "proximity"] = "fuzzy"

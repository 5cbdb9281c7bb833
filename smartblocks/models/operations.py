"""
Models for operations over blocks: extraction, reordering, summarization,
filtering, batch jobs, lifecycle events and statistics.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

from .sidecar import utc_now


JobType = Literal["summarize", "embed", "reorder", "extract"]
JobStatus = Literal["pending", "processing", "completed", "failed"]
SortField = Literal["position", "type", "title", "created", "updated", "length"]


class ExtractionOptions(BaseModel):
    """
    Options controlling how a block is turned into a standalone document.
    """

    model_config = ConfigDict(populate_by_name=True)

    create_backlink: bool = Field(
        default=False,
        description="Append a Related section linking back to the origin document"
    )

    inherit_tags: bool = Field(
        default=False,
        description="Copy the block's tags onto the new document"
    )

    add_source_reference: bool = Field(
        default=False,
        alias="add_context",
        description="Add a header line naming the origin block id"
    )

    target_document_id: Optional[str] = Field(
        default=None,
        description="Use this id for the new document instead of generating one"
    )


class ExtractedDocument(BaseModel):
    """A new document derived from one block."""

    id: str
    title: str
    body: str
    tags: List[str] = Field(default_factory=list)
    source_block_id: str
    source_document_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class ReorderOptions(BaseModel):
    """Options handed through to the reorder scorer."""

    algorithm: Literal["similarity", "chronological", "importance", "custom"] = "similarity"
    preserve_ids: bool = True
    update_metadata: bool = False


class SummarizationOptions(BaseModel):
    """Options handed through to the summarizer."""

    max_length: int = Field(default=150, gt=0)
    style: Literal["concise", "detailed", "bullet-points"] = "concise"
    include_context: bool = False


class BlockFilter(BaseModel):
    """
    Conjunctive filter over blocks joined with sidecar metadata.

    Any criterion left as None is not applied.
    """

    types: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    reorderable: Optional[bool] = None
    has_ai: Optional[bool] = None
    extracted: Optional[bool] = None
    search: Optional[str] = None


class BlockSort(BaseModel):
    field: SortField = "position"
    direction: Literal["asc", "desc"] = "asc"


class BlockProcessingJob(BaseModel):
    """
    One unit of batch work on one block.

    Moves pending -> processing -> completed | failed. Terminal states are
    final; nothing retries a failed job.
    """

    id: str
    block_id: str
    type: JobType
    status: JobStatus = "pending"
    result: Optional[Any] = None
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class BlockEvent(BaseModel):
    """A lifecycle notification emitted through the event bus."""

    type: str
    block_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)
    data: Dict[str, Any] = Field(default_factory=dict)


class BlockStatistics(BaseModel):
    """Aggregate figures for the blocks of one document."""

    total_blocks: int = 0
    blocks_by_type: Dict[str, int] = Field(default_factory=dict)
    average_block_length: int = 0
    reorderable_blocks: int = 0
    extracted_blocks: int = 0
    blocks_with_ai: int = 0
    last_activity: Optional[datetime] = None

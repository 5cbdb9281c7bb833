"""
Sidecar metadata models for Smart Blocks.

Sidecar data is derived, non-authoritative information about blocks. It is
keyed by block id and persisted separately from the document body, using the
camelCase keys of the sidecar file format.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


SIDECAR_VERSION = "1.0.0"


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class BlockMetadata(BaseModel):
    """
    Derived metadata for one block.

    Unknown keys are kept as free-form fields.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    ai_summary: Optional[str] = Field(
        default=None,
        alias="aiSummary",
        description="AI generated summary of the block"
    )

    extracted_to: Optional[str] = Field(
        default=None,
        alias="extractedTo",
        description="Id of the document the block was extracted to"
    )

    last_processed: Optional[datetime] = Field(
        default=None,
        alias="lastProcessed",
        description="When this entry was last written"
    )

    created_at: Optional[datetime] = Field(
        default=None,
        alias="createdAt",
        description="When this entry was first written"
    )

    content_hash: Optional[str] = Field(default=None, alias="contentHash")
    tokens: Optional[int] = None
    embedding: Optional[List[float]] = Field(default=None, alias="embeddingVector")
    backlink_id: Optional[str] = Field(default=None, alias="backlinkId")


class SidecarMetadata(BaseModel):
    """
    Per-document map from block id to derived metadata.
    """

    model_config = ConfigDict(populate_by_name=True)

    blocks: Dict[str, BlockMetadata] = Field(
        default_factory=dict,
        description="Block id to metadata"
    )

    last_updated: datetime = Field(
        default_factory=utc_now,
        alias="lastUpdated",
        description="Timestamp of the last write, refreshed on every save"
    )

    version: str = Field(
        default=SIDECAR_VERSION,
        description="Schema version of the sidecar file"
    )

    document_hash: Optional[str] = Field(default=None, alias="documentHash")

    def to_json_dict(self) -> Dict[str, Any]:
        """Serialize to the persisted JSON shape."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)

    @classmethod
    def from_json_dict(cls, payload: Dict[str, Any]) -> "SidecarMetadata":
        return cls.model_validate(payload)

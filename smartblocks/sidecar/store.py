"""
Sidecar metadata store.

Loads and saves per-document SidecarMetadata through a backend, and offers
the in-memory helpers used to update it between a load and a save.
"""

import logging
from typing import Any, List, Optional

from pydantic import ValidationError

from ..errors import SidecarError
from ..models import Block, BlockMetadata, SidecarMetadata, utc_now
from .backends import SidecarBackend


class SidecarStore:
    """
    Reads and writes sidecar metadata for documents.

    Loading never fails: a missing, unreadable or malformed sidecar yields an
    empty default, since sidecar data can always be derived again. Saving
    does fail loudly with SidecarError.
    """

    def __init__(self, backend: SidecarBackend):
        self.backend = backend

    async def load(self, document_id: str) -> SidecarMetadata:
        """
        Load a document's sidecar.

        Args:
            document_id: The document whose sidecar to load

        Returns:
            The stored metadata, or a fresh default
        """
        try:
            payload = await self.backend.read(document_id)
        except Exception as e:
            logging.error(f"Failed to load sidecar metadata for {document_id}: {e}")
            return SidecarMetadata()

        if payload is None:
            return SidecarMetadata()

        try:
            return SidecarMetadata.from_json_dict(payload)
        except ValidationError as e:
            logging.error(f"Malformed sidecar metadata for {document_id}: {e}")
            return SidecarMetadata()

    async def save(self, document_id: str, metadata: SidecarMetadata) -> None:
        """
        Save a document's sidecar, refreshing its last_updated timestamp.

        Raises:
            SidecarError: If the backend fails to write
        """
        metadata.last_updated = utc_now()
        try:
            await self.backend.write(document_id, metadata.to_json_dict())
        except Exception as e:
            logging.error(f"Failed to save sidecar metadata for {document_id}: {e}")
            raise SidecarError(document_id, str(e)) from e


def update_block_metadata(metadata: SidecarMetadata, block_id: str, **fields: Any) -> BlockMetadata:
    """
    Merge fields into a block's sidecar entry, creating it when absent.

    Stamps last_processed on every update and created_at on creation.

    Args:
        metadata: The document's sidecar, modified in place
        block_id: The block whose entry to update
        **fields: BlockMetadata fields (snake_case) or free-form extras

    Returns:
        The updated entry
    """
    now = utc_now()
    existing = metadata.blocks.get(block_id)

    if existing is None:
        merged = {"created_at": now}
    else:
        merged = existing.model_dump(exclude_none=True)

    merged.update(fields)
    merged["last_processed"] = now

    entry = BlockMetadata.model_validate(merged)
    metadata.blocks[block_id] = entry
    return entry


def get_block_metadata(metadata: SidecarMetadata, block_id: str) -> Optional[BlockMetadata]:
    return metadata.blocks.get(block_id)


def remove_block_metadata(metadata: SidecarMetadata, block_id: str) -> bool:
    """
    Drop a block's entry.

    Returns:
        True if an entry was removed
    """
    return metadata.blocks.pop(block_id, None) is not None


def find_orphaned_entries(metadata: SidecarMetadata, blocks: List[Block]) -> List[str]:
    """
    List sidecar entries whose block no longer exists in the document.

    Entries are only reported, never removed.
    """
    live_ids = {block.id for block in blocks}
    return [block_id for block_id in metadata.blocks if block_id not in live_ids]

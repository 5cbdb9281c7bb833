"""Sidecar metadata persistence."""

from .backends import SidecarBackend, JsonFileBackend, DuckDBSidecarBackend, SIDECAR_SUFFIX
from .store import (
    SidecarStore,
    update_block_metadata,
    get_block_metadata,
    remove_block_metadata,
    find_orphaned_entries,
)

__all__ = [
    "SidecarBackend",
    "JsonFileBackend",
    "DuckDBSidecarBackend",
    "SIDECAR_SUFFIX",
    "SidecarStore",
    "update_block_metadata",
    "get_block_metadata",
    "remove_block_metadata",
    "find_orphaned_entries",
]

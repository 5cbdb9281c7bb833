"""DuckDB-backed persistence for sidecar metadata and processing state."""

from .manager import DatabaseManager

__all__ = ["DatabaseManager"]

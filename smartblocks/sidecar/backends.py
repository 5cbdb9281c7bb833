"""
Storage backends for sidecar metadata.

A backend moves the JSON shape of a document's sidecar in and out of storage.
It knows nothing about blocks; SidecarStore handles the model conversion.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from ..database import DatabaseManager


SIDECAR_SUFFIX = ".metadata.json"


class SidecarBackend(ABC):
    """
    Abstract base class for sidecar storage.
    """

    @abstractmethod
    async def read(self, document_id: str) -> Optional[Dict[str, Any]]:
        """
        Read a document's sidecar payload.

        Returns:
            The stored payload, or None if the document has no sidecar yet
        """
        pass

    @abstractmethod
    async def write(self, document_id: str, payload: Dict[str, Any]) -> None:
        """
        Replace a document's sidecar payload.
        """
        pass


class JsonFileBackend(SidecarBackend):
    """
    Stores each document's sidecar as `<document_id>.metadata.json` in one
    directory.
    """

    def __init__(self, root: str):
        self.root = Path(root)

    def path_for(self, document_id: str) -> Path:
        return self.root / f"{document_id}{SIDECAR_SUFFIX}"

    def _read_file(self, path: Path) -> Optional[Dict[str, Any]]:
        if not path.exists():
            return None
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def _write_file(self, path: Path, payload: Dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)

    async def read(self, document_id: str) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self._read_file, self.path_for(document_id))

    async def write(self, document_id: str, payload: Dict[str, Any]) -> None:
        path = self.path_for(document_id)
        await asyncio.to_thread(self._write_file, path, payload)
        logging.debug(f"Wrote sidecar for {document_id} to {path}")


class DuckDBSidecarBackend(SidecarBackend):
    """
    Stores sidecars in the DuckDB database managed by DatabaseManager.

    The manager must already be connected and initialized.
    """

    def __init__(self, database: DatabaseManager):
        self.database = database

    async def read(self, document_id: str) -> Optional[Dict[str, Any]]:
        return self.database.read_sidecar(document_id)

    async def write(self, document_id: str, payload: Dict[str, Any]) -> None:
        self.database.write_sidecar(document_id, payload)

"""
Markdown importer for Smart Blocks.

Reads .md files from a directory tree (or a single file) and parses the smart
blocks they contain.
"""

import logging
from pathlib import Path
from typing import List

from ..database import DatabaseManager
from ..engine import BlockEngine
from ..models import Block
from .base import BaseImporter
from .models import MarkdownDocument


MARKDOWN_SUFFIX = ".md"


class MarkdownImporter(BaseImporter):
    """
    Importer for plain markdown files with block markers.
    """

    def __init__(self, root: str, engine: BlockEngine):
        """
        Initialize the importer.

        Args:
            root: A directory searched recursively, or a single markdown file
            engine: Engine used to parse the documents
        """
        self.root = Path(root)
        self.engine = engine

        if not self.root.exists():
            raise FileNotFoundError(f"Markdown source not found: {self.root}")

    def _find_files(self) -> List[Path]:
        if self.root.is_file():
            return [self.root]
        return sorted(path for path in self.root.rglob(f"*{MARKDOWN_SUFFIX}") if path.is_file())

    def document_id_for(self, path: Path) -> str:
        """Document id of a file: its path below the root, without suffix."""
        if self.root.is_file():
            return path.stem
        return path.relative_to(self.root).with_suffix("").as_posix()

    def load_document(self, path: Path) -> MarkdownDocument:
        """Read and parse one markdown file."""
        with open(path, 'r', encoding='utf-8') as f:
            text = f.read()

        result = self.engine.parse_document(text)
        return MarkdownDocument(
            document_id=self.document_id_for(path),
            path=path,
            text=text,
            blocks=result.blocks,
            warnings=result.warnings
        )

    def get_all_documents(self) -> List[MarkdownDocument]:
        documents = []
        for path in self._find_files():
            try:
                documents.append(self.load_document(path))
            except (OSError, UnicodeDecodeError) as e:
                logging.error(f"Failed to read {path}: {e}")

        total_blocks = sum(len(document.blocks) for document in documents)
        logging.info(f"Imported {len(documents)} documents with {total_blocks} blocks from {self.root}")
        return documents

    def get_all_blocks(self) -> List[Block]:
        """All blocks of all documents, in file and document order."""
        return [block for document in self.get_all_documents() for block in document.blocks]

    def get_changed_blocks(self, database: DatabaseManager) -> List[MarkdownDocument]:
        changed = []
        for document in self.get_all_documents():
            blocks = [
                block for block in document.blocks
                if database.block_needs_processing(document.document_id, block)
            ]
            if blocks:
                changed.append(document.model_copy(update={"blocks": blocks}))

        logging.info(f"Found {sum(len(d.blocks) for d in changed)} new or changed blocks")
        return changed

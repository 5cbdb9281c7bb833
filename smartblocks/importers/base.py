"""
Base importer interface for Smart Blocks.

This module defines the abstract interface that all document importers must implement.
"""

from abc import ABC, abstractmethod
from typing import List

from ..database import DatabaseManager
from .models import MarkdownDocument


class BaseImporter(ABC):
    """
    Abstract base class for all document importers.

    Each importer reads documents from a source and parses their smart blocks
    with a BlockEngine.
    """

    @abstractmethod
    def get_all_documents(self) -> List[MarkdownDocument]:
        """
        Retrieve all documents from the source.

        Returns:
            List of documents with their parsed blocks
        """
        pass

    @abstractmethod
    def get_changed_blocks(self, database: DatabaseManager) -> List[MarkdownDocument]:
        """
        Retrieve only blocks that have changed since they were last processed.

        Args:
            database: Connected DatabaseManager holding processed-block hashes

        Returns:
            Documents holding only their new or modified blocks
        """
        pass

"""Exception types raised by Smart Blocks operations."""

from typing import List, Optional


class SmartBlockError(Exception):
    """Base class for all Smart Blocks errors."""


class BlockValidationError(SmartBlockError):
    """A block failed validation where a valid block is required."""

    def __init__(self, block_id: Optional[str], errors: List[str]):
        self.block_id = block_id
        self.errors = list(errors)
        label = block_id or "<no id>"
        super().__init__(f"Invalid block {label}: {', '.join(self.errors)}")


class ExtractionError(SmartBlockError):
    """Extracting a block into a new document failed."""

    def __init__(self, block_id: str, message: str):
        self.block_id = block_id
        super().__init__(f"Failed to extract block {block_id}: {message}")


class ReorderError(SmartBlockError):
    """A reorder suggestion could not be produced or mapped back."""

    def __init__(self, block_ids: List[str], message: str):
        self.block_ids = list(block_ids)
        super().__init__(f"Failed to reorder blocks [{', '.join(self.block_ids)}]: {message}")


class SidecarError(SmartBlockError):
    """Persisting sidecar metadata failed."""

    def __init__(self, document_id: str, message: str):
        self.document_id = document_id
        super().__init__(f"Sidecar metadata for {document_id}: {message}")


class SummarizationDisabledError(SmartBlockError):
    """Summarization was requested while disabled in configuration."""


class AgentError(SmartBlockError):
    """An AI agent call failed (connection, HTTP status or malformed response)."""

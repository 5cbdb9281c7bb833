"""
Block engine for Smart Blocks.

BlockEngine is the programmatic surface of the library. It holds the engine
settings, an event bus and the AI capabilities, and exposes every block
operation on top of the parser, validator, regenerator, analysis, extraction,
sidecar and batch processing modules. Engines are plain objects; create as
many as needed.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from .agents.capabilities import AICapabilities
from .analysis import (
    compute_statistics,
    filter_blocks as _filter_blocks,
    find_similar as _find_similar,
    get_filtered_blocks as _get_filtered_blocks,
    sort_blocks as _sort_blocks,
    suggest_reorder as _suggest_reorder,
)
from .blocks import BlockParser, MarkdownRegenerator, validate_block
from .config import ConfigManager
from .database import DatabaseManager
from .errors import BlockValidationError, ExtractionError, SummarizationDisabledError
from .events import (
    BLOCK_CREATED,
    BLOCK_DELETED,
    BLOCK_EXTRACTED,
    BLOCK_REORDERED,
    BLOCK_SUMMARIZED,
    BLOCK_UPDATED,
    BLOCKS_PROCESSED,
    EventBus,
    EventHandler,
)
from .extraction import extract_block as _extract_block
from .ids import generate_id
from .models import (
    Block,
    BlockEvent,
    BlockFilter,
    BlockInsertionOptions,
    BlockProcessingJob,
    BlockSort,
    BlockStatistics,
    ExtractedDocument,
    ExtractionOptions,
    MatchResult,
    ParseResult,
    ReorderOptions,
    SidecarMetadata,
    SummarizationOptions,
    ValidationResult,
)
from .processing import BatchProcessor
from .settings import EngineSettings
from .sidecar import update_block_metadata


# Block fields that update_block may change
UPDATABLE_FIELDS = ("type", "title", "tags", "reorderable", "content", "attributes", "line_range")


class BlockEngine:
    """
    Entry point for parsing, editing and analysing smart blocks.
    """

    def __init__(self, settings: Optional[EngineSettings] = None,
                 events: Optional[EventBus] = None,
                 capabilities: Optional[AICapabilities] = None):
        """
        Initialize the engine.

        Args:
            settings: Engine settings (defaults when omitted)
            events: Event bus to emit lifecycle events on
            capabilities: AI functions (local deterministic defaults when omitted)
        """
        self.settings = settings or EngineSettings()
        self.events = events or EventBus()
        self.capabilities = capabilities or AICapabilities()
        self.parser = BlockParser(self.settings)
        self.regenerator = MarkdownRegenerator(self.settings)

    @classmethod
    def from_config(cls, config: ConfigManager, **kwargs) -> "BlockEngine":
        """Create an engine whose settings come from configuration."""
        return cls(EngineSettings.from_config(config), **kwargs)

    def subscribe(self, event_type: str, handler: EventHandler) -> Callable[[], None]:
        """Subscribe to lifecycle events; returns an unsubscribe function."""
        return self.events.subscribe(event_type, handler)

    def _emit(self, event_type: str, block_id: Optional[str] = None, **data: Any) -> None:
        self.events.emit(BlockEvent(type=event_type, block_id=block_id, data=data))

    # Parsing and regeneration

    def parse_document(self, text: str) -> ParseResult:
        return self.parser.parse(text)

    def parse_blocks(self, text: str) -> List[Block]:
        return self.parser.parse_blocks(text)

    def generate_markdown(self, blocks: List[Block], text: str) -> str:
        return self.regenerator.generate(blocks, text)

    # Block lifecycle

    def validate_block(self, block: Block) -> ValidationResult:
        return validate_block(block, self.settings)

    def create_block(self, content: str, options: Optional[BlockInsertionOptions] = None) -> Block:
        """
        Create a new block from content.

        Args:
            content: Block content (surrounding whitespace is stripped)
            options: Id, type, title, tags and reorderable flag; a missing id
                is generated, other missing fields use the defaults

        Returns:
            The new, valid block (without a line range)

        Raises:
            BlockValidationError: If the resulting block is invalid
        """
        options = options or BlockInsertionOptions()
        content = content.strip()

        reorderable = options.reorderable
        if reorderable is None:
            reorderable = self.settings.default_reorderable

        block = Block(
            id=options.id or generate_id("block"),
            type=options.type or self.settings.default_type,
            title=options.title,
            tags=list(options.tags),
            reorderable=reorderable,
            content=content,
            content_hash=self.settings.hash_fn(content)
        )

        verdict = self.validate_block(block)
        if not verdict.is_valid:
            raise BlockValidationError(block.id, verdict.errors)

        self._emit(BLOCK_CREATED, block.id, block=block.model_dump())
        return block

    def update_block(self, block_id: str, updates: Dict[str, Any], existing: Optional[Block] = None) -> Block:
        """
        Apply field updates to a block.

        Args:
            block_id: Id of the block to update
            updates: New values for any of UPDATABLE_FIELDS
            existing: Current state of the block; without it the block is
                built from the updates alone

        Returns:
            The updated block (a new object, existing is not modified)

        Raises:
            BlockValidationError: If the updated block is invalid
            ValueError: If updates name a field that cannot be changed
        """
        unknown = [field for field in updates if field not in UPDATABLE_FIELDS]
        if unknown:
            raise ValueError(f"Cannot update block fields: {', '.join(unknown)}")

        base = existing.model_dump() if existing is not None else {}
        old_content = base.get("content", "")

        merged = {**base, **updates, "id": block_id}
        if "content" in updates:
            merged["content"] = updates["content"].strip()
        merged["content_hash"] = self.settings.hash_fn(merged.get("content", ""))

        block = Block.model_validate(merged)

        verdict = self.validate_block(block)
        if not verdict.is_valid:
            raise BlockValidationError(block_id, verdict.errors)

        self._emit(
            BLOCK_UPDATED,
            block_id,
            old_content=old_content,
            new_content=block.content,
            changes=sorted(updates.keys())
        )
        return block

    def delete_block(self, blocks: List[Block], block_id: str) -> bool:
        """
        Remove every block with the given id from a list, in place.

        Returns:
            True if anything was removed
        """
        remaining = [block for block in blocks if block.id != block_id]
        removed = len(blocks) - len(remaining)
        blocks[:] = remaining

        if removed:
            self._emit(BLOCK_DELETED, block_id)
        else:
            logging.warning(f"Block {block_id} not found, nothing deleted")
        return removed > 0

    # Extraction

    def extract_block(
        self,
        block: Block,
        options: Optional[ExtractionOptions] = None,
        sidecar: Optional[SidecarMetadata] = None,
        source_document_id: Optional[str] = None,
        source_document_title: Optional[str] = None
    ) -> ExtractedDocument:
        """
        Extract a block into a standalone document.

        When a sidecar is given, the block's entry records the new document id.

        Raises:
            ExtractionError: If the block has no content to extract
        """
        if not block.content.strip():
            raise ExtractionError(block.id, "block has no content")

        document = _extract_block(block, options, source_document_id, source_document_title)

        if sidecar is not None:
            update_block_metadata(sidecar, block.id, extracted_to=document.id)

        logging.info(f"Extracted block {block.id} to document {document.id}")
        self._emit(BLOCK_EXTRACTED, block.id, document_id=document.id)
        return document

    # Analysis

    async def suggest_reorder(self, blocks: Sequence[Block], options: Optional[ReorderOptions] = None) -> List[int]:
        """Suggest an order for the blocks; only reorderable blocks move."""
        order = await _suggest_reorder(blocks, self.capabilities.scorer, options)
        self._emit(BLOCK_REORDERED, order=order, block_ids=[blocks[i].id for i in order])
        return order

    def find_similar(self, block: Block, corpus: Sequence[Block], threshold: Optional[float] = None) -> List[MatchResult]:
        if threshold is None:
            threshold = self.settings.similarity_threshold
        return _find_similar(block, corpus, threshold)

    def filter_blocks(self, blocks: Sequence[Block], criteria: BlockFilter,
                      sidecar: Optional[SidecarMetadata] = None) -> List[Block]:
        return _filter_blocks(blocks, criteria, sidecar)

    def sort_blocks(self, blocks: Sequence[Block], order: BlockSort,
                    sidecar: Optional[SidecarMetadata] = None) -> List[Block]:
        return _sort_blocks(blocks, order, sidecar)

    def get_filtered_blocks(self, blocks: Sequence[Block], criteria: Optional[BlockFilter] = None,
                            order: Optional[BlockSort] = None,
                            sidecar: Optional[SidecarMetadata] = None) -> List[Block]:
        return _get_filtered_blocks(blocks, criteria, order, sidecar)

    def statistics(self, blocks: Sequence[Block], sidecar: Optional[SidecarMetadata] = None) -> BlockStatistics:
        return compute_statistics(blocks, sidecar)

    # AI operations

    async def summarize_block(
        self,
        block: Block,
        options: Optional[SummarizationOptions] = None,
        sidecar: Optional[SidecarMetadata] = None
    ) -> str:
        """
        Summarize a block with the configured summarizer.

        Args:
            block: The block to summarize
            options: Summary options (max length defaults to the configured one)
            sidecar: If given, the summary is stored as the block's ai_summary

        Returns:
            The summary

        Raises:
            SummarizationDisabledError: If summarization is turned off
        """
        if not self.settings.summarization_enabled:
            raise SummarizationDisabledError("Summarization is disabled in configuration")

        options = options or SummarizationOptions(max_length=self.settings.summary_max_length)
        summary = await self.capabilities.summarizer(block, options)

        if sidecar is not None:
            update_block_metadata(sidecar, block.id, ai_summary=summary, content_hash=block.content_hash)

        self._emit(BLOCK_SUMMARIZED, block.id, summary=summary)
        return summary

    async def process_blocks(
        self,
        blocks: Sequence[Block],
        operations: Sequence[str],
        sidecar: Optional[SidecarMetadata] = None,
        document_id: Optional[str] = None,
        database: Optional[DatabaseManager] = None,
        batch_size: Optional[int] = None
    ) -> List[BlockProcessingJob]:
        """
        Run batch jobs over blocks.

        Args:
            blocks: Blocks to process
            operations: Operations to run on each block
            sidecar: Receives successful summaries and embeddings
            document_id: Document the blocks belong to
            database: Connected DatabaseManager for the job log (optional)
            batch_size: Overrides the configured batch size

        Returns:
            The finished jobs
        """
        if "summarize" in operations and not self.settings.summarization_enabled:
            raise SummarizationDisabledError("Summarization is disabled in configuration")

        processor = BatchProcessor(
            self.capabilities,
            batch_size=batch_size or self.settings.batch_size,
            summarization_options=SummarizationOptions(max_length=self.settings.summary_max_length),
            database=database
        )
        jobs = await processor.run(blocks, operations, sidecar, document_id)

        self._emit(
            BLOCKS_PROCESSED,
            document_id=document_id,
            completed=sum(1 for job in jobs if job.status == "completed"),
            failed=sum(1 for job in jobs if job.status == "failed")
        )
        return jobs

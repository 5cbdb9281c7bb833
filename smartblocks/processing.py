"""
Batch processing of blocks.

One job is created per block per operation. Jobs are dispatched in groups of
batch_size: the jobs of a group run concurrently, the groups one after the
other. A failing job is marked failed and does not affect the others.
"""

import asyncio
import logging
from typing import Any, List, Optional, Sequence, Tuple

from .agents.capabilities import AICapabilities
from .database import DatabaseManager
from .ids import generate_id
from .models import (
    Block,
    BlockProcessingJob,
    ReorderOptions,
    SidecarMetadata,
    SummarizationOptions,
    utc_now,
)
from .sidecar import update_block_metadata


OPERATIONS = ("summarize", "embed", "reorder", "extract")
DEFAULT_BATCH_SIZE = 5


class BatchProcessor:
    """
    Runs AI capabilities over many blocks.
    """

    def __init__(self, capabilities: Optional[AICapabilities] = None,
                 batch_size: int = DEFAULT_BATCH_SIZE,
                 summarization_options: Optional[SummarizationOptions] = None,
                 database: Optional[DatabaseManager] = None):
        """
        Initialize the batch processor.

        Args:
            capabilities: AI functions used by the jobs
            batch_size: Number of jobs awaited together
            summarization_options: Options for summarize jobs
            database: Connected DatabaseManager for the job log and
                processed-block tracking (optional)
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        self.capabilities = capabilities or AICapabilities()
        self.batch_size = batch_size
        self.summarization_options = summarization_options or SummarizationOptions()
        self.database = database

    def create_jobs(self, blocks: Sequence[Block], operations: Sequence[str]) -> List[BlockProcessingJob]:
        """Create pending jobs, block by block, in operation order."""
        return [job for job, _ in self._plan(blocks, operations)]

    def _plan(self, blocks: Sequence[Block], operations: Sequence[str]) -> List[Tuple[BlockProcessingJob, Block]]:
        """Create pending jobs, each paired with the block it runs on."""
        unknown = [operation for operation in operations if operation not in OPERATIONS]
        if unknown:
            raise ValueError(f"Unknown operations: {', '.join(unknown)}")

        return [
            (BlockProcessingJob(id=generate_id("job"), block_id=block.id, type=operation), block)
            for block in blocks
            for operation in operations
        ]

    async def _execute(self, job: BlockProcessingJob, block: Block) -> Any:
        if job.type == "summarize":
            return await self.capabilities.summarizer(block, self.summarization_options)
        if job.type == "embed":
            return await self.capabilities.embedder(block)
        if job.type == "extract":
            return await self.capabilities.extraction_suggester(block)
        # reorder of a single block only asks the scorer for its position
        return await self.capabilities.scorer([block], ReorderOptions())

    async def _run_job(self, job: BlockProcessingJob, block: Block) -> BlockProcessingJob:
        job.status = "processing"
        job.updated_at = utc_now()

        try:
            job.result = await self._execute(job, block)
            job.status = "completed"
        except Exception as e:
            logging.error(f"Job {job.id} ({job.type}) failed for block {block.id}: {e}")
            job.error = str(e)
            job.status = "failed"

        job.updated_at = utc_now()
        return job

    async def run(
        self,
        blocks: Sequence[Block],
        operations: Sequence[str],
        sidecar: Optional[SidecarMetadata] = None,
        document_id: Optional[str] = None
    ) -> List[BlockProcessingJob]:
        """
        Process blocks with the given operations.

        Args:
            blocks: Blocks to process
            operations: Any of "summarize", "embed", "reorder", "extract"
            sidecar: If given, successful summaries and embeddings are stored in it
            document_id: Document the blocks belong to, used for database records

        Returns:
            All jobs in their terminal state, in creation order
        """
        # Blocks may share an id, so each job keeps a reference to its own block
        planned = self._plan(blocks, operations)
        jobs = [job for job, _ in planned]

        logging.info(f"Processing {len(blocks)} blocks: {len(jobs)} jobs in batches of {self.batch_size}")

        for start in range(0, len(jobs), self.batch_size):
            group = planned[start:start + self.batch_size]
            await asyncio.gather(*(self._run_job(job, block) for job, block in group))

        if sidecar is not None:
            self._merge_into_sidecar(planned, sidecar)

        if self.database is not None and document_id:
            self._record(planned, document_id)

        failed = sum(1 for job in jobs if job.status == "failed")
        logging.info(f"Batch processing finished: {len(jobs) - failed} completed, {failed} failed")
        return jobs

    def _merge_into_sidecar(self, planned: List[Tuple[BlockProcessingJob, Block]], sidecar: SidecarMetadata) -> None:
        for job, block in planned:
            if job.status != "completed":
                continue
            if job.type == "summarize":
                update_block_metadata(sidecar, block.id, ai_summary=job.result, content_hash=block.content_hash)
            elif job.type == "embed":
                update_block_metadata(sidecar, block.id, embedding=job.result, content_hash=block.content_hash)

    def _record(self, planned: List[Tuple[BlockProcessingJob, Block]], document_id: str) -> None:
        for job, _ in planned:
            self.database.log_job(document_id, job)

        blocks = {id(block): block for _, block in planned}
        failed = {id(block) for job, block in planned if job.status == "failed"}
        for key, block in blocks.items():
            if key not in failed:
                self.database.record_processed_block(document_id, block)

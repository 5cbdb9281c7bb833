"""
Tests for the BlockEngine surface and batch processing.
"""

import asyncio
import unittest

from smartblocks.agents import AICapabilities, hashed_embedding, truncate_summary
from smartblocks.database import DatabaseManager
from smartblocks.engine import BlockEngine
from smartblocks.errors import BlockValidationError, ExtractionError, SummarizationDisabledError
from smartblocks.events import (
    ALL_EVENTS,
    BLOCK_CREATED,
    BLOCK_DELETED,
    BLOCK_EXTRACTED,
    BLOCK_REORDERED,
    BLOCK_SUMMARIZED,
    BLOCK_UPDATED,
    BLOCKS_PROCESSED,
)
from smartblocks.hashing import content_hash
from smartblocks.models import (
    Block,
    BlockInsertionOptions,
    ExtractionOptions,
    SidecarMetadata,
    SummarizationOptions,
)
from smartblocks.processing import BatchProcessor
from smartblocks.settings import EngineSettings


DOCUMENT = """# Essay

<!-- block:id=intro type=note reorderable=true -->
An introduction to the topic at hand.
<!-- /block -->

<!-- block:id=thesis type=argument tags=philosophy title=Thesis -->
X causes Y
<!-- /block -->

<!-- block:id=ending type=summary reorderable=true -->
Which is why the topic matters.
<!-- /block -->"""


class TestBlockEngine(unittest.IsolatedAsyncioTestCase):
    """Test block lifecycle operations and their events."""

    def setUp(self):
        self.engine = BlockEngine()
        self.events = []
        self.engine.subscribe(ALL_EVENTS, self.events.append)

    def event_types(self):
        return [event.type for event in self.events]

    def test_parse_and_regenerate(self):
        blocks = self.engine.parse_blocks(DOCUMENT)

        self.assertEqual([b.id for b in blocks], ["intro", "thesis", "ending"])
        self.assertEqual(self.engine.generate_markdown(blocks, DOCUMENT), DOCUMENT)

    def test_create_block(self):
        """Test creating a block with a generated id."""
        block = self.engine.create_block("  A fresh idea worth keeping  ", BlockInsertionOptions(type="insight"))

        self.assertTrue(block.id.startswith("block_"))
        self.assertEqual(block.content, "A fresh idea worth keeping")
        self.assertEqual(block.type, "insight")
        self.assertEqual(block.content_hash, content_hash("A fresh idea worth keeping"))
        self.assertIsNone(block.line_range)
        self.assertTrue(self.engine.validate_block(block).is_valid)
        self.assertEqual(self.event_types(), [BLOCK_CREATED])
        self.assertEqual(self.events[0].block_id, block.id)

    def test_create_invalid_block_raises(self):
        with self.assertRaises(BlockValidationError) as context:
            self.engine.create_block("tiny", BlockInsertionOptions(id="b1"))

        self.assertEqual(context.exception.block_id, "b1")
        self.assertIn("b1", str(context.exception))
        self.assertEqual(self.events, [])

    def test_created_block_is_appended_on_regeneration(self):
        blocks = self.engine.parse_blocks(DOCUMENT)
        blocks.append(self.engine.create_block("A closing remark here", BlockInsertionOptions(id="extra")))

        regenerated = self.engine.generate_markdown(blocks, DOCUMENT)

        self.assertEqual([b.id for b in self.engine.parse_blocks(regenerated)],
                         ["intro", "thesis", "ending", "extra"])

    def test_update_block(self):
        """Test that an update rehashes and reports old and new content."""
        existing = self.engine.parse_blocks(DOCUMENT)[1]

        updated = self.engine.update_block("thesis", {"content": "X strongly causes Y", "tags": []}, existing)

        self.assertEqual(updated.content, "X strongly causes Y")
        self.assertEqual(updated.content_hash, content_hash("X strongly causes Y"))
        self.assertEqual(updated.title, "Thesis")
        self.assertEqual(updated.line_range, existing.line_range)
        self.assertEqual(existing.content, "X causes Y")

        event = self.events[-1]
        self.assertEqual(event.type, BLOCK_UPDATED)
        self.assertEqual(event.data["old_content"], "X causes Y")
        self.assertEqual(event.data["new_content"], "X strongly causes Y")
        self.assertEqual(event.data["changes"], ["content", "tags"])

    def test_updated_content_survives_regeneration(self):
        blocks = self.engine.parse_blocks(DOCUMENT)
        blocks[1] = self.engine.update_block("thesis", {"content": "Goodbye cruel world"}, blocks[1])

        regenerated = self.engine.generate_markdown(blocks, DOCUMENT)
        reparsed = self.engine.parse_blocks(regenerated)

        self.assertEqual([b.content for b in reparsed],
                         ["An introduction to the topic at hand.", "Goodbye cruel world",
                          "Which is why the topic matters."])

    def test_update_rejects_invalid_result(self):
        existing = self.engine.parse_blocks(DOCUMENT)[1]
        with self.assertRaises(BlockValidationError):
            self.engine.update_block("thesis", {"type": "bogus"}, existing)

    def test_update_rejects_unknown_fields(self):
        with self.assertRaises(ValueError):
            self.engine.update_block("thesis", {"id": "other"})

    def test_delete_block(self):
        blocks = self.engine.parse_blocks(DOCUMENT)

        self.assertTrue(self.engine.delete_block(blocks, "thesis"))
        self.assertFalse(self.engine.delete_block(blocks, "thesis"))

        self.assertEqual([b.id for b in blocks], ["intro", "ending"])
        self.assertEqual(self.event_types(), [BLOCK_DELETED])

    def test_extract_block_records_sidecar(self):
        thesis = self.engine.parse_blocks(DOCUMENT)[1]
        sidecar = SidecarMetadata()

        document = self.engine.extract_block(thesis, ExtractionOptions(inherit_tags=True), sidecar, "essay")

        self.assertEqual(document.title, "Thesis")
        self.assertEqual(document.tags, ["philosophy"])
        self.assertEqual(sidecar.blocks["thesis"].extracted_to, document.id)
        self.assertEqual(self.event_types(), [BLOCK_EXTRACTED])
        self.assertEqual(self.events[0].data["document_id"], document.id)

    def test_extract_empty_block_raises(self):
        with self.assertRaises(ExtractionError):
            self.engine.extract_block(Block(id="b1", content="   "))

    async def test_suggest_reorder_only_moves_reorderable(self):
        async def reverse(blocks, options):
            return list(reversed(range(len(blocks))))

        engine = BlockEngine(capabilities=AICapabilities(scorer=reverse))
        blocks = engine.parse_blocks(DOCUMENT)

        order = await engine.suggest_reorder(blocks)

        self.assertEqual(order, [2, 1, 0])

    async def test_suggest_reorder_emits_event(self):
        await self.engine.suggest_reorder(self.engine.parse_blocks(DOCUMENT))
        self.assertEqual(self.event_types(), [BLOCK_REORDERED])

    def test_find_similar_uses_configured_threshold(self):
        engine = BlockEngine(EngineSettings(similarity_threshold=0.9))
        a = Block(id="a", content="the quick brown fox")
        b = Block(id="b", content="the quick brown cat")

        self.assertEqual(engine.find_similar(a, [b]), [])
        self.assertEqual(len(engine.find_similar(a, [b], threshold=0.5)), 1)

    async def test_summarize_block(self):
        block = self.engine.parse_blocks(DOCUMENT)[0]
        sidecar = SidecarMetadata()

        summary = await self.engine.summarize_block(block, SummarizationOptions(max_length=10), sidecar)

        self.assertEqual(summary, "An introdu...")
        self.assertEqual(sidecar.blocks["intro"].ai_summary, summary)
        self.assertEqual(sidecar.blocks["intro"].content_hash, block.content_hash)
        self.assertEqual(self.event_types(), [BLOCK_SUMMARIZED])

    async def test_summarize_disabled(self):
        engine = BlockEngine(EngineSettings(summarization_enabled=False))
        block = engine.parse_blocks(DOCUMENT)[0]

        with self.assertRaises(SummarizationDisabledError):
            await engine.summarize_block(block)

    def test_statistics(self):
        stats = self.engine.statistics(self.engine.parse_blocks(DOCUMENT))
        self.assertEqual(stats.total_blocks, 3)
        self.assertEqual(stats.reorderable_blocks, 2)

    async def test_process_blocks(self):
        blocks = self.engine.parse_blocks(DOCUMENT)
        sidecar = SidecarMetadata()

        jobs = await self.engine.process_blocks(blocks, ["summarize", "embed"], sidecar)

        self.assertEqual(len(jobs), 6)
        self.assertTrue(all(job.status == "completed" for job in jobs))
        self.assertEqual(set(sidecar.blocks), {"intro", "thesis", "ending"})
        self.assertEqual(len(sidecar.blocks["thesis"].embedding), 64)
        self.assertEqual(self.events[-1].type, BLOCKS_PROCESSED)
        self.assertEqual(self.events[-1].data["completed"], 6)


class TestBatchProcessor(unittest.IsolatedAsyncioTestCase):
    """Test job creation, batching and failure isolation."""

    def setUp(self):
        self.blocks = [
            Block(id=f"b{i}", content=f"content of block number {i}", content_hash=content_hash(f"content of block number {i}"))
            for i in range(7)
        ]

    async def test_jobs_per_block_per_operation(self):
        processor = BatchProcessor()

        jobs = await processor.run(self.blocks[:2], ["summarize", "extract"])

        self.assertEqual([(job.block_id, job.type) for job in jobs], [
            ("b0", "summarize"), ("b0", "extract"), ("b1", "summarize"), ("b1", "extract")
        ])
        self.assertEqual(jobs[1].result["type"], "note")

    async def test_batches_run_sequentially(self):
        """Test that at most batch_size jobs are in flight at once."""
        in_flight = 0
        peak = 0

        async def slow_summary(block, options):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return "done"

        processor = BatchProcessor(AICapabilities(summarizer=slow_summary), batch_size=3)
        jobs = await processor.run(self.blocks, ["summarize"])

        self.assertEqual(len(jobs), 7)
        self.assertEqual(peak, 3)

    async def test_failed_job_does_not_affect_siblings(self):
        async def flaky_summary(block, options):
            if block.id == "b1":
                raise RuntimeError("model unavailable")
            return "fine"

        processor = BatchProcessor(AICapabilities(summarizer=flaky_summary))
        sidecar = SidecarMetadata()

        jobs = await processor.run(self.blocks[:3], ["summarize"], sidecar)

        self.assertEqual([job.status for job in jobs], ["completed", "failed", "completed"])
        self.assertEqual(jobs[1].error, "model unavailable")
        self.assertIsNone(jobs[1].result)
        self.assertEqual(set(sidecar.blocks), {"b0", "b2"})

    async def test_blocks_sharing_an_id_are_processed_separately(self):
        async def echo(block, options):
            return block.content

        blocks = [Block(id="d", content="first block text"), Block(id="d", content="second block text")]
        processor = BatchProcessor(AICapabilities(summarizer=echo))

        jobs = await processor.run(blocks, ["summarize"])

        self.assertEqual([job.result for job in jobs], ["first block text", "second block text"])
        self.assertEqual([job.block_id for job in jobs], ["d", "d"])

    async def test_reorder_job(self):
        jobs = await BatchProcessor().run(self.blocks[:1], ["reorder"])
        self.assertEqual(jobs[0].result, [0])

    def test_unknown_operation(self):
        with self.assertRaises(ValueError):
            BatchProcessor().create_jobs(self.blocks, ["translate"])

    def test_invalid_batch_size(self):
        with self.assertRaises(ValueError):
            BatchProcessor(batch_size=0)

    async def test_database_records(self):
        """Test that finished jobs and processed blocks are stored."""
        with DatabaseManager(":memory:") as db:
            db.initialize_database()
            processor = BatchProcessor(AICapabilities(summarizer=truncate_summary, embedder=hashed_embedding),
                                       database=db)

            await processor.run(self.blocks[:2], ["summarize", "embed"], document_id="notes")

            self.assertEqual(len(db.get_jobs(document_id="notes")), 4)
            self.assertEqual(len(db.get_jobs(status="completed")), 4)
            self.assertFalse(db.block_needs_processing("notes", self.blocks[0]))


if __name__ == '__main__':
    unittest.main(verbosity=2)

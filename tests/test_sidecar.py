"""
Unit tests for sidecar metadata, its storage backends and the event bus.
"""

import json
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

from smartblocks.database import DatabaseManager
from smartblocks.errors import SidecarError
from smartblocks.events import ALL_EVENTS, BLOCK_CREATED, BLOCK_DELETED, EventBus
from smartblocks.models import Block, BlockEvent, BlockMetadata, SidecarMetadata
from smartblocks.sidecar import (
    DuckDBSidecarBackend,
    JsonFileBackend,
    SidecarStore,
    find_orphaned_entries,
    get_block_metadata,
    remove_block_metadata,
    update_block_metadata,
)


class TestSidecarModels(unittest.TestCase):
    """Test the persisted JSON shape."""

    def test_camel_case_keys(self):
        metadata = SidecarMetadata()
        update_block_metadata(metadata, "b1", ai_summary="short", extracted_to="note_1", embedding=[0.5, 0.5])

        payload = metadata.to_json_dict()

        self.assertEqual(payload["version"], "1.0.0")
        self.assertIn("lastUpdated", payload)
        entry = payload["blocks"]["b1"]
        self.assertEqual(entry["aiSummary"], "short")
        self.assertEqual(entry["extractedTo"], "note_1")
        self.assertEqual(entry["embeddingVector"], [0.5, 0.5])
        self.assertIn("lastProcessed", entry)
        self.assertIn("createdAt", entry)

    def test_unknown_keys_are_kept(self):
        payload = {
            "version": "1.0.0",
            "lastUpdated": "2024-01-01T00:00:00Z",
            "blocks": {"b1": {"aiSummary": "s", "customScore": 3}}
        }

        metadata = SidecarMetadata.from_json_dict(payload)

        self.assertEqual(metadata.blocks["b1"].ai_summary, "s")
        self.assertEqual(metadata.to_json_dict()["blocks"]["b1"]["customScore"], 3)


class TestMetadataHelpers(unittest.TestCase):
    """Test in-memory sidecar updates."""

    def test_update_creates_then_merges(self):
        metadata = SidecarMetadata()

        created = update_block_metadata(metadata, "b1", ai_summary="first")
        self.assertIsNotNone(created.created_at)
        self.assertIsNotNone(created.last_processed)

        merged = update_block_metadata(metadata, "b1", extracted_to="note_1")
        self.assertEqual(merged.ai_summary, "first")
        self.assertEqual(merged.extracted_to, "note_1")
        self.assertEqual(merged.created_at, created.created_at)
        self.assertGreaterEqual(merged.last_processed, created.last_processed)

    def test_get_and_remove(self):
        metadata = SidecarMetadata()
        update_block_metadata(metadata, "b1", ai_summary="s")

        self.assertEqual(get_block_metadata(metadata, "b1").ai_summary, "s")
        self.assertIsNone(get_block_metadata(metadata, "missing"))
        self.assertTrue(remove_block_metadata(metadata, "b1"))
        self.assertFalse(remove_block_metadata(metadata, "b1"))

    def test_orphaned_entries_are_reported_not_removed(self):
        metadata = SidecarMetadata(blocks={"live": BlockMetadata(), "gone": BlockMetadata()})
        blocks = [Block(id="live", content="still here")]

        self.assertEqual(find_orphaned_entries(metadata, blocks), ["gone"])
        self.assertIn("gone", metadata.blocks)


class TestJsonFileSidecarStore(unittest.IsolatedAsyncioTestCase):
    """Test sidecar files next to documents."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.backend = JsonFileBackend(self.temp_dir)
        self.store = SidecarStore(self.backend)

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    async def test_load_missing_returns_default(self):
        metadata = await self.store.load("notes")
        self.assertEqual(metadata.blocks, {})
        self.assertEqual(metadata.version, "1.0.0")

    async def test_save_and_load(self):
        metadata = SidecarMetadata()
        update_block_metadata(metadata, "b1", ai_summary="summary text")

        await self.store.save("notes", metadata)
        loaded = await self.store.load("notes")

        path = Path(self.temp_dir) / "notes.metadata.json"
        self.assertTrue(path.exists())
        with open(path, 'r', encoding='utf-8') as f:
            self.assertEqual(json.load(f)["blocks"]["b1"]["aiSummary"], "summary text")
        self.assertEqual(loaded.blocks["b1"].ai_summary, "summary text")

    async def test_save_refreshes_last_updated(self):
        metadata = SidecarMetadata()
        before = metadata.last_updated

        await self.store.save("notes", metadata)

        self.assertGreaterEqual(metadata.last_updated, before)

    async def test_corrupt_file_degrades_to_default(self):
        with open(Path(self.temp_dir) / "notes.metadata.json", 'w', encoding='utf-8') as f:
            f.write("{not json")

        metadata = await self.store.load("notes")

        self.assertEqual(metadata.blocks, {})

    async def test_malformed_payload_degrades_to_default(self):
        with open(Path(self.temp_dir) / "notes.metadata.json", 'w', encoding='utf-8') as f:
            json.dump({"blocks": "not a mapping"}, f)

        metadata = await self.store.load("notes")

        self.assertEqual(metadata.blocks, {})

    async def test_save_failure_raises_sidecar_error(self):
        backend = MagicMock()
        backend.write = AsyncMock(side_effect=OSError("disk full"))
        store = SidecarStore(backend)

        with self.assertRaises(SidecarError) as context:
            await store.save("notes", SidecarMetadata())

        self.assertEqual(context.exception.document_id, "notes")
        self.assertIn("disk full", str(context.exception))


class TestDuckDBSidecarStore(unittest.IsolatedAsyncioTestCase):
    """Test sidecars stored in DuckDB."""

    def setUp(self):
        self.db = DatabaseManager(":memory:")
        self.db.connect()
        self.db.initialize_database()
        self.store = SidecarStore(DuckDBSidecarBackend(self.db))

    def tearDown(self):
        self.db.disconnect()

    async def test_save_and_load(self):
        metadata = SidecarMetadata(document_hash="abcd1234")
        update_block_metadata(metadata, "b1", ai_summary="summary text", tokens=12)
        update_block_metadata(metadata, "b2", extracted_to="note_1")

        await self.store.save("notes", metadata)
        loaded = await self.store.load("notes")

        self.assertEqual(set(loaded.blocks), {"b1", "b2"})
        self.assertEqual(loaded.blocks["b1"].tokens, 12)
        self.assertEqual(loaded.blocks["b2"].extracted_to, "note_1")
        self.assertEqual(loaded.document_hash, "abcd1234")
        self.assertEqual(loaded.last_updated, metadata.last_updated)

    async def test_save_replaces_previous_entries(self):
        metadata = SidecarMetadata()
        update_block_metadata(metadata, "b1", ai_summary="old")
        await self.store.save("notes", metadata)

        remove_block_metadata(metadata, "b1")
        update_block_metadata(metadata, "b2", ai_summary="new")
        await self.store.save("notes", metadata)

        loaded = await self.store.load("notes")
        self.assertEqual(list(loaded.blocks), ["b2"])

    async def test_disconnected_database_degrades_on_load(self):
        self.db.disconnect()

        metadata = await self.store.load("notes")

        self.assertEqual(metadata.blocks, {})


class TestEventBus(unittest.TestCase):
    """Test the lifecycle event bus."""

    def setUp(self):
        self.bus = EventBus()

    def test_multiple_handlers_per_type(self):
        """Test that a second subscription adds a handler instead of replacing one."""
        first, second = [], []
        self.bus.subscribe(BLOCK_CREATED, first.append)
        self.bus.subscribe(BLOCK_CREATED, second.append)

        self.bus.emit(BlockEvent(type=BLOCK_CREATED, block_id="b1"))

        self.assertEqual(len(first), 1)
        self.assertEqual(len(second), 1)
        self.assertEqual(self.bus.handler_count(BLOCK_CREATED), 2)

    def test_handlers_only_receive_their_type(self):
        received = []
        self.bus.subscribe(BLOCK_DELETED, received.append)

        self.bus.emit(BlockEvent(type=BLOCK_CREATED, block_id="b1"))

        self.assertEqual(received, [])

    def test_wildcard_receives_everything(self):
        received = []
        self.bus.subscribe(ALL_EVENTS, received.append)

        self.bus.emit(BlockEvent(type=BLOCK_CREATED, block_id="b1"))
        self.bus.emit(BlockEvent(type=BLOCK_DELETED, block_id="b1"))

        self.assertEqual([event.type for event in received], [BLOCK_CREATED, BLOCK_DELETED])

    def test_unsubscribe(self):
        received = []
        unsubscribe = self.bus.subscribe(BLOCK_CREATED, received.append)

        unsubscribe()
        unsubscribe()
        self.bus.emit(BlockEvent(type=BLOCK_CREATED))

        self.assertEqual(received, [])

    def test_failing_handler_does_not_stop_others(self):
        received = []

        def broken(event):
            raise RuntimeError("handler bug")

        self.bus.subscribe(BLOCK_CREATED, broken)
        self.bus.subscribe(BLOCK_CREATED, received.append)

        with self.assertLogs(level="ERROR"):
            self.bus.emit(BlockEvent(type=BLOCK_CREATED, block_id="b1"))

        self.assertEqual(len(received), 1)


if __name__ == '__main__':
    unittest.main(verbosity=2)

"""
Unit tests for core Smart Blocks components.

Tests non-AI components like configuration management, engine settings,
database operations and the agent registry.
"""

import os
import tempfile
import unittest
from pathlib import Path

from smartblocks.agents.registry import AgentRegistry, AgentConfig
from smartblocks.config import ConfigManager, DEFAULT_BLOCK_TYPES
from smartblocks.database import DatabaseManager
from smartblocks.hashing import content_hash
from smartblocks.ids import generate_id
from smartblocks.models import Block, BlockProcessingJob
from smartblocks.blocks.validator import BLOCK_ID_RE
from smartblocks.settings import EngineSettings


class TestConfigManager(unittest.TestCase):
    """Test configuration management functionality."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.config_path = Path(self.temp_dir) / "test_config.yaml"

    def tearDown(self):
        """Clean up test fixtures."""
        if self.config_path.exists():
            self.config_path.unlink()
        os.rmdir(self.temp_dir)

    def test_config_creation_with_defaults(self):
        """Test config manager falls back to defaults when file missing."""
        config = ConfigManager(str(self.config_path))

        self.assertEqual(config.ollama_host, "http://localhost:11434")
        self.assertEqual(config.model_name, "gemma3")
        self.assertEqual(config.block_types, DEFAULT_BLOCK_TYPES)
        self.assertEqual(config.default_block_type, "note")
        self.assertFalse(config.default_reorderable)
        self.assertEqual(config.min_block_length, 10)
        self.assertEqual(config.max_block_length, 10000)
        self.assertEqual(config.similarity_threshold, 0.3)
        self.assertEqual(config.batch_size, 5)
        self.assertTrue(config.summarization_enabled)
        self.assertIsNone(config.sidecar_directory)

    def test_config_loading_from_file(self):
        """Test loading configuration from YAML file merged over defaults."""
        test_config = """
ai:
  ollama_host: "http://test:11434"
  model: "test-model"

blocks:
  types: [note, recipe]
  min_length: 3

processing:
  batch_size: 2
"""
        with open(self.config_path, 'w') as f:
            f.write(test_config)

        config = ConfigManager(str(self.config_path))

        self.assertEqual(config.ollama_host, "http://test:11434")
        self.assertEqual(config.model_name, "test-model")
        self.assertEqual(config.block_types, ["note", "recipe"])
        self.assertEqual(config.min_block_length, 3)
        self.assertEqual(config.batch_size, 2)
        # Untouched keys of a partially overridden section keep their defaults
        self.assertEqual(config.get("ai.timeout"), 30.0)
        self.assertEqual(config.max_block_length, 10000)

    def test_invalid_yaml_falls_back_to_defaults(self):
        with open(self.config_path, 'w') as f:
            f.write("blocks: [unclosed")

        config = ConfigManager(str(self.config_path))

        self.assertEqual(config.batch_size, 5)

    def test_dot_notation_access(self):
        """Test accessing config values with dot notation."""
        config = ConfigManager(str(self.config_path))

        self.assertEqual(config.get("ai.model"), "gemma3")
        self.assertEqual(config.get("summarization.max_length"), 150)
        self.assertEqual(config.get("nonexistent.key", "default"), "default")
        self.assertEqual(config.get_section("similarity"), {"threshold": 0.3})
        self.assertEqual(config.get_section("sidecar"), {"directory": None})

    def test_config_reload(self):
        """Test configuration reloading."""
        with open(self.config_path, 'w') as f:
            f.write("ai:\n  model: 'model1'")

        config = ConfigManager(str(self.config_path))
        self.assertEqual(config.model_name, "model1")

        with open(self.config_path, 'w') as f:
            f.write("ai:\n  model: 'model2'")

        config.reload()
        self.assertEqual(config.model_name, "model2")

    def test_engine_settings_from_config(self):
        with open(self.config_path, 'w') as f:
            f.write("blocks:\n  default_reorderable: true\n  max_tags: 3\nsummarization:\n  enabled: false\n")

        settings = EngineSettings.from_config(ConfigManager(str(self.config_path)))

        self.assertTrue(settings.default_reorderable)
        self.assertEqual(settings.max_tags, 3)
        self.assertFalse(settings.summarization_enabled)
        self.assertEqual(settings.block_types, tuple(DEFAULT_BLOCK_TYPES))
        self.assertIs(settings.hash_fn, content_hash)

    def test_engine_settings_custom_hasher(self):
        settings = EngineSettings.from_config(ConfigManager(str(self.config_path)), hash_fn=str.upper)
        self.assertEqual(settings.hash_fn("abc"), "ABC")


class TestIdentifiers(unittest.TestCase):
    """Test generated identifiers."""

    def test_generated_ids_are_valid_block_ids(self):
        block_id = generate_id("block")

        self.assertTrue(block_id.startswith("block_"))
        self.assertRegex(block_id, BLOCK_ID_RE)

    def test_generated_ids_are_unique(self):
        ids = {generate_id("note") for _ in range(100)}
        self.assertEqual(len(ids), 100)


class TestAgentRegistry(unittest.TestCase):
    """Test agent registry functionality."""

    def setUp(self):
        """Set up test registry."""
        self.registry = AgentRegistry()

    def test_default_agents_registered(self):
        """Test that default agents are registered."""
        agents = self.registry.list_agents()

        self.assertIn("summarizer", agents)
        self.assertIn("reorder", agents)
        self.assertIn("extraction", agents)

    def test_agent_retrieval(self):
        """Test retrieving agent configurations."""
        reorder_config = self.registry.get_agent("reorder")

        self.assertIsNotNone(reorder_config)
        if reorder_config:  # Type guard for linter
            self.assertEqual(reorder_config.name, "reorder")
            self.assertIn("json", reorder_config.system_prompt.lower())
            self.assertTrue(reorder_config.expects_json)

        self.assertFalse(self.registry.get_agent("summarizer").expects_json)
        self.assertIsNone(self.registry.get_agent("missing"))

    def test_custom_agent_registration(self):
        """Test registering custom agents."""
        custom_config = AgentConfig(
            name="summarizer",
            description="Terse summarizer",
            system_prompt="Summarize in five words."
        )

        self.registry.register_agent(custom_config)

        retrieved = self.registry.get_agent("summarizer")
        self.assertEqual(retrieved.description, "Terse summarizer")
        self.assertEqual(len(self.registry.list_agents()), 3)


class TestDatabaseManager(unittest.TestCase):
    """Test database management functionality."""

    def setUp(self):
        """Set up test database."""
        self.temp_dir = tempfile.mkdtemp()
        self.db_path = Path(self.temp_dir) / "test.db"

    def tearDown(self):
        """Clean up test database."""
        if self.db_path.exists():
            self.db_path.unlink()
        wal_path = Path(f"{self.db_path}.wal")
        if wal_path.exists():
            wal_path.unlink()
        os.rmdir(self.temp_dir)

    def test_database_initialization(self):
        """Test database creation and table initialization."""
        with DatabaseManager(str(self.db_path)) as db:
            db.initialize_database()
            # Initializing twice is harmless
            db.initialize_database()

            self.assertTrue(self.db_path.exists())
            self.assertIsNotNone(db.connection)

        self.assertIsNone(db.connection)

    def test_requires_connection(self):
        db = DatabaseManager(str(self.db_path))
        with self.assertRaises(RuntimeError):
            db.initialize_database()

    def test_processed_block_operations(self):
        """Test processed block tracking."""
        with DatabaseManager(str(self.db_path)) as db:
            db.initialize_database()

            block = Block(id="b1", content="Test content", content_hash=content_hash("Test content"))

            self.assertTrue(db.block_needs_processing("notes", block))

            db.record_processed_block("notes", block)
            self.assertFalse(db.block_needs_processing("notes", block))

            # Same id in another document is tracked separately
            self.assertTrue(db.block_needs_processing("other", block))

            modified_block = Block(id="b1", content="Modified content",
                                   content_hash=content_hash("Modified content"))
            self.assertTrue(db.block_needs_processing("notes", modified_block))

    def test_state_survives_reconnect(self):
        block = Block(id="b1", content="Test content", content_hash=content_hash("Test content"))

        with DatabaseManager(str(self.db_path)) as db:
            db.initialize_database()
            db.record_processed_block("notes", block)

        with DatabaseManager(str(self.db_path)) as db:
            db.initialize_database()
            self.assertFalse(db.block_needs_processing("notes", block))

    def test_sidecar_payload_round_trip(self):
        payload = {
            "version": "1.0.0",
            "lastUpdated": "2024-05-01T10:00:00Z",
            "blocks": {"b1": {"aiSummary": "short"}}
        }

        with DatabaseManager(str(self.db_path)) as db:
            db.initialize_database()
            self.assertIsNone(db.read_sidecar("notes"))

            db.write_sidecar("notes", payload)

            self.assertEqual(db.read_sidecar("notes"), payload)

    def test_job_log(self):
        with DatabaseManager(str(self.db_path)) as db:
            db.initialize_database()

            job = BlockProcessingJob(id="job_1", block_id="b1", type="summarize")
            db.log_job("notes", job)

            job.status = "completed"
            job.result = "a summary"
            db.log_job("notes", job)

            jobs = db.get_jobs(document_id="notes")
            self.assertEqual(len(jobs), 1)
            self.assertEqual(jobs[0]["status"], "completed")
            self.assertEqual(jobs[0]["result"], "a summary")
            self.assertEqual(db.get_jobs(status="failed"), [])

    def test_forget_document(self):
        with DatabaseManager(str(self.db_path)) as db:
            db.initialize_database()
            block = Block(id="b1", content="Test content", content_hash=content_hash("Test content"))
            db.record_processed_block("notes", block)
            db.write_sidecar("notes", {"version": "1.0.0", "lastUpdated": "2024-05-01T10:00:00Z", "blocks": {}})

            db.forget_document("notes")

            self.assertTrue(db.block_needs_processing("notes", block))
            self.assertIsNone(db.read_sidecar("notes"))


if __name__ == '__main__':
    unittest.main(verbosity=2)

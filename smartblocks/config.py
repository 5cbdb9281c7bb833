"""
Configuration management for Smart Blocks.

This module handles loading and accessing configuration values from config.yaml.
Callers construct a ConfigManager explicitly and hand it to the BlockEngine;
nothing here is shared process-wide.
"""

import yaml
import copy
from pathlib import Path
from typing import Any, Dict, List
import logging


DEFAULT_BLOCK_TYPES = [
    "summary",
    "zettel",
    "quote",
    "argument",
    "definition",
    "example",
    "question",
    "insight",
    "todo",
    "note",
]


class ConfigManager:
    """
    Manages configuration loading and access for Smart Blocks.
    """

    def __init__(self, config_path: str = "config.yaml"):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file
        """
        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from YAML file, merged over the defaults."""
        try:
            if not self.config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f) or {}

            self._config = _deep_merge(self._get_default_config(), loaded)
            logging.info(f"Configuration loaded from {self.config_path}")

        except (OSError, yaml.YAMLError) as e:
            logging.warning(f"Failed to load configuration, using defaults: {e}")
            self._config = self._get_default_config()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values as fallback."""
        return {
            "blocks": {
                "types": list(DEFAULT_BLOCK_TYPES),
                "default_type": "note",
                "default_reorderable": False,
                "min_length": 10,
                "max_length": 10000,
                "max_tags": 10,
                "long_content_warning": 1000
            },
            "similarity": {
                "threshold": 0.3
            },
            "processing": {
                "batch_size": 5
            },
            "summarization": {
                "enabled": True,
                "max_length": 150
            },
            "ai": {
                "ollama_host": "http://localhost:11434",
                "model": "gemma3",
                "embedding_model": "nomic-embed-text",
                "timeout": 30.0
            },
            "sidecar": {
                "directory": None
            },
            "database": {
                "filename": "smartblocks.db"
            },
            "paths": {
                "log_file": "smartblocks.log"
            },
            "logging": {
                "level": "INFO",
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            }
        }

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key_path: Dot-separated path to the configuration value (e.g., "blocks.min_length")
            default: Default value if key is not found

        Returns:
            The configuration value

        Examples:
            config.get("ai.model")  # Returns "gemma3"
            config.get("processing.batch_size")  # Returns 5
        """
        keys = key_path.split('.')
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Get an entire configuration section.

        Args:
            section: Name of the configuration section

        Returns:
            Dictionary containing the section configuration
        """
        return self._config.get(section, {})

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    # Convenience properties for commonly used values

    @property
    def block_types(self) -> List[str]:
        """Get the block type vocabulary."""
        return list(self.get("blocks.types", DEFAULT_BLOCK_TYPES))

    @property
    def default_block_type(self) -> str:
        return self.get("blocks.default_type", "note")

    @property
    def default_reorderable(self) -> bool:
        return bool(self.get("blocks.default_reorderable", False))

    @property
    def min_block_length(self) -> int:
        return int(self.get("blocks.min_length", 10))

    @property
    def max_block_length(self) -> int:
        return int(self.get("blocks.max_length", 10000))

    @property
    def similarity_threshold(self) -> float:
        return float(self.get("similarity.threshold", 0.3))

    @property
    def batch_size(self) -> int:
        """Get the number of jobs dispatched together in batch processing."""
        return int(self.get("processing.batch_size", 5))

    @property
    def summarization_enabled(self) -> bool:
        return bool(self.get("summarization.enabled", True))

    @property
    def ollama_host(self) -> str:
        """Get Ollama host URL."""
        return self.get("ai.ollama_host", "http://localhost:11434")

    @property
    def model_name(self) -> str:
        """Get AI model name."""
        return self.get("ai.model", "gemma3")

    @property
    def embedding_model(self) -> str:
        return self.get("ai.embedding_model", "nomic-embed-text")

    @property
    def ollama_timeout(self) -> float:
        """Get Ollama timeout."""
        return self.get("ai.timeout", 30.0)

    @property
    def sidecar_directory(self) -> Any:
        """Get the sidecar directory, or None to keep sidecars next to documents."""
        return self.get("sidecar.directory")

    @property
    def database_filename(self) -> str:
        """Get database filename."""
        return self.get("database.filename", "smartblocks.db")

    @property
    def log_filename(self) -> str:
        """Get log file name."""
        return self.get("paths.log_file", "smartblocks.log")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override into a copy of base, recursing into nested sections."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result

"""
Engine settings for Smart Blocks.

EngineSettings is the immutable bundle of static configuration that parsing,
validation and regeneration depend on. It is built from a ConfigManager (or
constructed directly in tests) and passed explicitly to every component.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple

from .hashing import content_hash
from .config import ConfigManager, DEFAULT_BLOCK_TYPES


@dataclass(frozen=True)
class EngineSettings:
    """
    Static configuration shared by the block components.
    """
    block_types: Tuple[str, ...] = tuple(DEFAULT_BLOCK_TYPES)
    default_type: str = "note"
    default_reorderable: bool = False
    min_length: int = 10
    max_length: int = 10000
    max_tags: int = 10
    long_content_warning: int = 1000
    similarity_threshold: float = 0.3
    batch_size: int = 5
    summarization_enabled: bool = True
    summary_max_length: int = 150
    hash_fn: Callable[[str], str] = field(default=content_hash)

    @classmethod
    def from_config(cls, config: ConfigManager, hash_fn: Optional[Callable[[str], str]] = None) -> "EngineSettings":
        """
        Build settings from a configuration manager.

        Args:
            config: Loaded configuration
            hash_fn: Optional replacement for the content hasher

        Returns:
            EngineSettings populated from the config values
        """
        return cls(
            block_types=tuple(config.block_types),
            default_type=config.default_block_type,
            default_reorderable=config.default_reorderable,
            min_length=config.min_block_length,
            max_length=config.max_block_length,
            max_tags=int(config.get("blocks.max_tags", 10)),
            long_content_warning=int(config.get("blocks.long_content_warning", 1000)),
            similarity_threshold=config.similarity_threshold,
            batch_size=config.batch_size,
            summarization_enabled=config.summarization_enabled,
            summary_max_length=int(config.get("summarization.max_length", 150)),
            hash_fn=hash_fn or content_hash,
        )

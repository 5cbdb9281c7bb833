"""
Smart Blocks - addressable, typed blocks of content inside markdown documents.

Blocks are delimited by HTML comment markers, parsed into typed records,
validated, regenerated into markdown, and enriched with derived metadata
stored in a sidecar next to the document.
"""

__version__ = "0.1.0"

from .config import ConfigManager
from .settings import EngineSettings
from .engine import BlockEngine
from .events import EventBus
from .errors import (
    SmartBlockError,
    BlockValidationError,
    ExtractionError,
    ReorderError,
    SidecarError,
    SummarizationDisabledError,
    AgentError,
)
from .models import Block, BlockMetadata, SidecarMetadata

__all__ = [
    "__version__",
    "ConfigManager",
    "EngineSettings",
    "BlockEngine",
    "EventBus",
    "SmartBlockError",
    "BlockValidationError",
    "ExtractionError",
    "ReorderError",
    "SidecarError",
    "SummarizationDisabledError",
    "AgentError",
    "Block",
    "BlockMetadata",
    "SidecarMetadata",
]

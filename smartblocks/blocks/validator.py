"""
Block validation.

Validation is stateless: the result depends only on the block and on the
static settings (vocabulary and length bounds). It never looks at sidecar
metadata.
"""

import re

from ..models import Block, ValidationResult
from ..settings import EngineSettings


BLOCK_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def validate_block(block: Block, settings: EngineSettings) -> ValidationResult:
    """
    Check a block against the structural rules.

    Args:
        block: The block to check
        settings: Vocabulary and length bounds to check against

    Returns:
        ValidationResult with hard errors and soft warnings
    """
    errors = []
    warnings = []

    if not block.id:
        errors.append("Block ID is required")
    elif not BLOCK_ID_RE.match(block.id):
        errors.append(
            f"Block ID '{block.id}' must contain only alphanumeric characters, hyphens, and underscores"
        )

    if not block.type:
        errors.append("Block type is required")
    elif block.type not in settings.block_types:
        errors.append(f"Invalid block type: {block.type}")

    length = len(block.content)
    if not block.content:
        errors.append("Block content is required")
    elif length < settings.min_length:
        errors.append(f"Block content must be at least {settings.min_length} characters")
    elif length > settings.max_length:
        errors.append(f"Block content must be at most {settings.max_length} characters")

    if len(block.tags) > settings.max_tags:
        warnings.append(f"Block has {len(block.tags)} tags, consider consolidating")

    if length > settings.long_content_warning:
        warnings.append("Block is quite long, consider breaking it down")

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)

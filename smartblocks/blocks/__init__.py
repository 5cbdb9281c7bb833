"""Marker grammar, parsing, validation and regeneration of blocks."""

from .grammar import END_MARKER, StartMarker, parse_start_marker, format_start_marker
from .parser import BlockParser
from .validator import validate_block
from .regenerator import MarkdownRegenerator, splice_block_markers

__all__ = [
    "END_MARKER",
    "StartMarker",
    "parse_start_marker",
    "format_start_marker",
    "BlockParser",
    "validate_block",
    "MarkdownRegenerator",
    "splice_block_markers",
]

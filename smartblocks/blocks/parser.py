"""
Block parser for Smart Blocks.

This module scans markdown text line by line and turns marker-delimited
regions into validated Block objects.
"""

import logging
from dataclasses import dataclass
from typing import List, Union

from ..models import Block, ParseResult, ParseWarning
from ..settings import EngineSettings
from .grammar import StartMarker, is_end_marker, parse_start_marker
from .validator import validate_block


@dataclass(frozen=True)
class Idle:
    """No block is open."""


@dataclass(frozen=True)
class Open:
    """A start marker was seen and its end marker has not been reached yet."""
    marker: StartMarker
    start_line: int


ParserState = Union[Idle, Open]

IDLE = Idle()


class BlockParser:
    """
    Parses block markers out of markdown documents.

    Nesting is not supported. The parser is either Idle or Open on exactly one
    block; a start marker met while Open is rejected (kept as plain content of
    the open block) and reported as a warning.
    """

    def __init__(self, settings: EngineSettings):
        """
        Initialize the parser.

        Args:
            settings: Vocabulary, length bounds and hasher used for new blocks
        """
        self.settings = settings

    def parse(self, text: str) -> ParseResult:
        """
        Parse all valid blocks from a document.

        Invalid blocks are dropped without being reported. A block still open
        at the end of the document is dropped with an "orphaned" warning.

        Args:
            text: Full document text

        Returns:
            ParseResult with the blocks in document order and any warnings
        """
        result = ParseResult()
        if not text:
            return result

        lines = text.split("\n")
        state: ParserState = IDLE

        for index, line in enumerate(lines):
            line_number = index + 1

            if isinstance(state, Idle):
                marker = parse_start_marker(line)
                if marker is not None:
                    state = Open(marker=marker, start_line=line_number)
                # A stray end marker while idle is ignored
                continue

            if is_end_marker(line):
                block = self._close(state, lines, line_number)
                verdict = validate_block(block, self.settings)
                if verdict.is_valid:
                    result.blocks.append(block)
                else:
                    logging.debug(f"Dropping invalid block {block.id or '<no id>'}: {verdict.errors}")
                state = IDLE
                continue

            nested = parse_start_marker(line)
            if nested is not None:
                message = (
                    f"Nested block start '{nested.id}' at line {line_number} ignored "
                    f"inside open block '{state.marker.id}'"
                )
                logging.warning(message)
                result.warnings.append(ParseWarning(
                    kind="nested_start",
                    block_id=state.marker.id,
                    line=line_number,
                    message=message
                ))

        if isinstance(state, Open):
            message = f"Found orphaned block without closing tag: {state.marker.id}"
            logging.warning(message)
            result.warnings.append(ParseWarning(
                kind="orphaned",
                block_id=state.marker.id,
                line=state.start_line,
                message=message
            ))

        return result

    def parse_blocks(self, text: str) -> List[Block]:
        """Parse a document and return only the valid blocks."""
        return self.parse(text).blocks

    def _close(self, state: Open, lines: List[str], end_line: int) -> Block:
        """Build the block for an open marker closed at end_line."""
        marker = state.marker
        content = "\n".join(lines[state.start_line:end_line - 1]).strip()

        reorderable = marker.reorderable
        if reorderable is None:
            reorderable = self.settings.default_reorderable

        return Block(
            id=marker.id,
            type=marker.type or self.settings.default_type,
            title=marker.title,
            tags=list(marker.tags),
            reorderable=reorderable,
            content=content,
            content_hash=self.settings.hash_fn(content),
            line_range=(state.start_line, end_line),
            attributes=dict(marker.extra)
        )

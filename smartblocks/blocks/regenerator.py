"""
Markdown regeneration for Smart Blocks.

Writes fresh block markers into a document from a list of blocks whose line
ranges address that exact document snapshot.
"""

import logging
from typing import Callable, List

from ..hashing import content_hash
from ..models import Block
from ..settings import EngineSettings
from .grammar import END_MARKER, format_start_marker, is_end_marker, is_start_marker


def splice_block_markers(lines: List[str], block: Block, default_reorderable: bool = False,
                         hash_fn: Callable[[str], str] = content_hash) -> None:
    """
    Write markers for one block into a line array, in place.

    If the block's range is already wrapped in a start and an end marker (a
    range produced by the parser), those two lines are replaced. Otherwise an
    end marker is inserted after the last line of the range and a start marker
    before the first, which grows the array by two lines.

    The body lines of the range are kept as they are while they still hold
    the block's content. If the content was changed since the range was
    read, the body is replaced by the block's current content.

    Args:
        lines: Document lines, modified in place
        block: Block whose line_range addresses ``lines``
        default_reorderable: Document-level reorderable default
        hash_fn: Fingerprint used to compare the body with the block content

    Raises:
        ValueError: If the block has no line range or it lies outside ``lines``
    """
    if block.line_range is None:
        raise ValueError(f"Block {block.id} has no line range")

    start, end = block.line_range
    if start < 1 or end < start or end > len(lines):
        raise ValueError(
            f"Block {block.id} line range {start}-{end} is outside a document of {len(lines)} lines"
        )

    span = lines[start - 1:end]
    if len(span) >= 2 and is_start_marker(span[0]) and is_end_marker(span[-1]):
        body = span[1:-1]
    else:
        body = span

    if hash_fn("\n".join(body).strip()) != hash_fn(block.content):
        body = block.content.split("\n")

    lines[start - 1:end] = [format_start_marker(block, default_reorderable), *body, END_MARKER]


class MarkdownRegenerator:
    """
    Regenerates markdown with block markers from a block list.
    """

    def __init__(self, settings: EngineSettings):
        self.settings = settings

    def generate(self, blocks: List[Block], text: str) -> str:
        """
        Insert markers for every block into the document.

        Blocks with a line range are handled bottom to top (descending start
        line). Splicing a block only shifts the lines below it, so the ranges
        of the blocks still waiting above stay correct. Blocks without a line
        range are appended at the end of the document in list order.

        Args:
            blocks: Blocks to write markers for
            text: The document the line ranges were computed against

        Returns:
            The regenerated document text
        """
        lines = text.split("\n") if text else []

        positioned = [block for block in blocks if block.line_range is not None]
        unpositioned = [block for block in blocks if block.line_range is None]

        for block in sorted(positioned, key=lambda b: b.line_range[0], reverse=True):
            splice_block_markers(lines, block, self.settings.default_reorderable, self.settings.hash_fn)

        for block in unpositioned:
            if lines and lines[-1].strip():
                lines.append("")
            lines.append(format_start_marker(block, self.settings.default_reorderable))
            lines.extend(block.content.split("\n"))
            lines.append(END_MARKER)

        if unpositioned:
            logging.debug(f"Appended {len(unpositioned)} new blocks to the end of the document")

        return "\n".join(lines)

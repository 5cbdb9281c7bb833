"""
Extraction engine for Smart Blocks.

Turns one block into a standalone markdown document. The source block is
left untouched; removing it from its document is up to the caller.
"""

from typing import List, Optional

from .ids import generate_id
from .models import Block, ExtractedDocument, ExtractionOptions


TITLE_PREVIEW_LENGTH = 50


def extraction_title(block: Block) -> str:
    """The block title, or the start of its content when it has none."""
    if block.title:
        return block.title
    preview = block.content[:TITLE_PREVIEW_LENGTH]
    if len(block.content) > TITLE_PREVIEW_LENGTH:
        preview = f"{preview.rstrip()}..."
    return preview


def build_extracted_body(
    block: Block,
    title: str,
    options: ExtractionOptions,
    source_document: Optional[str] = None
) -> str:
    """
    Compose the markdown body of an extracted document.

    Layout: title heading, optional source reference line, the raw block
    content, optional Related section with a backlink to the origin document.
    """
    parts: List[str] = [f"# {title}"]

    if options.add_source_reference:
        parts.append(f"> **Source**: Extracted from block `{block.id}`")

    parts.append(block.content)

    if options.create_backlink:
        parts.append(f"## Related\n\n- [[{source_document or 'Original Note'}]]")

    return "\n\n".join(parts) + "\n"


def extract_block(
    block: Block,
    options: Optional[ExtractionOptions] = None,
    source_document_id: Optional[str] = None,
    source_document_title: Optional[str] = None
) -> ExtractedDocument:
    """
    Derive a new document from a block.

    Args:
        block: The block to extract
        options: Extraction options (defaults: no backlink, no tags, no source line)
        source_document_id: Id of the document the block lives in
        source_document_title: Name used for the backlink; falls back to the id

    Returns:
        The new document
    """
    options = options or ExtractionOptions()
    title = extraction_title(block)
    body = build_extracted_body(
        block,
        title,
        options,
        source_document=source_document_title or source_document_id
    )

    return ExtractedDocument(
        id=options.target_document_id or generate_id("note"),
        title=title,
        body=body,
        tags=list(block.tags) if options.inherit_tags else [],
        source_block_id=block.id,
        source_document_id=source_document_id
    )

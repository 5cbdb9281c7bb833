"""Document model produced by importers."""

from pathlib import Path
from typing import List

from pydantic import BaseModel, Field

from ..models import Block, ParseWarning


class MarkdownDocument(BaseModel):
    """
    A markdown document and the blocks parsed from it.
    """

    document_id: str = Field(
        ...,
        description="Path relative to the importer root, without the .md suffix"
    )

    path: Path = Field(..., description="Location of the file on disk")
    text: str = Field(default="", description="Full document text")
    blocks: List[Block] = Field(default_factory=list)
    warnings: List[ParseWarning] = Field(default_factory=list)

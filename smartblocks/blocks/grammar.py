"""
Marker grammar for Smart Blocks.

A block is delimited in markdown by a start marker carrying its attributes
and a fixed end marker:

    <!-- block:id=b1 type=note reorderable=true tags=a,b title=My%20Block -->
    ...content...
    <!-- /block -->

Both the parser and the regenerator use the helpers here, so the two sides
always agree on the syntax.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from urllib.parse import quote, unquote

from ..models import Block


END_MARKER = "<!-- /block -->"

START_MARKER_RE = re.compile(r"^\s*<!--\s*block:(.*?)\s*-->\s*$")
END_MARKER_RE = re.compile(r"^\s*<!--\s*/block\s*-->\s*$")
ATTRIBUTE_RE = re.compile(r"(\w+)=(\S+)")

# Same unreserved set as JavaScript's encodeURIComponent, used for titles and tags
TITLE_SAFE_CHARS = "-_.!~*'()"

RECOGNIZED_ATTRIBUTES = ("id", "type", "reorderable", "tags", "title")


@dataclass
class StartMarker:
    """Attributes read from a start marker line."""
    id: str
    type: Optional[str]
    reorderable: Optional[bool] = None
    tags: List[str] = field(default_factory=list)
    title: Optional[str] = None
    extra: Dict[str, str] = field(default_factory=dict)


def is_start_marker(line: str) -> bool:
    return START_MARKER_RE.match(line) is not None


def is_end_marker(line: str) -> bool:
    return END_MARKER_RE.match(line) is not None


def parse_attributes(raw: str) -> Dict[str, str]:
    """Split a marker's attribute text into raw key/value strings."""
    return {key: value for key, value in ATTRIBUTE_RE.findall(raw)}


def parse_start_marker(line: str) -> Optional[StartMarker]:
    """
    Read a start marker line.

    Args:
        line: A single document line

    Returns:
        The marker attributes, or None if the line is not a start marker
    """
    match = START_MARKER_RE.match(line)
    if not match:
        return None

    raw = parse_attributes(match.group(1))
    marker = StartMarker(id=raw.get("id", ""), type=raw.get("type"))

    if "reorderable" in raw:
        marker.reorderable = raw["reorderable"] == "true"
    if "tags" in raw:
        marker.tags = [unquote(tag.strip()) for tag in raw["tags"].split(",") if tag.strip()]
    if "title" in raw:
        marker.title = unquote(raw["title"])

    marker.extra = {
        key: value for key, value in raw.items() if key not in RECOGNIZED_ATTRIBUTES
    }
    return marker


def format_start_marker(block: Block, default_reorderable: bool = False) -> str:
    """
    Serialize a block's recognized attributes into a start marker line.

    Titles and each tag are percent-encoded so that spaces and commas survive
    re-parsing. Unrecognized attributes are not written back. ``reorderable=false`` is
    only written when the document default is true, so that re-parsing keeps
    the flag.
    """
    attrs = [f"id={block.id}", f"type={block.type}"]

    if block.reorderable:
        attrs.append("reorderable=true")
    elif default_reorderable:
        attrs.append("reorderable=false")

    if block.tags:
        attrs.append(f"tags={','.join(quote(tag, safe=TITLE_SAFE_CHARS) for tag in block.tags)}")

    if block.title:
        attrs.append(f"title={quote(block.title, safe=TITLE_SAFE_CHARS)}")

    return f"<!-- block:{' '.join(attrs)} -->"

"""Importers that read documents and parse their blocks."""

from .base import BaseImporter
from .models import MarkdownDocument
from .markdown import MarkdownImporter

__all__ = ["BaseImporter", "MarkdownDocument", "MarkdownImporter"]

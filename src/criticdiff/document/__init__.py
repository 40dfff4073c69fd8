"""Markdown document model: parsing to and serializing from :class:`Node` trees."""

from .parser import BLOCK_TYPES, INLINE_TYPES, LEAF_TYPES, DocumentParser
from .serializer import MarkdownSerializer, markdown_escape, plain_text

__all__ = [
    "BLOCK_TYPES",
    "INLINE_TYPES",
    "LEAF_TYPES",
    "DocumentParser",
    "MarkdownSerializer",
    "markdown_escape",
    "plain_text",
]

"""
README structure parsing.

- DocumentParser: line-based block parser producing a StructureTree
- StructureCache: bounded single-flight cache keyed by content fingerprint
"""

from .cache import StructureCache
from .nodes import (
    CodeBlock,
    Heading,
    ListItem,
    NodeKind,
    Paragraph,
    StructureNode,
    StructureTree,
)
from .parser import DocumentParser, fingerprint, normalize_text, parse_document

__all__ = [
    "CodeBlock",
    "DocumentParser",
    "Heading",
    "ListItem",
    "NodeKind",
    "Paragraph",
    "StructureCache",
    "StructureNode",
    "StructureTree",
    "fingerprint",
    "normalize_text",
    "parse_document",
]

"""Structural node types produced by the document parser.

A StructureTree is created once per unique input (keyed by its fingerprint),
never mutated, and shared read-only by every analyzer of a pipeline run.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from enum import StrEnum
from typing import ClassVar, Iterator, Union

from readme_insight.types.core import Span
from readme_insight.types.errors import PipelineIssue


class NodeKind(StrEnum):
    """Block-level node kinds."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    CODE_BLOCK = "code_block"
    LIST_ITEM = "list_item"


@dataclass(frozen=True)
class Heading:
    """ATX (``## Title``) or setext heading."""

    kind: ClassVar[NodeKind] = NodeKind.HEADING

    level: int
    text: str
    span: Span


@dataclass(frozen=True)
class Paragraph:
    """Run of text lines; ``quoted`` marks blockquote paragraphs."""

    kind: ClassVar[NodeKind] = NodeKind.PARAGRAPH

    text: str
    span: Span
    quoted: bool = False


@dataclass(frozen=True)
class CodeBlock:
    """Fenced code block.

    ``declared_language`` is the first info-string token verbatim, or None
    when the fence has no info string. ``closed`` is False for a fence that
    ran to the end of input.
    """

    kind: ClassVar[NodeKind] = NodeKind.CODE_BLOCK

    declared_language: str | None
    content: str
    span: Span
    closed: bool = True
    # Offset of the first content character (line after the opening fence).
    content_offset: int = 0

    @property
    def language_tag(self) -> str:
        """Lowercased declared language, empty when absent."""
        return (self.declared_language or "").lower()

    def content_lines(self) -> list[tuple[int, str]]:
        """(offset, line) pairs of the block content, offsets into the document."""
        result = []
        offset = self.content_offset
        for line in self.content.split("\n") if self.content else []:
            result.append((offset, line))
            offset += len(line) + 1
        return result


@dataclass(frozen=True)
class ListItem:
    """Bullet or ordered list item (continuation lines joined)."""

    kind: ClassVar[NodeKind] = NodeKind.LIST_ITEM

    text: str
    span: Span
    ordered: bool = False


StructureNode = Union[Heading, Paragraph, CodeBlock, ListItem]


@dataclass(frozen=True)
class StructureTree:
    """Ordered block-level structure of one normalized document."""

    nodes: tuple[StructureNode, ...]
    fingerprint: str
    line_offsets: tuple[int, ...]
    text_length: int
    warnings: tuple[PipelineIssue, ...] = ()

    def __iter__(self) -> Iterator[StructureNode]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def headings(self) -> list[tuple[int, Heading]]:
        """(index, node) pairs of all headings in document order."""
        return [(i, n) for i, n in enumerate(self.nodes) if isinstance(n, Heading)]

    def code_blocks(self) -> list[tuple[int, CodeBlock]]:
        """(index, node) pairs of all fenced code blocks."""
        return [(i, n) for i, n in enumerate(self.nodes) if isinstance(n, CodeBlock)]

    def line_of(self, offset: int) -> int:
        """1-indexed line containing a character offset."""
        return bisect_right(self.line_offsets, offset)

    def span_for(self, start: int, end: int) -> Span:
        """Span for ``text[start:end]`` using the precomputed line index."""
        start = max(0, min(start, self.text_length))
        end = max(start, min(end, self.text_length))
        start_line = self.line_of(start)
        end_line = self.line_of(max(start, end - 1))
        return Span(start_line, end_line, start, end)

    def whole_span(self) -> Span:
        return self.span_for(0, self.text_length)

    def enclosing_heading(self, index: int) -> tuple[int, Heading] | None:
        """Nearest heading preceding the node at ``index``."""
        for i in range(index - 1, -1, -1):
            node = self.nodes[i]
            if isinstance(node, Heading):
                return i, node
        return None

    def section_span(self, heading_index: int) -> Span:
        """Span from a heading to the next heading of the same or higher level."""
        heading = self.nodes[heading_index]
        if not isinstance(heading, Heading):
            raise ValueError(f"node {heading_index} is not a heading")
        end = self.text_length
        for node in self.nodes[heading_index + 1 :]:
            if isinstance(node, Heading) and node.level <= heading.level:
                end = node.span.start_offset
                break
        return self.span_for(heading.span.start_offset, end)

    def node_index_at(self, offset: int) -> int | None:
        """Index of the node whose span contains ``offset``."""
        for i, node in enumerate(self.nodes):
            if node.span.start_offset <= offset < node.span.end_offset:
                return i
        return None

    def in_code_block(self, offset: int) -> bool:
        """Check if an offset falls inside a fenced code block."""
        index = self.node_index_at(offset)
        return index is not None and isinstance(self.nodes[index], CodeBlock)

"""Line-based block parser for README documents.

Produces an ordered StructureTree of headings, paragraphs, fenced code blocks
and list items. The grammar is a forgiving subset of CommonMark: anything
that is not recognized degrades to a paragraph, and an unclosed code fence
runs to the end of input with a recorded warning. Only undecodable input is
rejected.
"""

from __future__ import annotations

import hashlib
import re
from bisect import bisect_right

from readme_insight.parsing.nodes import (
    CodeBlock,
    Heading,
    ListItem,
    Paragraph,
    StructureNode,
    StructureTree,
)
from readme_insight.types.core import Span
from readme_insight.types.errors import (
    ErrorCode,
    ErrorContext,
    ErrorSeverity,
    ParseError,
    PipelineIssue,
)
from readme_insight.utils.logger import logger

_FENCE_OPEN = re.compile(r"^( {0,3})(`{3,}|~{3,})(.*)$")
_ATX_HEADING = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?[ \t]*$")
_ATX_CLOSING = re.compile(r"(?:^|[ \t]+)#+$")
_SETEXT_UNDERLINE = re.compile(r"^ {0,3}(=+|-+)[ \t]*$")
_THEMATIC_BREAK = re.compile(r"^ {0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$")
_BLOCKQUOTE = re.compile(r"^ {0,3}> ?(.*)$")
_LIST_ITEM = re.compile(r"^( {0,3})([-*+]|\d{1,9}[.)])(?:[ \t]+(.*))?$")

_BOM = "\ufeff"


def normalize_text(text: str | bytes) -> str:
    """Decode and normalize input: UTF-8, no BOM, LF line endings.

    Raises:
        ParseError: If bytes are not valid UTF-8 or the string holds
            characters that cannot be encoded (lone surrogates).
    """
    if isinstance(text, (bytes, bytearray)):
        try:
            text = bytes(text).decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(
                f"Input is not valid UTF-8 at byte {e.start}",
                context=ErrorContext(
                    operation="decode", additional_info={"position": e.start}
                ),
                original_error=e,
            ) from e
    else:
        try:
            text.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ParseError(
                f"Input contains an unencodable character at offset {e.start}",
                context=ErrorContext(
                    operation="decode", additional_info={"position": e.start}
                ),
                original_error=e,
            ) from e

    if text.startswith(_BOM):
        text = text[len(_BOM) :]
    return text.replace("\r\n", "\n").replace("\r", "\n")


def fingerprint(normalized: str) -> str:
    """Content fingerprint of normalized text (md5 hex digest)."""
    return hashlib.md5(normalized.encode("utf-8")).hexdigest()


def _is_blank(line: str) -> bool:
    return not line.strip()


class _LineReader:
    """Normalized text split into lines with their start offsets."""

    def __init__(self, text: str):
        self.text = text
        self.lines = text.split("\n")
        offsets = [0]
        for line in self.lines[:-1]:
            offsets.append(offsets[-1] + len(line) + 1)
        self.offsets = offsets

    def __len__(self) -> int:
        return len(self.lines)

    def end_of(self, index: int) -> int:
        """Offset just past the last character of a line (newline excluded)."""
        return self.offsets[index] + len(self.lines[index])

    def span(self, start: int, end: int) -> Span:
        """Span for text[start:end]."""
        start_line = bisect_right(self.offsets, start)
        end_line = bisect_right(self.offsets, max(start, end - 1))
        return Span(start_line, end_line, start, end)


class DocumentParser:
    """Stateless README parser.

    Example:
        >>> tree = DocumentParser().parse("# Title\\n\\nSome text.\\n")
        >>> [node.kind.value for node in tree]
        ['heading', 'paragraph']
    """

    def parse(self, text: str | bytes) -> StructureTree:
        """Parse text into an immutable StructureTree.

        Raises:
            ParseError: Only when the input cannot be decoded.
        """
        normalized = normalize_text(text)
        return self.parse_normalized(normalized)

    def parse_normalized(
        self, normalized: str, digest: str | None = None
    ) -> StructureTree:
        """Parse text that already went through normalize_text()."""
        reader = _LineReader(normalized)
        nodes: list[StructureNode] = []
        warnings: list[PipelineIssue] = []

        i = 0
        while i < len(reader):
            line = reader.lines[i]

            if _is_blank(line):
                i += 1
                continue

            fence = _FENCE_OPEN.match(line)
            if fence and not (fence.group(2)[0] == "`" and "`" in fence.group(3)):
                block, i, closed = self._read_fence(reader, i, fence)
                nodes.append(block)
                if not closed:
                    warnings.append(
                        PipelineIssue(
                            code=ErrorCode.UNCLOSED_CODE_FENCE,
                            message=(
                                f"Code fence opened on line {block.span.start_line} "
                                "is never closed; block runs to end of input"
                            ),
                            component="DocumentParser",
                            severity=ErrorSeverity.LOW,
                            span=block.span,
                        )
                    )
                continue

            atx = _ATX_HEADING.match(line)
            if atx:
                level = len(atx.group(1))
                content = _ATX_CLOSING.sub("", atx.group(2) or "").strip()
                nodes.append(
                    Heading(
                        level=level,
                        text=content,
                        span=reader.span(reader.offsets[i], reader.end_of(i)),
                    )
                )
                i += 1
                continue

            if _THEMATIC_BREAK.match(line):
                i += 1
                continue

            if _BLOCKQUOTE.match(line):
                node, i = self._read_blockquote(reader, i)
                if node is not None:
                    nodes.append(node)
                continue

            item = _LIST_ITEM.match(line)
            if item:
                node, i = self._read_list_item(reader, i, item)
                nodes.append(node)
                continue

            node, i = self._read_paragraph(reader, i)
            nodes.append(node)

        tree = StructureTree(
            nodes=tuple(nodes),
            fingerprint=digest or fingerprint(normalized),
            line_offsets=tuple(reader.offsets),
            text_length=len(normalized),
            warnings=tuple(warnings),
        )
        logger.debug(
            "Parsed {} nodes ({} warnings) for {}",
            len(nodes),
            len(warnings),
            tree.fingerprint[:12],
        )
        return tree

    # ------------------------------------------------------------------
    # Block readers. Each returns the node(s) and the next line index.
    # ------------------------------------------------------------------

    def _read_fence(
        self,
        reader: _LineReader,
        start: int,
        match: re.Match[str],
    ) -> tuple[CodeBlock, int, bool]:
        fence = match.group(2)
        info = match.group(3).strip()
        declared = info.split()[0] if info else None
        closing = re.compile(rf"^ {{0,3}}{re.escape(fence[0])}{{{len(fence)},}}[ \t]*$")

        end = start + 1
        while end < len(reader) and not closing.match(reader.lines[end]):
            end += 1
        closed = end < len(reader)

        content_lines = reader.lines[start + 1 : end]
        if not closed and content_lines and content_lines[-1] == "":
            # Trailing newline of the document is not block content.
            content_lines = content_lines[:-1]

        span_end = reader.end_of(end) if closed else len(reader.text)
        content_offset = (
            reader.offsets[start + 1] if start + 1 < len(reader) else len(reader.text)
        )
        block = CodeBlock(
            declared_language=declared,
            content="\n".join(content_lines),
            span=reader.span(reader.offsets[start], span_end),
            closed=closed,
            content_offset=content_offset,
        )
        return block, (end + 1 if closed else len(reader)), closed

    def _read_blockquote(
        self, reader: _LineReader, start: int
    ) -> tuple[Paragraph | None, int]:
        parts: list[str] = []
        i = start
        while i < len(reader):
            quoted = _BLOCKQUOTE.match(reader.lines[i])
            if not quoted:
                break
            content = quoted.group(1).strip()
            if content:
                parts.append(content)
            i += 1
        if not parts:
            return None, i
        node = Paragraph(
            text="\n".join(parts),
            span=reader.span(reader.offsets[start], reader.end_of(i - 1)),
            quoted=True,
        )
        return node, i

    def _read_list_item(
        self,
        reader: _LineReader,
        start: int,
        match: re.Match[str],
    ) -> tuple[ListItem, int]:
        marker = match.group(2)
        parts = [(match.group(3) or "").strip()]
        i = start + 1
        while i < len(reader):
            line = reader.lines[i]
            if _is_blank(line) or not line[:1].isspace():
                break
            if _LIST_ITEM.match(line) or _FENCE_OPEN.match(line):
                break
            parts.append(line.strip())
            i += 1
        node = ListItem(
            text=" ".join(p for p in parts if p),
            span=reader.span(reader.offsets[start], reader.end_of(i - 1)),
            ordered=marker[0].isdigit(),
        )
        return node, i

    def _read_paragraph(
        self, reader: _LineReader, start: int
    ) -> tuple[Heading | Paragraph, int]:
        parts = [reader.lines[start].strip()]
        i = start + 1
        while i < len(reader):
            line = reader.lines[i]
            if _is_blank(line):
                break
            setext = _SETEXT_UNDERLINE.match(line)
            if setext:
                heading = Heading(
                    level=1 if setext.group(1)[0] == "=" else 2,
                    text=" ".join(parts),
                    span=reader.span(reader.offsets[start], reader.end_of(i)),
                )
                return heading, i + 1
            if (
                _FENCE_OPEN.match(line)
                or _ATX_HEADING.match(line)
                or _BLOCKQUOTE.match(line)
                or _LIST_ITEM.match(line)
                or _THEMATIC_BREAK.match(line)
            ):
                break
            parts.append(line.strip())
            i += 1
        node = Paragraph(
            text="\n".join(parts),
            span=reader.span(reader.offsets[start], reader.end_of(i - 1)),
        )
        return node, i


def parse_document(text: str | bytes) -> StructureTree:
    """Parse text with a fresh DocumentParser."""
    return DocumentParser().parse(text)

"""
Core types for source provenance.

A Span locates a fact in the normalized README text (or in one of the
auxiliary files supplied alongside it).
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Span:
    """A range of the source document.

    Lines are 1-indexed and inclusive. Offsets are character offsets into the
    normalized text, end-exclusive. ``document`` is None for the README itself
    and the file name for auxiliary inputs.
    """

    start_line: int
    end_line: int
    start_offset: int
    end_offset: int
    document: str | None = None

    def __post_init__(self) -> None:
        if self.start_line < 0 or self.start_offset < 0:
            raise ValueError("start must be non-negative")
        if self.end_line < self.start_line:
            raise ValueError("end_line must be >= start_line")
        if self.end_offset < self.start_offset:
            raise ValueError("end_offset must be >= start_offset")

    @classmethod
    def from_offsets(
        cls,
        text: str,
        start: int,
        end: int,
        document: str | None = None,
    ) -> Span:
        """Build a span for ``text[start:end]`` by counting newlines."""
        start = max(0, min(start, len(text)))
        end = max(start, min(end, len(text)))
        start_line = text.count("\n", 0, start) + 1
        end_line = start_line + text.count("\n", start, max(start, end - 1))
        return cls(start_line, end_line, start, end, document)

    @classmethod
    def whole(cls, text: str, document: str | None = None) -> Span:
        """Span covering an entire text."""
        return cls.from_offsets(text, 0, len(text), document)

    @property
    def line_count(self) -> int:
        """Number of lines in this span."""
        return self.end_line - self.start_line + 1

    @property
    def sort_key(self) -> tuple[int, str, int, int]:
        """README spans first, then by document name, then position."""
        return (
            0 if self.document is None else 1,
            self.document or "",
            self.start_offset,
            self.end_offset,
        )

    def contains(self, other: Span) -> bool:
        """Check if another span lies fully inside this one."""
        return (
            self.document == other.document
            and self.start_offset <= other.start_offset
            and other.end_offset <= self.end_offset
        )

    def overlaps(self, other: Span) -> bool:
        """Check if two spans of the same document intersect."""
        return (
            self.document == other.document
            and self.start_offset < other.end_offset
            and other.start_offset < self.end_offset
        )

    def to_dict(self) -> dict[str, int | str]:
        """Convert to dictionary for serialization."""
        result: dict[str, int | str] = {
            "startLine": self.start_line,
            "endLine": self.end_line,
            "startOffset": self.start_offset,
            "endOffset": self.end_offset,
        }
        if self.document is not None:
            result["document"] = self.document
        return result


def sorted_spans(spans) -> tuple[Span, ...]:
    """Deduplicate and order spans deterministically."""
    return tuple(sorted(set(spans), key=lambda s: s.sort_key))

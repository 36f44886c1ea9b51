"""Evidence types produced by analyzers.

Analyzers never return conclusions, only independent observations
(Evidence). Each carries the conceptual key of the fact it supports, its own
confidence, and the spans it came from. Competing evidence for one key forms
a Finding; the aggregator combines them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Iterable

from readme_insight.types.core import Span, sorted_spans


class AnalyzerKind(StrEnum):
    """Fixed set of analyzers the pipeline runs."""

    LANGUAGE = "language_detector"
    COMMAND = "command_extractor"
    DEPENDENCY = "dependency_extractor"
    TESTING = "testing_detector"
    METADATA = "metadata_extractor"


class FactCategory(StrEnum):
    """What kind of fact an Evidence supports."""

    LANGUAGE = "language"
    COMMAND = "command"
    DEPENDENCY = "dependency"
    TESTING = "testing"
    METADATA = "metadata"


class CommandCategory(StrEnum):
    """Output buckets of the command set, in fallback tie-break order."""

    INSTALL = "install"
    BUILD = "build"
    TEST = "test"
    RUN = "run"
    OTHER = "other"


# Key component for commands the extractor could not categorize.
UNCATEGORIZED = ""


@dataclass(frozen=True)
class Evidence:
    """One analyzer's observation supporting a fact.

    Attributes:
        category: Fact category.
        key: Conceptual fact key, e.g. ``("python",)`` or ``("test", "npm test")``.
        value: Display value of the fact.
        confidence: Confidence in [0, 1].
        source_spans: Where in the input the observation was made.
        analyzer: Producing analyzer kind.
        signal: Short name of the heuristic that fired.
        attributes: Extra facts (version constraint, language, dev flag...).
    """

    category: FactCategory
    key: tuple[str, ...]
    value: str
    confidence: float
    source_spans: tuple[Span, ...] = ()
    analyzer: AnalyzerKind = AnalyzerKind.LANGUAGE
    signal: str = ""
    attributes: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"confidence must be within [0, 1], got {self.confidence!r}"
            )
        object.__setattr__(self, "source_spans", sorted_spans(self.source_spans))

    @property
    def first_span(self) -> Span | None:
        return self.source_spans[0] if self.source_spans else None

    @property
    def identity(self) -> tuple[Any, ...]:
        """Identity used to drop exact duplicates of one observation."""
        return (
            self.category,
            self.key,
            self.analyzer,
            self.signal,
            self.source_spans,
        )

    def with_spans(self, spans: Iterable[Span]) -> Evidence:
        """Copy of this evidence with the given provenance."""
        return Evidence(
            category=self.category,
            key=self.key,
            value=self.value,
            confidence=self.confidence,
            source_spans=tuple(spans),
            analyzer=self.analyzer,
            signal=self.signal,
            attributes=dict(self.attributes),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "key": list(self.key),
            "value": self.value,
            "confidence": self.confidence,
            "sourceSpans": [s.to_dict() for s in self.source_spans],
            "analyzer": self.analyzer.value,
            "signal": self.signal,
        }


@dataclass(frozen=True)
class Finding:
    """Competing evidence for one conceptual fact."""

    category: FactCategory
    key: tuple[str, ...]
    evidence: tuple[Evidence, ...]


@dataclass(frozen=True)
class FindingSet:
    """Everything one analyzer observed in one run."""

    analyzer: AnalyzerKind
    evidence: tuple[Evidence, ...] = ()
    notes: tuple[str, ...] = ()

    @classmethod
    def empty(cls, analyzer: AnalyzerKind, note: str | None = None) -> FindingSet:
        """Empty contribution of a failed or timed-out analyzer."""
        return cls(analyzer=analyzer, notes=(note,) if note else ())

    @property
    def is_empty(self) -> bool:
        return not self.evidence

    def __len__(self) -> int:
        return len(self.evidence)

    def findings(self) -> list[Finding]:
        """Group evidence by (category, key), in first-seen order."""
        groups: dict[tuple[FactCategory, tuple[str, ...]], list[Evidence]] = {}
        for item in self.evidence:
            groups.setdefault((item.category, item.key), []).append(item)
        return [
            Finding(category=category, key=key, evidence=tuple(items))
            for (category, key), items in groups.items()
        ]

    def replace_evidence(self, evidence: Iterable[Evidence]) -> FindingSet:
        return FindingSet(
            analyzer=self.analyzer, evidence=tuple(evidence), notes=self.notes
        )


class EvidenceCollector:
    """Mutable builder analyzers use to accumulate evidence in one call."""

    def __init__(self, analyzer: AnalyzerKind):
        self.analyzer = analyzer
        self._items: list[Evidence] = []
        self._seen: set[tuple[Any, ...]] = set()

    def add(
        self,
        category: FactCategory,
        key: tuple[str, ...],
        value: str,
        confidence: float,
        spans: Iterable[Span] = (),
        signal: str = "",
        **attributes: Any,
    ) -> Evidence | None:
        """Record an observation; exact duplicates are dropped."""
        item = Evidence(
            category=category,
            key=key,
            value=value,
            confidence=min(1.0, max(0.0, confidence)),
            source_spans=tuple(spans),
            analyzer=self.analyzer,
            signal=signal,
            attributes=attributes,
        )
        if item.identity in self._seen:
            return None
        self._seen.add(item.identity)
        self._items.append(item)
        return item

    def __len__(self) -> int:
        return len(self._items)

    def build(self, notes: Iterable[str] = ()) -> FindingSet:
        return FindingSet(
            analyzer=self.analyzer, evidence=tuple(self._items), notes=tuple(notes)
        )

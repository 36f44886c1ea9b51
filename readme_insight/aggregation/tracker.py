"""Source/Context Tracker.

Sits between the analyzers and the aggregator. It makes sure every piece of
evidence points back into the input, and applies the single-hop section
inheritance rule: an untagged code block with no language evidence of its
own borrows the dominant language of its nearest enclosing section, at a
penalty. Inheritance never cascades to outer sections.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Mapping

from readme_insight.aggregation.confidence import combine_values
from readme_insight.analyzers.types import (
    AnalyzerKind,
    Evidence,
    FactCategory,
    FindingSet,
)
from readme_insight.constants import (
    DEFAULT_INHERITANCE_FLOOR,
    DEFAULT_INHERITANCE_PENALTY,
)
from readme_insight.parsing.nodes import StructureTree
from readme_insight.types.core import Span
from readme_insight.types.errors import ErrorCode, PipelineIssue, aggregation_warning
from readme_insight.utils.logger import logger

INHERITED_SIGNAL = "inherited_from_section"


@dataclass(frozen=True)
class InheritanceResult:
    evidence: tuple[Evidence, ...] = ()
    warnings: tuple[PipelineIssue, ...] = ()


@dataclass(frozen=True)
class TrackedFindings:
    """Finding sets after provenance and inheritance, plus tracker warnings."""

    findings: dict[AnalyzerKind, FindingSet]
    warnings: tuple[PipelineIssue, ...] = ()


class SourceTracker:
    """Attaches provenance and resolves section inheritance."""

    def __init__(
        self,
        inheritance_floor: float = DEFAULT_INHERITANCE_FLOOR,
        inheritance_penalty: float = DEFAULT_INHERITANCE_PENALTY,
    ):
        self.inheritance_floor = inheritance_floor
        self.inheritance_penalty = inheritance_penalty

    def track(
        self,
        tree: StructureTree,
        raw_text: str,
        findings: Mapping[AnalyzerKind, FindingSet],
    ) -> TrackedFindings:
        """Run both tracker passes over every analyzer's findings."""
        tracked = {
            AnalyzerKind(kind): self.attach_provenance(tree, raw_text, finding_set)
            for kind, finding_set in findings.items()
        }
        language_evidence = [
            item
            for kind in AnalyzerKind
            if kind in tracked
            for item in tracked[kind].evidence
            if item.category == FactCategory.LANGUAGE
        ]
        inherited = self.resolve_inheritance(tree, language_evidence)
        if inherited.evidence:
            base = tracked.get(AnalyzerKind.LANGUAGE, FindingSet(AnalyzerKind.LANGUAGE))
            tracked[AnalyzerKind.LANGUAGE] = base.replace_evidence(
                base.evidence + inherited.evidence
            )
        return TrackedFindings(findings=tracked, warnings=inherited.warnings)

    # ------------------------------------------------------------------
    # Provenance
    # ------------------------------------------------------------------

    def attach_provenance(
        self, tree: StructureTree, raw_text: str, finding_set: FindingSet
    ) -> FindingSet:
        """Guarantee at least one source span per evidence."""
        if all(item.source_spans for item in finding_set.evidence):
            return finding_set
        return finding_set.replace_evidence(
            (
                item
                if item.source_spans
                else item.with_spans((self.locate(tree, raw_text, item.value),))
            )
            for item in finding_set.evidence
        )

    def locate(self, tree: StructureTree, raw_text: str, value: str) -> Span:
        """First case-insensitive occurrence of ``value``; whole document otherwise."""
        if value:
            index = raw_text.lower().find(value.lower())
            if index >= 0:
                return tree.span_for(index, index + len(value))
        return tree.whole_span()

    # ------------------------------------------------------------------
    # Inheritance
    # ------------------------------------------------------------------

    def resolve_inheritance(
        self, tree: StructureTree, language_evidence: Iterable[Evidence]
    ) -> InheritanceResult:
        """Inherited language evidence for untagged, unevidenced code blocks."""
        evidence = [
            item for item in language_evidence if item.signal != INHERITED_SIGNAL
        ]
        inherited: list[Evidence] = []
        warnings: list[PipelineIssue] = []

        for index, block in tree.code_blocks():
            if block.declared_language is not None:
                continue
            if any(
                block.span.contains(span) for item in evidence for span in item.source_spans
            ):
                continue
            enclosing = tree.enclosing_heading(index)
            if enclosing is None:
                continue
            heading_index, heading = enclosing
            section = tree.section_span(heading_index)

            per_language: dict[str, list[float]] = defaultdict(list)
            for item in evidence:
                if any(
                    section.contains(span) and not block.span.overlaps(span)
                    for span in item.source_spans
                ):
                    per_language[item.key[0]].append(item.confidence)
            if not per_language:
                continue

            scored = sorted(
                ((combine_values(values), language) for language, values in per_language.items()),
                key=lambda pair: (-pair[0], pair[1]),
            )
            confidence, language = scored[0]
            if confidence <= self.inheritance_floor:
                continue

            inherited.append(
                Evidence(
                    category=FactCategory.LANGUAGE,
                    key=(language,),
                    value=language,
                    confidence=confidence * self.inheritance_penalty,
                    source_spans=(block.span, heading.span),
                    analyzer=AnalyzerKind.LANGUAGE,
                    signal=INHERITED_SIGNAL,
                    attributes={"section": heading.text},
                )
            )
            warnings.append(
                aggregation_warning(
                    ErrorCode.INHERITANCE_APPLIED,
                    f"Code block at line {block.span.start_line} inherited "
                    f"{language} from section '{heading.text}'",
                    component="SourceTracker",
                    span=block.span,
                )
            )
            logger.debug(
                "Block at line {} inherited {} ({:.2f})",
                block.span.start_line,
                language,
                confidence * self.inheritance_penalty,
            )

        return InheritanceResult(evidence=tuple(inherited), warnings=tuple(warnings))

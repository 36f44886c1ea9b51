"""
Tests for the analyzer registry and the evidence types analyzers share.
"""

import pytest

from readme_insight.analyzers import (
    AnalyzerKind,
    AnalyzerRegistry,
    EvidenceCollector,
    FactCategory,
    FindingSet,
    LanguageDetector,
)
from readme_insight.analyzers.types import Evidence
from readme_insight.types.core import Span


class StubAnalyzer:
    kind = AnalyzerKind.LANGUAGE

    def analyze(self, tree, raw_text, auxiliary_files):
        return FindingSet.empty(self.kind)


class TestAnalyzerRegistry:
    """Tests for AnalyzerRegistry."""

    def test_default_has_every_kind_in_order(self):
        registry = AnalyzerRegistry.create_default()
        assert registry.kinds() == list(AnalyzerKind)
        assert len(registry) == 5
        assert all(analyzer.kind == kind for kind, analyzer in registry.items())

    def test_missing_kind_rejected(self):
        with pytest.raises(ValueError, match="metadata_extractor"):
            AnalyzerRegistry(
                {
                    kind: StubAnalyzer()
                    for kind in AnalyzerKind
                    if kind != AnalyzerKind.METADATA
                }
            )

    def test_non_analyzer_rejected(self):
        analyzers = {kind: StubAnalyzer() for kind in AnalyzerKind}
        analyzers[AnalyzerKind.TESTING] = object()
        with pytest.raises(TypeError):
            AnalyzerRegistry(analyzers)

    def test_order_independent_of_registration(self):
        analyzers = {kind: StubAnalyzer() for kind in reversed(list(AnalyzerKind))}
        assert AnalyzerRegistry(analyzers).kinds() == list(AnalyzerKind)

    def test_replace_returns_new_registry(self):
        registry = AnalyzerRegistry.create_default()
        stub = StubAnalyzer()
        replaced = registry.replace(AnalyzerKind.LANGUAGE, stub)
        assert replaced.get(AnalyzerKind.LANGUAGE) is stub
        assert isinstance(registry.get(AnalyzerKind.LANGUAGE), LanguageDetector)


class TestEvidence:
    """Tests for Evidence and EvidenceCollector."""

    def test_confidence_bounds_enforced(self):
        with pytest.raises(ValueError):
            Evidence(FactCategory.LANGUAGE, ("python",), "python", 1.5)

    def test_spans_sorted(self):
        late, early = Span(3, 3, 20, 25), Span(1, 1, 0, 5)
        item = Evidence(FactCategory.LANGUAGE, ("go",), "go", 0.5, (late, early))
        assert item.source_spans == (early, late)
        assert item.first_span == early

    def test_attributes_do_not_affect_equality(self):
        a = Evidence(FactCategory.LANGUAGE, ("go",), "go", 0.5, attributes={"x": 1})
        b = Evidence(FactCategory.LANGUAGE, ("go",), "go", 0.5, attributes={"x": 2})
        assert a == b

    def test_collector_drops_exact_duplicates_and_clamps(self):
        collector = EvidenceCollector(AnalyzerKind.COMMAND)
        span = Span(1, 1, 0, 11)
        first = collector.add(FactCategory.COMMAND, ("test", "npm test"), "npm test", 1.2, [span])
        again = collector.add(FactCategory.COMMAND, ("test", "npm test"), "npm test", 0.9, [span])
        assert first.confidence == 1.0
        assert again is None
        finding_set = collector.build(notes=["note"])
        assert len(finding_set) == 1
        assert finding_set.notes == ("note",)
        assert finding_set.analyzer == AnalyzerKind.COMMAND

    def test_findings_group_by_key(self):
        collector = EvidenceCollector(AnalyzerKind.LANGUAGE)
        collector.add(FactCategory.LANGUAGE, ("python",), "python", 0.8, signal="a")
        collector.add(FactCategory.LANGUAGE, ("go",), "go", 0.3, signal="a")
        collector.add(FactCategory.LANGUAGE, ("python",), "python", 0.4, signal="b")
        findings = collector.build().findings()
        assert [f.key for f in findings] == [("python",), ("go",)]
        assert len(findings[0].evidence) == 2

    def test_empty_finding_set(self):
        empty = FindingSet.empty(AnalyzerKind.TESTING, "timed out")
        assert empty.is_empty
        assert empty.notes == ("timed out",)

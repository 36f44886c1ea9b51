"""Fixed registry of the analyzers a pipeline runs.

The set of analyzer kinds is closed: a registry holds exactly one analyzer per
``AnalyzerKind`` and iterates them in enum order, so fan-out and result
ordering never depend on registration order. Tests swap individual analyzers
with ``replace``.
"""

from __future__ import annotations

from typing import Iterator, Mapping

from readme_insight.analyzers.commands import CommandExtractor
from readme_insight.analyzers.dependencies import DependencyExtractor
from readme_insight.analyzers.language import LanguageDetector
from readme_insight.analyzers.metadata import MetadataExtractor
from readme_insight.analyzers.protocols import Analyzer
from readme_insight.analyzers.testing import TestingDetector
from readme_insight.analyzers.types import AnalyzerKind


class AnalyzerRegistry:
    """One analyzer per kind, enumerable in a fixed order."""

    def __init__(self, analyzers: Mapping[AnalyzerKind, Analyzer]):
        missing = [kind.value for kind in AnalyzerKind if kind not in analyzers]
        if missing:
            raise ValueError(f"Analyzer registry is missing: {', '.join(missing)}")
        for kind, analyzer in analyzers.items():
            if not isinstance(analyzer, Analyzer):
                raise TypeError(f"{kind.value} does not implement the Analyzer protocol")
        self._analyzers = {kind: analyzers[kind] for kind in AnalyzerKind}

    @classmethod
    def create_default(cls) -> AnalyzerRegistry:
        """Registry with the five built-in analyzers."""
        return cls(
            {
                AnalyzerKind.LANGUAGE: LanguageDetector(),
                AnalyzerKind.COMMAND: CommandExtractor(),
                AnalyzerKind.DEPENDENCY: DependencyExtractor(),
                AnalyzerKind.TESTING: TestingDetector(),
                AnalyzerKind.METADATA: MetadataExtractor(),
            }
        )

    def replace(self, kind: AnalyzerKind, analyzer: Analyzer) -> AnalyzerRegistry:
        """Copy of this registry with one analyzer swapped."""
        analyzers = dict(self._analyzers)
        analyzers[kind] = analyzer
        return AnalyzerRegistry(analyzers)

    def get(self, kind: AnalyzerKind) -> Analyzer:
        return self._analyzers[kind]

    def kinds(self) -> list[AnalyzerKind]:
        return list(self._analyzers)

    def items(self) -> Iterator[tuple[AnalyzerKind, Analyzer]]:
        return iter(self._analyzers.items())

    def __len__(self) -> int:
        return len(self._analyzers)

    def __iter__(self) -> Iterator[Analyzer]:
        return iter(self._analyzers.values())

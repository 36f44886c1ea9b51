"""Analyzer protocol for the analysis pipeline.

Defines the Analyzer Protocol that all five heuristic analyzers satisfy. The
orchestrator dispatches through a fixed AnalyzerRegistry keyed by
AnalyzerKind; nothing is looked up dynamically.
"""

from __future__ import annotations

from typing import Mapping, Protocol, runtime_checkable

from readme_insight.analyzers.types import AnalyzerKind, FindingSet
from readme_insight.parsing.nodes import StructureTree


@runtime_checkable
class Analyzer(Protocol):
    """Stateless heuristic over a shared, immutable StructureTree.

    Implementations must not mutate the tree, must not look at another
    analyzer's output, and only ever create new Evidence objects. They may
    raise; the orchestrator turns any exception into an empty FindingSet
    plus an AnalyzerError.
    """

    @property
    def kind(self) -> AnalyzerKind:
        """Registry key of this analyzer."""
        ...

    def analyze(
        self,
        tree: StructureTree,
        raw_text: str,
        auxiliary_files: Mapping[str, str],
    ) -> FindingSet:
        """Observe the document and return independent evidence."""
        ...

"""Dependency container for a pipeline.

There are no module-level singletons: whoever builds an orchestrator builds
(or defaults) its parser, cache, analyzers, tracker and aggregator here, so
tests can swap any one of them.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from readme_insight.aggregation.aggregator import ResultAggregator
from readme_insight.aggregation.tracker import SourceTracker
from readme_insight.analyzers.protocols import Analyzer
from readme_insight.analyzers.registry import AnalyzerRegistry
from readme_insight.analyzers.types import AnalyzerKind
from readme_insight.parsing.cache import StructureCache
from readme_insight.parsing.parser import DocumentParser
from readme_insight.pipeline.config import PipelineConfig


@dataclass(frozen=True)
class PipelineComponents:
    """Everything a PipelineOrchestrator needs."""

    config: PipelineConfig
    parser: DocumentParser
    cache: StructureCache | None
    analyzers: AnalyzerRegistry
    tracker: SourceTracker
    aggregator: ResultAggregator

    @classmethod
    def create_default(cls, config: PipelineConfig | None = None) -> PipelineComponents:
        """Fresh default components; nothing is shared between calls."""
        config = config or PipelineConfig()
        cache = (
            StructureCache(
                max_entries=config.cache_max_entries,
                ttl_seconds=config.cache_ttl_seconds,
            )
            if config.cache_enabled
            else None
        )
        return cls(
            config=config,
            parser=DocumentParser(),
            cache=cache,
            analyzers=AnalyzerRegistry.create_default(),
            tracker=SourceTracker(
                inheritance_floor=config.inheritance_floor,
                inheritance_penalty=config.inheritance_penalty,
            ),
            aggregator=ResultAggregator(
                fallback_command_penalty=config.fallback_command_penalty,
            ),
        )

    def with_analyzer(self, kind: AnalyzerKind, analyzer: Analyzer) -> PipelineComponents:
        """Copy with one analyzer replaced."""
        return replace(self, analyzers=self.analyzers.replace(kind, analyzer))

    def with_cache(self, cache: StructureCache | None) -> PipelineComponents:
        return replace(self, cache=cache)

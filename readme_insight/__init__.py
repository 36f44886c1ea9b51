"""
readme-insight - confidence-scored project analysis from README documents.

Provides:
- A line-based markdown structure parser with a single-flight parse cache
- Five independent heuristic analyzers (languages, commands, dependencies,
  testing setup, project metadata)
- Provenance tracking and single-hop language inheritance for code blocks
- Deterministic evidence aggregation into a ProjectInfo model

Usage:
    from readme_insight import PipelineOrchestrator

    orchestrator = PipelineOrchestrator()
    result = orchestrator.run_sync(readme_text)
    print(result.data.languages)
"""

__version__ = "0.1.0"

from readme_insight.pipeline import (  # noqa: E402
    PipelineComponents,
    PipelineConfig,
    PipelineOrchestrator,
    PipelineResult,
)

__all__ = [
    "PipelineComponents",
    "PipelineConfig",
    "PipelineOrchestrator",
    "PipelineResult",
    "__version__",
]

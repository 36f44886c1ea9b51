"""
README analysis pipeline.

- PipelineOrchestrator: parse -> analyze -> aggregate -> validate
- PipelineComponents: caller-built dependency container
- PipelineConfig: validated tunables, overridable from the environment
- PipelineResult / PipelineRun: result envelope and run bookkeeping
"""

from .components import PipelineComponents
from .config import PipelineConfig
from .orchestrator import PipelineOrchestrator
from .result import PipelineResult
from .run import PipelineRun, RunState, StageRecord, StageStatus

__all__ = [
    "PipelineComponents",
    "PipelineConfig",
    "PipelineOrchestrator",
    "PipelineResult",
    "PipelineRun",
    "RunState",
    "StageRecord",
    "StageStatus",
]

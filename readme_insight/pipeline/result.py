"""Result envelope returned by the pipeline."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from readme_insight.aggregation.project import ProjectInfo
from readme_insight.pipeline.run import PipelineRun
from readme_insight.types.errors import ErrorCode, PipelineIssue


@dataclass(frozen=True)
class PipelineResult:
    """ProjectInfo plus errors, warnings and run metadata.

    ``success`` is False only when the input could not be parsed; analyzer
    failures and aggregation warnings leave it True.
    """

    success: bool
    data: ProjectInfo | None
    errors: tuple[PipelineIssue, ...]
    warnings: tuple[PipelineIssue, ...]
    run: PipelineRun

    @property
    def pipeline_metadata(self) -> dict[str, Any]:
        metadata = self.run.to_dict()
        return {
            "runId": metadata["runId"],
            "state": metadata["state"],
            "executionTimeMs": metadata["executionTimeMs"],
            "stages": metadata["stages"],
            "cacheHit": metadata["cacheHit"],
            "fingerprint": metadata["fingerprint"],
            "analyzerTimings": metadata["analyzerTimings"],
        }

    def error_codes(self) -> list[ErrorCode]:
        return [issue.code for issue in self.errors]

    def warning_codes(self) -> list[ErrorCode]:
        return [issue.code for issue in self.warnings]

    def to_dict(self) -> dict[str, Any]:
        """Convert to the contract shape consumed by downstream layers."""
        result: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            result["data"] = self.data.to_dict()
        result["errors"] = [issue.to_dict() for issue in self.errors]
        result["warnings"] = [issue.to_dict() for issue in self.warnings]
        result["pipelineMetadata"] = self.pipeline_metadata
        return result

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

"""Pipeline run bookkeeping.

A PipelineRun moves through a fixed state machine and records one
StageRecord per stage. Stages run strictly in order; any other transition is
a programming error and raises PipelineStateError.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from readme_insight.constants import utcnow
from readme_insight.types.errors import PipelineStateError
from readme_insight.utils.logger import generate_run_id, logger


class RunState(StrEnum):
    CREATED = "created"
    PARSING = "parsing"
    ANALYZING = "analyzing"
    AGGREGATING = "aggregating"
    COMPLETED = "completed"
    DEGRADED = "degraded"
    CANCELLED = "cancelled"


class StageStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


STAGES: tuple[str, ...] = ("parse", "analyze", "aggregate", "validate")

TERMINAL_STATES = frozenset({RunState.COMPLETED, RunState.DEGRADED, RunState.CANCELLED})

_TRANSITIONS: dict[RunState, frozenset[RunState]] = {
    RunState.CREATED: frozenset({RunState.PARSING, RunState.CANCELLED}),
    RunState.PARSING: frozenset({RunState.ANALYZING, RunState.DEGRADED, RunState.CANCELLED}),
    RunState.ANALYZING: frozenset({RunState.AGGREGATING, RunState.CANCELLED}),
    RunState.AGGREGATING: frozenset({RunState.COMPLETED, RunState.CANCELLED}),
    RunState.COMPLETED: frozenset(),
    RunState.DEGRADED: frozenset(),
    RunState.CANCELLED: frozenset(),
}


@dataclass
class StageRecord:
    """Timing and outcome of one pipeline stage."""

    name: str
    status: StageStatus = StageStatus.PENDING
    started_at: datetime | None = None
    duration_ms: float | None = None
    error: str | None = None
    _started: float | None = field(default=None, repr=False, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "startedAt": self.started_at.isoformat() if self.started_at else None,
            "durationMs": self.duration_ms,
            "error": self.error,
        }


@dataclass
class PipelineRun:
    """Mutable record of one pipeline execution."""

    id: str = field(default_factory=generate_run_id)
    started_at: datetime = field(default_factory=utcnow)
    state: RunState = RunState.CREATED
    stages: list[StageRecord] = field(default_factory=lambda: [StageRecord(n) for n in STAGES])
    cache_hit: bool = False
    fingerprint: str | None = None
    analyzer_timings: dict[str, float] = field(default_factory=dict)
    _clock_start: float = field(default_factory=time.perf_counter, repr=False)
    _finished: float | None = field(default=None, repr=False)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def execution_time_ms(self) -> float:
        end = self._finished if self._finished is not None else time.perf_counter()
        return (end - self._clock_start) * 1000

    def stage(self, name: str) -> StageRecord:
        for record in self.stages:
            if record.name == name:
                return record
        raise PipelineStateError(f"Unknown stage '{name}'")

    def transition(self, target: RunState) -> None:
        """Move to ``target``; raises PipelineStateError when not allowed."""
        if target not in _TRANSITIONS[self.state]:
            raise PipelineStateError(
                f"Illegal transition {self.state.value} -> {target.value} in run {self.id}"
            )
        logger.debug("Run {}: {} -> {}", self.id, self.state.value, target.value)
        self.state = target
        if target in TERMINAL_STATES:
            self._finished = time.perf_counter()

    def start_stage(self, name: str) -> StageRecord:
        """Mark a stage running; every earlier stage must be finished."""
        record = self.stage(name)
        for earlier in self.stages[: self.stages.index(record)]:
            if earlier.status in (StageStatus.PENDING, StageStatus.RUNNING):
                raise PipelineStateError(
                    f"Stage '{name}' started before '{earlier.name}' finished"
                )
        if record.status != StageStatus.PENDING:
            raise PipelineStateError(f"Stage '{name}' already {record.status.value}")
        record.status = StageStatus.RUNNING
        record.started_at = utcnow()
        record._started = time.perf_counter()
        return record

    def finish_stage(self, name: str, error: str | None = None) -> StageRecord:
        """Mark a running stage completed, or failed when ``error`` is given."""
        record = self.stage(name)
        if record.status != StageStatus.RUNNING:
            raise PipelineStateError(f"Stage '{name}' is not running")
        record.status = StageStatus.FAILED if error else StageStatus.COMPLETED
        record.error = error
        if record._started is not None:
            record.duration_ms = (time.perf_counter() - record._started) * 1000
        return record

    def skip_remaining(self) -> None:
        """Mark every stage that never started as skipped."""
        for record in self.stages:
            if record.status == StageStatus.PENDING:
                record.status = StageStatus.SKIPPED

    def abort_running(self, reason: str) -> None:
        """Fail whatever stage is running (used on cancellation)."""
        for record in self.stages:
            if record.status == StageStatus.RUNNING:
                self.finish_stage(record.name, error=reason)

    def to_dict(self) -> dict[str, Any]:
        return {
            "runId": self.id,
            "state": self.state.value,
            "startedAt": self.started_at.isoformat(),
            "executionTimeMs": self.execution_time_ms,
            "stages": [record.to_dict() for record in self.stages],
            "cacheHit": self.cache_hit,
            "fingerprint": self.fingerprint,
            "analyzerTimings": dict(self.analyzer_timings),
        }

"""
Tests for PipelineRun bookkeeping and its state machine.
"""

import re

import pytest

from readme_insight.pipeline import PipelineRun, RunState, StageStatus
from readme_insight.types.errors import ErrorCode, PipelineStateError


def drive(run, *states):
    for state in states:
        run.transition(state)


class TestTransitions:
    """Tests for the run state machine."""

    def test_happy_path(self):
        run = PipelineRun()
        drive(
            run,
            RunState.PARSING,
            RunState.ANALYZING,
            RunState.AGGREGATING,
            RunState.COMPLETED,
        )
        assert run.state == RunState.COMPLETED
        assert run.is_terminal

    def test_parse_failure_degrades(self):
        run = PipelineRun()
        drive(run, RunState.PARSING, RunState.DEGRADED)
        assert run.is_terminal

    @pytest.mark.parametrize(
        "path",
        [
            (RunState.ANALYZING,),
            (RunState.PARSING, RunState.AGGREGATING),
            (RunState.PARSING, RunState.ANALYZING, RunState.DEGRADED),
            (RunState.CREATED,),
        ],
    )
    def test_illegal_transitions(self, path):
        run = PipelineRun()
        with pytest.raises(PipelineStateError) as exc_info:
            drive(run, *path)
        assert exc_info.value.code == ErrorCode.ILLEGAL_STAGE_TRANSITION

    @pytest.mark.parametrize("terminal", [RunState.COMPLETED, RunState.CANCELLED])
    def test_terminal_states_are_final(self, terminal):
        run = PipelineRun()
        if terminal == RunState.COMPLETED:
            drive(run, RunState.PARSING, RunState.ANALYZING, RunState.AGGREGATING, terminal)
        else:
            drive(run, terminal)
        with pytest.raises(PipelineStateError):
            run.transition(RunState.CANCELLED)

    def test_cancel_from_any_running_state(self):
        run = PipelineRun()
        drive(run, RunState.PARSING, RunState.ANALYZING, RunState.CANCELLED)
        assert run.state == RunState.CANCELLED

    def test_execution_time_frozen_when_terminal(self):
        run = PipelineRun()
        drive(run, RunState.CANCELLED)
        first = run.execution_time_ms
        assert run.execution_time_ms == first


class TestStages:
    """Tests for stage records."""

    def test_stages_in_order(self):
        run = PipelineRun()
        assert [record.name for record in run.stages] == [
            "parse",
            "analyze",
            "aggregate",
            "validate",
        ]
        assert all(record.status == StageStatus.PENDING for record in run.stages)

    def test_start_and_finish(self):
        run = PipelineRun()
        record = run.start_stage("parse")
        assert record.status == StageStatus.RUNNING
        assert record.started_at is not None
        run.finish_stage("parse")
        assert record.status == StageStatus.COMPLETED
        assert record.duration_ms >= 0

    def test_failed_stage_keeps_error(self):
        run = PipelineRun()
        run.start_stage("parse")
        record = run.finish_stage("parse", error="bad bytes")
        assert record.status == StageStatus.FAILED
        assert record.error == "bad bytes"

    def test_stage_cannot_skip_ahead(self):
        run = PipelineRun()
        with pytest.raises(PipelineStateError, match="before 'parse' finished"):
            run.start_stage("analyze")

    def test_stage_cannot_restart(self):
        run = PipelineRun()
        run.start_stage("parse")
        run.finish_stage("parse")
        with pytest.raises(PipelineStateError):
            run.start_stage("parse")

    def test_finish_requires_running(self):
        run = PipelineRun()
        with pytest.raises(PipelineStateError):
            run.finish_stage("parse")

    def test_unknown_stage(self):
        with pytest.raises(PipelineStateError):
            PipelineRun().stage("deploy")

    def test_abort_and_skip(self):
        run = PipelineRun()
        run.start_stage("parse")
        run.finish_stage("parse")
        run.start_stage("analyze")
        run.abort_running("cancelled")
        run.skip_remaining()
        statuses = {record.name: record.status for record in run.stages}
        assert statuses == {
            "parse": StageStatus.COMPLETED,
            "analyze": StageStatus.FAILED,
            "aggregate": StageStatus.SKIPPED,
            "validate": StageStatus.SKIPPED,
        }
        assert run.stage("analyze").error == "cancelled"


class TestSerialization:
    """Tests for PipelineRun.to_dict."""

    def test_to_dict(self):
        run = PipelineRun()
        run.fingerprint = "abc"
        run.analyzer_timings["language_detector"] = 1.5
        data = run.to_dict()
        assert set(data) == {
            "runId",
            "state",
            "startedAt",
            "executionTimeMs",
            "stages",
            "cacheHit",
            "fingerprint",
            "analyzerTimings",
        }
        assert data["state"] == "created"
        assert data["stages"][0] == {
            "name": "parse",
            "status": "pending",
            "startedAt": None,
            "durationMs": None,
            "error": None,
        }
        assert data["analyzerTimings"] == {"language_detector": 1.5}

    def test_run_ids_unique_and_formatted(self):
        first, second = PipelineRun(), PipelineRun()
        assert first.id != second.id
        assert re.fullmatch(r"run_[0-9a-z]+_[0-9a-f]{8}", first.id)

"""Pipeline Orchestrator.

Drives one README through parse -> analyze -> aggregate -> validate:

- Parse: normalized text is fingerprinted and parsed through the structure
  cache (single flight). A broken cache degrades to a direct parse.
- Analyze: every registered analyzer runs on the orchestrator's thread pool
  under its own timeout. Failures and timeouts become empty contributions
  plus an error; the other analyzers are unaffected. A timed-out worker
  keeps running in the background, so its pool is retired and replaced.
- Aggregate: the source tracker and the result aggregator merge findings.
- Validate: invariant checks on the merged ProjectInfo.

Only an undecodable input fails a run (state DEGRADED, success False).
Cancelling the awaiting task cancels all analyzer tasks and re-raises.
"""

from __future__ import annotations

import asyncio
import contextvars
import functools
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Mapping

from readme_insight.aggregation.validation import validate_project_info
from readme_insight.analyzers.protocols import Analyzer
from readme_insight.analyzers.types import AnalyzerKind, FindingSet
from readme_insight.parsing.nodes import StructureTree
from readme_insight.parsing.parser import fingerprint, normalize_text
from readme_insight.pipeline.components import PipelineComponents
from readme_insight.pipeline.config import PipelineConfig
from readme_insight.pipeline.result import PipelineResult
from readme_insight.pipeline.run import PipelineRun, RunState
from readme_insight.types.errors import (
    AnalyzerError,
    CacheError,
    ErrorCode,
    ErrorSeverity,
    ParseError,
    PipelineIssue,
)
from readme_insight.utils.error_classifier import is_retryable
from readme_insight.utils.logger import logger, with_run_id

AuxiliaryInput = Mapping[str, str | bytes]


class PipelineOrchestrator:
    """Runs the README analysis pipeline.

    Usage:
        orchestrator = PipelineOrchestrator()
        result = await orchestrator.run(readme_text, {"package.json": manifest})
        if result.success:
            print(result.data.language_names())
    """

    def __init__(self, components: PipelineComponents | None = None):
        self.components = components or PipelineComponents.create_default()
        self._executor: ThreadPoolExecutor | None = None
        self._executor_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: PipelineConfig) -> PipelineOrchestrator:
        return cls(PipelineComponents.create_default(config))

    @property
    def config(self) -> PipelineConfig:
        return self.components.config

    async def run(
        self,
        text: str | bytes,
        auxiliary_files: AuxiliaryInput | None = None,
    ) -> PipelineResult:
        """Analyze one README (plus optional auxiliary manifests)."""
        run = PipelineRun()
        with with_run_id(run.id):
            try:
                return await self._execute(run, text, auxiliary_files or {})
            except asyncio.CancelledError:
                self._retire_executor()
                run.abort_running("cancelled")
                run.skip_remaining()
                run.transition(RunState.CANCELLED)
                logger.info("Pipeline run {} cancelled", run.id)
                raise

    def run_sync(
        self,
        text: str | bytes,
        auxiliary_files: AuxiliaryInput | None = None,
    ) -> PipelineResult:
        """Blocking wrapper around run() for callers without an event loop.

        Analyzers run on the orchestrator's own pool, so closing the loop
        never waits for a timed-out analyzer that is still running.
        """
        return asyncio.run(self.run(text, auxiliary_files))

    def close(self) -> None:
        """Release the analyzer pool without waiting for running workers."""
        self._retire_executor()

    # ------------------------------------------------------------------
    # Analyzer pool
    # ------------------------------------------------------------------

    def _submit(self, func: Callable[..., Any], *args: Any) -> asyncio.Future[Any]:
        """Run ``func`` on the analyzer pool, keeping the caller's run context."""
        loop = asyncio.get_running_loop()
        call = functools.partial(contextvars.copy_context().run, func, *args)
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=max(1, len(self.components.analyzers.kinds())),
                    thread_name_prefix="readme-insight-analyzer",
                )
            return loop.run_in_executor(self._executor, call)

    def _retire_executor(self) -> None:
        """Detach the current pool; a fresh one is created on the next submit.

        Abandoned workers finish in the background and never block a caller.
        """
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _execute(
        self, run: PipelineRun, text: str | bytes, auxiliary_input: AuxiliaryInput
    ) -> PipelineResult:
        errors: list[PipelineIssue] = []
        warnings: list[PipelineIssue] = []
        auxiliary_files = self._decode_auxiliary(auxiliary_input, warnings)

        # parse
        run.transition(RunState.PARSING)
        run.start_stage("parse")
        try:
            normalized = normalize_text(text)
        except ParseError as e:
            logger.warning("Input rejected: {}", e)
            run.finish_stage("parse", error=str(e))
            run.skip_remaining()
            run.transition(RunState.DEGRADED)
            errors.append(e.to_issue())
            return PipelineResult(
                success=False,
                data=None,
                errors=tuple(errors),
                warnings=tuple(warnings),
                run=run,
            )
        run.fingerprint = fingerprint(normalized)
        tree, run.cache_hit, cache_issue = await asyncio.to_thread(
            self._load_tree, normalized, run.fingerprint
        )
        if cache_issue is not None:
            warnings.append(cache_issue)
        warnings.extend(tree.warnings)
        run.finish_stage("parse")

        # analyze
        run.transition(RunState.ANALYZING)
        run.start_stage("analyze")
        findings = await self._analyze(run, tree, normalized, auxiliary_files, errors)
        # Failed analyzers mark the stage, never the run.
        failed = [issue.component for issue in errors]
        run.finish_stage(
            "analyze",
            error=f"{len(failed)} analyzer(s) failed: {', '.join(failed)}" if failed else None,
        )

        # aggregate
        run.transition(RunState.AGGREGATING)
        run.start_stage("aggregate")
        tracked = self.components.tracker.track(tree, normalized, findings)
        warnings.extend(tracked.warnings)
        aggregation = self.components.aggregator.aggregate(tracked.findings)
        warnings.extend(aggregation.warnings)
        run.finish_stage("aggregate")

        # validate
        run.start_stage("validate")
        warnings.extend(validate_project_info(aggregation.project))
        run.finish_stage("validate")
        run.transition(RunState.COMPLETED)

        logger.debug(
            "Run {} completed in {:.1f}ms ({} error(s), {} warning(s))",
            run.id,
            run.execution_time_ms,
            len(errors),
            len(warnings),
        )
        return PipelineResult(
            success=True,
            data=aggregation.project,
            errors=tuple(errors),
            warnings=tuple(warnings),
            run=run,
        )

    def _decode_auxiliary(
        self, auxiliary_input: AuxiliaryInput, warnings: list[PipelineIssue]
    ) -> dict[str, str]:
        """Normalize auxiliary files; undecodable ones are skipped."""
        decoded: dict[str, str] = {}
        for name in sorted(auxiliary_input):
            try:
                decoded[name] = normalize_text(auxiliary_input[name])
            except ParseError as e:
                logger.warning("Skipping auxiliary file {}: {}", name, e)
                warnings.append(
                    PipelineIssue(
                        code=ErrorCode.AUXILIARY_FILE_SKIPPED,
                        message=f"Auxiliary file '{name}' skipped: {e}",
                        component="PipelineOrchestrator",
                        severity=ErrorSeverity.LOW,
                    )
                )
        return decoded

    def _load_tree(
        self, normalized: str, digest: str
    ) -> tuple[StructureTree, bool, PipelineIssue | None]:
        """Parse through the cache; (tree, cache_hit, cache issue)."""
        parser = self.components.parser
        cache = self.components.cache
        if cache is None:
            return parser.parse_normalized(normalized, digest), False, None
        try:
            tree, hit = cache.get_or_compute(
                digest, lambda: parser.parse_normalized(normalized, digest)
            )
            return tree, hit, None
        except ParseError:
            raise
        except Exception as e:
            error = CacheError(f"Structure cache failed: {e}", original_error=e)
            logger.warning("{}; parsing without cache", error)
            return parser.parse_normalized(normalized, digest), False, error.to_issue()

    async def _analyze(
        self,
        run: PipelineRun,
        tree: StructureTree,
        text: str,
        auxiliary_files: dict[str, str],
        errors: list[PipelineIssue],
    ) -> dict[AnalyzerKind, FindingSet]:
        """Fan out to every analyzer and join; failures never propagate."""
        kinds = self.components.analyzers.kinds()
        outcomes = await asyncio.gather(
            *(
                self._run_analyzer(kind, analyzer, tree, text, auxiliary_files)
                for kind, analyzer in self.components.analyzers.items()
            )
        )
        findings: dict[AnalyzerKind, FindingSet] = {}
        for kind, (finding_set, issue, duration_ms) in zip(kinds, outcomes):
            findings[kind] = finding_set
            run.analyzer_timings[kind.value] = duration_ms
            if issue is not None:
                errors.append(issue)
        return findings

    async def _run_analyzer(
        self,
        kind: AnalyzerKind,
        analyzer: Analyzer,
        tree: StructureTree,
        text: str,
        auxiliary_files: dict[str, str],
    ) -> tuple[FindingSet, PipelineIssue | None, float]:
        timeout = self.config.analyzer_timeout_seconds
        started = time.perf_counter()

        def elapsed() -> float:
            return (time.perf_counter() - started) * 1000

        try:
            finding_set = await asyncio.wait_for(
                self._attempt(kind, analyzer, tree, text, auxiliary_files),
                timeout=timeout,
            )
        except TimeoutError:
            error = AnalyzerError(
                kind.value, f"{kind.value} exceeded its {timeout}s timeout", timed_out=True
            )
            logger.warning("Analyzer {} timed out after {}s", kind.value, timeout)
            # The worker cannot be stopped; keep it out of later runs' pool.
            self._retire_executor()
            return FindingSet.empty(kind, "timed out"), error.to_issue(), elapsed()
        except AnalyzerError as e:
            logger.warning("Analyzer {} failed: {}", kind.value, e)
            return FindingSet.empty(kind, "failed"), e.to_issue(), elapsed()

        for note in finding_set.notes:
            logger.debug("{}: {}", kind.value, note)
        return finding_set, None, elapsed()

    async def _attempt(
        self,
        kind: AnalyzerKind,
        analyzer: Analyzer,
        tree: StructureTree,
        text: str,
        auxiliary_files: dict[str, str],
    ) -> FindingSet:
        """Run one analyzer, retrying retryable failures."""
        max_attempts = self.config.analyzer_retries + 1
        attempt = 0
        while True:
            attempt += 1
            try:
                result = await self._submit(analyzer.analyze, tree, text, auxiliary_files)
                if not isinstance(result, FindingSet):
                    raise TypeError(
                        f"{kind.value} returned {type(result).__name__}, expected FindingSet"
                    )
                return result
            except Exception as e:
                if attempt < max_attempts and is_retryable(e):
                    logger.debug(
                        "Analyzer {} attempt {}/{} failed ({}); retrying",
                        kind.value,
                        attempt,
                        max_attempts,
                        e,
                    )
                    continue
                raise AnalyzerError(
                    kind.value,
                    f"{kind.value} raised {type(e).__name__}: {e}",
                    original_error=e,
                    attempts=attempt,
                ) from e

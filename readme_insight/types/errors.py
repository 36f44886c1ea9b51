"""
Structured error handling for readme-insight.

Only ParseError is fatal to a pipeline run. Analyzer, cache and aggregation
problems are collected as PipelineIssue records next to a best-effort
ProjectInfo; confidence scores carry the degradation to callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any

from readme_insight.constants import utcnow
from readme_insight.types.core import Span


class ErrorCode(IntEnum):
    """Internal error codes for categorization."""

    # Parsing Errors (1000-1999)
    PARSE_MALFORMED = 1001
    UNCLOSED_CODE_FENCE = 1002

    # Analyzer Errors (2000-2999)
    ANALYZER_FAILED = 2001
    ANALYZER_TIMEOUT = 2002

    # Aggregation Warnings (3000-3999)
    CATEGORY_EMPTY = 3001
    NO_CATEGORIES_POPULATED = 3002
    INHERITANCE_APPLIED = 3003
    COMMAND_CATEGORY_FALLBACK = 3004
    VALIDATION_FAILED = 3005

    # Cache Errors (4000-4999)
    CACHE_UNAVAILABLE = 4001

    # Configuration / Input Errors (5000-5999)
    INVALID_CONFIG = 5001
    AUXILIARY_FILE_SKIPPED = 5002
    ILLEGAL_STAGE_TRANSITION = 5003


class ErrorSeverity(str, Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class PipelineIssue:
    """One error or warning reported in a pipeline result."""

    code: ErrorCode
    message: str
    component: str
    severity: ErrorSeverity = ErrorSeverity.LOW
    span: Span | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the result envelope shape."""
        result: dict[str, Any] = {
            "code": self.code.name,
            "message": self.message,
            "component": self.component,
            "severity": self.severity.value,
        }
        if self.span is not None:
            result["span"] = self.span.to_dict()
        return result


@dataclass
class ErrorContext:
    """Context information for an error."""

    operation: str | None = None
    component: str | None = None
    span: Span | None = None
    timestamp: datetime = field(default_factory=utcnow)
    additional_info: dict[str, Any] = field(default_factory=dict)


class ReadmeInsightError(Exception):
    """Base error class for readme-insight."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        user_message: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: ErrorContext | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.severity = severity
        self.user_message = user_message
        self.context = context or ErrorContext()
        self.original_error = original_error
        self.context.timestamp = utcnow()

    @property
    def component(self) -> str:
        return self.context.component or "pipeline"

    def get_formatted_message(self) -> str:
        """Get a formatted error message for display to users."""
        parts = [
            f"[Error] {self.user_message}",
            f"   Code: {self.code.name} ({self.code.value})",
        ]
        if self.context.operation:
            parts.append(f"   Operation: {self.context.operation}")
        if self.context.component:
            parts.append(f"   Component: {self.context.component}")
        if self.context.span is not None:
            parts.append(
                f"   Lines: {self.context.span.start_line}-{self.context.span.end_line}"
            )
        return "\n".join(parts)

    def to_issue(self) -> PipelineIssue:
        """Convert to a result-envelope issue."""
        return PipelineIssue(
            code=self.code,
            message=str(self),
            component=self.component,
            severity=self.severity,
            span=self.context.span,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "name": self.__class__.__name__,
            "code": self.code.name,
            "message": str(self),
            "user_message": self.user_message,
            "severity": self.severity.value,
            "context": {
                "operation": self.context.operation,
                "component": self.context.component,
                "span": self.context.span.to_dict() if self.context.span else None,
                "timestamp": self.context.timestamp.isoformat(),
                "additional_info": self.context.additional_info,
            },
            "original_error": str(self.original_error) if self.original_error else None,
        }


class ParseError(ReadmeInsightError):
    """Input could not be tokenized at all (e.g. undecodable bytes)."""

    def __init__(
        self,
        message: str,
        user_message: str | None = None,
        context: ErrorContext | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        context = context or ErrorContext()
        context.component = context.component or "DocumentParser"
        super().__init__(
            code=ErrorCode.PARSE_MALFORMED,
            message=message,
            user_message=user_message or "The README could not be decoded.",
            severity=ErrorSeverity.CRITICAL,
            context=context,
            original_error=original_error,
        )


class AnalyzerError(ReadmeInsightError):
    """An analyzer raised or timed out; its contribution is empty."""

    def __init__(
        self,
        analyzer: str,
        message: str,
        timed_out: bool = False,
        original_error: BaseException | None = None,
        attempts: int = 1,
    ) -> None:
        super().__init__(
            code=ErrorCode.ANALYZER_TIMEOUT if timed_out else ErrorCode.ANALYZER_FAILED,
            message=message,
            user_message=f"Analyzer {analyzer} did not produce results.",
            severity=ErrorSeverity.MEDIUM,
            context=ErrorContext(
                operation="analyze",
                component=analyzer,
                additional_info={"attempts": attempts},
            ),
            original_error=original_error,
        )
        self.analyzer = analyzer
        self.timed_out = timed_out


class CacheError(ReadmeInsightError):
    """The structure cache is unavailable; the pipeline re-parses."""

    def __init__(
        self,
        message: str,
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CACHE_UNAVAILABLE,
            message=message,
            user_message="Structure cache unavailable; parsing without cache.",
            severity=ErrorSeverity.LOW,
            context=ErrorContext(operation="cache", component="StructureCache"),
            original_error=original_error,
        )


class ConfigurationError(ReadmeInsightError):
    """Error related to configuration issues."""

    def __init__(
        self,
        message: str,
        user_message: str | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.INVALID_CONFIG,
            message=message,
            user_message=user_message or "Configuration error occurred.",
            severity=ErrorSeverity.HIGH,
            context=context,
        )


class PipelineStateError(ReadmeInsightError):
    """A pipeline run was driven through an illegal stage transition."""

    def __init__(self, message: str) -> None:
        super().__init__(
            code=ErrorCode.ILLEGAL_STAGE_TRANSITION,
            message=message,
            user_message="Internal pipeline state error.",
            severity=ErrorSeverity.CRITICAL,
            context=ErrorContext(operation="transition", component="PipelineRun"),
        )


def aggregation_warning(
    code: ErrorCode,
    message: str,
    component: str = "ResultAggregator",
    span: Span | None = None,
) -> PipelineIssue:
    """Build a low-severity, non-fatal aggregation warning."""
    return PipelineIssue(
        code=code,
        message=message,
        component=component,
        severity=ErrorSeverity.LOW,
        span=span,
    )

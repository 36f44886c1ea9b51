"""
readme-insight type definitions.

This module exports the provenance and error types shared by every stage of
the analysis pipeline.
"""

# Core types
from .core import Span, sorted_spans

# Error types
from .errors import (
    AnalyzerError,
    CacheError,
    ConfigurationError,
    ErrorCode,
    ErrorContext,
    ErrorSeverity,
    ParseError,
    PipelineIssue,
    PipelineStateError,
    ReadmeInsightError,
    aggregation_warning,
)

__all__ = [
    # Core types
    "Span",
    "sorted_spans",
    # Error types
    "AnalyzerError",
    "CacheError",
    "ConfigurationError",
    "ErrorCode",
    "ErrorContext",
    "ErrorSeverity",
    "ParseError",
    "PipelineIssue",
    "PipelineStateError",
    "ReadmeInsightError",
    "aggregation_warning",
]

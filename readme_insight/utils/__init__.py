"""
readme-insight utility modules.

- Logging (loguru, run-id correlation)
- Error classification for analyzer retries
- Serialization of result dataclasses to JSON primitives
"""

# Logger
from .logger import (
    RunContext,
    configure_logging,
    generate_run_id,
    get_run_context,
    get_run_id,
    is_debug_enabled,
    logger,
    with_run_id,
)

# Error Classifier
from .error_classifier import (
    ErrorCategory,
    ErrorClassification,
    classify_error,
    is_retryable as is_error_retryable,
)

# Serialization
from .serialization import (
    dataclass_to_dict,
    serialize_to_primitives,
    to_camel_case,
)

__all__ = [
    "RunContext",
    "configure_logging",
    "generate_run_id",
    "get_run_context",
    "get_run_id",
    "is_debug_enabled",
    "logger",
    "with_run_id",
    "ErrorCategory",
    "ErrorClassification",
    "classify_error",
    "is_error_retryable",
    "dataclass_to_dict",
    "serialize_to_primitives",
    "to_camel_case",
]

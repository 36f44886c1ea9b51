"""Error classification for analyzer failures.

Classifies exceptions raised inside analyzers into a category and a
retryability flag. The orchestrator retries an analyzer only when its failure
is retryable; deterministic failures (bad regex, malformed fragment, logic
errors) would fail the same way again.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """High-level error categories for handling decisions."""

    TRANSIENT = "transient"
    PERMANENT = "permanent"
    INPUT_ERROR = "input_error"
    SYSTEM_ERROR = "system_error"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class ErrorClassification:
    """Classification result consumed by the orchestrator's retry policy."""

    category: ErrorCategory
    is_retryable: bool


# ---------------------------------------------------------------------------
# Lookup tables
# ---------------------------------------------------------------------------

_TYPE_TABLE: list[tuple[tuple[type[BaseException], ...], ErrorClassification]] = [
    (
        (ConnectionError, TimeoutError, BlockingIOError, InterruptedError),
        ErrorClassification(ErrorCategory.TRANSIENT, True),
    ),
    (
        (re.error, UnicodeError),
        ErrorClassification(ErrorCategory.INPUT_ERROR, False),
    ),
    (
        (RecursionError, NotImplementedError),
        ErrorClassification(ErrorCategory.PERMANENT, False),
    ),
    (
        (ValueError, TypeError, KeyError, IndexError, AttributeError),
        ErrorClassification(ErrorCategory.PERMANENT, False),
    ),
    (
        (MemoryError,),
        ErrorClassification(ErrorCategory.SYSTEM_ERROR, False),
    ),
    (
        (OSError,),
        ErrorClassification(ErrorCategory.SYSTEM_ERROR, True),
    ),
]

_MSG_PATTERNS: list[tuple[re.Pattern[str], ErrorClassification]] = [
    (
        re.compile(r"temporar(y|ily)|try.again|resource.busy|interrupted", re.I),
        ErrorClassification(ErrorCategory.TRANSIENT, True),
    ),
]

_UNKNOWN = ErrorClassification(ErrorCategory.UNKNOWN, False)


def classify_error(error: BaseException) -> ErrorClassification:
    """Classify an error: type table first, then message patterns."""
    for exc_types, cls in _TYPE_TABLE:
        if isinstance(error, exc_types):
            return cls

    msg = str(error).lower()
    for pattern, cls in _MSG_PATTERNS:
        if pattern.search(msg):
            return cls

    return _UNKNOWN


def is_retryable(error: BaseException) -> bool:
    """Check if an error is retryable."""
    return classify_error(error).is_retryable

"""
Logging utility for readme-insight.

All modules log through the loguru logger exported here. Logs go to STDERR so
that the CLI can keep STDOUT for the JSON result envelope.

Run ID Support:
- Uses contextvars to propagate the pipeline run ID across async operations
  and into analyzer worker threads started with ``asyncio.to_thread``
- Every record carries ``extra["run_id"]`` (``"-"`` outside a run)
- Use the with_run_id() context manager for scoped run IDs
"""

import os
import secrets
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Generator

from loguru import logger as loguru_logger

# ============================================================================
# Run Context
# ============================================================================


@dataclass
class RunContext:
    """Run context for log correlation."""

    run_id: str
    start_time: float | None = None


_run_context: ContextVar[RunContext | None] = ContextVar("run_context", default=None)


def generate_run_id() -> str:
    """
    Generate a unique pipeline run ID.

    Format: run_<timestamp_base36>_<random_hex>
    """
    timestamp = int(time.time() * 1000)
    random_part = secrets.token_hex(4)
    return f"run_{base36_encode(timestamp)}_{random_part}"


def base36_encode(number: int) -> str:
    """Encode a non-negative integer to a base36 string."""
    if number == 0:
        return "0"

    chars = "0123456789abcdefghijklmnopqrstuvwxyz"
    result = []
    while number:
        result.append(chars[number % 36])
        number //= 36
    return "".join(reversed(result))


def get_run_context() -> RunContext | None:
    """Get the current run context (if any)."""
    return _run_context.get()


def get_run_id() -> str | None:
    """Get the current run ID (if any)."""
    ctx = get_run_context()
    return ctx.run_id if ctx else None


@contextmanager
def with_run_id(run_id: str) -> Generator[RunContext, None, None]:
    """
    Context manager for running code with a run ID.

    All log messages within this context include the run ID. Works across
    async operations automatically via contextvars.
    """
    context = RunContext(run_id=run_id, start_time=time.time())
    token = _run_context.set(context)
    try:
        yield context
    finally:
        _run_context.reset(token)


# ============================================================================
# Logger Configuration
# ============================================================================


def is_debug_enabled() -> bool:
    """Check if debug mode is enabled."""
    return os.environ.get("DEBUG", "").lower() == "true"


def _patch_run_id(record: dict[str, Any]) -> None:
    record["extra"].setdefault("run_id", get_run_id() or "-")


LOG_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[run_id]}</cyan> | {name}:{function} - <level>{message}</level>"
)


def configure_logging(debug: bool | None = None) -> None:
    """Install the STDERR sink.

    Args:
        debug: Force debug level; defaults to the DEBUG environment flag.
    """
    level = "DEBUG" if (debug if debug is not None else is_debug_enabled()) else "WARNING"
    loguru_logger.remove()
    loguru_logger.add(sys.stderr, level=level, format=LOG_FORMAT)


# Export patched loguru logger for direct use
logger = loguru_logger.patch(_patch_run_id)

"""Shared constants and helpers for readme-insight.

Centralizes confidence tiers, pipeline defaults, shell block tags and
timezone-aware datetime helpers.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime.

    Can be used directly as a ``default_factory`` in dataclass fields.
    """
    return datetime.now(timezone.utc)


class ConfidenceTier:
    """Standardized base confidences for analyzer signals."""

    AUXILIARY_MANIFEST = 0.95
    CODE_BLOCK_COMMAND = 0.9
    MANIFEST_MENTION = 0.9
    CODE_BLOCK_TAG = 0.8
    UNTAGGED_BLOCK_COMMAND = 0.75
    INLINE_COMMAND = 0.7
    HEADING_VOCABULARY = 0.5
    PROSE_MENTION = 0.4
    COMMAND_LANGUAGE_HINT = 0.3


# Pipeline defaults (overridable through PipelineConfig)
DEFAULT_ANALYZER_TIMEOUT_SECONDS: float = 2.0
DEFAULT_ANALYZER_RETRIES: int = 1
DEFAULT_CACHE_MAX_ENTRIES: int = 128
DEFAULT_CACHE_TTL_SECONDS: float = 600.0
DEFAULT_INHERITANCE_FLOOR: float = 0.4
DEFAULT_INHERITANCE_PENALTY: float = 0.7
DEFAULT_FALLBACK_COMMAND_PENALTY: float = 0.8

# Per-category confidence is the mean of this many strongest items.
CATEGORY_TOP_ITEMS: int = 3

# Fenced block tags whose lines are treated as shell commands.
SHELL_BLOCK_TAGS: frozenset[str] = frozenset(
    {
        "bash",
        "sh",
        "shell",
        "zsh",
        "fish",
        "console",
        "terminal",
        "shell-session",
        "shellsession",
        "powershell",
        "ps",
        "ps1",
        "pwsh",
        "cmd",
        "bat",
        "batch",
    }
)

"""Pipeline configuration.

All tunables of a pipeline run live in one dataclass, validated at
construction. ``PipelineConfig.from_env()`` overlays ``READMEINSIGHT_*``
environment variables on the defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping

from readme_insight.constants import (
    DEFAULT_ANALYZER_RETRIES,
    DEFAULT_ANALYZER_TIMEOUT_SECONDS,
    DEFAULT_CACHE_MAX_ENTRIES,
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_FALLBACK_COMMAND_PENALTY,
    DEFAULT_INHERITANCE_FLOOR,
    DEFAULT_INHERITANCE_PENALTY,
)
from readme_insight.types.errors import ConfigurationError, ErrorContext

ENV_PREFIX = "READMEINSIGHT_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class PipelineConfig:
    """Pipeline configuration.

    Attributes:
        analyzer_timeout_seconds: Per-analyzer time budget, retries included.
        analyzer_retries: Extra attempts for retryable analyzer errors.
        cache_enabled: Reuse parsed structures across runs by fingerprint.
        cache_max_entries: Parsed structures kept before oldest-first eviction.
        cache_ttl_seconds: Lifetime of a cached structure.
        inheritance_floor: Minimum section confidence for language inheritance.
        inheritance_penalty: Factor applied to inherited language evidence.
        fallback_command_penalty: Factor for commands placed by fallback.
    """

    analyzer_timeout_seconds: float = DEFAULT_ANALYZER_TIMEOUT_SECONDS
    analyzer_retries: int = DEFAULT_ANALYZER_RETRIES
    cache_enabled: bool = True
    cache_max_entries: int = DEFAULT_CACHE_MAX_ENTRIES
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS
    inheritance_floor: float = DEFAULT_INHERITANCE_FLOOR
    inheritance_penalty: float = DEFAULT_INHERITANCE_PENALTY
    fallback_command_penalty: float = DEFAULT_FALLBACK_COMMAND_PENALTY

    def __post_init__(self) -> None:
        if self.analyzer_timeout_seconds <= 0:
            self._invalid("analyzer_timeout_seconds must be positive")
        if self.analyzer_retries < 0:
            self._invalid("analyzer_retries must be non-negative")
        if self.cache_max_entries < 1:
            self._invalid("cache_max_entries must be at least 1")
        if self.cache_ttl_seconds <= 0:
            self._invalid("cache_ttl_seconds must be positive")
        for name in ("inheritance_floor", "inheritance_penalty", "fallback_command_penalty"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                self._invalid(f"{name} must be within [0, 1], got {value!r}")

    def _invalid(self, message: str) -> None:
        raise ConfigurationError(
            message,
            user_message=f"Invalid pipeline configuration: {message}",
            context=ErrorContext(operation="validate_config", component="PipelineConfig"),
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> PipelineConfig:
        """Defaults overridden by ``READMEINSIGHT_<FIELD>`` variables."""
        environ = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None or raw.strip() == "":
                continue
            overrides[f.name] = _coerce(f.name, raw.strip(), type(getattr(_DEFAULTS, f.name)))
        return cls(**overrides)

    def with_overrides(self, **changes: Any) -> PipelineConfig:
        """Copy with the non-None keyword arguments applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _coerce(name: str, raw: str, kind: type) -> Any:
    if kind is bool:
        lowered = raw.lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ConfigurationError(f"{ENV_PREFIX}{name.upper()} must be a boolean, got {raw!r}")
    try:
        return kind(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{ENV_PREFIX}{name.upper()} must be {kind.__name__}, got {raw!r}"
        ) from e


_DEFAULTS = PipelineConfig()

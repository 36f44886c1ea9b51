"""ProjectInfo output model.

Frozen value objects handed to downstream consumers. Everything here is plain
data: ordering and confidence are decided by the ResultAggregator, and
to_dict() emits the camelCase contract shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator

from readme_insight.analyzers.types import CommandCategory
from readme_insight.types.core import Span
from readme_insight.utils.serialization import dataclass_to_dict


@dataclass(frozen=True)
class LanguageEvidence:
    """A detected language with its combined confidence."""

    name: str
    confidence: float
    source_spans: tuple[Span, ...] = ()
    signals: tuple[str, ...] = ()


@dataclass(frozen=True)
class CommandEntry:
    command: str
    confidence: float
    source_spans: tuple[Span, ...] = ()
    language: str | None = None


@dataclass(frozen=True)
class CommandSet:
    """Commands bucketed by purpose."""

    install: tuple[CommandEntry, ...] = ()
    build: tuple[CommandEntry, ...] = ()
    test: tuple[CommandEntry, ...] = ()
    run: tuple[CommandEntry, ...] = ()
    other: tuple[CommandEntry, ...] = ()

    def get(self, category: CommandCategory | str) -> tuple[CommandEntry, ...]:
        return getattr(self, CommandCategory(category).value)

    def all(self) -> Iterator[tuple[CommandCategory, CommandEntry]]:
        """(category, entry) pairs in category order."""
        for category in CommandCategory:
            for entry in self.get(category):
                yield category, entry

    @property
    def is_empty(self) -> bool:
        return not any(self.get(category) for category in CommandCategory)

    def commands(self, category: CommandCategory | str) -> list[str]:
        return [entry.command for entry in self.get(category)]


@dataclass(frozen=True)
class DependencyEntry:
    name: str
    ecosystem: str
    confidence: float
    version_constraint: str | None = None
    source_spans: tuple[Span, ...] = ()
    dev: bool = False


@dataclass(frozen=True)
class PackageFile:
    """A manifest file mentioned in the README or supplied alongside it."""

    name: str
    ecosystem: str
    confidence: float
    source_spans: tuple[Span, ...] = ()


@dataclass(frozen=True)
class ToolEntry:
    """A test framework or coverage tool."""

    name: str
    confidence: float
    source_spans: tuple[Span, ...] = ()
    language: str | None = None


@dataclass(frozen=True)
class ConfigFileEntry:
    name: str
    tool: str | None
    confidence: float
    source_spans: tuple[Span, ...] = ()


@dataclass(frozen=True)
class TestingInfo:
    """Testing setup: frameworks, coverage tools and config files."""

    __test__ = False  # not a pytest test class

    frameworks: tuple[ToolEntry, ...] = ()
    coverage_tools: tuple[ToolEntry, ...] = ()
    config_files: tuple[ConfigFileEntry, ...] = ()
    confidence: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not (self.frameworks or self.coverage_tools or self.config_files)

    def framework_names(self) -> list[str]:
        return [tool.name for tool in self.frameworks]


@dataclass(frozen=True)
class MetadataValue:
    value: str
    confidence: float
    source_spans: tuple[Span, ...] = ()


@dataclass(frozen=True)
class Badge:
    label: str
    image_url: str
    kind: str
    confidence: float
    link: str | None = None
    source_spans: tuple[Span, ...] = ()


@dataclass(frozen=True)
class EnvironmentVariable:
    name: str
    confidence: float
    default: str | None = None
    source_spans: tuple[Span, ...] = ()


@dataclass(frozen=True)
class ProjectMetadata:
    name: MetadataValue | None = None
    description: MetadataValue | None = None
    license: MetadataValue | None = None
    repository: MetadataValue | None = None
    badges: tuple[Badge, ...] = ()
    environment: tuple[EnvironmentVariable, ...] = ()

    def scalars(self) -> dict[str, MetadataValue | None]:
        return {
            "name": self.name,
            "description": self.description,
            "license": self.license,
            "repository": self.repository,
        }

    @property
    def is_empty(self) -> bool:
        return not (
            any(self.scalars().values()) or self.badges or self.environment
        )


@dataclass(frozen=True)
class ConfidenceSummary:
    """Overall confidence and the per-category values it averages."""

    overall: float = 0.0
    per_category: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class ProjectInfo:
    """Structured, confidence-annotated description of a project."""

    languages: tuple[LanguageEvidence, ...] = ()
    commands: CommandSet = field(default_factory=CommandSet)
    dependencies: tuple[DependencyEntry, ...] = ()
    package_files: tuple[PackageFile, ...] = ()
    testing: TestingInfo = field(default_factory=TestingInfo)
    metadata: ProjectMetadata = field(default_factory=ProjectMetadata)
    confidence: ConfidenceSummary = field(default_factory=ConfidenceSummary)

    def language_names(self) -> list[str]:
        return [language.name for language in self.languages]

    @property
    def primary_language(self) -> str | None:
        return self.languages[0].name if self.languages else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase contract shape."""
        return dataclass_to_dict(self, camel_case=True)

"""Post-aggregation invariant checks.

validate_project_info never raises: a violated invariant is reported as a
VALIDATION_FAILED issue next to the (still returned) ProjectInfo.
"""

from __future__ import annotations

from typing import Iterable

from readme_insight.aggregation.project import ProjectInfo
from readme_insight.analyzers.types import CommandCategory
from readme_insight.types.core import Span
from readme_insight.types.errors import ErrorCode, ErrorSeverity, PipelineIssue

COMPONENT = "ProjectValidator"


def _issue(message: str, span: Span | None = None) -> PipelineIssue:
    return PipelineIssue(
        code=ErrorCode.VALIDATION_FAILED,
        message=message,
        component=COMPONENT,
        severity=ErrorSeverity.MEDIUM,
        span=span,
    )


def _scored_items(project: ProjectInfo) -> Iterable[tuple[str, float, tuple[Span, ...]]]:
    """(label, confidence, spans) for every scored item in the project."""
    for language in project.languages:
        yield f"language {language.name}", language.confidence, language.source_spans
    for category, entry in project.commands.all():
        yield f"{category.value} command '{entry.command}'", entry.confidence, entry.source_spans
    for dep in project.dependencies:
        yield f"dependency {dep.name}", dep.confidence, dep.source_spans
    for package_file in project.package_files:
        name = f"package file {package_file.name}"
        yield name, package_file.confidence, package_file.source_spans
    testing = project.testing
    for tool in testing.frameworks + testing.coverage_tools:
        yield f"testing tool {tool.name}", tool.confidence, tool.source_spans
    for config in testing.config_files:
        yield f"test config {config.name}", config.confidence, config.source_spans
    for field_name, value in project.metadata.scalars().items():
        if value is not None:
            yield f"metadata {field_name}", value.confidence, value.source_spans
    for badge in project.metadata.badges:
        yield f"badge {badge.image_url}", badge.confidence, badge.source_spans
    for variable in project.metadata.environment:
        yield f"environment {variable.name}", variable.confidence, variable.source_spans


def validate_project_info(project: ProjectInfo) -> list[PipelineIssue]:
    """Check ordering, uniqueness, confidence range and provenance."""
    issues: list[PipelineIssue] = []

    for label, confidence, spans in _scored_items(project):
        if not 0.0 <= confidence <= 1.0:
            issues.append(_issue(f"{label} has confidence {confidence} outside [0, 1]"))
        if not spans:
            issues.append(_issue(f"{label} has no source span"))

    names = project.language_names()
    if len(names) != len(set(names)):
        issues.append(_issue("Duplicate language names"))
    expected = sorted(project.languages, key=lambda lang: (-lang.confidence, lang.name))
    if list(project.languages) != expected:
        issues.append(_issue("Languages are not ordered by confidence then name"))

    for category in CommandCategory:
        commands = project.commands.commands(category)
        if len(commands) != len(set(commands)):
            issues.append(_issue(f"Duplicate commands in category '{category.value}'"))

    summary = project.confidence
    if not 0.0 <= summary.overall <= 1.0:
        issues.append(_issue(f"Overall confidence {summary.overall} outside [0, 1]"))
    for category, value in summary.per_category.items():
        if not 0.0 <= value <= 1.0:
            issues.append(_issue(f"{category} confidence {value} outside [0, 1]"))

    return issues

"""
Tests for post-aggregation invariant checks.
"""

from readme_insight.aggregation import (
    CommandEntry,
    CommandSet,
    ConfidenceSummary,
    LanguageEvidence,
    ProjectInfo,
    ResultAggregator,
    validate_project_info,
)
from readme_insight.analyzers import AnalyzerRegistry
from readme_insight.types.core import Span
from readme_insight.types.errors import ErrorCode

SPAN = (Span(1, 1, 0, 4),)


def messages(project):
    issues = validate_project_info(project)
    assert all(issue.code == ErrorCode.VALIDATION_FAILED for issue in issues)
    return [issue.message for issue in issues]


class TestValidateProjectInfo:
    """validate_project_info reports, never raises."""

    def test_empty_project_is_valid(self):
        assert validate_project_info(ProjectInfo()) == []

    def test_aggregated_project_is_valid(self, run_analyzer, npm_readme):
        registry = AnalyzerRegistry.create_default()
        findings = {
            kind: run_analyzer(analyzer, npm_readme) for kind, analyzer in registry.items()
        }
        project = ResultAggregator().aggregate(findings).project
        assert validate_project_info(project) == []

    def test_language_order(self):
        project = ProjectInfo(
            languages=(
                LanguageEvidence("go", 0.3, SPAN),
                LanguageEvidence("python", 0.9, SPAN),
            )
        )
        assert messages(project) == ["Languages are not ordered by confidence then name"]

    def test_missing_span(self):
        project = ProjectInfo(languages=(LanguageEvidence("go", 0.3),))
        [message] = messages(project)
        assert "has no source span" in message

    def test_confidence_out_of_range(self):
        project = ProjectInfo(
            commands=CommandSet(install=(CommandEntry("npm install", 1.5, SPAN),)),
            confidence=ConfidenceSummary(overall=-0.1),
        )
        found = messages(project)
        assert len(found) == 2
        assert all("outside [0, 1]" in message for message in found)

    def test_duplicate_commands(self):
        entry = CommandEntry("make", 0.9, SPAN)
        project = ProjectInfo(commands=CommandSet(build=(entry, entry)))
        assert messages(project) == ["Duplicate commands in category 'build'"]

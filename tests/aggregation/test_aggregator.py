"""
Result aggregator tests.

Evidence is built by hand so each test controls exactly which observations
reach the aggregator.
"""

import pytest

from readme_insight.aggregation import ResultAggregator
from readme_insight.analyzers import AnalyzerKind, FactCategory, FindingSet
from readme_insight.analyzers.types import Evidence
from readme_insight.types.core import Span
from readme_insight.types.errors import ErrorCode

ANALYZER_FOR = {
    FactCategory.LANGUAGE: AnalyzerKind.LANGUAGE,
    FactCategory.COMMAND: AnalyzerKind.COMMAND,
    FactCategory.DEPENDENCY: AnalyzerKind.DEPENDENCY,
    FactCategory.TESTING: AnalyzerKind.TESTING,
    FactCategory.METADATA: AnalyzerKind.METADATA,
}


def ev(category, key, value, confidence, offset=0, signal="signal", **attributes):
    return Evidence(
        category=category,
        key=key,
        value=value,
        confidence=confidence,
        source_spans=(Span(1, 1, offset, offset + 1),),
        analyzer=ANALYZER_FOR[category],
        signal=signal,
        attributes=attributes,
    )


def lang(name, confidence, offset=0, signal="signal"):
    return ev(FactCategory.LANGUAGE, (name,), name, confidence, offset, signal)


def cmd(category, command, confidence, offset=0, language=None, signal="shell_block"):
    return ev(
        FactCategory.COMMAND, (category, command), command, confidence, offset, signal,
        language=language,
    )


def findings(*evidence):
    """Group evidence into finding sets keyed by analyzer kind."""
    grouped = {}
    for item in evidence:
        grouped.setdefault(item.analyzer, []).append(item)
    return {kind: FindingSet(kind, tuple(items)) for kind, items in grouped.items()}


@pytest.fixture
def aggregator():
    return ResultAggregator()


class TestLanguages:
    """Language combination and ordering."""

    def test_combined_and_ordered(self, aggregator):
        result = aggregator.aggregate(
            findings(
                lang("go", 0.6, 0),
                lang("python", 0.5, 5, signal="a"),
                lang("python", 0.5, 9, signal="b"),
            )
        )
        languages = result.project.languages
        assert [item.name for item in languages] == ["python", "go"]
        assert languages[0].confidence == pytest.approx(0.75)
        assert languages[0].signals == ("a", "b")
        assert len(languages[0].source_spans) == 2
        assert result.project.primary_language == "python"

    def test_ties_break_by_name(self, aggregator):
        result = aggregator.aggregate(findings(lang("python", 0.5, 0), lang("javascript", 0.5, 5)))
        assert result.project.language_names() == ["javascript", "python"]

    def test_exact_duplicates_count_once(self, aggregator):
        item = lang("rust", 0.5)
        result = aggregator.aggregate(
            {AnalyzerKind.LANGUAGE: FindingSet(AnalyzerKind.LANGUAGE, (item, item))}
        )
        assert result.project.languages[0].confidence == pytest.approx(0.5)

    def test_string_keys_accepted(self, aggregator):
        finding_set = FindingSet(AnalyzerKind.LANGUAGE, (lang("go", 0.7),))
        result = aggregator.aggregate({"language_detector": finding_set})
        assert result.project.language_names() == ["go"]


class TestCommands:
    """Command buckets, fallback and folding."""

    def test_bucketed_and_ordered(self, aggregator):
        result = aggregator.aggregate(
            findings(
                cmd("install", "npm ci", 0.7, 20),
                cmd("install", "npm install", 0.9, 10),
                cmd("test", "npm test", 0.9, 30),
            )
        )
        commands = result.project.commands
        assert commands.commands("install") == ["npm install", "npm ci"]
        assert commands.commands("test") == ["npm test"]
        assert commands.build == ()

    def test_same_command_combines(self, aggregator):
        result = aggregator.aggregate(
            findings(
                cmd("build", "make", 0.5, 0, signal="a"),
                cmd("build", "make", 0.5, 40, signal="b"),
            )
        )
        [entry] = result.project.commands.build
        assert entry.confidence == pytest.approx(0.75)
        assert len(entry.source_spans) == 2

    def test_uncategorized_follows_top_language(self, aggregator):
        result = aggregator.aggregate(
            findings(
                lang("python", 0.8),
                cmd("install", "pip install flask", 0.9, 10, language="python"),
                cmd("build", "make", 0.9, 20, language="shell"),
                cmd("", "make lint", 0.9, 30),
            )
        )
        install = result.project.commands.install
        assert [entry.command for entry in install] == ["pip install flask", "make lint"]
        assert install[1].confidence == pytest.approx(0.9 * 0.8)
        [warning] = [w for w in result.warnings if w.code == ErrorCode.COMMAND_CATEGORY_FALLBACK]
        assert "make lint" in warning.message
        assert warning.span == install[1].source_spans[0]

    def test_fallback_tie_prefers_install(self, aggregator):
        result = aggregator.aggregate(
            findings(
                lang("python", 0.8),
                cmd("test", "pytest", 0.9, 10, language="python"),
                cmd("install", "pip install .", 0.9, 20, language="python"),
                cmd("", "tox -e lint", 0.9, 30),
            )
        )
        assert "tox -e lint" in result.project.commands.commands("install")

    def test_fallback_without_languages_is_other(self, aggregator):
        result = aggregator.aggregate(findings(cmd("", "make lint", 0.9)))
        assert result.project.commands.commands("other") == ["make lint"]

    def test_section_hint_used_without_languages(self, aggregator):
        hinted = ev(
            FactCategory.COMMAND, ("", "./configure"), "./configure", 0.9,
            language="shell", section_hint="install",
        )
        result = aggregator.aggregate(findings(hinted))
        [entry] = result.project.commands.install
        assert entry.command == "./configure"
        assert entry.confidence == pytest.approx(0.9 * 0.8)
        [warning] = [w for w in result.warnings if w.code == ErrorCode.COMMAND_CATEGORY_FALLBACK]
        assert "section suggests 'install'" in warning.message

    def test_section_hint_breaks_ties(self, aggregator):
        hinted = ev(
            FactCategory.COMMAND, ("", "tox -e lint"), "tox -e lint", 0.9, 30,
            section_hint="test",
        )
        result = aggregator.aggregate(
            findings(
                lang("python", 0.8),
                cmd("test", "pytest", 0.9, 10, language="python"),
                cmd("install", "pip install .", 0.9, 20, language="python"),
                hinted,
            )
        )
        assert "tox -e lint" in result.project.commands.commands("test")

    def test_top_language_outranks_section_hint(self, aggregator):
        hinted = ev(
            FactCategory.COMMAND, ("", "./configure"), "./configure", 0.9, 40,
            section_hint="run",
        )
        result = aggregator.aggregate(
            findings(
                lang("python", 0.8),
                cmd("install", "pip install flask", 0.9, 10, language="python"),
                cmd("install", "pip install -e .", 0.9, 20, language="python"),
                cmd("run", "python app.py", 0.9, 30, language="python"),
                hinted,
            )
        )
        assert "./configure" in result.project.commands.commands("install")
        assert result.project.commands.commands("run") == ["python app.py"]

    def test_uncategorized_duplicate_is_folded(self, aggregator):
        result = aggregator.aggregate(
            findings(
                cmd("test", "npm test", 0.5, 0, signal="shell_block"),
                cmd("", "npm test", 0.5, 40, signal="inline_code"),
            )
        )
        commands = result.project.commands
        assert commands.commands("test") == ["npm test"]
        assert commands.other == ()
        assert commands.test[0].confidence == pytest.approx(0.75)
        assert not [w for w in result.warnings if w.code == ErrorCode.COMMAND_CATEGORY_FALLBACK]

    def test_language_attribute_from_strongest(self, aggregator):
        result = aggregator.aggregate(
            findings(
                cmd("run", "make run", 0.4, 0, language="shell", signal="a"),
                cmd("run", "make run", 0.9, 10, language="go", signal="b"),
            )
        )
        assert result.project.commands.run[0].language == "go"


class TestDependenciesAndTesting:
    """Dependencies, package files and testing info."""

    def test_dependencies_and_package_files(self, aggregator):
        result = aggregator.aggregate(
            findings(
                ev(FactCategory.DEPENDENCY, ("package", "npm", "jest"), "jest", 0.6, 0, dev=True),
                ev(
                    FactCategory.DEPENDENCY, ("package", "npm", "express"), "express", 0.9, 10,
                    version="^4.18.0",
                ),
                ev(
                    FactCategory.DEPENDENCY,
                    ("manifest", "npm", "package.json"),
                    "package.json",
                    0.95,
                    20,
                ),
            )
        )
        project = result.project
        assert [d.name for d in project.dependencies] == ["express", "jest"]
        assert project.dependencies[0].version_constraint == "^4.18.0"
        assert project.dependencies[1].dev is True
        [package_file] = project.package_files
        assert (package_file.name, package_file.ecosystem) == ("package.json", "npm")

    def test_testing_info(self, aggregator):
        result = aggregator.aggregate(
            findings(
                ev(
                    FactCategory.TESTING, ("framework", "pytest"), "pytest", 0.8, 0,
                    language="python",
                ),
                ev(FactCategory.TESTING, ("framework", "unittest"), "unittest", 0.5, 10),
                ev(FactCategory.TESTING, ("coverage", "pytest-cov"), "pytest-cov", 0.7, 20),
                ev(
                    FactCategory.TESTING, ("config", "pytest.ini"), "pytest.ini", 0.6, 30,
                    tool="pytest",
                ),
            )
        )
        testing = result.project.testing
        assert testing.framework_names() == ["pytest", "unittest"]
        assert testing.frameworks[0].language == "python"
        assert [t.name for t in testing.coverage_tools] == ["pytest-cov"]
        assert testing.config_files[0].tool == "pytest"
        assert testing.confidence == pytest.approx((0.8 + 0.7 + 0.6) / 3)


class TestMetadata:
    """Metadata picks the best candidate per field."""

    def test_best_candidate(self, aggregator):
        result = aggregator.aggregate(
            findings(
                ev(FactCategory.METADATA, ("name", "widget-forge"), "widget-forge", 0.6, 0),
                ev(FactCategory.METADATA, ("name", "Widget Forge"), "Widget Forge", 0.9, 10),
                ev(FactCategory.METADATA, ("license", "MIT"), "MIT", 0.7, 20),
                ev(FactCategory.METADATA, ("license", "MIT"), "MIT", 0.8, 30, signal="badge"),
            )
        )
        metadata = result.project.metadata
        assert metadata.name.value == "Widget Forge"
        assert metadata.license.confidence == pytest.approx(1 - 0.3 * 0.2)
        assert metadata.description is None

    def test_badges_and_environment(self, aggregator):
        url = "https://img.shields.io/badge/license-MIT-blue.svg"
        result = aggregator.aggregate(
            findings(
                ev(FactCategory.METADATA, ("environment", "PORT"), "PORT", 0.8, 40, default="8080"),
                ev(FactCategory.METADATA, ("environment", "API_TOKEN"), "API_TOKEN", 0.6, 30),
                ev(
                    FactCategory.METADATA, ("badge", url), "license", 0.9, 0,
                    kind="license", link=None,
                ),
            )
        )
        metadata = result.project.metadata
        [badge] = metadata.badges
        assert (badge.label, badge.image_url, badge.kind) == ("license", url, "license")
        assert [v.name for v in metadata.environment] == ["API_TOKEN", "PORT"]
        assert metadata.environment[1].default == "8080"


class TestConfidenceSummary:
    """Overall confidence and category warnings."""

    def test_nothing_found(self, aggregator):
        result = aggregator.aggregate({})
        summary = result.project.confidence
        assert summary.overall == 0.0
        assert set(summary.per_category) == {
            "language", "command", "dependency", "testing", "metadata"
        }
        codes = [w.code for w in result.warnings]
        assert codes.count(ErrorCode.CATEGORY_EMPTY) == 5
        assert codes[-1] == ErrorCode.NO_CATEGORIES_POPULATED

    def test_overall_averages_populated_categories(self, aggregator):
        result = aggregator.aggregate(
            findings(
                lang("python", 0.9, 0),
                lang("go", 0.3, 5),
                cmd("install", "pip install .", 0.6, 10),
            )
        )
        summary = result.project.confidence
        assert summary.per_category["language"] == pytest.approx(0.6)
        assert summary.per_category["command"] == pytest.approx(0.6)
        assert summary.per_category["testing"] == 0.0
        assert summary.overall == pytest.approx(0.6)
        codes = [w.code for w in result.warnings]
        assert codes.count(ErrorCode.CATEGORY_EMPTY) == 3
        assert ErrorCode.NO_CATEGORIES_POPULATED not in codes


class TestDeterminism:
    """Equal inputs give an identical ProjectInfo."""

    def test_repeatable(self, aggregator):
        evidence = (
            lang("python", 0.5, 0),
            lang("javascript", 0.5, 3),
            cmd("", "make lint", 0.9, 30),
            cmd("install", "npm install", 0.9, 10, language="javascript"),
        )
        first = aggregator.aggregate(findings(*evidence))
        second = aggregator.aggregate(findings(*reversed(evidence)))
        assert first.project == second.project
        assert first.project.to_dict() == second.project.to_dict()
        assert first.warnings == second.warnings

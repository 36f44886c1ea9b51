"""
Language detector tests.
"""

import pytest

from readme_insight.analyzers import AnalyzerKind, FactCategory, LanguageDetector
from readme_insight.analyzers.language import EXTENSION_STEP, KEYWORD_CAP, MAX_SIGNAL_SPANS


@pytest.fixture
def detect(run_analyzer):
    def _detect(text, auxiliary_files=None):
        return run_analyzer(LanguageDetector(), text, auxiliary_files)

    return _detect


def by_signal(finding_set, signal):
    return [item for item in finding_set.evidence if item.signal == signal]


class TestCodeBlockTags:
    """Tests for fenced block language tags."""

    def test_tagged_block(self, detect):
        result = detect("```python\nprint(1)\n```\n")
        [item] = by_signal(result, "code_block_tag")
        assert item.key == ("python",)
        assert item.category == FactCategory.LANGUAGE
        assert item.confidence == pytest.approx(0.8)
        assert item.analyzer == AnalyzerKind.LANGUAGE
        assert item.attributes["tag"] == "python"

    def test_tag_aliases_map_to_canonical_name(self, detect):
        result = detect("```ts\nlet x = 1\n```\n\n```golang\nfunc main() {}\n```\n")
        assert {item.value for item in by_signal(result, "code_block_tag")} == {
            "typescript",
            "go",
        }

    def test_shell_tags_are_not_languages(self, detect):
        result = detect("```bash\nls -la\n```\n")
        assert by_signal(result, "code_block_tag") == []

    def test_unknown_tag_ignored(self, detect):
        result = detect("```mermaid\ngraph TD\n```\n")
        assert result.is_empty

    def test_one_evidence_per_block(self, detect):
        result = detect("```js\na()\n```\n\n```js\nb()\n```\n")
        items = by_signal(result, "code_block_tag")
        assert len(items) == 2
        assert items[0].source_spans != items[1].source_spans


class TestProseSignals:
    """Tests for keyword, framework, extension and manifest signals."""

    def test_keyword_confidence_is_capped(self, detect):
        result = detect(" ".join(["python"] * 10) + "\n")
        [item] = by_signal(result, "prose_keyword")
        assert item.confidence == pytest.approx(KEYWORD_CAP)
        assert item.attributes["matches"] == 10
        assert len(item.source_spans) == MAX_SIGNAL_SPANS

    def test_keywords_inside_code_blocks_ignored(self, detect):
        result = detect("```\npython\n```\n")
        assert by_signal(result, "prose_keyword") == []

    def test_framework_matching_is_case_sensitive(self, detect):
        assert by_signal(detect("We use Django.\n"), "framework_mention")
        assert not by_signal(detect("we use django.\n"), "framework_mention")

    def test_file_extension(self, detect):
        result = detect("Edit `src/app.py` to start.\n")
        [item] = by_signal(result, "file_extension")
        assert item.key == ("python",)
        assert item.confidence == pytest.approx(EXTENSION_STEP)

    def test_manifest_mention(self, detect):
        result = detect("Dependencies live in requirements.txt.\n")
        [item] = by_signal(result, "manifest_mention")
        assert item.key == ("python",)
        assert item.confidence == pytest.approx(0.3)

    def test_heading_vocabulary(self, detect):
        result = detect("## Python usage\n")
        [item] = by_signal(result, "heading_vocabulary")
        assert item.key == ("python",)
        assert item.confidence == pytest.approx(0.5)

    def test_csharp_punctuation_terms(self, detect):
        result = detect("Written in C# for .NET developers.\n")
        assert {item.value for item in by_signal(result, "prose_keyword")} == {"csharp"}


class TestAuxiliaryManifests:
    """Tests for supplied manifest files."""

    def test_manifest_file_points_at_language(self, detect):
        result = detect("# Tool\n", {"package.json": "{}"})
        [item] = by_signal(result, "auxiliary_manifest")
        assert item.key == ("javascript",)
        assert item.confidence == pytest.approx(0.7)
        assert item.first_span.document == "package.json"

    def test_unrelated_file_ignored(self, detect):
        result = detect("", {"notes.md": "hello"})
        assert result.is_empty

    def test_path_and_case_normalized(self, detect):
        result = detect("", {"backend/Cargo.toml": "[package]\n"})
        assert [item.value for item in result.evidence] == ["rust"]


class TestDeterminism:
    """The detector is a pure function of its input."""

    def test_repeated_runs_identical(self, detect, python_readme):
        assert detect(python_readme) == detect(python_readme)

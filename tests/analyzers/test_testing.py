"""
Testing detector tests.
"""

import json

import pytest

from readme_insight.analyzers import TestingDetector


@pytest.fixture
def detect(run_analyzer):
    def _detect(text, auxiliary_files=None):
        return run_analyzer(TestingDetector(), text, auxiliary_files)

    return _detect


def signals_for(finding_set, key):
    return sorted(item.signal for item in finding_set.evidence if item.key == key)


class TestCommandSignals:
    """Framework and coverage detection from command lines."""

    def test_jest_command(self, detect):
        result = detect("```bash\nnpx jest --watch\n```\n")
        [item] = [i for i in result.evidence if i.key == ("framework", "jest")]
        assert item.signal == "test_command"
        assert item.confidence == pytest.approx(0.8)
        assert item.attributes["language"] == "javascript"

    def test_pytest_with_coverage(self, detect):
        result = detect("```bash\npytest --cov=app\n```\n")
        keys = {item.key for item in result.evidence}
        assert ("framework", "pytest") in keys
        assert ("coverage", "pytest-cov") in keys

    def test_unittest_module(self, detect):
        result = detect("```bash\npython -m unittest discover\n```\n")
        assert signals_for(result, ("framework", "unittest")) == ["test_command"]

    def test_generic_test_command_names_no_framework(self, detect):
        result = detect("```bash\nnpm test\n```\n")
        assert result.is_empty


class TestProseAndConfig:
    """Prose mentions and configuration files."""

    def test_prose_mention(self, detect):
        result = detect("Specs are written with RSpec.\n")
        [item] = result.evidence
        assert item.key == ("framework", "rspec")
        assert item.confidence == pytest.approx(0.5)
        assert item.signal == "prose_mention"

    def test_heading_mention(self, detect):
        result = detect("## Running the Jest suite\n")
        assert signals_for(result, ("framework", "jest")) == ["prose_mention"]

    def test_config_file_mention_implies_tool(self, detect):
        result = detect("Settings live in pytest.ini.\n")
        config = [i for i in result.evidence if i.key == ("config", "pytest.ini")]
        assert len(config) == 1
        assert config[0].attributes["tool"] == "pytest"
        assert config[0].confidence == pytest.approx(0.6)
        assert "config_mention" in signals_for(result, ("framework", "pytest"))

    def test_coverage_config(self, detect):
        result = detect("Coverage thresholds are set in `.nycrc`.\n")
        assert signals_for(result, ("config", ".nycrc")) == ["config_mention"]
        assert "config_mention" in signals_for(result, ("coverage", "nyc"))


class TestAuxiliaryFiles:
    """Supplied manifests and config files."""

    def test_package_json_dependencies_and_script(self, detect):
        manifest = json.dumps(
            {
                "devDependencies": {"vitest": "^1.0.0", "c8": "^9.0.0"},
                "scripts": {"test": "vitest run"},
            },
            indent=2,
        )
        result = detect("# Tool\n", {"package.json": manifest})
        assert signals_for(result, ("framework", "vitest")) == [
            "auxiliary_manifest",
            "test_script",
        ]
        assert signals_for(result, ("coverage", "c8")) == ["auxiliary_manifest"]
        vitest = next(i for i in result.evidence if i.key == ("framework", "vitest"))
        assert vitest.confidence == pytest.approx(0.9)
        assert vitest.first_span.document == "package.json"

    def test_config_file_supplied(self, detect):
        result = detect("", {"pytest.ini": "[pytest]\naddopts = -q\n"})
        assert signals_for(result, ("config", "pytest.ini")) == ["auxiliary_config"]
        assert signals_for(result, ("framework", "pytest")) == ["auxiliary_config"]

    def test_requirements_dev_packages(self, detect):
        result = detect("", {"requirements-dev.txt": "pytest>=7\npytest-cov\n"})
        assert signals_for(result, ("framework", "pytest")) == ["auxiliary_manifest"]
        assert signals_for(result, ("coverage", "pytest-cov")) == ["auxiliary_manifest"]

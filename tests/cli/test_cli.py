"""
CLI Tests

Tests for the command-line entry point:
- Main CLI group (help, version)
- Analyze command (text summary, JSON envelope, auxiliary files)
- Exit codes for unreadable input and bad configuration
"""

import json
import sys

import pytest
from click.testing import CliRunner
from loguru import logger as loguru_logger

from readme_insight.cli.main import cli


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def restore_log_sinks():
    """analyze replaces loguru sinks with the runner's stderr; put them back."""
    yield
    loguru_logger.remove()
    loguru_logger.add(sys.stderr)


@pytest.fixture
def npm_project(tmp_path, npm_readme):
    readme = tmp_path / "README.md"
    readme.write_text(npm_readme, encoding="utf-8")
    return tmp_path


class TestCLIGroup:
    """Tests for main CLI group."""

    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "readme-insight" in result.output
        assert "Confidence-Scored Project Analysis" in result.output
        assert "analyze" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "readme-insight v0.1.0" in result.output

    def test_no_command_shows_help(self, runner):
        result = runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "Usage:" in result.output


class TestAnalyzeCommand:
    """Tests for the analyze command."""

    def test_text_summary(self, runner, npm_project):
        result = runner.invoke(cli, ["analyze", str(npm_project / "README.md")])
        assert result.exit_code == 0
        output = result.stdout
        assert "my-tool" in output
        for section in ("Languages", "Commands", "Testing", "Metadata"):
            assert section in output
        assert "npm install" in output
        assert "license     MIT" in output
        assert "Overall confidence:" in output
        assert "Run run_" in output

    def test_dependencies_section(self, runner, tmp_path, python_readme):
        readme = tmp_path / "README.md"
        readme.write_text(python_readme, encoding="utf-8")
        result = runner.invoke(cli, ["analyze", str(readme)])
        assert result.exit_code == 0
        assert "Dependencies" in result.stdout
        assert "pypi:flowkit" in result.stdout

    def test_json_envelope(self, runner, npm_project):
        result = runner.invoke(cli, ["analyze", str(npm_project / "README.md"), "--json"])
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["success"] is True
        assert payload["data"]["commands"]["install"][0]["command"] == "npm install"
        assert payload["pipelineMetadata"]["state"] == "completed"

    def test_auxiliary_files(self, runner, npm_project):
        manifest = npm_project / "package.json"
        manifest.write_text(json.dumps({"dependencies": {"express": "^4.18.0"}}))
        result = runner.invoke(
            cli,
            ["analyze", str(npm_project / "README.md"), "--aux", str(manifest)],
        )
        assert result.exit_code == 0
        assert "npm:express ^4.18.0" in result.stdout

    def test_undecodable_readme(self, runner, tmp_path):
        readme = tmp_path / "README.md"
        readme.write_bytes(b"# Title\n\xff\xfe\n")
        result = runner.invoke(cli, ["analyze", str(readme)])
        assert result.exit_code == 1
        assert "Analysis failed" in result.stdout
        assert "PARSE_MALFORMED" in result.stdout

    def test_undecodable_readme_json(self, runner, tmp_path):
        readme = tmp_path / "README.md"
        readme.write_bytes(b"\xff")
        result = runner.invoke(cli, ["analyze", str(readme), "--json"])
        assert result.exit_code == 1
        payload = json.loads(result.stdout)
        assert payload["success"] is False
        assert "data" not in payload
        assert payload["errors"][0]["code"] == "PARSE_MALFORMED"

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["analyze", str(tmp_path / "nope.md")])
        assert result.exit_code == 2

    def test_invalid_timeout(self, runner, npm_project):
        result = runner.invoke(
            cli, ["analyze", str(npm_project / "README.md"), "--timeout", "0"]
        )
        assert result.exit_code == 2
        assert "analyzer_timeout_seconds" in result.output

    def test_invalid_environment(self, runner, npm_project):
        result = runner.invoke(
            cli,
            ["analyze", str(npm_project / "README.md")],
            env={"READMEINSIGHT_ANALYZER_RETRIES": "x"},
        )
        assert result.exit_code == 2
        assert "READMEINSIGHT_ANALYZER_RETRIES" in result.output

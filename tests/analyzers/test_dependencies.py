"""
Dependency extractor tests.

Covers install command parsing, manifest parsers and the analyzer's
package/manifest evidence from every source.
"""

import json

import pytest

from readme_insight.analyzers import DependencyExtractor
from readme_insight.analyzers.dependencies import (
    DeclaredPackage,
    parse_auxiliary_manifest,
    parse_gemfile,
    parse_go_mod,
    parse_install_command,
    parse_package_json,
    parse_requirements,
    parse_toml_manifest,
)


@pytest.fixture
def extract(run_analyzer):
    def _extract(text, auxiliary_files=None):
        return run_analyzer(DependencyExtractor(), text, auxiliary_files)

    return _extract


def evidence_by_key(finding_set):
    return {item.key: item for item in finding_set.evidence}


class TestInstallCommands:
    """Tests for parse_install_command."""

    def test_pip_with_versions(self):
        ecosystem, packages, files = parse_install_command("pip install requests==2.31.0 flask")
        assert ecosystem == "pypi"
        assert packages == [
            DeclaredPackage("requests", "==2.31.0"),
            DeclaredPackage("flask"),
        ]
        assert files == []

    def test_npm_dev_and_scoped(self):
        ecosystem, packages, _ = parse_install_command(
            "npm install --save-dev jest @types/node@18"
        )
        assert ecosystem == "npm"
        assert packages == [
            DeclaredPackage("jest", None, True),
            DeclaredPackage("@types/node", "18", True),
        ]

    def test_requirements_file_flag(self):
        ecosystem, packages, files = parse_install_command("pip install -r requirements.txt")
        assert (ecosystem, packages, files) == ("pypi", [], ["requirements.txt"])

    def test_go_module_path(self):
        _, packages, _ = parse_install_command("go get github.com/gin-gonic/gin@v1.9.1")
        assert packages == [DeclaredPackage("github.com/gin-gonic/gin", "v1.9.1")]

    def test_cargo_and_composer(self):
        assert parse_install_command("cargo add serde")[1] == [DeclaredPackage("serde")]
        assert parse_install_command("composer require monolog/monolog:^3.0")[1] == [
            DeclaredPackage("monolog/monolog", "^3.0")
        ]

    def test_bare_install_has_no_packages(self):
        assert parse_install_command("npm install") == ("npm", [], [])

    def test_non_install_command(self):
        assert parse_install_command("npm test") is None
        assert parse_install_command("pytest -q") is None


class TestManifestParsers:
    """Tests for the manifest file parsers."""

    def test_package_json(self):
        text = json.dumps(
            {
                "dependencies": {"express": "^4.18.0"},
                "devDependencies": {"jest": "^29.0.0"},
            }
        )
        assert parse_package_json(text) == [
            DeclaredPackage("express", "^4.18.0"),
            DeclaredPackage("jest", "^29.0.0", True),
        ]

    def test_requirements(self):
        text = "requests>=2\n# comment\n-e .\nflask  # web\n"
        assert parse_requirements(text) == [
            DeclaredPackage("requests", ">=2"),
            DeclaredPackage("flask"),
        ]

    def test_pyproject(self):
        text = (
            '[project]\nname = "demo"\ndependencies = ["click>=8"]\n\n'
            '[project.optional-dependencies]\ntest = ["pytest"]\n'
        )
        ecosystem, packages = parse_toml_manifest(text)
        assert ecosystem == "pypi"
        assert packages == [
            DeclaredPackage("click", ">=8"),
            DeclaredPackage("pytest", None, True),
        ]

    def test_cargo_toml(self):
        text = (
            '[package]\nname = "demo"\n\n[dependencies]\n'
            'serde = { version = "1.0", features = ["derive"] }\ntokio = "1"\n\n'
            '[dev-dependencies]\ncriterion = "0.5"\n'
        )
        ecosystem, packages = parse_toml_manifest(text)
        assert ecosystem == "cargo"
        assert packages == [
            DeclaredPackage("serde", "1.0"),
            DeclaredPackage("tokio", "1"),
            DeclaredPackage("criterion", "0.5", True),
        ]

    def test_go_mod(self):
        text = "module example.com/app\n\ngo 1.21\n\nrequire (\n\tgithub.com/gin-gonic/gin v1.9.1\n)\n"
        assert parse_go_mod(text) == [DeclaredPackage("github.com/gin-gonic/gin", "v1.9.1")]

    def test_gemfile_groups(self):
        text = (
            "source 'https://rubygems.org'\n"
            "gem 'rails', '~> 7.0'\n"
            "group :development, :test do\n"
            "  gem 'rspec-rails'\n"
            "end\n"
        )
        assert parse_gemfile(text) == [
            DeclaredPackage("rails", "~> 7.0"),
            DeclaredPackage("rspec-rails", None, True),
        ]

    def test_unsupported_and_malformed(self):
        assert parse_auxiliary_manifest("README.md", "# hi") is None
        assert parse_auxiliary_manifest("package.json", "{oops") is None

    def test_requirements_variants(self):
        ecosystem, packages = parse_auxiliary_manifest("requirements-prod.txt", "gunicorn\n")
        assert ecosystem == "pypi"
        assert packages == [DeclaredPackage("gunicorn")]


class TestDependencyExtractor:
    """Tests for the analyzer's evidence."""

    def test_install_command_packages(self, extract):
        result = extract("```bash\npip install requests\n```\n")
        item = evidence_by_key(result)[("package", "pypi", "requests")]
        assert item.value == "requests"
        assert item.confidence == pytest.approx(0.9)
        assert item.signal == "install_command"
        assert item.attributes["ecosystem"] == "pypi"

    def test_requirements_flag_names_manifest(self, extract):
        result = extract("```bash\npip install -r requirements.txt\n```\n")
        keys = evidence_by_key(result)
        assert ("manifest", "pypi", "requirements.txt") in keys

    def test_manifest_mention(self, extract):
        result = extract("Dependencies are listed in Cargo.toml.\n")
        item = evidence_by_key(result)[("manifest", "cargo", "Cargo.toml")]
        assert item.signal == "manifest_mention"

    def test_json_fragment(self, extract):
        result = extract('```json\n{"dependencies": {"express": "^4.18.0"}}\n```\n')
        item = evidence_by_key(result)[("package", "npm", "express")]
        assert item.attributes["version"] == "^4.18.0"
        assert item.confidence == pytest.approx(0.85)
        assert item.signal == "code_block_fragment"

    def test_unparseable_fragment_ignored(self, extract):
        result = extract("```json\n{ this is not json }\n```\n")
        assert result.is_empty

    def test_prose_framework_mentions(self, extract):
        result = extract("Built with Django and Flask.\n")
        keys = evidence_by_key(result)
        assert ("package", "pypi", "django") in keys
        assert ("package", "pypi", "flask") in keys
        assert keys[("package", "pypi", "django")].confidence == pytest.approx(0.4)

    def test_auxiliary_requirements(self, extract):
        text = "requests>=2.0\npytest\n"
        result = extract("# Tool\n", {"requirements.txt": text})
        keys = evidence_by_key(result)
        manifest = keys[("manifest", "pypi", "requirements.txt")]
        assert manifest.confidence == pytest.approx(0.95)
        package = keys[("package", "pypi", "requests")]
        assert package.attributes["version"] == ">=2.0"
        assert package.first_span.document == "requirements.txt"
        assert text[package.first_span.start_offset : package.first_span.end_offset] == "requests"

    def test_malformed_auxiliary_keeps_manifest(self, extract):
        result = extract("", {"package.json": "{broken"})
        assert [item.key for item in result.evidence] == [("manifest", "npm", "package.json")]

"""Dependency Extractor.

Turns install commands, manifest-like fragments in code blocks, manifest file
mentions, "built with" prose and supplied auxiliary manifests into package
and manifest facts. Fact keys are ``("package", ecosystem, name)`` and
``("manifest", ecosystem, file)``.
"""

from __future__ import annotations

import json
import posixpath
import re
import shlex
import tomllib
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from readme_insight.analyzers.commands import ShellCommand, shell_commands
from readme_insight.analyzers.types import (
    AnalyzerKind,
    EvidenceCollector,
    FactCategory,
    FindingSet,
)
from readme_insight.analyzers.vocabulary import (
    LANGUAGES,
    MANIFEST_DISPLAY,
    MANIFEST_ECOSYSTEMS,
    PACKAGE_STOPWORDS,
    compile_terms,
)
from readme_insight.constants import ConfidenceTier
from readme_insight.parsing.nodes import ListItem, Paragraph, StructureTree
from readme_insight.types.core import Span
from readme_insight.utils.logger import logger

FRAGMENT_CONFIDENCE = 0.85

_MANIFEST_MENTION = compile_terms(tuple(MANIFEST_ECOSYSTEMS))
_PROSE_TRIGGER = re.compile(
    r"\b(?:built (?:with|using|on)|depends on|powered by|requires|based on)\b([^.\n]*)",
    re.IGNORECASE,
)
_PEP508 = re.compile(r"^([A-Za-z0-9][A-Za-z0-9._-]*)\s*(?:\[[^\]]*\])?\s*([^;#]*)")
_GEMFILE_GEM = re.compile(r"""^\s*gem\s+['"]([^'"]+)['"](?:\s*,\s*['"]([^'"]+)['"])?""")
_GEMFILE_GROUP = re.compile(r"^\s*group\s+(.+?)\s+do\b")
_GO_REQUIRE = re.compile(r"^\s*(?:require\s+)?([\w.-]+\.[\w.-]+/[\w./-]+)\s+(v[\w.+-]+)")
_VERSION_OPERATORS = ("==", ">=", "<=", "~=", "!=", ">", "<", "===")


@dataclass(frozen=True)
class DeclaredPackage:
    """One dependency declared by a manifest or command."""

    name: str
    version: str | None = None
    dev: bool = False


_DEV_FLAGS = frozenset({"-D", "--save-dev", "--dev", "-G", "--group=dev", "--only-dev"})
_VALUE_FLAGS = frozenset(
    {
        "-r",
        "--requirement",
        "-c",
        "--constraint",
        "-v",
        "--version",
        "--group",
        "-G",
        "--index-url",
        "-i",
        "--extra-index-url",
        "--registry",
        "--features",
    }
)


def _looks_like_package(token: str, allow_slash: bool = False) -> bool:
    if not token or token.startswith(("-", ".", "~", "$", "<", "{", "/")):
        return False
    if "://" in token or token.startswith("git+"):
        return False
    if token.endswith((".txt", ".whl", ".tar.gz", ".zip")):
        return False
    if "/" in token and not allow_slash and not token.startswith("@"):
        return False
    if token.lower() in PACKAGE_STOPWORDS or token in ("...", "etc"):
        return False
    return bool(re.match(r"^@?[A-Za-z0-9]", token))


def _split_npm_spec(token: str) -> DeclaredPackage:
    at = token.rfind("@")
    if at > 0:
        return DeclaredPackage(token[:at], token[at + 1 :] or None)
    return DeclaredPackage(token)


def _split_pep508(token: str) -> DeclaredPackage | None:
    match = _PEP508.match(token.strip())
    if not match:
        return None
    version = match.group(2).strip() or None
    if version is not None and not version.startswith(_VERSION_OPERATORS + ("@",)):
        return None
    return DeclaredPackage(match.group(1), version)


def _split_suffix(token: str, separator: str) -> DeclaredPackage:
    name, sep, version = token.partition(separator)
    return DeclaredPackage(name, version if sep and version else None)


def _tokens(command: str) -> list[str]:
    try:
        return shlex.split(command)
    except ValueError:
        return command.split()


# ---------------------------------------------------------------------------
# Install command parsing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _InstallSyntax:
    ecosystem: str
    prefix: re.Pattern[str]
    split: Callable[[str], DeclaredPackage | None]
    allow_slash: bool = False


_INSTALL_SYNTAXES: tuple[_InstallSyntax, ...] = (
    _InstallSyntax(
        "npm",
        re.compile(
            r"^(?:npm\s+(?:install|i|add)|yarn\s+(?:global\s+)?add"
            r"|pnpm\s+(?:add|install|i)|bun\s+add)\b"
        ),
        _split_npm_spec,
    ),
    _InstallSyntax(
        "pypi",
        re.compile(
            r"^(?:pip3?\s+install|pipx\s+install|python3?\s+-m\s+pip\s+install"
            r"|uv\s+(?:pip\s+install|add)|poetry\s+add|pipenv\s+install)\b"
        ),
        _split_pep508,
    ),
    _InstallSyntax(
        "cargo",
        re.compile(r"^cargo\s+(?:add|install)\b"),
        lambda t: _split_suffix(t, "@"),
    ),
    _InstallSyntax(
        "go",
        re.compile(r"^go\s+(?:get|install)\b"),
        lambda t: _split_suffix(t, "@"),
        allow_slash=True,
    ),
    _InstallSyntax(
        "rubygems",
        re.compile(r"^gem\s+install\b"),
        lambda t: DeclaredPackage(t),
    ),
    _InstallSyntax(
        "composer",
        re.compile(r"^composer\s+require\b"),
        lambda t: _split_suffix(t, ":"),
        allow_slash=True,
    ),
    _InstallSyntax(
        "nuget",
        re.compile(r"^dotnet\s+add\s+(?:\S+\s+)?package\b"),
        lambda t: DeclaredPackage(t),
    ),
)


def parse_install_command(command: str) -> tuple[str, list[DeclaredPackage], list[str]] | None:
    """Packages and requirement files named by an install command.

    Returns:
        (ecosystem, packages, requirement files) or None if the command does
        not install packages.
    """
    command = command[5:].lstrip() if command.startswith("sudo ") else command
    for syntax in _INSTALL_SYNTAXES:
        match = syntax.prefix.match(command)
        if not match:
            continue
        tokens = _tokens(command[match.end() :])
        dev = any(t in _DEV_FLAGS for t in tokens)
        packages: list[DeclaredPackage] = []
        files: list[str] = []
        version_flag: str | None = None
        skip_next = False
        for i, token in enumerate(tokens):
            if skip_next:
                skip_next = False
                continue
            if token in _VALUE_FLAGS:
                skip_next = True
                value = tokens[i + 1] if i + 1 < len(tokens) else ""
                if token in ("-r", "--requirement") and value:
                    files.append(value)
                elif token in ("-v", "--version") and value:
                    version_flag = value
                continue
            if token.startswith("--requirement="):
                files.append(token.split("=", 1)[1])
                continue
            if token.startswith("-"):
                continue
            if token == "package" and syntax.ecosystem == "nuget":
                continue
            if not _looks_like_package(token, allow_slash=syntax.allow_slash):
                continue
            declared = syntax.split(token)
            if declared is None or not declared.name:
                continue
            packages.append(
                DeclaredPackage(declared.name, declared.version, dev or declared.dev)
            )
        if version_flag and len(packages) == 1 and packages[0].version is None:
            packages[0] = DeclaredPackage(packages[0].name, version_flag, packages[0].dev)
        return syntax.ecosystem, packages, files
    return None


# ---------------------------------------------------------------------------
# Manifest parsing (code-block fragments and auxiliary files)
# ---------------------------------------------------------------------------


def parse_package_json(text: str) -> list[DeclaredPackage]:
    data = json.loads(text)
    if not isinstance(data, dict):
        return []
    packages = []
    for section, dev in (
        ("dependencies", False),
        ("peerDependencies", False),
        ("optionalDependencies", False),
        ("devDependencies", True),
    ):
        for name, version in sorted((data.get(section) or {}).items()):
            packages.append(DeclaredPackage(name, str(version) if version else None, dev))
    return packages


def parse_composer_json(text: str) -> list[DeclaredPackage]:
    data = json.loads(text)
    if not isinstance(data, dict):
        return []
    packages = []
    for section, dev in (("require", False), ("require-dev", True)):
        for name, version in sorted((data.get(section) or {}).items()):
            if name == "php" or name.startswith("ext-"):
                continue
            packages.append(DeclaredPackage(name, str(version) if version else None, dev))
    return packages


def parse_requirements(text: str) -> list[DeclaredPackage]:
    packages = []
    for line in text.split("\n"):
        line = line.split(" #", 1)[0].strip()
        if not line or line.startswith(("#", "-")) or "://" in line:
            continue
        declared = _split_pep508(line)
        if declared is not None:
            packages.append(declared)
    return packages


def _toml_version(spec: Any) -> str | None:
    if isinstance(spec, str):
        return spec
    if isinstance(spec, dict) and isinstance(spec.get("version"), str):
        return spec["version"]
    return None


def parse_toml_manifest(text: str) -> tuple[str, list[DeclaredPackage]]:
    """Cargo.toml or pyproject.toml content; returns (ecosystem, packages)."""
    data = tomllib.loads(text)
    if "project" in data or "tool" in data or "build-system" in data:
        packages = []
        project = data.get("project") or {}
        for requirement in project.get("dependencies") or []:
            declared = _split_pep508(requirement)
            if declared:
                packages.append(declared)
        for group, requirements in sorted((project.get("optional-dependencies") or {}).items()):
            for requirement in requirements:
                declared = _split_pep508(requirement)
                if declared:
                    dev = group in ("dev", "test", "tests")
                    packages.append(DeclaredPackage(declared.name, declared.version, dev))
        poetry = (data.get("tool") or {}).get("poetry") or {}
        for name, spec in sorted((poetry.get("dependencies") or {}).items()):
            if name != "python":
                packages.append(DeclaredPackage(name, _toml_version(spec)))
        for name, spec in sorted((poetry.get("dev-dependencies") or {}).items()):
            packages.append(DeclaredPackage(name, _toml_version(spec), True))
        for group in sorted(poetry.get("group") or {}):
            for name, spec in sorted((poetry["group"][group].get("dependencies") or {}).items()):
                packages.append(DeclaredPackage(name, _toml_version(spec), True))
        return "pypi", packages

    packages = []
    for section, dev in (
        ("dependencies", False),
        ("build-dependencies", False),
        ("dev-dependencies", True),
    ):
        for name, spec in sorted((data.get(section) or {}).items()):
            packages.append(DeclaredPackage(name, _toml_version(spec), dev))
    return "cargo", packages


def parse_go_mod(text: str) -> list[DeclaredPackage]:
    packages = []
    for line in text.split("\n"):
        match = _GO_REQUIRE.match(line)
        if match:
            packages.append(DeclaredPackage(match.group(1), match.group(2), "// indirect" in line))
    return packages


def parse_gemfile(text: str) -> list[DeclaredPackage]:
    packages = []
    dev_group = False
    for line in text.split("\n"):
        group = _GEMFILE_GROUP.match(line)
        if group:
            dev_group = bool(re.search(r":(development|test)\b", group.group(1)))
            continue
        if line.strip() == "end":
            dev_group = False
            continue
        gem = _GEMFILE_GEM.match(line)
        if gem:
            packages.append(DeclaredPackage(gem.group(1), gem.group(2), dev_group))
    return packages


ManifestParser = Callable[[str], tuple[str, list[DeclaredPackage]]]

_AUXILIARY_PARSERS: dict[str, ManifestParser] = {
    "package.json": lambda t: ("npm", parse_package_json(t)),
    "composer.json": lambda t: ("composer", parse_composer_json(t)),
    "requirements.txt": lambda t: ("pypi", parse_requirements(t)),
    "requirements-dev.txt": lambda t: (
        "pypi",
        [DeclaredPackage(p.name, p.version, True) for p in parse_requirements(t)],
    ),
    "pyproject.toml": parse_toml_manifest,
    "cargo.toml": parse_toml_manifest,
    "go.mod": lambda t: ("go", parse_go_mod(t)),
    "gemfile": lambda t: ("rubygems", parse_gemfile(t)),
}


def parse_auxiliary_manifest(
    name: str, text: str
) -> tuple[str, list[DeclaredPackage]] | None:
    """Declared packages of a supplied manifest file, None if unsupported.

    Malformed manifests are logged and treated as unsupported.
    """
    base = posixpath.basename(name.replace("\\", "/")).lower()
    parser = _AUXILIARY_PARSERS.get(base)
    if parser is None and base.startswith("requirements") and base.endswith(".txt"):
        parser = _AUXILIARY_PARSERS["requirements.txt"]
    if parser is None:
        return None
    try:
        return parser(text)
    except (ValueError, AttributeError, TypeError) as e:
        logger.warning("Could not read dependencies from {}: {}", name, e)
        return None


def _fragment_parser(tag: str, content: str) -> ManifestParser | None:
    """Parser for a code block's content, chosen by its tag and shape."""
    if tag in ("json", "jsonc"):
        if '"require"' in content:
            return _AUXILIARY_PARSERS["composer.json"]
        return _AUXILIARY_PARSERS["package.json"]
    if tag == "toml":
        return parse_toml_manifest
    if tag in ("txt", "text", "requirements", "pip-requirements", "requirements.txt"):
        return _AUXILIARY_PARSERS["requirements.txt"]
    if tag in ("go.mod", "gomod", "mod") or (
        tag == "go" and re.search(r"^\s*(module|require)\b", content, re.MULTILINE)
    ):
        return _AUXILIARY_PARSERS["go.mod"]
    if tag in ("gemfile", "ruby", "rb") and _GEMFILE_GEM.search(content):
        return _AUXILIARY_PARSERS["gemfile"]
    return None


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------


def _manifest_key(file_name: str) -> tuple[str, str] | None:
    base = posixpath.basename(file_name.replace("\\", "/")).lower()
    ecosystem = MANIFEST_ECOSYSTEMS.get(base)
    if ecosystem is None and base.startswith("requirements") and base.endswith(".txt"):
        ecosystem = "pypi"
    if ecosystem is None:
        return None
    return ecosystem, MANIFEST_DISPLAY.get(base, base)


_LANGUAGE_ECOSYSTEM = {
    "javascript": "npm",
    "typescript": "npm",
    "python": "pypi",
    "java": "maven",
    "kotlin": "maven",
    "go": "go",
    "rust": "cargo",
    "php": "composer",
    "csharp": "nuget",
    "ruby": "rubygems",
}


def _framework_ecosystems() -> list[tuple[re.Pattern[str], str]]:
    result = []
    for vocab in LANGUAGES:
        ecosystem = _LANGUAGE_ECOSYSTEM.get(vocab.name)
        pattern = compile_terms(vocab.frameworks, case_sensitive=True)
        if ecosystem and pattern is not None:
            result.append((pattern, ecosystem))
    return result


_FRAMEWORK_ECOSYSTEMS = _framework_ecosystems()


class DependencyExtractor:
    """Extracts packages and manifest files with ecosystems and versions."""

    kind = AnalyzerKind.DEPENDENCY

    def analyze(
        self,
        tree: StructureTree,
        raw_text: str,
        auxiliary_files: Mapping[str, str],
    ) -> FindingSet:
        collector = EvidenceCollector(self.kind)
        for command in shell_commands(tree, raw_text):
            self._install_command(command, collector)
        self._manifest_mentions(tree, raw_text, collector)
        self._code_block_fragments(tree, collector)
        self._prose_mentions(tree, raw_text, collector)
        for name in sorted(auxiliary_files):
            self._auxiliary_manifest(name, auxiliary_files[name], collector)
        return collector.build()

    def _package(
        self,
        collector: EvidenceCollector,
        ecosystem: str,
        declared: DeclaredPackage,
        confidence: float,
        spans: Iterable[Span],
        signal: str,
    ) -> None:
        collector.add(
            FactCategory.DEPENDENCY,
            ("package", ecosystem, declared.name.lower()),
            declared.name,
            confidence,
            spans=spans,
            signal=signal,
            version=declared.version,
            dev=declared.dev,
            ecosystem=ecosystem,
        )

    def _manifest(
        self,
        collector: EvidenceCollector,
        file_name: str,
        confidence: float,
        spans: Iterable[Span],
        signal: str,
    ) -> None:
        key = _manifest_key(file_name)
        if key is None:
            return
        ecosystem, display = key
        collector.add(
            FactCategory.DEPENDENCY,
            ("manifest", ecosystem, display),
            display,
            confidence,
            spans=spans,
            signal=signal,
            ecosystem=ecosystem,
        )

    def _install_command(self, command: ShellCommand, collector: EvidenceCollector) -> None:
        parsed = parse_install_command(command.text)
        if parsed is None:
            return
        ecosystem, packages, files = parsed
        for declared in packages:
            self._package(
                collector, ecosystem, declared, command.base_confidence,
                (command.span,), "install_command",
            )
        for file_name in files:
            self._manifest(
                collector, file_name, command.base_confidence,
                (command.span,), "requirements_flag",
            )

    def _manifest_mentions(
        self, tree: StructureTree, raw_text: str, collector: EvidenceCollector
    ) -> None:
        if _MANIFEST_MENTION is None:
            return
        for match in _MANIFEST_MENTION.finditer(raw_text):
            self._manifest(
                collector, match.group(0), ConfidenceTier.MANIFEST_MENTION,
                (tree.span_for(match.start(), match.end()),), "manifest_mention",
            )

    def _code_block_fragments(
        self, tree: StructureTree, collector: EvidenceCollector
    ) -> None:
        for _, block in tree.code_blocks():
            parser = _fragment_parser(block.language_tag, block.content)
            if parser is None:
                continue
            try:
                ecosystem, packages = parser(block.content)
            except (ValueError, AttributeError, TypeError) as e:
                logger.debug(
                    "Unparseable manifest fragment at line {}: {}", block.span.start_line, e
                )
                continue
            for declared in packages:
                located = block.content.find(declared.name)
                span = (
                    tree.span_for(
                        block.content_offset + located,
                        block.content_offset + located + len(declared.name),
                    )
                    if located >= 0
                    else block.span
                )
                self._package(
                    collector, ecosystem, declared, FRAGMENT_CONFIDENCE,
                    (span,), "code_block_fragment",
                )

    def _prose_mentions(
        self, tree: StructureTree, raw_text: str, collector: EvidenceCollector
    ) -> None:
        for node in tree:
            if not isinstance(node, (Paragraph, ListItem)):
                continue
            start = node.span.start_offset
            segment = raw_text[start : node.span.end_offset]
            for trigger in _PROSE_TRIGGER.finditer(segment):
                clause_start = start + trigger.start(1)
                for pattern, ecosystem in _FRAMEWORK_ECOSYSTEMS:
                    for match in pattern.finditer(trigger.group(1)):
                        if " " in match.group(0):
                            continue
                        self._package(
                            collector,
                            ecosystem,
                            DeclaredPackage(match.group(0).lower()),
                            ConfidenceTier.PROSE_MENTION,
                            (
                                tree.span_for(
                                    clause_start + match.start(), clause_start + match.end()
                                ),
                            ),
                            "prose_mention",
                        )

    def _auxiliary_manifest(
        self, name: str, text: str, collector: EvidenceCollector
    ) -> None:
        if _manifest_key(name) is None:
            return
        whole = Span.whole(text, document=name)
        self._manifest(
            collector, name, ConfidenceTier.AUXILIARY_MANIFEST, (whole,), "auxiliary_manifest"
        )

        parsed = parse_auxiliary_manifest(name, text)
        if parsed is None:
            return
        ecosystem, packages = parsed
        for declared in packages:
            located = text.find(declared.name)
            span = (
                Span.from_offsets(text, located, located + len(declared.name), document=name)
                if located >= 0
                else whole
            )
            self._package(
                collector, ecosystem, declared, ConfidenceTier.AUXILIARY_MANIFEST,
                (span,), "auxiliary_manifest",
            )

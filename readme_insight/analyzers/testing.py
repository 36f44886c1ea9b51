"""Testing Detector.

Identifies test frameworks, coverage tools and test configuration files from
command lines, prose, config file mentions and supplied manifests. Fact keys
are ``("framework", name)``, ``("coverage", tool)`` and ``("config", file)``.
"""

from __future__ import annotations

import json
import posixpath
from typing import Iterable, Mapping

from readme_insight.analyzers.commands import shell_commands
from readme_insight.analyzers.dependencies import parse_auxiliary_manifest
from readme_insight.analyzers.types import (
    AnalyzerKind,
    EvidenceCollector,
    FactCategory,
    FindingSet,
)
from readme_insight.analyzers.vocabulary import (
    COVERAGE_TOOLS,
    TEST_CONFIG_FILES,
    TEST_FRAMEWORKS,
    ToolSignature,
    compile_terms,
)
from readme_insight.parsing.nodes import Heading, ListItem, Paragraph, StructureTree
from readme_insight.types.core import Span
from readme_insight.utils.logger import logger

COMMAND_CONFIDENCE = 0.8
PROSE_CONFIDENCE = 0.5
CONFIG_MENTION_CONFIDENCE = 0.6
AUXILIARY_CONFIDENCE = 0.9

_CONFIG_MENTION = compile_terms(tuple(TEST_CONFIG_FILES))
_TOOLS: tuple[tuple[str, ToolSignature], ...] = tuple(
    ("framework", tool) for tool in TEST_FRAMEWORKS
) + tuple(("coverage", tool) for tool in COVERAGE_TOOLS)
_TOOL_BY_NAME: dict[str, tuple[str, ToolSignature]] = {
    tool.name: (kind, tool) for kind, tool in _TOOLS
}


class TestingDetector:
    """Detects the project's testing setup."""

    __test__ = False  # not a pytest test class

    kind = AnalyzerKind.TESTING

    def analyze(
        self,
        tree: StructureTree,
        raw_text: str,
        auxiliary_files: Mapping[str, str],
    ) -> FindingSet:
        collector = EvidenceCollector(self.kind)
        self._commands(tree, raw_text, collector)
        self._prose(tree, raw_text, collector)
        self._config_mentions(tree, raw_text, collector)
        for name in sorted(auxiliary_files):
            self._auxiliary(name, auxiliary_files[name], collector)
        return collector.build()

    def _tool(
        self,
        collector: EvidenceCollector,
        kind: str,
        tool: ToolSignature,
        confidence: float,
        spans: Iterable[Span],
        signal: str,
    ) -> None:
        collector.add(
            FactCategory.TESTING,
            (kind, tool.name),
            tool.name,
            confidence,
            spans=spans,
            signal=signal,
            language=tool.language or None,
        )

    def _config(
        self,
        collector: EvidenceCollector,
        file_name: str,
        confidence: float,
        spans: Iterable[Span],
        signal: str,
    ) -> None:
        base = posixpath.basename(file_name.replace("\\", "/")).lower()
        tool_name = TEST_CONFIG_FILES.get(base)
        if tool_name is None:
            return
        spans = tuple(spans)
        collector.add(
            FactCategory.TESTING,
            ("config", base),
            base,
            confidence,
            spans=spans,
            signal=signal,
            tool=tool_name,
        )
        if tool_name in _TOOL_BY_NAME:
            kind, tool = _TOOL_BY_NAME[tool_name]
            self._tool(collector, kind, tool, confidence, spans, signal)

    def _commands(
        self, tree: StructureTree, raw_text: str, collector: EvidenceCollector
    ) -> None:
        for command in shell_commands(tree, raw_text):
            for kind, tool in _TOOLS:
                if tool.command is not None and tool.command.search(command.text):
                    self._tool(
                        collector, kind, tool, COMMAND_CONFIDENCE,
                        (command.span,), "test_command",
                    )

    def _prose(
        self, tree: StructureTree, raw_text: str, collector: EvidenceCollector
    ) -> None:
        for node in tree:
            if not isinstance(node, (Paragraph, ListItem, Heading)):
                continue
            start = node.span.start_offset
            segment = raw_text[start : node.span.end_offset]
            for kind, tool in _TOOLS:
                spans = [
                    tree.span_for(start + m.start(), start + m.end())
                    for m in tool.prose.finditer(segment)
                ]
                if spans:
                    self._tool(
                        collector, kind, tool, PROSE_CONFIDENCE, spans, "prose_mention"
                    )

    def _config_mentions(
        self, tree: StructureTree, raw_text: str, collector: EvidenceCollector
    ) -> None:
        if _CONFIG_MENTION is None:
            return
        for match in _CONFIG_MENTION.finditer(raw_text):
            self._config(
                collector,
                match.group(0),
                CONFIG_MENTION_CONFIDENCE,
                (tree.span_for(match.start(), match.end()),),
                "config_mention",
            )

    def _auxiliary(self, name: str, text: str, collector: EvidenceCollector) -> None:
        whole = Span.whole(text, document=name)
        self._config(collector, name, AUXILIARY_CONFIDENCE, (whole,), "auxiliary_config")

        parsed = parse_auxiliary_manifest(name, text)
        if parsed is not None:
            _, packages = parsed
            declared = {p.name.lower() for p in packages}
            for kind, tool in _TOOLS:
                matched = sorted(declared.intersection(tool.packages))
                if not matched:
                    continue
                located = text.find(matched[0])
                span = (
                    Span.from_offsets(text, located, located + len(matched[0]), document=name)
                    if located >= 0
                    else whole
                )
                self._tool(
                    collector, kind, tool, AUXILIARY_CONFIDENCE, (span,), "auxiliary_manifest"
                )

        if posixpath.basename(name.replace("\\", "/")).lower() == "package.json":
            self._package_test_script(name, text, collector)

    def _package_test_script(
        self, name: str, text: str, collector: EvidenceCollector
    ) -> None:
        try:
            manifest = json.loads(text)
        except json.JSONDecodeError as e:
            logger.debug("Skipping test script of malformed {}: {}", name, e)
            return
        scripts = manifest.get("scripts") if isinstance(manifest, dict) else None
        script = scripts.get("test") if isinstance(scripts, dict) else None
        if not isinstance(script, str):
            return
        located = text.find(script)
        span = (
            Span.from_offsets(text, located, located + len(script), document=name)
            if located >= 0
            else Span.whole(text, document=name)
        )
        for part in script.split("&&"):
            for kind, tool in _TOOLS:
                if tool.command is not None and tool.command.search(part.strip()):
                    self._tool(
                        collector, kind, tool, AUXILIARY_CONFIDENCE, (span,), "test_script"
                    )

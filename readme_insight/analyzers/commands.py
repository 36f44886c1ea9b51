"""Command Extractor.

Scans shell-tagged and untagged fenced blocks, plus inline code spans in
prose, for command lines and classifies each into build / install / test /
run / other. Commands with no confident category are emitted with an empty
category and resolved later by the aggregator's language-based fallback.

The line scanner (shell_commands) is shared with the dependency and testing
analyzers, which read the same command lines for their own facts.
"""

from __future__ import annotations

import json
import posixpath
import re
from dataclasses import dataclass
from typing import Iterator, Mapping

from readme_insight.analyzers.types import (
    UNCATEGORIZED,
    AnalyzerKind,
    CommandCategory,
    EvidenceCollector,
    FactCategory,
    FindingSet,
)
from readme_insight.analyzers.vocabulary import (
    COMMAND_KEYWORDS,
    COMMAND_LANGUAGE,
    COMMAND_PATTERNS,
    COMMAND_PREFIXES,
    NON_PROJECT_LANGUAGES,
    SECTION_VOCABULARY,
    compile_terms,
)
from readme_insight.constants import SHELL_BLOCK_TAGS, ConfidenceTier
from readme_insight.parsing.nodes import (
    CodeBlock,
    Heading,
    ListItem,
    Paragraph,
    StructureTree,
)
from readme_insight.types.core import Span
from readme_insight.utils.logger import logger

KEYWORD_FALLBACK_FACTOR = 0.85
PACKAGE_SCRIPT_CONFIDENCE = 0.6

_PROMPT = re.compile(r"^\s*(?:\$|%|>|PS(?: [^>]*)?>|[A-Z]:\\[^>]*>|❯|➜)\s+")
_INLINE_CODE = re.compile(r"(?<!`)`([^`\n]+)`(?!`)")
_FIRST_TOKEN = re.compile(r"^[a-z][\w.+-]*$")
_TOKEN_SPLIT = re.compile(r"[\s:/._=-]+")
_SECTION_PATTERNS = tuple(
    (category, compile_terms(words)) for category, words in SECTION_VOCABULARY
)
_LIFECYCLE_SCRIPTS = frozenset({"prepare", "prepublish", "prepublishOnly", "prepack", "postpack"})


class CommandSource:
    SHELL_BLOCK = "shell_block"
    UNTAGGED_BLOCK = "untagged_block"
    INLINE_CODE = "inline_code"


@dataclass(frozen=True)
class ShellCommand:
    """One logical command line found in the README."""

    text: str
    span: Span
    source: str
    node_index: int

    @property
    def base_confidence(self) -> float:
        if self.source == CommandSource.SHELL_BLOCK:
            return ConfidenceTier.CODE_BLOCK_COMMAND
        if self.source == CommandSource.UNTAGGED_BLOCK:
            return ConfidenceTier.UNTAGGED_BLOCK_COMMAND
        return ConfidenceTier.INLINE_COMMAND


# ---------------------------------------------------------------------------
# Line scanning
# ---------------------------------------------------------------------------


def _strip_sudo(command: str) -> str:
    return command[5:].lstrip() if command.startswith("sudo ") else command


def _strip_trailing_comment(line: str) -> str:
    index = line.find(" #")
    while index != -1:
        before = line[:index]
        if before.count('"') % 2 == 0 and before.count("'") % 2 == 0:
            return before.rstrip()
        index = line.find(" #", index + 1)
    return line


def looks_like_command(text: str, strict: bool = True) -> bool:
    """Heuristic: does this line read like a shell command?

    Strict mode (untagged blocks, inline code) requires a known tool as the
    first token; loose mode (shell-tagged blocks) accepts any lowercase
    program name.
    """
    stripped = _strip_sudo(text.strip())
    if not stripped or stripped.startswith(("#", "//")):
        return False
    first = stripped.split()[0]
    if first in COMMAND_PREFIXES or first.startswith(("./", "bin/", "vendor/bin/")):
        return True
    if strict:
        return False
    return bool(_FIRST_TOKEN.match(first)) and not first.endswith(":")


def normalize_command(text: str) -> str:
    """Collapse internal whitespace."""
    return " ".join(text.split())


def _logical_lines(block: CodeBlock) -> Iterator[tuple[int, int, str, bool]]:
    """(start, end, text, prompted) per logical line; continuations joined."""
    pending: list[str] = []
    start = None
    prompted = False
    for offset, raw_line in block.content_lines():
        line = raw_line
        if start is None:
            start = offset
            match = _PROMPT.match(line)
            prompted = bool(match)
            if match:
                line = line[match.end() :]
        stripped = line.rstrip()
        if stripped.endswith("\\"):
            pending.append(stripped[:-1].strip())
            continue
        pending.append(stripped.strip())
        yield start, offset + len(raw_line), " ".join(p for p in pending if p), prompted
        pending, start, prompted = [], None, False
    if pending and start is not None:
        last_offset = block.content_offset + len(block.content)
        yield start, last_offset, " ".join(p for p in pending if p), prompted


def _block_commands(
    tree: StructureTree, index: int, block: CodeBlock
) -> Iterator[ShellCommand]:
    tag = block.language_tag
    if tag in SHELL_BLOCK_TAGS:
        source, strict = CommandSource.SHELL_BLOCK, False
    elif not tag:
        source, strict = CommandSource.UNTAGGED_BLOCK, True
    else:
        return

    lines = list(_logical_lines(block))
    # With any prompt present, unprompted lines are program output.
    if any(prompted for *_, prompted in lines):
        lines = [line for line in lines if line[3]]

    for start, end, text, _ in lines:
        text = _strip_trailing_comment(text)
        for part in text.split("&&"):
            part = normalize_command(part)
            if looks_like_command(part, strict=strict):
                yield ShellCommand(
                    text=part,
                    span=tree.span_for(start, end),
                    source=source,
                    node_index=index,
                )


def _inline_commands(
    tree: StructureTree, raw_text: str, index: int, node: Paragraph | ListItem | Heading
) -> Iterator[ShellCommand]:
    start = node.span.start_offset
    segment = raw_text[start : node.span.end_offset]
    for match in _INLINE_CODE.finditer(segment):
        code = _PROMPT.sub("", match.group(1), count=1)
        for part in code.split("&&"):
            part = normalize_command(part)
            if looks_like_command(part, strict=True):
                yield ShellCommand(
                    text=part,
                    span=tree.span_for(start + match.start(), start + match.end()),
                    source=CommandSource.INLINE_CODE,
                    node_index=index,
                )


def shell_commands(tree: StructureTree, raw_text: str) -> list[ShellCommand]:
    """Every command line in document order."""
    commands: list[ShellCommand] = []
    for index, node in enumerate(tree.nodes):
        if isinstance(node, CodeBlock):
            commands.extend(_block_commands(tree, index, node))
        elif isinstance(node, (Paragraph, ListItem)):
            commands.extend(_inline_commands(tree, raw_text, index, node))
    return commands


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def _is_hook(script: str, scripts: Mapping[str, object]) -> bool:
    """``pretest`` / ``postbuild`` style hooks of another script."""
    for prefix in ("pre", "post"):
        if script.startswith(prefix) and script[len(prefix) :] in scripts:
            return True
    return False


def infer_command_language(command: str) -> str:
    """Language a command belongs to (``shell`` when unknown)."""
    command = _strip_sudo(command)
    for pattern, language in COMMAND_LANGUAGE:
        if pattern.search(command):
            return language
    return "shell"


def categorize_command(command: str) -> tuple[str, float, str]:
    """Category from the pattern table, then the keyword fallback.

    Returns:
        (category, confidence factor, how); category is "" when unknown.
    """
    command = _strip_sudo(command)
    for category, pattern in COMMAND_PATTERNS:
        if pattern.search(command):
            return category.value, 1.0, "pattern"
    tokens = set(_TOKEN_SPLIT.split(command.lower())[1:])
    for category, keywords in COMMAND_KEYWORDS:
        if tokens & keywords:
            return category.value, KEYWORD_FALLBACK_FACTOR, "keyword"
    return UNCATEGORIZED, 1.0, "none"


def section_category(heading: Heading | None) -> str | None:
    """Command category suggested by a section heading, if any."""
    if heading is None:
        return None
    for category, pattern in _SECTION_PATTERNS:
        if pattern is not None and pattern.search(heading.text):
            return category.value
    return None


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------


class CommandExtractor:
    """Extracts build/install/test/run commands with provenance."""

    kind = AnalyzerKind.COMMAND

    def analyze(
        self,
        tree: StructureTree,
        raw_text: str,
        auxiliary_files: Mapping[str, str],
    ) -> FindingSet:
        collector = EvidenceCollector(self.kind)
        held_back = 0
        for command in shell_commands(tree, raw_text):
            category, factor, how = categorize_command(command.text)
            hint = None
            if not category:
                # Left for the aggregator; the heading only suggests a bucket.
                held_back += 1
                enclosing = tree.enclosing_heading(command.node_index)
                hint = section_category(enclosing[1] if enclosing else None)
            self._emit(
                collector,
                command.text,
                category,
                command.base_confidence * factor,
                command.span,
                command.source,
                how,
                section_hint=hint,
            )

        for name in sorted(auxiliary_files):
            if posixpath.basename(name.replace("\\", "/")).lower() == "package.json":
                self._package_scripts(name, auxiliary_files[name], collector)

        notes = (f"{held_back} uncategorized command(s) held back",) if held_back else ()
        return collector.build(notes)

    def _emit(
        self,
        collector: EvidenceCollector,
        command: str,
        category: str,
        confidence: float,
        span: Span,
        signal: str,
        how: str,
        section_hint: str | None = None,
    ) -> None:
        language = infer_command_language(command)
        attributes = {"language": language, "categorized_by": how}
        if section_hint:
            attributes["section_hint"] = section_hint
        collector.add(
            FactCategory.COMMAND,
            (category, command),
            command,
            confidence,
            spans=(span,),
            signal=signal,
            **attributes,
        )
        if language not in NON_PROJECT_LANGUAGES:
            collector.add(
                FactCategory.LANGUAGE,
                (language,),
                language,
                ConfidenceTier.COMMAND_LANGUAGE_HINT,
                spans=(span,),
                signal="command_hint",
            )

    def _package_scripts(
        self, name: str, text: str, collector: EvidenceCollector
    ) -> None:
        try:
            manifest = json.loads(text)
        except json.JSONDecodeError as e:
            logger.debug("Skipping scripts of malformed {}: {}", name, e)
            return
        scripts = manifest.get("scripts") if isinstance(manifest, dict) else None
        if not isinstance(scripts, dict):
            return
        scripts_at = max(text.find('"scripts"'), 0)
        for script in sorted(scripts):
            if script in _LIFECYCLE_SCRIPTS or _is_hook(script, scripts):
                continue
            command = f"npm {script}" if script in ("test", "start") else f"npm run {script}"
            category, factor, how = categorize_command(command)
            located = text.find(f'"{script}"', scripts_at)
            span = (
                Span.from_offsets(text, located, located + len(script) + 2, document=name)
                if located >= 0
                else Span.whole(text, document=name)
            )
            self._emit(
                collector,
                command,
                category,
                PACKAGE_SCRIPT_CONFIDENCE * factor,
                span,
                "package_script",
                how,
            )

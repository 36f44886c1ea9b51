"""Metadata Extractor.

Pulls project name, description, license, repository URL, badges and
environment variables. Every strategy emits its own Evidence under a
``(field, value)`` key; competing candidates are ranked by the aggregator.
"""

from __future__ import annotations

import json
import posixpath
import re
import tomllib
from typing import Any, Iterator, Mapping
from urllib.parse import unquote

from readme_insight.analyzers.types import (
    AnalyzerKind,
    EvidenceCollector,
    FactCategory,
    FindingSet,
)
from readme_insight.analyzers.vocabulary import (
    BADGE_SERVICES,
    ENVIRONMENT_SECTION,
    LICENSES,
    REPOSITORY_URL,
)
from readme_insight.parsing.nodes import (
    Heading,
    ListItem,
    Paragraph,
    StructureTree,
)
from readme_insight.types.core import Span
from readme_insight.utils.logger import logger

H1_NAME_CONFIDENCE = 0.9
AUXILIARY_NAME_CONFIDENCE = 0.8
REPOSITORY_NAME_CONFIDENCE = 0.6
H2_NAME_CONFIDENCE = 0.4

BLOCKQUOTE_DESCRIPTION_CONFIDENCE = 0.8
PARAGRAPH_DESCRIPTION_CONFIDENCE = 0.7
SENTENCE_DESCRIPTION_CONFIDENCE = 0.5
AUXILIARY_DESCRIPTION_CONFIDENCE = 0.6

LICENSE_SECTION_CONFIDENCE = 0.85
LICENSE_BADGE_CONFIDENCE = 0.8
LICENSE_PROSE_CONFIDENCE = 0.7
AUXILIARY_LICENSE_CONFIDENCE = 0.9

REPOSITORY_CONFIDENCE = 0.7
AUXILIARY_REPOSITORY_CONFIDENCE = 0.8
BADGE_CONFIDENCE = 0.9
ENV_BLOCK_CONFIDENCE = 0.8
ENV_MENTION_CONFIDENCE = 0.6

MAX_REPOSITORY_SPANS = 5

_NOT_A_NAME = re.compile(
    r"^(readme|documentation|docs|guide|tutorial|examples?|sample|demo|tests?|"
    r"installation|install|setup|getting started|introduction|overview|features|"
    r"usage|license|contributing|table of contents|contents|requirements|"
    r"prerequisites|quick ?start|configuration|changelog|about|api|faq|support)$",
    re.IGNORECASE,
)
_GENERIC_NAME = re.compile(
    r"^(project|app|application|tool|library|package|service|api|website|site|"
    r"repo|repository)$",
    re.IGNORECASE,
)
_EMOJI = re.compile(
    "[\U0001F300-\U0001FAFF\U00002600-\U000027BF\U0001F1E0-\U0001F1FF\uFE0F]"
)
_IMAGE = re.compile(r"!\[[^\]]*\]\([^)]*\)")
_LINK = re.compile(r"\[([^\]]*)\]\([^)]*\)")
_HTML_TAG = re.compile(r"<[^>]+>")
_FORMATTING = re.compile(r"[*`~]")
_SENTENCE_END = re.compile(r"[.!?]$")
_THIS_PROJECT = re.compile(
    r"\bThis\s+(?:project|application|tool|library|package)\b[^.!?\n]*[.!?]",
    re.IGNORECASE,
)
_LICENSE_HEADING = re.compile(r"^licen[cs]e\b", re.IGNORECASE)
_LICENSED_UNDER = re.compile(
    r"\b(?:licensed|released|distributed|available)\s+under\b[^\n]{0,80}", re.IGNORECASE
)

_LINKED_BADGE = re.compile(
    r"\[!\[([^\]]*)\]\(\s*([^)\s]+)[^)]*\)\]\(\s*([^)\s]+)[^)]*\)"
)
_BADGE_IMAGE = re.compile(r"!\[([^\]]*)\]\(\s*([^)\s]+)[^)]*\)")

_ENV_ASSIGNMENT = re.compile(
    r"^\s*(?:export\s+|set\s+)?([A-Z][A-Z0-9_]{1,49})\s*=\s*(.*?)\s*$"
)
_ENV_INLINE = re.compile(r"`([A-Z][A-Z0-9_]{1,49})`")
_ENV_BLOCK_TAGS = frozenset(
    {"", "env", "dotenv", "bash", "sh", "shell", "zsh", "console", "ini", "properties"}
)
_NO_ENVIRONMENT = re.compile(
    r"\bno\s+environment\s+variables\b|\bwithout\s+environment\b", re.IGNORECASE
)


def clean_inline_text(text: str) -> str:
    """Strip markdown images, link syntax, formatting marks and emoji."""
    text = _IMAGE.sub("", text)
    text = _LINK.sub(r"\1", text)
    text = _HTML_TAG.sub("", text)
    text = _FORMATTING.sub("", text)
    text = _EMOJI.sub("", text)
    return " ".join(text.split())


def is_valid_name(name: str) -> bool:
    return 2 <= len(name) <= 100 and not _NOT_A_NAME.match(name)


def is_generic_name(name: str) -> bool:
    return bool(_GENERIC_NAME.match(name))


def is_valid_description(text: str) -> bool:
    return 10 <= len(text) <= 500 and bool(_SENTENCE_END.search(text))


def match_license(text: str) -> str | None:
    """Canonical license id mentioned in ``text``, if any."""
    for pattern, name in LICENSES:
        if pattern.search(text):
            return name
    return None


def repository_url(host_path: re.Match[str]) -> str:
    """Canonical ``https://host/owner/repo`` form of a repository match."""
    url = host_path.group(0)
    host = url.split("//", 1)[1].split("/", 1)[0].removeprefix("www.")
    return f"https://{host}/{host_path.group(1)}/{host_path.group(2)}"


def badge_kind(label: str, image_url: str) -> str:
    lowered = f"{label} {unquote(image_url)}".lower()
    for word in ("license", "coverage", "build", "version", "downloads", "docs"):
        if word in lowered:
            return word
    for host, kind in BADGE_SERVICES:
        if host in image_url:
            return kind
    return "badge"


def _is_badge(label: str, image_url: str) -> bool:
    if "badge" in label.lower() or "badge" in image_url.lower():
        return True
    # plain github.com images are screenshots, not badges
    return any(host in image_url for host, _ in BADGE_SERVICES if host != "github.com")


# ---------------------------------------------------------------------------
# Auxiliary manifests
# ---------------------------------------------------------------------------


def _json_fields(data: Any) -> dict[str, str]:
    if not isinstance(data, dict):
        return {}
    fields: dict[str, str] = {}
    for field in ("name", "description"):
        if isinstance(data.get(field), str):
            fields[field] = data[field]
    license_value = data.get("license")
    if isinstance(license_value, list) and license_value:
        license_value = license_value[0]
    if isinstance(license_value, str):
        fields["license"] = license_value
    repository = data.get("repository")
    if isinstance(repository, dict):
        repository = repository.get("url")
    if isinstance(repository, str):
        fields["repository"] = repository
    return fields


def _toml_fields(data: dict[str, Any]) -> dict[str, str]:
    table = (
        data.get("project")
        or data.get("tool", {}).get("poetry")
        or data.get("package")
        or {}
    )
    fields = _json_fields(table)
    license_value = table.get("license") if isinstance(table, dict) else None
    if isinstance(license_value, dict) and isinstance(license_value.get("text"), str):
        fields["license"] = license_value["text"]
    urls = table.get("urls") if isinstance(table, dict) else None
    if "repository" not in fields and isinstance(urls, dict):
        for key in ("Repository", "repository", "Source", "Homepage"):
            if isinstance(urls.get(key), str):
                fields["repository"] = urls[key]
                break
    return fields


def auxiliary_metadata(name: str, text: str) -> dict[str, str]:
    """Name, description, license and repository declared by a manifest."""
    base = posixpath.basename(name.replace("\\", "/")).lower()
    try:
        if base in ("package.json", "composer.json"):
            return _json_fields(json.loads(text))
        if base in ("pyproject.toml", "cargo.toml"):
            return _toml_fields(tomllib.loads(text))
    except ValueError as e:
        logger.warning("Ignoring metadata of malformed {}: {}", name, e)
    return {}


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------


class MetadataExtractor:
    """Extracts descriptive project metadata."""

    kind = AnalyzerKind.METADATA

    def analyze(
        self,
        tree: StructureTree,
        raw_text: str,
        auxiliary_files: Mapping[str, str],
    ) -> FindingSet:
        collector = EvidenceCollector(self.kind)
        self._names(tree, collector)
        self._descriptions(tree, raw_text, collector)
        self._repositories(tree, raw_text, collector)
        self._badges(tree, raw_text, collector)
        self._licenses(tree, raw_text, collector)
        if self._has_environment_section(tree, raw_text):
            self._environment(tree, raw_text, collector)
        for name in sorted(auxiliary_files):
            self._auxiliary(name, auxiliary_files[name], collector)
        return collector.build()

    def _add(
        self,
        collector: EvidenceCollector,
        field: str,
        value: str,
        confidence: float,
        spans: tuple[Span, ...] | list[Span],
        signal: str,
        **attributes: Any,
    ) -> None:
        collector.add(
            FactCategory.METADATA,
            (field, value),
            value,
            confidence,
            spans=spans,
            signal=signal,
            **attributes,
        )

    # -- name -----------------------------------------------------------

    def _names(self, tree: StructureTree, collector: EvidenceCollector) -> None:
        for level, confidence, signal in (
            (1, H1_NAME_CONFIDENCE, "h1_heading"),
            (2, H2_NAME_CONFIDENCE, "h2_heading"),
        ):
            for _, heading in tree.headings():
                if heading.level != level:
                    continue
                name = clean_inline_text(heading.text)
                if is_valid_name(name) and not is_generic_name(name):
                    self._add(collector, "name", name, confidence, (heading.span,), signal)
                    return

    # -- description ----------------------------------------------------

    def _descriptions(
        self, tree: StructureTree, raw_text: str, collector: EvidenceCollector
    ) -> None:
        for node in tree:
            if isinstance(node, Paragraph) and node.quoted:
                text = clean_inline_text(node.text)
                if is_valid_description(text):
                    self._add(
                        collector, "description", text,
                        BLOCKQUOTE_DESCRIPTION_CONFIDENCE, (node.span,), "blockquote",
                    )
                    break

        seen_title = False
        for node in tree:
            if isinstance(node, Heading) and node.level == 1:
                seen_title = True
            elif seen_title and isinstance(node, Paragraph) and not node.quoted:
                text = clean_inline_text(node.text)
                if is_valid_description(text):
                    self._add(
                        collector, "description", text,
                        PARAGRAPH_DESCRIPTION_CONFIDENCE, (node.span,), "first_paragraph",
                    )
                    break

        for node in tree:
            if not isinstance(node, (Paragraph, ListItem)):
                continue
            start = node.span.start_offset
            match = _THIS_PROJECT.search(raw_text, start, node.span.end_offset)
            if match:
                text = clean_inline_text(match.group(0))
                if is_valid_description(text):
                    self._add(
                        collector, "description", text,
                        SENTENCE_DESCRIPTION_CONFIDENCE,
                        (tree.span_for(match.start(), match.end()),),
                        "this_project_sentence",
                    )
                    break

    # -- repository -----------------------------------------------------

    def _repositories(
        self, tree: StructureTree, raw_text: str, collector: EvidenceCollector
    ) -> None:
        found: dict[str, list[Span]] = {}
        for match in REPOSITORY_URL.finditer(raw_text):
            url = repository_url(match)
            found.setdefault(url, []).append(tree.span_for(match.start(), match.end()))
        for url, spans in found.items():
            self._add(
                collector, "repository", url, REPOSITORY_CONFIDENCE,
                spans[:MAX_REPOSITORY_SPANS], "repository_url",
            )
        if found:
            url = next(iter(found))
            repo = url.rsplit("/", 1)[1]
            if is_valid_name(repo):
                self._add(
                    collector, "name", repo, REPOSITORY_NAME_CONFIDENCE,
                    found[url][:1], "repository_name",
                )

    # -- badges ---------------------------------------------------------

    def _iter_badges(self, raw_text: str) -> Iterator[tuple[int, int, str, str, str | None]]:
        """(start, end, label, image_url, link) per badge image."""
        linked_ranges: list[tuple[int, int]] = []
        for match in _LINKED_BADGE.finditer(raw_text):
            label, image_url, link = match.group(1), match.group(2), match.group(3)
            linked_ranges.append((match.start(), match.end()))
            if _is_badge(label, image_url):
                yield match.start(), match.end(), label, image_url, link
        for match in _BADGE_IMAGE.finditer(raw_text):
            if any(start <= match.start() < end for start, end in linked_ranges):
                continue
            label, image_url = match.group(1), match.group(2)
            if _is_badge(label, image_url):
                yield match.start(), match.end(), label, image_url, None

    def _badges(
        self, tree: StructureTree, raw_text: str, collector: EvidenceCollector
    ) -> None:
        for start, end, label, image_url, link in self._iter_badges(raw_text):
            if tree.in_code_block(start):
                continue
            span = tree.span_for(start, end)
            kind = badge_kind(label, image_url)
            collector.add(
                FactCategory.METADATA,
                ("badge", image_url),
                label or kind,
                BADGE_CONFIDENCE,
                spans=(span,),
                signal="badge",
                image_url=image_url,
                link=link,
                kind=kind,
            )
            if kind == "license":
                license_id = match_license(f"{label} {unquote(image_url)}")
                if license_id:
                    self._add(
                        collector, "license", license_id,
                        LICENSE_BADGE_CONFIDENCE, (span,), "license_badge",
                    )

    # -- license --------------------------------------------------------

    def _licenses(
        self, tree: StructureTree, raw_text: str, collector: EvidenceCollector
    ) -> None:
        for index, heading in tree.headings():
            if not _LICENSE_HEADING.match(clean_inline_text(heading.text)):
                continue
            section = tree.section_span(index)
            body_start = heading.span.end_offset
            body = raw_text[body_start : section.end_offset]
            for pattern, name in LICENSES:
                match = pattern.search(body)
                if match:
                    self._add(
                        collector, "license", name, LICENSE_SECTION_CONFIDENCE,
                        (tree.span_for(body_start + match.start(), body_start + match.end()),),
                        "license_section",
                    )
                    break

        for match in _LICENSED_UNDER.finditer(raw_text):
            if tree.in_code_block(match.start()):
                continue
            name = match_license(match.group(0))
            if name:
                self._add(
                    collector, "license", name, LICENSE_PROSE_CONFIDENCE,
                    (tree.span_for(match.start(), match.end()),), "licensed_under",
                )

    # -- environment ----------------------------------------------------

    def _has_environment_section(self, tree: StructureTree, raw_text: str) -> bool:
        if _NO_ENVIRONMENT.search(raw_text):
            return False
        return any(
            ENVIRONMENT_SECTION.search(heading.text) for _, heading in tree.headings()
        ) or any(block.language_tag in ("env", "dotenv") for _, block in tree.code_blocks())

    def _environment(
        self, tree: StructureTree, raw_text: str, collector: EvidenceCollector
    ) -> None:
        for _, block in tree.code_blocks():
            if block.language_tag not in _ENV_BLOCK_TAGS:
                continue
            for offset, line in block.content_lines():
                match = _ENV_ASSIGNMENT.match(line)
                if not match:
                    continue
                name, default = match.group(1), match.group(2).strip("\"'")
                self._add(
                    collector, "environment", name, ENV_BLOCK_CONFIDENCE,
                    (tree.span_for(offset, offset + len(line)),), "env_assignment",
                    default=default or None,
                )

        for index, heading in tree.headings():
            if not ENVIRONMENT_SECTION.search(heading.text):
                continue
            section = tree.section_span(index)
            for node in tree:
                if not isinstance(node, (Paragraph, ListItem)):
                    continue
                if not section.contains(node.span):
                    continue
                start = node.span.start_offset
                segment = raw_text[start : node.span.end_offset]
                for match in _ENV_INLINE.finditer(segment):
                    self._add(
                        collector, "environment", match.group(1), ENV_MENTION_CONFIDENCE,
                        (tree.span_for(start + match.start(), start + match.end()),),
                        "env_mention",
                    )

    # -- auxiliary ------------------------------------------------------

    def _auxiliary(self, name: str, text: str, collector: EvidenceCollector) -> None:
        fields = auxiliary_metadata(name, text)
        if not fields:
            return

        def located(value: str) -> tuple[Span, ...]:
            index = text.find(value)
            if index < 0:
                return (Span.whole(text, document=name),)
            return (Span.from_offsets(text, index, index + len(value), document=name),)

        if "name" in fields and is_valid_name(fields["name"]):
            self._add(
                collector, "name", fields["name"], AUXILIARY_NAME_CONFIDENCE,
                located(fields["name"]), "auxiliary_manifest",
            )
        description = fields.get("description", "").strip()
        if description:
            self._add(
                collector, "description", description, AUXILIARY_DESCRIPTION_CONFIDENCE,
                located(description), "auxiliary_manifest",
            )
        if "license" in fields:
            raw_license = fields["license"].strip()
            license_id = match_license(raw_license) or raw_license
            if license_id:
                self._add(
                    collector, "license", license_id, AUXILIARY_LICENSE_CONFIDENCE,
                    located(raw_license), "auxiliary_manifest",
                )
        if "repository" in fields:
            match = REPOSITORY_URL.search(fields["repository"])
            if match:
                self._add(
                    collector, "repository", repository_url(match),
                    AUXILIARY_REPOSITORY_CONFIDENCE,
                    located(fields["repository"]), "auxiliary_manifest",
                )

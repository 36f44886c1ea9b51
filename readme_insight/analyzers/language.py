"""Language Detector.

Scores candidate languages from independent signals. Each signal becomes its
own Evidence so that several weak observations can corroborate each other in
the Confidence Calculator instead of being summed ad hoc here.
"""

from __future__ import annotations

import posixpath
import re
from typing import Iterable, Mapping

from readme_insight.analyzers.types import (
    AnalyzerKind,
    EvidenceCollector,
    FactCategory,
    FindingSet,
)
from readme_insight.analyzers.vocabulary import (
    LANGUAGES,
    TAG_TO_LANGUAGE,
    LanguageVocabulary,
    compile_terms,
)
from readme_insight.constants import ConfidenceTier
from readme_insight.parsing.nodes import (
    ListItem,
    Paragraph,
    StructureTree,
)
from readme_insight.types.core import Span

# Per-match increments and caps for counted signals.
KEYWORD_STEP, KEYWORD_CAP = 0.1, 0.6
EXTENSION_STEP, EXTENSION_CAP = 0.05, 0.3
FRAMEWORK_STEP, FRAMEWORK_CAP = 0.15, 0.45
MANIFEST_MENTION_CONFIDENCE = 0.3
AUXILIARY_MANIFEST_CONFIDENCE = 0.7

# Provenance spans kept per counted signal.
MAX_SIGNAL_SPANS = 5


class _LanguagePatterns:
    """Compiled regexes for one language vocabulary."""

    def __init__(self, vocab: LanguageVocabulary):
        self.name = vocab.name
        self.keywords = compile_terms(vocab.keywords)
        self.frameworks = compile_terms(vocab.frameworks, case_sensitive=True)
        self.manifests = compile_terms(vocab.manifests)
        self.headings = compile_terms(vocab.heading_words)
        self.extensions = (
            re.compile(
                r"(?<![\w/.-])[\w./-]*\w(?:"
                + "|".join(re.escape(ext) for ext in vocab.extensions)
                + r")(?![\w])"
            )
            if vocab.extensions
            else None
        )
        self.manifest_names = frozenset(vocab.manifests)


_PATTERNS: tuple[_LanguagePatterns, ...] = tuple(_LanguagePatterns(v) for v in LANGUAGES)


def _counted(step: float, cap: float, count: int) -> float:
    return min(step * count, cap)


class LanguageDetector:
    """Detects project languages from tags, vocabulary, files and manifests."""

    kind = AnalyzerKind.LANGUAGE

    def analyze(
        self,
        tree: StructureTree,
        raw_text: str,
        auxiliary_files: Mapping[str, str],
    ) -> FindingSet:
        collector = EvidenceCollector(self.kind)
        self._code_block_tags(tree, collector)
        self._heading_vocabulary(tree, collector)
        prose = list(self._prose_segments(tree, raw_text))
        for patterns in _PATTERNS:
            self._counted_signal(
                tree, prose, patterns.keywords, patterns.name,
                KEYWORD_STEP, KEYWORD_CAP, "prose_keyword", collector,
            )
            self._counted_signal(
                tree, prose, patterns.frameworks, patterns.name,
                FRAMEWORK_STEP, FRAMEWORK_CAP, "framework_mention", collector,
            )
            self._counted_signal(
                tree, [(0, raw_text)], patterns.extensions, patterns.name,
                EXTENSION_STEP, EXTENSION_CAP, "file_extension", collector,
            )
            self._manifest_mentions(tree, raw_text, patterns, collector)
        self._auxiliary_manifests(auxiliary_files, collector)
        return collector.build()

    # ------------------------------------------------------------------

    def _code_block_tags(self, tree: StructureTree, collector: EvidenceCollector) -> None:
        for _, block in tree.code_blocks():
            language = TAG_TO_LANGUAGE.get(block.language_tag)
            if language is None:
                continue
            collector.add(
                FactCategory.LANGUAGE,
                (language,),
                language,
                ConfidenceTier.CODE_BLOCK_TAG,
                spans=(block.span,),
                signal="code_block_tag",
                tag=block.declared_language,
            )

    def _heading_vocabulary(
        self, tree: StructureTree, collector: EvidenceCollector
    ) -> None:
        for _, heading in tree.headings():
            for patterns in _PATTERNS:
                if patterns.headings and patterns.headings.search(heading.text):
                    collector.add(
                        FactCategory.LANGUAGE,
                        (patterns.name,),
                        patterns.name,
                        ConfidenceTier.HEADING_VOCABULARY,
                        spans=(heading.span,),
                        signal="heading_vocabulary",
                    )

    def _prose_segments(
        self, tree: StructureTree, raw_text: str
    ) -> Iterable[tuple[int, str]]:
        """(offset, text) of every prose node, sliced from the raw text."""
        for node in tree:
            if isinstance(node, (Paragraph, ListItem)):
                start, end = node.span.start_offset, node.span.end_offset
                yield start, raw_text[start:end]

    def _counted_signal(
        self,
        tree: StructureTree,
        segments: Iterable[tuple[int, str]],
        pattern: re.Pattern[str] | None,
        language: str,
        step: float,
        cap: float,
        signal: str,
        collector: EvidenceCollector,
    ) -> None:
        if pattern is None:
            return
        spans: list[Span] = []
        terms: set[str] = set()
        for offset, text in segments:
            for match in pattern.finditer(text):
                spans.append(tree.span_for(offset + match.start(), offset + match.end()))
                terms.add(match.group(0).lower())
        if not spans:
            return
        collector.add(
            FactCategory.LANGUAGE,
            (language,),
            language,
            _counted(step, cap, len(spans)),
            spans=spans[:MAX_SIGNAL_SPANS],
            signal=signal,
            matches=len(spans),
            terms=sorted(terms),
        )

    def _manifest_mentions(
        self,
        tree: StructureTree,
        raw_text: str,
        patterns: _LanguagePatterns,
        collector: EvidenceCollector,
    ) -> None:
        if patterns.manifests is None:
            return
        spans = [
            tree.span_for(m.start(), m.end())
            for m in patterns.manifests.finditer(raw_text)
        ]
        if spans:
            collector.add(
                FactCategory.LANGUAGE,
                (patterns.name,),
                patterns.name,
                MANIFEST_MENTION_CONFIDENCE,
                spans=spans[:MAX_SIGNAL_SPANS],
                signal="manifest_mention",
            )

    def _auxiliary_manifests(
        self, auxiliary_files: Mapping[str, str], collector: EvidenceCollector
    ) -> None:
        for name in sorted(auxiliary_files):
            base = posixpath.basename(name.replace("\\", "/")).lower()
            for patterns in _PATTERNS:
                if base in patterns.manifest_names:
                    collector.add(
                        FactCategory.LANGUAGE,
                        (patterns.name,),
                        patterns.name,
                        AUXILIARY_MANIFEST_CONFIDENCE,
                        spans=(Span.whole(auxiliary_files[name], document=name),),
                        signal="auxiliary_manifest",
                    )


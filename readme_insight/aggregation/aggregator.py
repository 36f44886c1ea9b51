"""Result Aggregator.

Merges every analyzer's evidence into one ProjectInfo. Evidence for the same
fact key is combined with the Confidence Calculator; ordering rules are fixed
so that equal inputs always produce an identical ProjectInfo.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from readme_insight.aggregation.confidence import combine, mean_top
from readme_insight.aggregation.project import (
    Badge,
    CommandEntry,
    CommandSet,
    ConfidenceSummary,
    ConfigFileEntry,
    DependencyEntry,
    EnvironmentVariable,
    LanguageEvidence,
    MetadataValue,
    PackageFile,
    ProjectInfo,
    ProjectMetadata,
    TestingInfo,
    ToolEntry,
)
from readme_insight.analyzers.types import (
    UNCATEGORIZED,
    AnalyzerKind,
    CommandCategory,
    Evidence,
    FactCategory,
    FindingSet,
)
from readme_insight.constants import (
    CATEGORY_TOP_ITEMS,
    DEFAULT_FALLBACK_COMMAND_PENALTY,
)
from readme_insight.types.core import Span, sorted_spans
from readme_insight.types.errors import ErrorCode, PipelineIssue, aggregation_warning
from readme_insight.utils.logger import logger

# Tie-break order when picking a fallback command category.
_FALLBACK_ORDER = (
    CommandCategory.INSTALL,
    CommandCategory.BUILD,
    CommandCategory.TEST,
    CommandCategory.RUN,
)

# Sort key for items that somehow carry no span: after everything else.
_NO_SPAN = (2, "", 0, 0)

Group = tuple[tuple[str, ...], list[Evidence]]


@dataclass(frozen=True)
class AggregationResult:
    project: ProjectInfo
    warnings: tuple[PipelineIssue, ...] = ()


def _merge_spans(items: Iterable[Evidence]) -> tuple[Span, ...]:
    return sorted_spans(dict.fromkeys(span for item in items for span in item.source_spans))


def _first_span_key(spans: tuple[Span, ...]) -> tuple[int, str, int, int]:
    return spans[0].sort_key if spans else _NO_SPAN


def _strongest(items: list[Evidence]) -> Evidence:
    """Highest-confidence evidence, earliest span on ties."""
    return min(
        items,
        key=lambda item: (-item.confidence, _first_span_key(item.source_spans), item.value),
    )


def _attribute(items: list[Evidence], name: str) -> Any:
    """Attribute from the strongest evidence that carries one."""
    ranked = sorted(
        items, key=lambda item: (-item.confidence, _first_span_key(item.source_spans))
    )
    for item in ranked:
        value = item.attributes.get(name)
        if value is not None:
            return value
    return None


class ResultAggregator:
    """Combines analyzer findings into a ProjectInfo."""

    def __init__(
        self,
        fallback_command_penalty: float = DEFAULT_FALLBACK_COMMAND_PENALTY,
        top_items: int = CATEGORY_TOP_ITEMS,
    ):
        self.fallback_command_penalty = fallback_command_penalty
        self.top_items = top_items

    def aggregate(
        self, findings: Mapping[AnalyzerKind | str, FindingSet]
    ) -> AggregationResult:
        """Merge finding sets keyed by analyzer kind."""
        by_kind = {AnalyzerKind(kind): finding_set for kind, finding_set in findings.items()}
        evidence = self._deduplicate(
            item
            for kind in AnalyzerKind
            if kind in by_kind
            for item in by_kind[kind].evidence
        )
        groups = self._group(evidence)
        warnings: list[PipelineIssue] = []

        languages = self._languages(groups[FactCategory.LANGUAGE])
        commands = self._commands(groups[FactCategory.COMMAND], languages, warnings)
        dependencies, package_files = self._dependencies(groups[FactCategory.DEPENDENCY])
        testing = self._testing(groups[FactCategory.TESTING])
        metadata = self._metadata(groups[FactCategory.METADATA])

        per_category_items = {
            FactCategory.LANGUAGE: [item.confidence for item in languages],
            FactCategory.COMMAND: [entry.confidence for _, entry in commands.all()],
            FactCategory.DEPENDENCY: [item.confidence for item in dependencies]
            + [item.confidence for item in package_files],
            FactCategory.TESTING: [item.confidence for item in testing.frameworks]
            + [item.confidence for item in testing.coverage_tools]
            + [item.confidence for item in testing.config_files],
            FactCategory.METADATA: [
                value.confidence for value in metadata.scalars().values() if value
            ]
            + [badge.confidence for badge in metadata.badges]
            + [variable.confidence for variable in metadata.environment],
        }
        summary = self._summary(per_category_items, warnings)

        project = ProjectInfo(
            languages=languages,
            commands=commands,
            dependencies=dependencies,
            package_files=package_files,
            testing=testing,
            metadata=metadata,
            confidence=summary,
        )
        logger.debug(
            "Aggregated {} evidence item(s) into {} language(s), {} command(s), {} dependency(ies)",
            len(evidence),
            len(languages),
            sum(1 for _ in commands.all()),
            len(dependencies),
        )
        return AggregationResult(project=project, warnings=tuple(warnings))

    # ------------------------------------------------------------------
    # Grouping
    # ------------------------------------------------------------------

    def _deduplicate(self, evidence: Iterable[Evidence]) -> list[Evidence]:
        seen: set[tuple[Any, ...]] = set()
        unique = []
        for item in evidence:
            if item.identity in seen:
                continue
            seen.add(item.identity)
            unique.append(item)
        return unique

    def _group(
        self, evidence: list[Evidence]
    ) -> dict[FactCategory, list[Group]]:
        """Per category, (key, evidence) groups in first-seen order."""
        keyed: dict[FactCategory, dict[tuple[str, ...], list[Evidence]]] = {
            category: {} for category in FactCategory
        }
        for item in evidence:
            keyed[item.category].setdefault(item.key, []).append(item)
        return {
            category: list(groups.items()) for category, groups in keyed.items()
        }

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def _languages(self, groups: list[Group]) -> tuple[LanguageEvidence, ...]:
        languages = [
            LanguageEvidence(
                name=key[0],
                confidence=combine(items),
                source_spans=_merge_spans(items),
                signals=tuple(sorted({item.signal for item in items if item.signal})),
            )
            for key, items in groups
        ]
        return tuple(sorted(languages, key=lambda lang: (-lang.confidence, lang.name)))

    def _commands(
        self,
        groups: list[Group],
        languages: tuple[LanguageEvidence, ...],
        warnings: list[PipelineIssue],
    ) -> CommandSet:
        categorized: dict[CommandCategory, dict[str, list[Evidence]]] = {
            category: {} for category in CommandCategory
        }
        pending: list[tuple[str, list[Evidence]]] = []
        for (category, command), items in groups:
            if category == UNCATEGORIZED:
                pending.append((command, items))
            else:
                categorized[CommandCategory(category)].setdefault(command, []).extend(items)

        entries: dict[CommandCategory, list[CommandEntry]] = {
            category: [] for category in CommandCategory
        }
        for category, commands in categorized.items():
            for command, items in commands.items():
                entries[category].append(self._command_entry(command, items))

        for command, items in pending:
            existing = next(
                (c for c in CommandCategory if command in categorized[c]), None
            )
            if existing is not None:
                # Already categorized elsewhere; fold the evidence in.
                merged = categorized[existing][command] + items
                entries[existing] = [
                    self._command_entry(command, merged) if entry.command == command else entry
                    for entry in entries[existing]
                ]
                continue
            hint = _attribute(items, "section_hint")
            target = self._fallback_category(categorized, languages, hint)
            entry = self._command_entry(command, items, penalty=self.fallback_command_penalty)
            entries[target].append(entry)
            reason = f" (section suggests '{hint}')" if hint else ""
            warnings.append(
                aggregation_warning(
                    ErrorCode.COMMAND_CATEGORY_FALLBACK,
                    f"Command '{command}' had no category; "
                    f"assigned to '{target.value}'{reason}",
                    span=entry.source_spans[0] if entry.source_spans else None,
                )
            )

        def order(entry: CommandEntry) -> tuple[Any, ...]:
            return (-entry.confidence, _first_span_key(entry.source_spans), entry.command)

        return CommandSet(
            **{
                category.value: tuple(sorted(entries[category], key=order))
                for category in CommandCategory
            }
        )

    def _command_entry(
        self, command: str, items: list[Evidence], penalty: float = 1.0
    ) -> CommandEntry:
        return CommandEntry(
            command=command,
            confidence=combine(items) * penalty,
            source_spans=_merge_spans(items),
            language=_attribute(items, "language"),
        )

    def _fallback_category(
        self,
        categorized: dict[CommandCategory, dict[str, list[Evidence]]],
        languages: tuple[LanguageEvidence, ...],
        section_hint: str | None = None,
    ) -> CommandCategory:
        """Category holding most commands of the top language.

        The section hint breaks ties between equally common categories and
        stands in when the top language has no categorized commands. Without
        either, the command goes to ``other``.
        """
        hint = CommandCategory(section_hint) if section_hint else None
        counts: Counter[CommandCategory] = Counter()
        if languages:
            top = languages[0].name
            for category in _FALLBACK_ORDER:
                for items in categorized[category].values():
                    if _attribute(items, "language") == top:
                        counts[category] += 1
        if not counts:
            return hint or CommandCategory.OTHER
        best = max(counts.values())
        if hint is not None and counts[hint] == best:
            return hint
        return next(c for c in _FALLBACK_ORDER if counts[c] == best)

    def _dependencies(
        self, groups: list[Group]
    ) -> tuple[tuple[DependencyEntry, ...], tuple[PackageFile, ...]]:
        dependencies: list[DependencyEntry] = []
        package_files: list[PackageFile] = []
        for key, items in groups:
            kind, ecosystem, _ = key
            if kind == "manifest":
                package_files.append(
                    PackageFile(
                        name=_strongest(items).value,
                        ecosystem=ecosystem,
                        confidence=combine(items),
                        source_spans=_merge_spans(items),
                    )
                )
                continue
            dependencies.append(
                DependencyEntry(
                    name=_strongest(items).value,
                    ecosystem=ecosystem,
                    confidence=combine(items),
                    version_constraint=_attribute(items, "version"),
                    source_spans=_merge_spans(items),
                    dev=any(item.attributes.get("dev") for item in items),
                )
            )
        dependencies.sort(key=lambda dep: (-dep.confidence, dep.ecosystem, dep.name))
        package_files.sort(key=lambda pkg: (-pkg.confidence, pkg.name))
        return tuple(dependencies), tuple(package_files)

    def _testing(self, groups: list[Group]) -> TestingInfo:
        tools: dict[str, list[ToolEntry]] = {"framework": [], "coverage": []}
        config_files: list[ConfigFileEntry] = []
        for (kind, name), items in groups:
            if kind == "config":
                config_files.append(
                    ConfigFileEntry(
                        name=name,
                        tool=_attribute(items, "tool"),
                        confidence=combine(items),
                        source_spans=_merge_spans(items),
                    )
                )
            else:
                tools[kind].append(
                    ToolEntry(
                        name=name,
                        confidence=combine(items),
                        source_spans=_merge_spans(items),
                        language=_attribute(items, "language"),
                    )
                )

        def order(entry: ToolEntry | ConfigFileEntry) -> tuple[float, str]:
            return (-entry.confidence, entry.name)

        frameworks = tuple(sorted(tools["framework"], key=order))
        coverage_tools = tuple(sorted(tools["coverage"], key=order))
        configs = tuple(sorted(config_files, key=order))
        confidence = mean_top(
            [e.confidence for e in frameworks + coverage_tools] + [c.confidence for c in configs],
            self.top_items,
        )
        return TestingInfo(
            frameworks=frameworks,
            coverage_tools=coverage_tools,
            config_files=configs,
            confidence=confidence,
        )

    def _metadata(self, groups: list[Group]) -> ProjectMetadata:
        scalars: dict[str, list[MetadataValue]] = {
            "name": [], "description": [], "license": [], "repository": []
        }
        badges: list[Badge] = []
        environment: list[EnvironmentVariable] = []
        for (field_name, value), items in groups:
            spans = _merge_spans(items)
            confidence = combine(items)
            if field_name in scalars:
                scalars[field_name].append(
                    MetadataValue(value=value, confidence=confidence, source_spans=spans)
                )
            elif field_name == "badge":
                strongest = _strongest(items)
                badges.append(
                    Badge(
                        label=strongest.value,
                        image_url=value,
                        kind=_attribute(items, "kind") or "badge",
                        confidence=confidence,
                        link=_attribute(items, "link"),
                        source_spans=spans,
                    )
                )
            elif field_name == "environment":
                environment.append(
                    EnvironmentVariable(
                        name=value,
                        confidence=confidence,
                        default=_attribute(items, "default"),
                        source_spans=spans,
                    )
                )

        def best(candidates: list[MetadataValue]) -> MetadataValue | None:
            if not candidates:
                return None
            return min(
                candidates,
                key=lambda c: (-c.confidence, _first_span_key(c.source_spans), c.value),
            )

        return ProjectMetadata(
            name=best(scalars["name"]),
            description=best(scalars["description"]),
            license=best(scalars["license"]),
            repository=best(scalars["repository"]),
            badges=tuple(
                sorted(badges, key=lambda b: (_first_span_key(b.source_spans), b.image_url))
            ),
            environment=tuple(
                sorted(environment, key=lambda v: (_first_span_key(v.source_spans), v.name))
            ),
        )

    # ------------------------------------------------------------------
    # Confidence summary
    # ------------------------------------------------------------------

    def _summary(
        self,
        per_category_items: dict[FactCategory, list[float]],
        warnings: list[PipelineIssue],
    ) -> ConfidenceSummary:
        per_category: dict[str, float] = {}
        populated: list[float] = []
        for category in FactCategory:
            values = per_category_items[category]
            score = mean_top(values, self.top_items)
            per_category[category.value] = score
            if values:
                populated.append(score)
            else:
                warnings.append(
                    aggregation_warning(
                        ErrorCode.CATEGORY_EMPTY,
                        f"No {category.value} information found",
                    )
                )
        if not populated:
            warnings.append(
                aggregation_warning(
                    ErrorCode.NO_CATEGORIES_POPULATED,
                    "No project information could be extracted",
                )
            )
            return ConfidenceSummary(overall=0.0, per_category=per_category)
        return ConfidenceSummary(
            overall=sum(populated) / len(populated), per_category=per_category
        )

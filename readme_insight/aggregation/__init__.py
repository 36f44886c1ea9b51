"""
Aggregation of analyzer findings into a ProjectInfo.

- SourceTracker: provenance and single-hop section inheritance
- ResultAggregator: confidence-combined, deterministically ordered merge
- validate_project_info: post-aggregation invariant checks
"""

from .aggregator import AggregationResult, ResultAggregator
from .confidence import combine, combine_values, mean_top
from .project import (
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
from .tracker import SourceTracker, TrackedFindings
from .validation import validate_project_info

__all__ = [
    "AggregationResult",
    "Badge",
    "CommandEntry",
    "CommandSet",
    "ConfidenceSummary",
    "ConfigFileEntry",
    "DependencyEntry",
    "EnvironmentVariable",
    "LanguageEvidence",
    "MetadataValue",
    "PackageFile",
    "ProjectInfo",
    "ProjectMetadata",
    "ResultAggregator",
    "SourceTracker",
    "TestingInfo",
    "ToolEntry",
    "TrackedFindings",
    "combine",
    "combine_values",
    "mean_top",
    "validate_project_info",
]

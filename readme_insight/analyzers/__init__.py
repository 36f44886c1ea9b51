"""
Heuristic README analyzers.

- LanguageDetector: project languages from tags, vocabulary and manifests
- CommandExtractor: install/build/test/run commands
- DependencyExtractor: packages and manifest files
- TestingDetector: test frameworks, coverage tools, config files
- MetadataExtractor: name, description, license, badges, environment
"""

from .commands import CommandExtractor
from .dependencies import DependencyExtractor
from .language import LanguageDetector
from .metadata import MetadataExtractor
from .protocols import Analyzer
from .registry import AnalyzerRegistry
from .testing import TestingDetector
from .types import (
    UNCATEGORIZED,
    AnalyzerKind,
    CommandCategory,
    Evidence,
    EvidenceCollector,
    FactCategory,
    Finding,
    FindingSet,
)

__all__ = [
    "UNCATEGORIZED",
    "Analyzer",
    "AnalyzerKind",
    "AnalyzerRegistry",
    "CommandCategory",
    "CommandExtractor",
    "DependencyExtractor",
    "Evidence",
    "EvidenceCollector",
    "FactCategory",
    "Finding",
    "FindingSet",
    "LanguageDetector",
    "MetadataExtractor",
    "TestingDetector",
]

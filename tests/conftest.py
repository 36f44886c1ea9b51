"""
Pytest configuration and shared fixtures for readme-insight tests.
"""

from typing import Callable, Mapping

import pytest

from readme_insight.analyzers.types import FindingSet
from readme_insight.parsing import DocumentParser, StructureTree, normalize_text
from readme_insight.pipeline import PipelineOrchestrator

NPM_README = """# my-tool

> A command line tool that formats JSON files quickly.

[![npm version](https://badge.fury.io/js/my-tool.svg)](https://badge.fury.io/js/my-tool)

## Installation

```bash
npm install
```

## Testing

```bash
npm test
```

Tests are written with Jest.

## License

MIT
"""

PYTHON_README = """# flowkit

Flowkit schedules data pipelines on a single machine.

## Installation

```bash
pip install flowkit
pip install -r requirements.txt
```

## Usage

```bash
python -m flowkit run pipeline.yaml
```

## Running tests

```bash
pytest --cov=flowkit
```

## License

Licensed under the Apache License 2.0.
"""


@pytest.fixture
def parser() -> DocumentParser:
    return DocumentParser()


@pytest.fixture
def npm_readme() -> str:
    return NPM_README


@pytest.fixture
def python_readme() -> str:
    return PYTHON_README


@pytest.fixture
def orchestrator() -> PipelineOrchestrator:
    """Fresh orchestrator with default components (own cache)."""
    return PipelineOrchestrator()


@pytest.fixture
def parse_text(parser) -> Callable[[str], tuple[StructureTree, str]]:
    """Normalize and parse text; returns (tree, normalized text)."""

    def _parse(text: str) -> tuple[StructureTree, str]:
        normalized = normalize_text(text)
        return parser.parse_normalized(normalized), normalized

    return _parse


@pytest.fixture
def run_analyzer(parse_text):
    """Run one analyzer over README text the way the orchestrator does."""

    def _run(analyzer, text: str, auxiliary_files: Mapping[str, str] | None = None) -> FindingSet:
        tree, normalized = parse_text(text)
        return analyzer.analyze(tree, normalized, dict(auxiliary_files or {}))

    return _run

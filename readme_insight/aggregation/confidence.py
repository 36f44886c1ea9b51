"""Confidence Calculator.

Independent pieces of evidence for one fact combine as a probabilistic OR:
``1 - prod(1 - c)``. Two weak signals therefore beat one weak signal, no
amount of evidence ever exceeds 1.0, and a single item passes through
unchanged.
"""

from __future__ import annotations

from typing import Iterable

from readme_insight.analyzers.types import Evidence


def combine_values(confidences: Iterable[float]) -> float:
    """Probabilistic OR of raw confidences.

    Values are sorted before multiplying so that float rounding is the same
    for every input order.
    """
    values = sorted(confidences)
    if not values:
        return 0.0
    if len(values) == 1:
        return values[0]
    remaining = 1.0
    for value in values:
        remaining *= 1.0 - value
    return min(1.0, max(0.0, 1.0 - remaining))


def combine(evidence: Iterable[Evidence]) -> float:
    """Combined confidence of competing evidence for one fact."""
    return combine_values(item.confidence for item in evidence)


def mean_top(values: Iterable[float], n: int) -> float:
    """Mean of the ``n`` largest values (0.0 when empty)."""
    top = sorted(values, reverse=True)[:n]
    if not top:
        return 0.0
    return sum(top) / len(top)

"""Engagement score derivation from raw platform metrics."""

from __future__ import annotations

import math
from typing import Any

from ..errors import ContractViolation

ENGAGEMENT_WEIGHTS = {
    "likes": 10.0,
    "views": 0.1,
    "shares": 20.0,
    "comments": 15.0,
}


def engagement_from_metrics(metrics: dict[str, Any] | None) -> float:
    """Weight raw engagement counters into a single score.

    Missing counters count as zero; unknown keys are ignored.

    Raises:
        ContractViolation: If a counter is negative, non-numeric or not finite
    """
    if not metrics:
        return 0.0
    score = 0.0
    for key, weight in ENGAGEMENT_WEIGHTS.items():
        value = metrics.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ContractViolation(f"Engagement metric {key!r} must be a number, got {value!r}")
        if not math.isfinite(value) or value < 0:
            raise ContractViolation(f"Engagement metric {key!r} must be a non-negative number")
        score += value * weight
    return score

"""
Quota-based bounded selection of digest content.

Selection happens in two passes:
1. Quota pass: each category quota, in the supplied (priority) order, takes
   its best unselected candidates up to its target count
2. Fill pass: remaining slots are filled from all unselected candidates by
   the same ranking, regardless of category

A category with fewer candidates than its target contributes what it has;
its shortfall is not redistributed to other quotas during the quota pass.
Whether the fill pass runs at all is the ``shortfall_policy``.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..errors import ContractViolation
from .types import CategoryQuota, ContentRecord

GLOBAL_FILL = "global_fill"
NO_FILL = "none"
SHORTFALL_POLICIES = (GLOBAL_FILL, NO_FILL)


def select(
    candidates: Sequence[ContentRecord],
    quotas: Sequence[CategoryQuota],
    total_limit: int,
    shortfall_policy: str = GLOBAL_FILL,
) -> list[ContentRecord]:
    """Select a bounded, ordered subset of eligible candidates.

    Args:
        candidates: Eligible primaries (already filtered by the caller)
        quotas: Category quotas, processed in order
        total_limit: Maximum number of selected items
        shortfall_policy: "global_fill" tops up from the whole pool after the
            quota pass; "none" returns the quota pass result as is

    Returns:
        Quota items grouped by quota order, followed by fill items by rank.
        Never contains duplicate ids and never exceeds total_limit.

    Raises:
        ContractViolation: On a negative total_limit or target count, or an
            unknown shortfall policy
    """
    if total_limit < 0:
        raise ContractViolation(f"total_limit must be non-negative, got {total_limit}")
    if shortfall_policy not in SHORTFALL_POLICIES:
        raise ContractViolation(f"Unknown shortfall policy: {shortfall_policy!r}")
    for quota in quotas:
        if quota.target_count < 0:
            raise ContractViolation(
                f"target_count for {quota.category!r} must be non-negative, got {quota.target_count}"
            )

    if total_limit == 0 or not candidates:
        return []

    ranked = rank_candidates(candidates)
    selected: list[ContentRecord] = []
    used_ids: set[str] = set()

    for quota in quotas:
        if len(selected) >= total_limit:
            break
        taken = 0
        for record in ranked:
            if taken >= quota.target_count or len(selected) >= total_limit:
                break
            if record.id in used_ids or not quota.matches(record):
                continue
            selected.append(record)
            used_ids.add(record.id)
            taken += 1

    if shortfall_policy == GLOBAL_FILL:
        for record in ranked:
            if len(selected) >= total_limit:
                break
            if record.id in used_ids:
                continue
            selected.append(record)
            used_ids.add(record.id)

    return selected


def rank_candidates(candidates: Sequence[ContentRecord]) -> list[ContentRecord]:
    """Order candidates best first.

    Ranking: relevance desc, engagement desc, publication time desc, id asc.
    """
    return sorted(candidates, key=selection_key)


def selection_key(record: ContentRecord) -> tuple[float, float, float, str]:
    return (
        -record.relevance_score,
        -record.engagement_score,
        -record.published_at.timestamp(),
        record.id,
    )


def category_counts(selection: Sequence[ContentRecord]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for record in selection:
        counts[record.source_category] = counts.get(record.source_category, 0) + 1
    return counts

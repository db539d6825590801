"""
Eligibility filter feeding the selector.

Each check is a predicate over a ContentRecord; predicates compose with
all_of so new gates can be added without touching selection logic.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterable
from datetime import datetime, timedelta

from .types import ContentRecord

Predicate = Callable[[ContentRecord], bool]


def min_relevance(threshold: float) -> Predicate:
    """Accept records whose relevance score is at least ``threshold``."""

    def _check(record: ContentRecord) -> bool:
        return record.relevance_score >= threshold

    return _check


def published_within(window: timedelta, now: datetime) -> Predicate:
    """Accept records published in ``[now - window, now]``.

    Records stamped in the future relative to ``now`` are accepted too;
    source clocks drift and a slightly early timestamp is still fresh.
    """
    cutoff = now - window

    def _check(record: ContentRecord) -> bool:
        return record.published_at >= cutoff

    return _check


def primary_only(primary_ids: Collection[str]) -> Predicate:
    def _check(record: ContentRecord) -> bool:
        return record.id in primary_ids

    return _check


def in_categories(categories: Collection[str]) -> Predicate:
    allowed = frozenset(categories)

    def _check(record: ContentRecord) -> bool:
        return record.source_category in allowed

    return _check


def excluding_ids(ids: Collection[str]) -> Predicate:
    def _check(record: ContentRecord) -> bool:
        return record.id not in ids

    return _check


def all_of(*predicates: Predicate) -> Predicate:
    """Combine predicates; an empty combination accepts everything."""

    def _check(record: ContentRecord) -> bool:
        return all(predicate(record) for predicate in predicates)

    return _check


def filter_candidates(records: Iterable[ContentRecord], *predicates: Predicate) -> list[ContentRecord]:
    """Return the records passing every predicate, preserving order."""
    check = all_of(*predicates)
    return [record for record in records if check(record)]


def build_eligibility(
    relevance_threshold: float,
    recency_window: timedelta,
    now: datetime,
    primary_ids: Collection[str] | None = None,
    categories: Collection[str] | None = None,
) -> Predicate:
    """Compose the standard digest eligibility gate.

    Args:
        relevance_threshold: Minimum relevance score (inclusive)
        recency_window: Maximum age of a record relative to ``now``
        now: Reference time of the digest run
        primary_ids: When given, only these records are eligible
        categories: When given, only records from these categories are eligible
    """
    predicates: list[Predicate] = [
        min_relevance(relevance_threshold),
        published_within(recency_window, now),
    ]
    if primary_ids is not None:
        predicates.append(primary_only(primary_ids))
    if categories:
        predicates.append(in_categories(categories))
    return all_of(*predicates)

"""
Boundary validation of content records.

Invalid records are rejected, never clamped: a record with a negative score
or a missing identifier is reported as InvalidRecord and skipped so the rest
of the batch still runs.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from ..errors import InvalidRecord
from .types import ContentRecord

logger = logging.getLogger(__name__)

# Empty strings are allowed; None or other types are not.
_TEXT_FIELDS = ("canonical_url", "title", "description_excerpt", "body_excerpt", "platform")


@dataclass
class ValidationReport:
    """Outcome of validating a batch.

    Attributes:
        valid: Records that passed validation, in input order
        rejected: One InvalidRecord per skipped record
    """

    valid: list[ContentRecord] = field(default_factory=list)
    rejected: list[InvalidRecord] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len(self.rejected)


def validate_record(record: ContentRecord) -> ContentRecord:
    """Check a record against the core's input contract.

    Returns:
        The record unchanged

    Raises:
        InvalidRecord: If a required field is missing or a score is out of range
    """
    record_id = record.id if isinstance(record.id, str) and record.id.strip() else None
    if record_id is None:
        raise InvalidRecord(None, "missing id")
    if not isinstance(record.source_category, str) or not record.source_category.strip():
        raise InvalidRecord(record_id, "missing source category")
    if not isinstance(record.creator_id, str) or not record.creator_id.strip():
        raise InvalidRecord(record_id, "missing creator id")
    for name in _TEXT_FIELDS:
        if not isinstance(getattr(record, name), str):
            raise InvalidRecord(record_id, f"{name} must be a string")
    if record.published_at is None:
        raise InvalidRecord(record_id, "missing published_at")
    if not isinstance(record.published_at, datetime):
        raise InvalidRecord(record_id, f"published_at must be a datetime, got {record.published_at!r}")
    if record.published_at.tzinfo is None:
        raise InvalidRecord(record_id, "published_at must be timezone-aware")
    _check_score(record_id, "engagement_score", record.engagement_score, upper=None)
    _check_score(record_id, "relevance_score", record.relevance_score, upper=100.0)
    return record


def partition_records(records: Iterable[ContentRecord]) -> ValidationReport:
    """Split a batch into valid records and rejections.

    A repeated id is rejected on its second and later occurrences so that
    clustering always sees unique ids.
    """
    report = ValidationReport()
    seen: set[str] = set()
    for record in records:
        try:
            validate_record(record)
            if record.id in seen:
                raise InvalidRecord(record.id, "duplicate id in batch")
        except InvalidRecord as exc:
            logger.warning("Skipping record: %s", exc)
            report.rejected.append(exc)
            continue
        seen.add(record.id)
        report.valid.append(record)
    return report


def _check_score(record_id: str, name: str, value: float, upper: float | None) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidRecord(record_id, f"{name} must be a number")
    if not math.isfinite(value):
        raise InvalidRecord(record_id, f"{name} must be finite")
    if value < 0:
        raise InvalidRecord(record_id, f"{name} must be non-negative, got {value}")
    if upper is not None and value > upper:
        raise InvalidRecord(record_id, f"{name} must be at most {upper:g}, got {value}")

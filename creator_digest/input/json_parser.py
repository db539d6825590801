"""JSON parser for normalized content record exports.

This module turns the upstream ingestion export into ContentRecord objects.
The format is:
- Top-level object with a ``records`` array (a bare array is also accepted)
- Each record with id, sourceCategory (or platform), creatorId, title,
  descriptionExcerpt, bodyExcerpt, canonicalUrl, publishedAt,
  engagementScore (or engagementMetrics) and relevanceScore
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from ..core.scoring import engagement_from_metrics
from ..core.types import ContentRecord, SourceCategory
from ..core.validation import partition_records
from ..errors import ContractViolation, InvalidRecord

logger = logging.getLogger(__name__)

# Upstream platform names mapped onto source categories.
PLATFORM_CATEGORIES = {
    "youtube": SourceCategory.LONG_FORM_VIDEO,
    "twitter": SourceCategory.SHORT_FORM_POST,
    "x": SourceCategory.SHORT_FORM_POST,
    "threads": SourceCategory.SHORT_FORM_POST,
    "linkedin": SourceCategory.PROFESSIONAL_POST,
    "rss": SourceCategory.SYNDICATED_FEED,
    "website": SourceCategory.GENERIC_WEB,
}

# Platform names folded together before platform-scoped quotas are applied.
PLATFORM_ALIASES = {"x": "twitter"}


@dataclass
class ParsedBatch:
    """Records parsed from one export.

    Attributes:
        records: Valid records in input order
        skipped: Rejections for records that could not be used
    """

    records: list[ContentRecord] = field(default_factory=list)
    skipped: list[InvalidRecord] = field(default_factory=list)


def parse_records(data: dict[str, Any] | list[Any]) -> ParsedBatch:
    """Parse an export into validated ContentRecord objects.

    The export structure:
        {
            "exportTime": "2026-02-03T13:22:16Z",
            "records": [
                {
                    "id": "c-101",
                    "sourceCategory": "long-form-video",
                    "creatorId": "creator-7",
                    "title": "Shipping a SaaS in a weekend",
                    "descriptionExcerpt": "...",
                    "canonicalUrl": "https://youtube.com/watch?v=abcdefghijk",
                    "publishedAt": "2026-02-03T11:44:10Z",
                    "engagementScore": 1520.5,
                    "relevanceScore": 82
                }
            ]
        }

    Args:
        data: The decoded JSON document

    Returns:
        A ParsedBatch. Records that are not objects, miss required fields or
        carry out-of-range scores are skipped with a warning.

    Raises:
        ValueError: If the document has no records array
    """
    if isinstance(data, list):
        items = data
    elif isinstance(data, dict) and isinstance(data.get("records"), list):
        items = data["records"]
    else:
        raise ValueError("Invalid JSON format: missing 'records' array")

    batch = ParsedBatch()
    built: list[ContentRecord] = []
    for index, item in enumerate(items):
        try:
            built.append(_build_record(item, index))
        except InvalidRecord as exc:
            logger.warning("Skipping record: %s", exc)
            batch.skipped.append(exc)

    report = partition_records(built)
    batch.records = report.valid
    batch.skipped.extend(report.rejected)
    return batch


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO 8601 string or epoch number into an aware datetime.

    Naive timestamps are read as UTC. Epoch values above 1e12 are taken as
    milliseconds.

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, bool):
        raise ValueError(f"Unsupported timestamp: {value!r}")
    elif isinstance(value, (int, float)):
        seconds = value / 1000 if value > 1e12 else value
        parsed = datetime.fromtimestamp(seconds, tz=timezone.utc)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unsupported timestamp: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def resolve_category(value: Any) -> str | None:
    """Map a category or upstream platform name to a source category."""
    if not isinstance(value, str) or not value.strip():
        return None
    key = value.strip().lower()
    return PLATFORM_CATEGORIES.get(key, key)


def resolve_platform(platform: Any, raw_category: Any = None) -> str:
    """Return the upstream platform name, or "" when it is unknown.

    An explicit platform wins; otherwise a platform name given in place of
    the source category is used.
    """
    if isinstance(platform, str) and platform.strip():
        key = platform.strip().lower()
    elif isinstance(raw_category, str) and raw_category.strip().lower() in PLATFORM_CATEGORIES:
        key = raw_category.strip().lower()
    else:
        return ""
    return PLATFORM_ALIASES.get(key, key)


def _build_record(item: Any, index: int) -> ContentRecord:
    if not isinstance(item, dict):
        raise InvalidRecord(None, f"record at position {index} is not an object")

    raw_id = _pick(item, "id")
    record_id = str(raw_id).strip() if raw_id is not None else ""
    if not record_id:
        raise InvalidRecord(None, f"record at position {index} has no id")

    raw_category = _pick(item, "sourceCategory", "source_category")
    category = resolve_category(raw_category)
    if category is None:
        category = resolve_category(item.get("platform"))
    if category is None:
        raise InvalidRecord(record_id, "missing source category")

    raw_creator = _pick(item, "creatorId", "creator_id")
    creator_id = str(raw_creator).strip() if raw_creator is not None else ""
    if not creator_id:
        raise InvalidRecord(record_id, "missing creator id")

    published = _pick(item, "publishedAt", "published_at")
    if published is None:
        raise InvalidRecord(record_id, "missing published_at")
    try:
        published_at = parse_timestamp(published)
    except (ValueError, OverflowError, OSError) as exc:
        raise InvalidRecord(record_id, f"unparseable published_at {published!r}") from exc

    engagement = _pick(item, "engagementScore", "engagement_score")
    if engagement is None:
        metrics = _pick(item, "engagementMetrics", "engagement_metrics")
        if metrics is not None and not isinstance(metrics, dict):
            raise InvalidRecord(record_id, "engagement metrics must be an object")
        try:
            engagement = engagement_from_metrics(metrics)
        except ContractViolation as exc:
            raise InvalidRecord(record_id, str(exc)) from exc

    return ContentRecord(
        id=record_id,
        source_category=category,
        creator_id=creator_id,
        canonical_url=str(_pick(item, "canonicalUrl", "canonical_url", "url") or ""),
        published_at=published_at,
        title=_text(_pick(item, "title")),
        description_excerpt=_text(_pick(item, "descriptionExcerpt", "description_excerpt", "description")),
        body_excerpt=_text(_pick(item, "bodyExcerpt", "body_excerpt", "contentBody")),
        engagement_score=_number(record_id, "engagement_score", engagement),
        relevance_score=_number(
            record_id, "relevance_score", _pick(item, "relevanceScore", "relevance_score") or 0
        ),
        platform=resolve_platform(item.get("platform"), raw_category),
    )


def _pick(item: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if item.get(key) is not None:
            return item[key]
    return None


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _number(record_id: str, name: str, value: Any) -> float:
    if isinstance(value, bool):
        raise InvalidRecord(record_id, f"{name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidRecord(record_id, f"{name} must be a number, got {value!r}") from exc
    if not math.isfinite(number):
        raise InvalidRecord(record_id, f"{name} must be finite")
    return number

"""Tests for the record export parser."""

from datetime import datetime, timezone

import pytest

from creator_digest.core.scoring import engagement_from_metrics
from creator_digest.core.types import SourceCategory
from creator_digest.errors import ContractViolation
from creator_digest.input.json_parser import parse_records, parse_timestamp, resolve_category


def _item(**overrides):
    item = {
        "id": "c-101",
        "sourceCategory": "long-form-video",
        "creatorId": "creator-7",
        "title": "Shipping a SaaS in a weekend",
        "descriptionExcerpt": "Live build",
        "bodyExcerpt": None,
        "canonicalUrl": "https://youtube.com/watch?v=abcdefghijk",
        "publishedAt": "2026-02-03T11:44:10Z",
        "engagementScore": 1520.5,
        "relevanceScore": 82,
    }
    item.update(overrides)
    return item


def test_parse_records_reads_camel_case_fields():
    batch = parse_records({"exportTime": "2026-02-03T13:22:16Z", "records": [_item()]})

    assert batch.skipped == []
    record = batch.records[0]
    assert record.id == "c-101"
    assert record.source_category == SourceCategory.LONG_FORM_VIDEO
    assert record.creator_id == "creator-7"
    assert record.description_excerpt == "Live build"
    assert record.body_excerpt == ""
    assert record.published_at == datetime(2026, 2, 3, 11, 44, 10, tzinfo=timezone.utc)
    assert record.engagement_score == 1520.5
    assert record.relevance_score == 82.0


def test_parse_records_accepts_bare_list_and_snake_case():
    batch = parse_records(
        [
            {
                "id": 7,
                "source_category": "syndicated-feed",
                "creator_id": "c",
                "canonical_url": "https://blog.example.com/p",
                "published_at": "2026-02-03T10:00:00+00:00",
                "relevance_score": 75,
            }
        ]
    )
    assert [record.id for record in batch.records] == ["7"]
    assert batch.records[0].engagement_score == 0.0


def test_platform_names_map_to_categories():
    batch = parse_records(
        [
            _item(id="1", sourceCategory=None, platform="twitter"),
            _item(id="2", sourceCategory="LinkedIn"),
            _item(id="3", sourceCategory="rss"),
        ]
    )
    assert [record.source_category for record in batch.records] == [
        SourceCategory.SHORT_FORM_POST,
        SourceCategory.PROFESSIONAL_POST,
        SourceCategory.SYNDICATED_FEED,
    ]
    assert resolve_category("website") == SourceCategory.GENERIC_WEB
    assert resolve_category("") is None


def test_engagement_derived_from_metrics_when_score_missing():
    batch = parse_records(
        [_item(engagementScore=None, engagementMetrics={"likes": 2, "views": 100, "comments": 1})]
    )
    assert batch.records[0].engagement_score == pytest.approx(45.0)


def test_invalid_records_are_skipped_not_fatal():
    batch = parse_records(
        {
            "records": [
                _item(id="ok"),
                _item(id=None),
                _item(id="no-category", sourceCategory=None),
                _item(id="no-creator", creatorId=None),
                _item(id="negative", relevanceScore=-5),
                _item(id="bad-date", publishedAt="yesterday"),
                _item(id="bad-metrics", engagementScore=None, engagementMetrics={"likes": -1}),
                "not an object",
            ]
        }
    )
    assert [record.id for record in batch.records] == ["ok"]
    assert len(batch.skipped) == 7
    assert {error.record_id for error in batch.skipped} >= {"no-category", "no-creator", "negative", "bad-date", "bad-metrics"}


def test_parse_records_rejects_unknown_document_shape():
    with pytest.raises(ValueError):
        parse_records({"articles": []})


def test_parse_timestamp_formats():
    assert parse_timestamp("2026-02-03T10:00:00Z") == datetime(2026, 2, 3, 10, tzinfo=timezone.utc)
    assert parse_timestamp("2026-02-03T10:00:00") == datetime(2026, 2, 3, 10, tzinfo=timezone.utc)
    assert parse_timestamp(1770112800) == datetime(2026, 2, 3, 10, tzinfo=timezone.utc)
    assert parse_timestamp(1770112800000) == datetime(2026, 2, 3, 10, tzinfo=timezone.utc)
    with pytest.raises(ValueError):
        parse_timestamp("")


def test_engagement_from_metrics_weights():
    assert engagement_from_metrics(None) == 0.0
    assert engagement_from_metrics({"likes": 1, "shares": 1, "unknown": 5}) == pytest.approx(30.0)
    with pytest.raises(ContractViolation):
        engagement_from_metrics({"views": "many"})


@pytest.mark.parametrize("creator", [None, "", "   "])
def test_missing_creator_is_skipped_with_reason(creator):
    batch = parse_records([_item(id="anon", creatorId=creator), _item(id="kept")])

    assert [record.id for record in batch.records] == ["kept"]
    assert [(error.record_id, error.reason) for error in batch.skipped] == [("anon", "missing creator id")]


def test_platform_is_kept_for_platform_quotas():
    batch = parse_records(
        [
            _item(id="1", sourceCategory="x"),
            _item(id="2", sourceCategory="short-form-post", platform="Threads"),
            _item(id="3", sourceCategory="short-form-post"),
        ]
    )
    assert [(record.source_category, record.platform) for record in batch.records] == [
        (SourceCategory.SHORT_FORM_POST, "twitter"),
        (SourceCategory.SHORT_FORM_POST, "threads"),
        (SourceCategory.SHORT_FORM_POST, ""),
    ]

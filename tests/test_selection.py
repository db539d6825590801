"""Tests for quota-based selection."""

from datetime import datetime, timezone

import pytest

from creator_digest.core.selection import NO_FILL, category_counts, rank_candidates, select
from creator_digest.core.types import CategoryQuota, ContentRecord, SourceCategory
from creator_digest.errors import ContractViolation

VIDEO = SourceCategory.LONG_FORM_VIDEO
FEED = SourceCategory.SYNDICATED_FEED
WEB = SourceCategory.GENERIC_WEB
SHORT = SourceCategory.SHORT_FORM_POST


def _record(
    record_id: str,
    category: str,
    relevance: float,
    engagement: float = 0.0,
    hour: int = 10,
) -> ContentRecord:
    return ContentRecord(
        id=record_id,
        source_category=category,
        creator_id=f"creator-{record_id}",
        canonical_url=f"https://example.com/{record_id}",
        published_at=datetime(2026, 2, 3, hour, tzinfo=timezone.utc),
        relevance_score=relevance,
        engagement_score=engagement,
    )


def _ids(records):
    return [record.id for record in records]


def test_quota_pass_then_fill_pass():
    candidates = [
        _record("feed_3", FEED, 80),
        _record("video_1", VIDEO, 90),
        _record("feed_1", FEED, 95),
        _record("feed_2", FEED, 85),
    ]
    quotas = [CategoryQuota(VIDEO, 2), CategoryQuota(FEED, 2)]

    result = select(candidates, quotas, total_limit=4)

    assert _ids(result) == ["video_1", "feed_1", "feed_2", "feed_3"]


def test_shortfall_is_not_redistributed_without_fill():
    candidates = [
        _record("video_1", VIDEO, 90),
        _record("feed_1", FEED, 95),
        _record("feed_2", FEED, 85),
        _record("feed_3", FEED, 80),
    ]
    quotas = [CategoryQuota(VIDEO, 2), CategoryQuota(FEED, 2)]

    result = select(candidates, quotas, total_limit=4, shortfall_policy=NO_FILL)

    assert _ids(result) == ["video_1", "feed_1", "feed_2"]


def test_fill_pass_ranks_across_categories():
    candidates = [
        _record("v1", VIDEO, 60),
        _record("f1", FEED, 70),
        _record("s1", SHORT, 99),
        _record("s2", SHORT, 50),
    ]
    result = select(candidates, [CategoryQuota(VIDEO, 1), CategoryQuota(FEED, 1)], total_limit=3)
    assert _ids(result) == ["v1", "f1", "s1"]


def test_output_groups_quota_items_in_quota_order():
    candidates = [
        _record("f1", FEED, 99),
        _record("v1", VIDEO, 10),
        _record("f2", FEED, 98),
    ]
    result = select(candidates, [CategoryQuota(VIDEO, 1), CategoryQuota(FEED, 2)], total_limit=3)
    assert _ids(result) == ["v1", "f1", "f2"]


def test_ranking_tie_breaks():
    candidates = [
        _record("c", VIDEO, 50, engagement=10, hour=9),
        _record("b", VIDEO, 50, engagement=10, hour=9),
        _record("newer", VIDEO, 50, engagement=10, hour=11),
        _record("engaged", VIDEO, 50, engagement=20, hour=8),
        _record("relevant", VIDEO, 60),
    ]
    assert _ids(rank_candidates(candidates)) == ["relevant", "engaged", "newer", "b", "c"]


def test_selection_is_independent_of_input_order():
    candidates = [
        _record("a", VIDEO, 50),
        _record("b", FEED, 50),
        _record("c", FEED, 70),
        _record("d", SHORT, 90),
    ]
    quotas = [CategoryQuota(FEED, 1), CategoryQuota(VIDEO, 1)]
    assert select(candidates, quotas, 3) == select(list(reversed(candidates)), quotas, 3)


def test_total_limit_bounds_quota_pass():
    candidates = [_record(f"v{i}", VIDEO, 90 - i) for i in range(5)]
    result = select(candidates, [CategoryQuota(VIDEO, 5)], total_limit=2)
    assert _ids(result) == ["v0", "v1"]


def test_zero_limit_or_empty_pool_is_empty():
    candidates = [_record("v1", VIDEO, 90)]
    assert select(candidates, [CategoryQuota(VIDEO, 1)], total_limit=0) == []
    assert select([], [CategoryQuota(VIDEO, 1)], total_limit=5) == []


def test_empty_quotas_fill_by_score():
    candidates = [_record("a", VIDEO, 10), _record("b", FEED, 20)]
    assert _ids(select(candidates, [], total_limit=5)) == ["b", "a"]


def test_result_has_no_duplicate_ids():
    record = _record("dup", VIDEO, 90)
    candidates = [record, record, _record("other", FEED, 80)]
    result = select(candidates, [CategoryQuota(VIDEO, 2), CategoryQuota(VIDEO, 1)], total_limit=5)
    assert _ids(result) == ["dup", "other"]


def test_repeated_category_quota_takes_next_items():
    candidates = [_record("v1", VIDEO, 90), _record("v2", VIDEO, 80), _record("f1", FEED, 99)]
    result = select(
        candidates,
        [CategoryQuota(VIDEO, 1), CategoryQuota(FEED, 1), CategoryQuota(VIDEO, 1)],
        total_limit=3,
    )
    assert _ids(result) == ["v1", "f1", "v2"]


def test_quota_aliases_share_one_quota():
    candidates = [_record("w1", WEB, 95), _record("f1", FEED, 90), _record("f2", FEED, 85)]
    quota = CategoryQuota(FEED, 2, aliases=(WEB,))
    result = select(candidates, [quota], total_limit=2)
    assert _ids(result) == ["w1", "f1"]


def test_quotas_honored_when_supply_allows():
    candidates = [_record(f"v{i}", VIDEO, 50 + i) for i in range(4)]
    candidates += [_record(f"f{i}", FEED, 90 + i) for i in range(4)]
    candidates += [_record(f"s{i}", SHORT, 95 + i) for i in range(4)]
    quotas = [CategoryQuota(VIDEO, 2), CategoryQuota(FEED, 1), CategoryQuota(SHORT, 2)]

    result = select(candidates, quotas, total_limit=8)
    counts = category_counts(result)

    assert counts[VIDEO] >= 2
    assert counts[FEED] >= 1
    assert counts[SHORT] >= 2
    assert len(result) == 8
    assert set(_ids(result)) <= set(_ids(candidates))


def test_negative_inputs_are_contract_violations():
    candidates = [_record("v1", VIDEO, 90)]
    with pytest.raises(ContractViolation):
        select(candidates, [], total_limit=-1)
    with pytest.raises(ContractViolation):
        select(candidates, [CategoryQuota(VIDEO, -1)], total_limit=1)
    with pytest.raises(ContractViolation):
        select(candidates, [], total_limit=1, shortfall_policy="redistribute")


def test_platform_quotas_split_one_category():
    def post(record_id, platform, relevance):
        return ContentRecord(
            id=record_id,
            source_category=SHORT,
            creator_id=f"creator-{record_id}",
            canonical_url=f"https://example.com/{record_id}",
            published_at=datetime(2026, 2, 3, 10, tzinfo=timezone.utc),
            relevance_score=relevance,
            platform=platform,
        )

    candidates = [
        post("tw_1", "twitter", 99),
        post("tw_2", "twitter", 98),
        post("tw_3", "twitter", 97),
        post("th_1", "threads", 80),
        post("th_2", "threads", 79),
    ]
    quotas = [
        CategoryQuota(SHORT, 2, platforms=("twitter",)),
        CategoryQuota(SHORT, 2, platforms=("threads",)),
    ]

    assert _ids(select(candidates, quotas, total_limit=4)) == ["tw_1", "tw_2", "th_1", "th_2"]
    assert _ids(select(candidates, quotas[:1], total_limit=4, shortfall_policy=NO_FILL)) == ["tw_1", "tw_2"]

"""Tests for word-budgeted bullet assembly."""

import pytest

from creator_digest.core.assembly import assemble, total_words
from creator_digest.core.types import TextItem
from creator_digest.errors import ContractViolation


def _items(*texts: str) -> list[TextItem]:
    return [TextItem(text=text) for text in texts]


def _texts(items: list[TextItem]) -> list[str]:
    return [item.text for item in items]


def test_boundary_item_is_truncated_with_ellipsis():
    result = assemble(_items("alpha beta gamma", "delta epsilon"), word_budget=4, max_items=5)
    assert _texts(result) == ["alpha beta gamma", "delta..."]
    assert total_words(result) == 4


def test_empty_input_returns_empty_list():
    assert assemble([], word_budget=10, max_items=5) == []


def test_items_that_fit_are_kept_whole():
    items = _items("one two", "three four five")
    assert assemble(items, word_budget=10, max_items=5) == items


def test_max_items_stops_early():
    result = assemble(_items("a", "b", "c"), word_budget=10, max_items=2)
    assert _texts(result) == ["a", "b"]
    assert assemble(_items("a"), word_budget=10, max_items=0) == []


def test_boundary_item_dropped_when_too_few_words_remain():
    items = _items("one two three", "four five six seven", "eight")
    result = assemble(items, word_budget=5, max_items=5, min_truncation_words=3)
    # Two words remain for the second item; it is dropped and nothing after it is tried.
    assert _texts(result) == ["one two three"]


def test_processing_stops_after_truncation():
    items = _items("a b c", "d e f g h i j", "x")
    result = assemble(items, word_budget=8, max_items=5, min_truncation_words=3)
    assert _texts(result) == ["a b c", "d e f g h..."]


def test_zero_budget():
    assert assemble(_items("a b"), word_budget=0, max_items=5) == []


def test_truncation_keeps_source_url():
    items = [TextItem(text="one two three four", source_url="https://example.com/a")]
    result = assemble(items, word_budget=2, max_items=5)
    assert result == [TextItem(text="one two...", source_url="https://example.com/a")]


def test_custom_ellipsis():
    result = assemble(_items("one two three"), word_budget=2, max_items=5, ellipsis="…")
    assert _texts(result) == ["one two…"]


def test_whitespace_is_collapsed_only_in_truncated_item():
    items = _items("keep   this  spacing", "cut   here please")
    result = assemble(items, word_budget=4, max_items=5)
    assert _texts(result) == ["keep   this  spacing", "cut..."]


@pytest.mark.parametrize("budget", range(0, 14))
@pytest.mark.parametrize("min_words", [0, 3])
def test_budget_invariant_and_idempotence(budget, min_words):
    items = _items(
        "Creators are shipping agents faster than ever",
        "Feeds stay relevant",
        "Short posts drive most engagement this week",
    )
    first = assemble(items, word_budget=budget, max_items=3, min_truncation_words=min_words)

    assert total_words(first) <= budget
    assert len(first) <= 3
    assert assemble(first, word_budget=budget, max_items=3, min_truncation_words=min_words) == first


def test_invalid_arguments_are_contract_violations():
    with pytest.raises(ContractViolation):
        assemble(_items("a"), word_budget=-1, max_items=5)
    with pytest.raises(ContractViolation):
        assemble(_items("a"), word_budget=5, max_items=-1)
    with pytest.raises(ContractViolation):
        assemble(_items("a"), word_budget=5, max_items=5, min_truncation_words=-1)
    with pytest.raises(ContractViolation):
        assemble(_items("a"), word_budget=5, max_items=5, ellipsis=" ...")


def test_total_words_ignores_marker():
    assert total_words(_items("a b...", "c")) == 3
    assert total_words(_items("...")) == 0

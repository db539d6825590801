"""
Word-budgeted assembly of generated text fragments.

Items are taken in the caller's order until the word budget or item limit
is reached. The item that crosses the budget is truncated with an ellipsis
when enough words remain, and processing stops there; later items are not
considered even if they would fit.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from ..errors import ContractViolation
from .types import TextItem

DEFAULT_WORD_BUDGET = 70
DEFAULT_MAX_ITEMS = 6
DEFAULT_MIN_TRUNCATION_WORDS = 0
ELLIPSIS = "..."


def assemble(
    items: Sequence[TextItem],
    word_budget: int = DEFAULT_WORD_BUDGET,
    max_items: int = DEFAULT_MAX_ITEMS,
    min_truncation_words: int = DEFAULT_MIN_TRUNCATION_WORDS,
    ellipsis: str = ELLIPSIS,
) -> list[TextItem]:
    """Return the longest prefix of items that fits the word budget.

    The ellipsis is glued to the last kept word, so a truncated item counts
    exactly the remaining words and re-assembling the output with the same
    budget returns it unchanged.

    Args:
        items: Pre-ranked text items
        word_budget: Maximum total words across returned items (marker excluded)
        max_items: Maximum number of returned items
        min_truncation_words: A boundary item is truncated only when more than
            this many words remain; otherwise it is dropped
        ellipsis: Truncation marker, must not contain whitespace

    Returns:
        Accepted items, the last one possibly truncated

    Raises:
        ContractViolation: On negative budget/limits or a marker with whitespace
    """
    if word_budget < 0:
        raise ContractViolation(f"word_budget must be non-negative, got {word_budget}")
    if max_items < 0:
        raise ContractViolation(f"max_items must be non-negative, got {max_items}")
    if min_truncation_words < 0:
        raise ContractViolation(
            f"min_truncation_words must be non-negative, got {min_truncation_words}"
        )
    if any(ch.isspace() for ch in ellipsis):
        raise ContractViolation("ellipsis marker must not contain whitespace")

    accepted: list[TextItem] = []
    words_used = 0

    for item in items:
        if len(accepted) >= max_items:
            break
        words = item.words
        if words_used + len(words) <= word_budget:
            accepted.append(item)
            words_used += len(words)
            continue

        remaining = word_budget - words_used
        if remaining > min_truncation_words:
            accepted.append(replace(item, text=" ".join(words[:remaining]) + ellipsis))
        break

    return accepted


def total_words(items: Sequence[TextItem], ellipsis: str = ELLIPSIS) -> int:
    """Count words across items, ignoring a trailing truncation marker.

    A word that consisted only of the marker is not counted.
    """
    count = 0
    for item in items:
        words = item.words
        if ellipsis and words and words[-1].endswith(ellipsis):
            stripped = words[-1][: -len(ellipsis)]
            count += len(words) - (0 if stripped else 1)
        else:
            count += len(words)
    return count

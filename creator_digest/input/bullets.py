"""Parsing of generated headline bullets.

Generated text is read in two explicit stages:
1. parse_bullets_json: strict JSON parse returning TextItems or a ParseFailure
2. extract_bullets_from_text: line-based fallback, only used on ParseFailure

load_bullets composes the two.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from ..core.types import TextItem

logger = logging.getLogger(__name__)

_BULLET_PREFIX_RE = re.compile(r"^\s*(?:[-*•]+|\d+[.)])\s*")
_CONTAINER_KEYS = ("bullets", "summary", "items")


@dataclass(frozen=True)
class ParseFailure:
    """Result of a strict parse that did not yield bullets.

    Attributes:
        reason: Why the strict parse failed
        raw: The text that was parsed
    """

    reason: str
    raw: str


def parse_bullets_json(raw: str) -> list[TextItem] | ParseFailure:
    """Strictly parse generated bullets from JSON.

    Accepted shapes: a bare array, or an object holding the array under
    ``bullets``, ``summary`` or ``items``. Array entries may be strings or
    objects with ``text`` and optional ``sourceUrl``. The JSON may be wrapped
    in a fenced ```json block.

    Returns:
        The parsed items (possibly empty), or a ParseFailure
    """
    if not raw or not raw.strip():
        return ParseFailure("empty content", raw or "")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        snippet = _extract_json_snippet(raw)
        if snippet is None:
            return ParseFailure("no JSON content found", raw)
        try:
            payload = json.loads(snippet)
        except json.JSONDecodeError as exc:
            return ParseFailure(f"invalid JSON: {exc.msg}", raw)

    entries = _bullet_entries(payload)
    if entries is None:
        return ParseFailure("JSON has no bullet array", raw)

    items: list[TextItem] = []
    for entry in entries:
        item = _to_text_item(entry)
        if item is None:
            return ParseFailure(f"unsupported bullet entry: {entry!r}", raw)
        if item.text:
            items.append(item)
    return items


def extract_bullets_from_text(raw: str) -> list[TextItem]:
    """Fallback extraction: one bullet per non-empty line.

    Leading bullet markers and list numbering are stripped.

    Examples:
        >>> [i.text for i in extract_bullets_from_text("• First\\n2. Second")]
        ['First', 'Second']
    """
    items: list[TextItem] = []
    for line in (raw or "").splitlines():
        text = _BULLET_PREFIX_RE.sub("", line).strip()
        if text and not text.startswith("```"):
            items.append(TextItem(text=text))
    return items


def load_bullets(raw: str) -> list[TextItem]:
    """Parse bullets strictly, falling back to line extraction on failure."""
    result = parse_bullets_json(raw)
    if isinstance(result, ParseFailure):
        logger.info("Bullet JSON parse failed (%s), using text fallback", result.reason)
        return extract_bullets_from_text(raw)
    return result


def _bullet_entries(payload: Any) -> list[Any] | None:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in _CONTAINER_KEYS:
            if isinstance(payload.get(key), list):
                return payload[key]
    return None


def _to_text_item(entry: Any) -> TextItem | None:
    if isinstance(entry, str):
        return TextItem(text=entry.strip())
    if isinstance(entry, dict) and isinstance(entry.get("text"), str):
        source_url = entry.get("sourceUrl") or entry.get("source_url")
        return TextItem(
            text=entry["text"].strip(),
            source_url=source_url if isinstance(source_url, str) else None,
        )
    return None


def _extract_json_snippet(content: str) -> str | None:
    """Extract JSON from text, handling fenced code blocks.

    First tries a ```json fenced block, then the outermost array or object.
    """
    fence = _extract_fenced_json(content)
    if fence:
        return fence
    for open_char, close_char in (("[", "]"), ("{", "}")):
        start = content.find(open_char)
        end = content.rfind(close_char)
        if start != -1 and end > start:
            return content[start : end + 1]
    return None


def _extract_fenced_json(content: str) -> str | None:
    lines = content.splitlines()
    start_idx = None
    for idx, line in enumerate(lines):
        if line.strip().startswith("```") and "json" in line.lower():
            start_idx = idx + 1
            break
    if start_idx is None:
        return None
    for idx in range(start_idx, len(lines)):
        if lines[idx].strip().startswith("```"):
            snippet = "\n".join(lines[start_idx:idx]).strip()
            return snippet or None
    return None

"""
Stable fingerprints identifying the same underlying post across sources.

A fingerprint is the SHA-256 hex digest of a composite key built from:
1. The source category
2. The creator id
3. The normalized canonical URL
4. A normalized prefix of the title and description text

Two records with equal fingerprints are duplicates of the same event.
"""

from __future__ import annotations

import hashlib
import re
from urllib.parse import urlsplit, urlunsplit

from .types import ContentRecord

DEFAULT_PREFIX_LENGTH = 200

_KEY_SEPARATOR = "\x1f"
_NON_ALNUM_RE = re.compile(r"[\W_]+", re.UNICODE)
_WHITESPACE_RE = re.compile(r"\s+")
_YOUTUBE_HOSTS = {"youtube.com", "www.youtube.com", "m.youtube.com", "music.youtube.com"}
_YOUTUBE_PATH_RE = re.compile(r"^/(?:embed|shorts|v|live)/([A-Za-z0-9_-]{11})")
_YOUTUBE_QUERY_RE = re.compile(r"(?:^|&)v=([A-Za-z0-9_-]{11})")
_YOUTU_BE_PATH_RE = re.compile(r"^/([A-Za-z0-9_-]{11})")


def fingerprint(record: ContentRecord, prefix_length: int = DEFAULT_PREFIX_LENGTH) -> str:
    """Compute the fingerprint of a content record.

    Pure and total: empty text fields still produce a valid fingerprint
    from category, creator and URL alone.

    Args:
        record: The record to fingerprint
        prefix_length: Number of normalized text characters included in the key

    Returns:
        A 64-character hexadecimal SHA-256 digest
    """
    components = [
        record.source_category,
        record.creator_id,
        normalize_url(record.canonical_url),
        text_projection(record, prefix_length),
    ]
    key = _KEY_SEPARATOR.join(components)
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def text_projection(record: ContentRecord, prefix_length: int = DEFAULT_PREFIX_LENGTH) -> str:
    """Return the normalized text prefix used in the fingerprint key.

    Title and description are combined; the body excerpt is only used
    when both are empty.
    """
    text = f"{record.title or ''} {record.description_excerpt or ''}"
    if not text.strip():
        text = record.body_excerpt or ""
    return normalize_text(text)[: max(prefix_length, 0)]


def normalize_text(text: str) -> str:
    """Lower-case, replace punctuation with spaces and collapse whitespace.

    Examples:
        >>> normalize_text("  Hello,   World!! ")
        'hello world'
    """
    lowered = (text or "").lower()
    cleaned = _NON_ALNUM_RE.sub(" ", lowered)
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def normalize_url(url: str) -> str:
    """Normalize a canonical URL for fingerprinting.

    Strips the query string and fragment, lower-cases scheme and host and
    drops the trailing slash. YouTube video URLs are first rewritten to
    their watch form so the video id survives the query strip.

    Examples:
        >>> normalize_url("HTTPS://Example.COM/Post/?utm=1#top")
        'https://example.com/Post'
        >>> normalize_url("https://youtu.be/dQw4w9WgXcQ?t=42")
        'https://youtube.com/watch?v=dQw4w9WgXcQ'
    """
    raw = (url or "").strip()
    if not raw:
        return ""
    try:
        parts = urlsplit(raw)
    except ValueError:
        return raw.lower().rstrip("/")

    host = (parts.hostname or "").lower()
    video_id = _youtube_video_id(host, parts.path, parts.query)
    if video_id:
        return f"https://youtube.com/watch?v={video_id}"

    netloc = parts.netloc.lower()
    path = parts.path.rstrip("/")
    return urlunsplit((parts.scheme.lower(), netloc, path, "", "")).rstrip("/")


def _youtube_video_id(host: str, path: str, query: str) -> str | None:
    if host in _YOUTUBE_HOSTS:
        if path.rstrip("/") == "/watch":
            match = _YOUTUBE_QUERY_RE.search(query)
            return match.group(1) if match else None
        match = _YOUTUBE_PATH_RE.match(path)
        return match.group(1) if match else None
    if host == "youtu.be":
        match = _YOUTU_BE_PATH_RE.match(path)
        return match.group(1) if match else None
    return None

"""
Core data types for the Creator Digest pipeline.

This module defines the data structures shared by every stage:
- ContentRecord: One normalized item observed from a source platform
- DuplicateCluster: Records sharing a fingerprint, with one elected primary
- CategoryQuota: Target count of selected items for one source category
- TextItem: A short generated text fragment (headline bullet)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


class SourceCategory:
    """Well-known source category tags.

    Categories are plain strings everywhere in the pipeline so that new
    platforms can be configured without code changes; these constants only
    name the ones the upstream ingestion emits today.
    """

    LONG_FORM_VIDEO = "long-form-video"
    SHORT_FORM_POST = "short-form-post"
    PROFESSIONAL_POST = "professional-post"
    SYNDICATED_FEED = "syndicated-feed"
    GENERIC_WEB = "generic-web"

    ALL = (
        LONG_FORM_VIDEO,
        SHORT_FORM_POST,
        PROFESSIONAL_POST,
        SYNDICATED_FEED,
        GENERIC_WEB,
    )


@dataclass(frozen=True)
class ContentRecord:
    """Represents one observed item from a source platform.

    Attributes:
        id: Opaque unique identifier assigned by upstream ingestion
        source_category: Origin kind tag (see SourceCategory)
        creator_id: Identifier of the originating creator/account
        canonical_url: Normalized URL string
        published_at: Timezone-aware publication timestamp
        title: Item title, may be empty
        description_excerpt: Short description or post text, may be empty
        body_excerpt: Excerpt of the body text, may be empty
        engagement_score: Non-negative weighted engagement (views/likes/comments)
        relevance_score: Topic-fit score between 0 and 100
        platform: Upstream platform name (e.g. "twitter", "threads"), may be empty
    """

    id: str
    source_category: str
    creator_id: str
    canonical_url: str
    published_at: datetime
    title: str = ""
    description_excerpt: str = ""
    body_excerpt: str = ""
    engagement_score: float = 0.0
    relevance_score: float = 0.0
    platform: str = ""


@dataclass(frozen=True)
class DuplicateCluster:
    """A set of records sharing one fingerprint.

    Attributes:
        cluster_id: The fingerprint shared by every member
        member_ids: Member record ids in first-seen input order (never empty)
        primary_id: The elected canonical member
    """

    cluster_id: str
    member_ids: tuple[str, ...]
    primary_id: str

    @property
    def size(self) -> int:
        return len(self.member_ids)

    @property
    def duplicate_ids(self) -> tuple[str, ...]:
        """Member ids other than the primary."""
        return tuple(member for member in self.member_ids if member != self.primary_id)


@dataclass(frozen=True)
class CategoryQuota:
    """Target count of selected items for a source category.

    Attributes:
        category: Source category the quota applies to
        target_count: Maximum number of items taken for this quota in the quota pass
        aliases: Extra categories counted towards the same quota
        platforms: When set, only records from these platforms count (lets one
            category carry separate quotas per platform, e.g. twitter and threads)
    """

    category: str
    target_count: int
    aliases: tuple[str, ...] = field(default_factory=tuple)
    platforms: tuple[str, ...] = field(default_factory=tuple)

    @property
    def categories(self) -> tuple[str, ...]:
        return (self.category, *self.aliases)

    def matches(self, record: ContentRecord) -> bool:
        if record.source_category not in self.categories:
            return False
        return not self.platforms or record.platform in self.platforms


@dataclass(frozen=True)
class TextItem:
    """A short generated text fragment, e.g. one headline bullet.

    Attributes:
        text: The fragment text
        source_url: Optional link to the content the fragment summarizes
    """

    text: str
    source_url: str | None = None

    @property
    def words(self) -> list[str]:
        return self.text.split()

    @property
    def word_count(self) -> int:
        return len(self.words)

"""
Core domain models and the pure digest stages.

This package contains the data types and the deterministic, side-effect
free stages: fingerprinting, clustering, eligibility, selection and
word-budgeted assembly.
"""

from .assembly import assemble
from .dedup import build_clusters, elect_primary, merge_similar_clusters
from .eligibility import build_eligibility, filter_candidates
from .fingerprint import fingerprint, normalize_text, normalize_url
from .selection import select
from .session import DigestSession
from .types import CategoryQuota, ContentRecord, DuplicateCluster, SourceCategory, TextItem
from .validation import ValidationReport, partition_records, validate_record

__all__ = [
    "CategoryQuota",
    "ContentRecord",
    "DigestSession",
    "DuplicateCluster",
    "SourceCategory",
    "TextItem",
    "ValidationReport",
    "assemble",
    "build_clusters",
    "build_eligibility",
    "elect_primary",
    "filter_candidates",
    "fingerprint",
    "merge_similar_clusters",
    "normalize_text",
    "normalize_url",
    "partition_records",
    "select",
    "validate_record",
]

"""
Duplicate clustering and primary election.

This module collapses records describing the same underlying post:
1. Records are grouped by fingerprint into duplicate clusters
2. Each cluster elects one primary by a strict, order-independent tie-break
3. Optionally, clusters from the same creator whose text is near-identical
   are merged (fuzzy title comparison, for posts re-published with edits)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from rapidfuzz import fuzz

from ..errors import ContractViolation
from .fingerprint import DEFAULT_PREFIX_LENGTH, fingerprint, text_projection
from .types import ContentRecord, DuplicateCluster


def build_clusters(
    records: Sequence[ContentRecord],
    priority: Sequence[str] = (),
    prefix_length: int = DEFAULT_PREFIX_LENGTH,
) -> list[DuplicateCluster]:
    """Partition a batch of records into duplicate clusters.

    Clusters appear in the order their first member appears in the input,
    and members keep input order. Every record lands in exactly one cluster;
    a record without duplicates yields a singleton cluster.

    Args:
        records: The batch to cluster (ids must be unique within the batch)
        priority: Source categories from highest to lowest platform priority
        prefix_length: Normalized text prefix length used by the fingerprint

    Returns:
        One DuplicateCluster per distinct fingerprint
    """
    groups: dict[str, list[ContentRecord]] = {}
    for record in records:
        groups.setdefault(fingerprint(record, prefix_length), []).append(record)

    return [
        DuplicateCluster(
            cluster_id=key,
            member_ids=tuple(member.id for member in members),
            primary_id=elect_primary(members, priority),
        )
        for key, members in groups.items()
    ]


def elect_primary(members: Sequence[ContentRecord], priority: Sequence[str] = ()) -> str:
    """Pick the canonical member of a cluster.

    Tie-break order, applied top to bottom:
    1. Highest configured category priority (unlisted categories rank last)
    2. Higher engagement score
    3. More recent publication time
    4. Lexicographically smallest id

    Raises:
        ContractViolation: If members is empty
    """
    if not members:
        raise ContractViolation("Cannot elect a primary from an empty cluster")
    ranks = _priority_ranks(priority)
    winner = min(members, key=lambda record: _election_key(record, ranks))
    return winner.id


def primary_ids(clusters: Iterable[DuplicateCluster]) -> set[str]:
    return {cluster.primary_id for cluster in clusters}


def cluster_assignments(clusters: Iterable[DuplicateCluster]) -> dict[str, tuple[str, bool]]:
    """Map each record id to its (cluster_id, is_primary) pair."""
    assignments: dict[str, tuple[str, bool]] = {}
    for cluster in clusters:
        for member in cluster.member_ids:
            assignments[member] = (cluster.cluster_id, member == cluster.primary_id)
    return assignments


def merge_similar_clusters(
    clusters: Sequence[DuplicateCluster],
    records: Sequence[ContentRecord],
    threshold: int = 85,
    categories: Iterable[str] = (),
    priority: Sequence[str] = (),
    prefix_length: int = DEFAULT_PREFIX_LENGTH,
) -> list[DuplicateCluster]:
    """Merge clusters whose primaries are near-identical posts by one creator.

    Fingerprints only catch exact normalized matches. Short-form and
    professional posts are often re-published with small edits, so clusters
    whose primaries share a creator and category set membership and whose
    normalized text reaches ``threshold`` (rapidfuzz token set ratio, 0-100)
    are merged. Merging uses union-find over the pairwise relation, so the
    result does not depend on input order.

    The merged cluster keeps the cluster_id of the cluster holding the newly
    elected primary.

    Args:
        clusters: Clusters produced by build_clusters for ``records``
        records: The batch the clusters were built from
        threshold: Minimum similarity (0-100) for two clusters to merge
        categories: Categories eligible for merging; empty means none
        priority: Category priority used to re-elect primaries
        prefix_length: Normalized text prefix length used for comparison

    Returns:
        The merged clusters, ordered by first-seen member position
    """
    allowed = set(categories)
    if not allowed or len(clusters) < 2:
        return list(clusters)

    by_id = {record.id: record for record in records}
    position = {record.id: idx for idx, record in enumerate(records)}
    parent = list(range(len(clusters)))

    def find(idx: int) -> int:
        while parent[idx] != idx:
            parent[idx] = parent[parent[idx]]
            idx = parent[idx]
        return idx

    def union(a: int, b: int) -> None:
        root_a, root_b = find(a), find(b)
        if root_a != root_b:
            parent[max(root_a, root_b)] = min(root_a, root_b)

    # Candidate clusters grouped by creator; comparisons never cross creators.
    by_creator: dict[str, list[tuple[int, str]]] = {}
    for idx, cluster in enumerate(clusters):
        primary = by_id[cluster.primary_id]
        if primary.source_category not in allowed:
            continue
        text = text_projection(primary, prefix_length)
        if not text:
            continue
        by_creator.setdefault(primary.creator_id, []).append((idx, text))

    for entries in by_creator.values():
        for i, (idx_a, text_a) in enumerate(entries):
            for idx_b, text_b in entries[i + 1 :]:
                if fuzz.token_set_ratio(text_a, text_b) >= threshold:
                    union(idx_a, idx_b)

    components: dict[int, list[int]] = {}
    for idx in range(len(clusters)):
        components.setdefault(find(idx), []).append(idx)

    merged: list[DuplicateCluster] = []
    for members_idx in components.values():
        if len(members_idx) == 1:
            merged.append(clusters[members_idx[0]])
            continue
        member_ids = sorted(
            (member for idx in members_idx for member in clusters[idx].member_ids),
            key=lambda member: position[member],
        )
        primary_id = elect_primary([by_id[member] for member in member_ids], priority)
        cluster_id = next(
            clusters[idx].cluster_id for idx in members_idx if primary_id in clusters[idx].member_ids
        )
        merged.append(
            DuplicateCluster(cluster_id=cluster_id, member_ids=tuple(member_ids), primary_id=primary_id)
        )

    merged.sort(key=lambda cluster: position[cluster.member_ids[0]])
    return merged


def _priority_ranks(priority: Sequence[str]) -> dict[str, int]:
    ranks: dict[str, int] = {}
    for idx, category in enumerate(priority):
        ranks.setdefault(category, idx)
    return ranks


def _election_key(record: ContentRecord, ranks: dict[str, int]) -> tuple[int, float, float, str]:
    return (
        ranks.get(record.source_category, len(ranks)),
        -record.engagement_score,
        -record.published_at.timestamp(),
        record.id,
    )

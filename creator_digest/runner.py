"""
Main pipeline orchestration for one digest run.

This module coordinates the entire workflow:
1. Parse and validate the record export
2. Build duplicate clusters and elect primaries
3. Apply the eligibility gate and select items per digest section
4. Assemble generated headline bullets within the word budget
5. Write cluster assignments and the digest selection

Every stage below the runner is pure; the runner owns file I/O, logging
and the per-run DigestSession.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from .config import AppConfig, SectionConfig
from .core.assembly import assemble
from .core.dedup import build_clusters, cluster_assignments, merge_similar_clusters, primary_ids
from .core.eligibility import build_eligibility, excluding_ids, filter_candidates, in_categories
from .core.fingerprint import normalize_url
from .core.selection import category_counts, rank_candidates, select
from .core.session import DigestSession
from .core.types import ContentRecord, DuplicateCluster, TextItem
from .input.bullets import load_bullets
from .input.json_parser import parse_records
from .utils.logging import close_logging, log_event, setup_logging

CONTENT_DOMAIN = "content"
URL_DOMAIN = "url"


@dataclass
class RunStats:
    """Counters collected during one digest run.

    Attributes:
        total: Records present in the export
        skipped: Records rejected at validation
        clusters: Duplicate clusters built
        duplicates: Records that are not their cluster's primary
        eligible: Records passing the eligibility gate (before section filters)
        selected: Items selected across all sections
    """

    total: int = 0
    skipped: int = 0
    clusters: int = 0
    duplicates: int = 0
    eligible: int = 0
    selected: int = 0


@dataclass
class SectionResult:
    """Selection and bullets produced for one digest section."""

    name: str
    items: list[ContentRecord] = field(default_factory=list)
    bullets: list[TextItem] = field(default_factory=list)


def run_pipeline(
    input_path: Path,
    output_dir: Path,
    cfg: AppConfig,
    bullets_path: Path | None = None,
    now: datetime | None = None,
    console: Console | None = None,
) -> Path:
    """Run one digest over a record export.

    Args:
        input_path: Path to the JSON record export
        output_dir: Directory for output files
        cfg: Application configuration
        bullets_path: Optional JSON object mapping section name to raw generated text
        now: Reference time for the recency window (defaults to the current time)
        console: Rich console for the run summary (creates default if None)

    Returns:
        Path to the written digest.json
    """
    run_output_dir = _build_run_output_dir(output_dir, input_path, cfg)
    run_output_dir.mkdir(parents=True, exist_ok=True)
    session = DigestSession(started_at=_as_aware(now) if now else datetime.now(timezone.utc))
    logger = setup_logging(cfg.logging, run_output_dir, run_id=session.run_id)

    try:
        log_event(
            logger,
            "Pipeline start",
            event="pipeline_start",
            input=str(input_path),
            output=str(run_output_dir),
        )

        with open(input_path, encoding="utf-8") as f:
            data = json.load(f)
        batch = parse_records(data)
        records = batch.records
        stats = RunStats(total=len(records) + len(batch.skipped), skipped=len(batch.skipped))
        if batch.skipped:
            log_event(logger, "Records skipped", event="records_skipped", count=len(batch.skipped))

        clusters = _cluster(records, cfg)
        stats.clusters = len(clusters)
        stats.duplicates = sum(cluster.size - 1 for cluster in clusters)
        clusters_path = run_output_dir / "clusters.json"
        _write_clusters(clusters, clusters_path)
        log_event(
            logger,
            "Clusters built",
            event="clusters_built",
            clusters=stats.clusters,
            duplicates=stats.duplicates,
        )

        gate = build_eligibility(
            relevance_threshold=cfg.eligibility.relevance_threshold,
            recency_window=cfg.eligibility.recency_window,
            now=session.started_at,
            primary_ids=primary_ids(clusters) if cfg.eligibility.primary_only else None,
        )
        eligible = filter_candidates(records, gate)
        stats.eligible = len(eligible)
        log_event(logger, "Eligibility applied", event="eligibility_applied", eligible=stats.eligible)

        generated = _read_bullets(bullets_path) if bullets_path else {}
        results: list[SectionResult] = []
        for section in cfg.sections:
            result = _run_section(section, eligible, session)
            if section.name in generated:
                result.bullets = assemble(
                    load_bullets(generated[section.name]),
                    word_budget=cfg.assembly.word_budget,
                    max_items=cfg.assembly.max_items,
                    min_truncation_words=cfg.assembly.min_truncation_words,
                    ellipsis=cfg.assembly.ellipsis,
                )
            stats.selected += len(result.items)
            log_event(
                logger,
                "Section selected",
                event="section_selected",
                section=section.name,
                selected=len(result.items),
                categories=category_counts(result.items),
                bullets=len(result.bullets),
            )
            results.append(result)

        digest_path = run_output_dir / "digest.json"
        _write_digest(digest_path, session, stats, results, clusters)
        _render_run_stats(stats, results, console or Console())
        log_event(
            logger,
            "Pipeline complete",
            event="pipeline_complete",
            output=str(digest_path),
            selected=stats.selected,
        )
        return digest_path
    finally:
        close_logging(logger)


def _cluster(records: list[ContentRecord], cfg: AppConfig) -> list[DuplicateCluster]:
    """Build clusters, or singletons when dedup is disabled."""
    if not cfg.dedup.enabled:
        return [
            DuplicateCluster(cluster_id=record.id, member_ids=(record.id,), primary_id=record.id)
            for record in records
        ]
    clusters = build_clusters(records, cfg.dedup.category_priority, cfg.dedup.prefix_length)
    if cfg.dedup.similarity_merge:
        clusters = merge_similar_clusters(
            clusters,
            records,
            threshold=cfg.dedup.similarity_threshold,
            categories=cfg.dedup.similarity_categories,
            priority=cfg.dedup.category_priority,
            prefix_length=cfg.dedup.prefix_length,
        )
    return clusters


def _run_section(
    section: SectionConfig,
    eligible: list[ContentRecord],
    session: DigestSession,
) -> SectionResult:
    """Select items for one section without reusing another section's items."""
    predicates = [excluding_ids(session.used(CONTENT_DOMAIN))]
    if section.categories:
        predicates.append(in_categories(section.categories))
    pool = _unique_urls(filter_candidates(eligible, *predicates), session.used(URL_DOMAIN))

    items = select(pool, section.quotas, section.total_limit, section.shortfall_policy)
    for record in items:
        session.claim(CONTENT_DOMAIN, record.id)
        url_key = normalize_url(record.canonical_url)
        if url_key:
            session.claim(URL_DOMAIN, url_key)
    return SectionResult(name=section.name, items=items)


def _unique_urls(pool: list[ContentRecord], used_urls: frozenset[str]) -> list[ContentRecord]:
    """Keep the best-ranked record per canonical URL.

    Two clusters can still share a URL (different creators reposting one
    link); records whose URL was already used by an earlier section are
    dropped too.
    """
    kept: list[ContentRecord] = []
    seen = set(used_urls)
    for record in rank_candidates(pool):
        url_key = normalize_url(record.canonical_url)
        if url_key:
            if url_key in seen:
                continue
            seen.add(url_key)
        kept.append(record)
    return kept


def _read_bullets(path: Path) -> dict[str, str]:
    """Read generated text per section.

    Values that are not strings (e.g. an already-decoded bullet array) are
    re-serialized so they go through the same strict parser.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("Invalid bullets file: expected an object keyed by section name")
    return {
        str(name): value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)
        for name, value in data.items()
    }


def _write_clusters(clusters: list[DuplicateCluster], path: Path) -> None:
    assignments = cluster_assignments(clusters)
    payload = {
        "clusters": [
            {
                "cluster_id": cluster.cluster_id,
                "primary_id": cluster.primary_id,
                "member_ids": list(cluster.member_ids),
            }
            for cluster in clusters
        ],
        "assignments": [
            {"id": record_id, "cluster_id": cluster_id, "is_primary": is_primary}
            for record_id, (cluster_id, is_primary) in assignments.items()
        ],
    }
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


def _write_digest(
    path: Path,
    session: DigestSession,
    stats: RunStats,
    results: list[SectionResult],
    clusters: list[DuplicateCluster],
) -> None:
    cluster_of = {member: cluster for cluster in clusters for member in cluster.member_ids}
    payload: dict[str, Any] = {
        "run_id": session.run_id,
        "generated_at": session.started_at.isoformat(),
        "stats": {
            "total": stats.total,
            "skipped": stats.skipped,
            "clusters": stats.clusters,
            "duplicates": stats.duplicates,
            "eligible": stats.eligible,
            "selected": stats.selected,
        },
        "sections": [
            {
                "name": result.name,
                "items": [_record_payload(record, cluster_of.get(record.id)) for record in result.items],
                "bullets": [
                    {"text": bullet.text, "source_url": bullet.source_url} for bullet in result.bullets
                ],
            }
            for result in results
        ],
    }
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


def _record_payload(record: ContentRecord, cluster: DuplicateCluster | None) -> dict[str, Any]:
    return {
        "id": record.id,
        "source_category": record.source_category,
        "creator_id": record.creator_id,
        "platform": record.platform,
        "title": record.title,
        "canonical_url": record.canonical_url,
        "published_at": record.published_at.isoformat(),
        "relevance_score": record.relevance_score,
        "engagement_score": record.engagement_score,
        "cluster_id": cluster.cluster_id if cluster else None,
        "duplicate_count": cluster.size - 1 if cluster else 0,
    }


def _render_run_stats(stats: RunStats, results: list[SectionResult], console: Console) -> None:
    """Display run statistics and per-section selection counts."""
    console.print(
        "[bold]Digest summary[/bold]: "
        f"total={stats.total}, skipped={stats.skipped}, clusters={stats.clusters}, "
        f"duplicates={stats.duplicates}, eligible={stats.eligible}, selected={stats.selected}"
    )
    table = Table(show_header=True, header_style="bold")
    table.add_column("Section")
    table.add_column("Items", justify="right")
    table.add_column("Categories")
    table.add_column("Bullets", justify="right")
    for result in results:
        counts = category_counts(result.items)
        table.add_row(
            result.name,
            str(len(result.items)),
            ", ".join(f"{name}={count}" for name, count in counts.items()) or "-",
            str(len(result.bullets)),
        )
    console.print(table)


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _build_run_output_dir(output_dir: Path, input_path: Path, cfg: AppConfig) -> Path:
    """Build the output directory name based on configured mode.

    Raises:
        ValueError: If run_folder_mode is not supported
    """
    stem = input_path.stem or "run"
    mode = (cfg.output.run_folder_mode or "input").lower()
    if mode == "input":
        run_dir_name = stem
    elif mode == "timestamp":
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        run_dir_name = f"{timestamp}-{stem}"
    elif mode == "input_timestamp":
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        run_dir_name = f"{stem}-{timestamp}"
    else:
        raise ValueError(
            "Unsupported run_folder_mode. Use 'input', 'timestamp', or 'input_timestamp'."
        )
    return output_dir / run_dir_name



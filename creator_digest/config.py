"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- DedupConfig: Fingerprinting, primary election and similarity merge settings
- EligibilityConfig: Relevance threshold and recency window
- SectionConfig: One digest section with its quotas and total limit
- AssemblyConfig: Word budget for generated headline bullets
- OutputConfig: Output folder settings
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container

The core stages never read configuration themselves; the runner passes
these values in explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

import yaml

from .core.selection import GLOBAL_FILL, SHORTFALL_POLICIES
from .core.types import CategoryQuota, SourceCategory
from .errors import ContractViolation


@dataclass
class DedupConfig:
    """Configuration for duplicate clustering.

    Attributes:
        enabled: Whether to cluster duplicates (disabled means every record is primary)
        prefix_length: Characters of normalized title/description in the fingerprint
        category_priority: Categories from highest to lowest priority for primary election
        similarity_merge: Whether to merge near-identical clusters from one creator
        similarity_threshold: Fuzzy match threshold (0-100) for the similarity merge
        similarity_categories: Categories whose clusters may be merged by similarity
    """

    enabled: bool = True
    prefix_length: int = 200
    category_priority: list[str] = field(
        default_factory=lambda: [
            SourceCategory.LONG_FORM_VIDEO,
            SourceCategory.SYNDICATED_FEED,
            SourceCategory.GENERIC_WEB,
            SourceCategory.PROFESSIONAL_POST,
            SourceCategory.SHORT_FORM_POST,
        ]
    )
    similarity_merge: bool = False
    similarity_threshold: int = 85
    similarity_categories: list[str] = field(
        default_factory=lambda: [
            SourceCategory.SHORT_FORM_POST,
            SourceCategory.PROFESSIONAL_POST,
        ]
    )


@dataclass
class EligibilityConfig:
    """Configuration for the eligibility gate in front of selection.

    Attributes:
        relevance_threshold: Minimum relevance score (0-100, inclusive)
        recency_hours: Maximum record age in hours at digest time
        primary_only: Whether only cluster primaries are eligible
    """

    relevance_threshold: float = 70.0
    recency_hours: float = 24.0
    primary_only: bool = True

    @property
    def recency_window(self) -> timedelta:
        return timedelta(hours=self.recency_hours)


@dataclass
class SectionConfig:
    """Configuration for one digest section.

    Attributes:
        name: Section name, also the key for generated bullets
        total_limit: Maximum number of selected items
        quotas: Category quotas in priority order
        categories: Optional restriction of the candidate pool to these categories
        shortfall_policy: "global_fill" or "none"
    """

    name: str = "social"
    total_limit: int = 10
    quotas: list[CategoryQuota] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    shortfall_policy: str = GLOBAL_FILL


@dataclass
class AssemblyConfig:
    """Configuration for word-budgeted bullet assembly.

    Attributes:
        word_budget: Maximum total words across a section's bullets
        max_items: Maximum number of bullets per section
        min_truncation_words: The boundary bullet is truncated only if more words remain
        ellipsis: Marker appended to a truncated bullet
    """

    word_budget: int = 70
    max_items: int = 6
    min_truncation_words: int = 3
    ellipsis: str = "..."


@dataclass
class OutputConfig:
    """Configuration for output generation.

    Attributes:
        run_folder_mode: How to name output folders ("input", "timestamp", "input_timestamp")
    """

    run_folder_mode: str = "input"


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the main log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = True
    format: str = "jsonl"
    filename: str = "run.jsonl"


def default_sections() -> list[SectionConfig]:
    """The social digest layout: two items per platform, ten in total.

    Twitter and threads share the short-form category but keep separate
    quotas, as in the upstream digest.
    """
    return [
        SectionConfig(
            name="social",
            total_limit=10,
            quotas=[
                CategoryQuota(SourceCategory.LONG_FORM_VIDEO, 2),
                CategoryQuota(SourceCategory.SYNDICATED_FEED, 2, aliases=(SourceCategory.GENERIC_WEB,)),
                CategoryQuota(SourceCategory.PROFESSIONAL_POST, 2),
                CategoryQuota(SourceCategory.SHORT_FORM_POST, 2, platforms=("twitter",)),
                CategoryQuota(SourceCategory.SHORT_FORM_POST, 2, platforms=("threads",)),
            ],
        )
    ]


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    dedup: DedupConfig = field(default_factory=DedupConfig)
    eligibility: EligibilityConfig = field(default_factory=EligibilityConfig)
    sections: list[SectionConfig] = field(default_factory=default_sections)
    assembly: AssemblyConfig = field(default_factory=AssemblyConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ContractViolation(f"Config file {path} is not valid YAML: {exc}") from exc

    if not isinstance(raw, dict):
        raise ContractViolation(f"Config file {path} must contain a mapping")
    return _merge_config(AppConfig(), raw)


def validate_config(cfg: AppConfig) -> AppConfig:
    """Reject negative limits and unknown policies.

    Raises:
        ContractViolation: On the first invalid value found
    """
    if cfg.dedup.prefix_length < 0:
        raise ContractViolation("dedup.prefix_length must be non-negative")
    if not 0 <= cfg.dedup.similarity_threshold <= 100:
        raise ContractViolation("dedup.similarity_threshold must be between 0 and 100")
    if cfg.eligibility.recency_hours < 0:
        raise ContractViolation("eligibility.recency_hours must be non-negative")
    if cfg.eligibility.relevance_threshold < 0:
        raise ContractViolation("eligibility.relevance_threshold must be non-negative")
    if cfg.assembly.word_budget < 0 or cfg.assembly.max_items < 0:
        raise ContractViolation("assembly.word_budget and assembly.max_items must be non-negative")
    if cfg.assembly.min_truncation_words < 0:
        raise ContractViolation("assembly.min_truncation_words must be non-negative")

    names: set[str] = set()
    for section in cfg.sections:
        if section.name in names:
            raise ContractViolation(f"Duplicate section name: {section.name!r}")
        names.add(section.name)
        if section.total_limit < 0:
            raise ContractViolation(f"sections[{section.name}].total_limit must be non-negative")
        if section.shortfall_policy not in SHORTFALL_POLICIES:
            raise ContractViolation(
                f"sections[{section.name}].shortfall_policy must be one of {SHORTFALL_POLICIES}"
            )
        for quota in section.quotas:
            if quota.target_count < 0:
                raise ContractViolation(
                    f"sections[{section.name}] quota {quota.category!r} has a negative target_count"
                )
    return cfg


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = _asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update(value)
        else:
            data[key] = value
    try:
        return validate_config(_fromdict(data))
    except ContractViolation:
        raise
    except (TypeError, ValueError) as exc:
        raise ContractViolation(f"Malformed configuration: {exc}") from exc


def _asdict(cfg: AppConfig) -> dict[str, Any]:
    """Convert AppConfig to nested dictionary."""
    return {
        "dedup": {
            "enabled": cfg.dedup.enabled,
            "prefix_length": cfg.dedup.prefix_length,
            "category_priority": list(cfg.dedup.category_priority),
            "similarity_merge": cfg.dedup.similarity_merge,
            "similarity_threshold": cfg.dedup.similarity_threshold,
            "similarity_categories": list(cfg.dedup.similarity_categories),
        },
        "eligibility": {
            "relevance_threshold": cfg.eligibility.relevance_threshold,
            "recency_hours": cfg.eligibility.recency_hours,
            "primary_only": cfg.eligibility.primary_only,
        },
        "sections": [_section_asdict(section) for section in cfg.sections],
        "assembly": {
            "word_budget": cfg.assembly.word_budget,
            "max_items": cfg.assembly.max_items,
            "min_truncation_words": cfg.assembly.min_truncation_words,
            "ellipsis": cfg.assembly.ellipsis,
        },
        "output": {
            "run_folder_mode": cfg.output.run_folder_mode,
        },
        "logging": {
            "level": cfg.logging.level,
            "console": cfg.logging.console,
            "file": cfg.logging.file,
            "format": cfg.logging.format,
            "filename": cfg.logging.filename,
        },
    }


def _section_asdict(section: SectionConfig) -> dict[str, Any]:
    return {
        "name": section.name,
        "total_limit": section.total_limit,
        "quotas": [
            {
                "category": quota.category,
                "target_count": quota.target_count,
                "aliases": list(quota.aliases),
                "platforms": list(quota.platforms),
            }
            for quota in section.quotas
        ],
        "categories": list(section.categories),
        "shortfall_policy": section.shortfall_policy,
    }


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    sections = data.get("sections")
    if not isinstance(sections, list):
        raise ContractViolation("sections must be a list")
    return AppConfig(
        dedup=DedupConfig(**data["dedup"]),
        eligibility=EligibilityConfig(**data["eligibility"]),
        sections=[_section_fromdict(item) for item in sections],
        assembly=AssemblyConfig(**data["assembly"]),
        output=OutputConfig(**data["output"]),
        logging=LoggingConfig(**data["logging"]),
    )


def _section_fromdict(item: Any) -> SectionConfig:
    if not isinstance(item, dict):
        raise ContractViolation(f"Section entries must be mappings, got {item!r}")
    quotas = []
    for quota in item.get("quotas") or []:
        if not isinstance(quota, dict) or "category" not in quota:
            raise ContractViolation(f"Quota entries need a category, got {quota!r}")
        quotas.append(
            CategoryQuota(
                category=str(quota["category"]),
                target_count=int(quota.get("target_count", 0)),
                aliases=tuple(str(alias) for alias in quota.get("aliases") or ()),
                platforms=tuple(str(name).lower() for name in quota.get("platforms") or ()),
            )
        )
    return SectionConfig(
        name=str(item.get("name", "social")),
        total_limit=int(item.get("total_limit", 10)),
        quotas=quotas,
        categories=[str(category) for category in item.get("categories") or []],
        shortfall_policy=str(item.get("shortfall_policy", GLOBAL_FILL)),
    )

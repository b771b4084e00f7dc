"""Configuration validation models using Pydantic."""
from __future__ import annotations

import copy
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Literal, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from ..standards.aliases import CANONICAL_FIELDS, DEFAULT_HEADER_ALIASES
from ..standards.categories import CATEGORIES, DEFAULT_CATEGORY_RULES


class PathsConfig(BaseModel):
    """Filesystem locations used by a run."""

    source_dir: str = Field("data/raw", description="Root directory served by the local file source")
    source_folder: str = Field(".", description="Folder id (relative to source_dir) to enumerate")
    output_dir: str = Field("data/processed", description="Directory receiving the report and run summary")
    logs_dir: str = Field("logs", description="Directory receiving log files")


class LoggingConfig(BaseModel):
    """Logger level and file name."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field("INFO", description="Project logger level")
    file_name: str = Field("booksales.log", description="Log file name inside logs_dir")


class IngestionConfig(BaseModel):
    """Settings for decoding and normalizing source files."""

    allowed_extensions: List[str] = Field(
        default_factory=lambda: [".csv", ".xlsx", ".xls"],
        description="File extensions treated as sales reports; others are skipped",
    )
    max_workers: int = Field(1, ge=1, description="Threads used to parse files; ledger folding stays serial")
    header_aliases: Dict[str, str] = Field(
        default_factory=dict,
        description="Extra raw header -> canonical field entries, unioned over the built-in table",
    )
    case_insensitive_headers: bool = Field(
        True,
        description="Retry a missed exact header lookup with a trimmed, case-folded key",
    )

    @field_validator("allowed_extensions")
    @classmethod
    def normalize_extensions(cls, v):
        """Lower-case extensions and make sure they carry a leading dot."""
        out = []
        for ext in v:
            ext = str(ext).strip().lower()
            if not ext:
                continue
            out.append(ext if ext.startswith(".") else f".{ext}")
        return out

    @field_validator("header_aliases")
    @classmethod
    def validate_alias_targets(cls, v):
        """Every alias must resolve to a canonical field."""
        bad = {k: t for k, t in v.items() if t not in CANONICAL_FIELDS}
        if bad:
            raise ValueError(f"header_aliases targets must be one of {list(CANONICAL_FIELDS)}, got {bad}")
        for canonical in CANONICAL_FIELDS:
            if canonical in v and v[canonical] != canonical:
                raise ValueError(f"Canonical field '{canonical}' cannot be remapped to '{v[canonical]}'")
        return v

    def resolved_aliases(self) -> Mapping[str, str]:
        """Return the immutable union of built-in and configured aliases."""
        merged = dict(DEFAULT_HEADER_ALIASES)
        merged.update(self.header_aliases)
        return MappingProxyType(merged)


class RankingConfig(BaseModel):
    """Top-N selection."""

    top_n: int = Field(250, ge=1, description="Number of ledger entries kept after ranking")


class CategoryRuleConfig(BaseModel):
    """One ordered categorization rule."""

    category: str = Field(..., description="Category returned when the rule matches")
    keywords: List[str] = Field(default_factory=list, description="Substrings matched against subjects and title")
    binding_keywords: List[str] = Field(default_factory=list, description="Substrings matched against the binding")
    ignore: List[str] = Field(
        default_factory=list,
        description="Phrases removed from the text before this rule's keywords are tested",
    )

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        if v not in CATEGORIES:
            raise ValueError(f"category must be one of {list(CATEGORIES)}, got '{v}'")
        return v

    @field_validator("keywords", "binding_keywords", "ignore")
    @classmethod
    def lower_keywords(cls, v):
        return [str(k).lower() for k in v if str(k).strip()]


class CategoriesConfig(BaseModel):
    """Ordered keyword rules plus per-category extensions."""

    rules: List[CategoryRuleConfig] = Field(
        default_factory=lambda: [CategoryRuleConfig(**copy.deepcopy(r)) for r in DEFAULT_CATEGORY_RULES],
        description="Rules evaluated in order; first match wins",
    )
    extra_keywords: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="Additional keywords appended to the rule of the named category",
    )

    @model_validator(mode="after")
    def validate_extra_keywords(self):
        """Extra keywords must target a category that has a rule."""
        known = {r.category for r in self.rules}
        unknown = [c for c in self.extra_keywords if c not in known]
        if unknown:
            raise ValueError(f"extra_keywords reference categories without a rule: {unknown}")
        return self

    def resolved_rules(self) -> List[CategoryRuleConfig]:
        """Return the rules with extra keywords folded in."""
        out: List[CategoryRuleConfig] = []
        for rule in self.rules:
            extra = [str(k).lower() for k in self.extra_keywords.get(rule.category, [])]
            if extra:
                rule = rule.model_copy(update={"keywords": list(rule.keywords) + extra})
            out.append(rule)
        return out


class MetadataConfig(BaseModel):
    """Catalog lookup (ISBNdb) settings."""

    enabled: bool = Field(True, description="Disable to produce ledger-only records")
    base_url: str = Field("https://api2.isbndb.com", description="ISBNdb API base URL")
    api_key_env: str = Field("ISBNDB_API_KEY", description="Environment variable holding the API key")
    timeout_seconds: float = Field(30.0, gt=0, description="Per-request timeout")
    batch_size: int = Field(1000, ge=1, description="Identifiers per HTTP request")


class OutputConfig(BaseModel):
    """Report export settings."""

    report_file_name: str = Field("booksales_report.csv", description="CSV report file name")
    write_xlsx: bool = Field(False, description="Also write an XLSX copy of the report")
    summary_file_name: str = Field("run_summary.json", description="Run summary JSON file name")


class PipelineConfig(BaseModel):
    """Complete pipeline configuration."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    categories: CategoriesConfig = Field(default_factory=CategoriesConfig)
    metadata: MetadataConfig = Field(default_factory=MetadataConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


def load_config(path: str | Path) -> Dict:
    """Load a YAML configuration file."""

    with open(path, "r", encoding="utf-8") as stream:
        return yaml.safe_load(stream) or {}


def load_and_validate_config(config: Optional[Dict | str | Path] = None) -> PipelineConfig:
    """
    Load and validate the pipeline configuration.

    Args:
        config: A parsed configuration dict, a path to a YAML file, or None for defaults.

    Returns:
        Validated PipelineConfig object

    Raises:
        ValidationError: If configuration is invalid
    """
    if config is None:
        return PipelineConfig()
    if isinstance(config, (str, Path)):
        config = load_config(config)
    return PipelineConfig(**config)

"""Booksales end-to-end pipeline orchestration.

Runs the report phases in order:
  1) ingestion   - list the source folder, decode and tally each file
  2) aggregation - fold file tallies into the ledger
  3) ranking     - order by breadth then volume, keep the top N
  4) enrichment  - one batched catalog lookup, merged into final records
  5) export      - write the CSV report and the run summary

Per-row and per-file problems, and catalog failures, are absorbed by the
phases. Anything else surfaces as a single ``PipelineError``.
"""
from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .categorizer import Categorizer
from .common.config_validator import PipelineConfig, load_and_validate_config, load_config
from .enrichment import DataQualitySummary, FinalRecord, merge_metadata
from .errors import PipelineError, SourceEnumerationError
from .file_sources import FileSource, LocalFolderSource
from .ledger import Ledger, aggregate
from .logging_utils import end_phase_timer, setup_logging, start_phase_timer, write_timing_report
from .metadata_client import IsbndbClient, MetadataLookup
from .output.report_outputs import write_report, write_run_summary
from .phase1_ingestion import IngestionResult, ingest_files
from .ranking import RankedEntry, rank_ledger, ranked_to_frame


@dataclass
class PhaseResult:
    """Outcome details for a single pipeline phase."""

    name: str
    status: str
    detail: str
    duration_seconds: float


@dataclass
class PipelineRunResult:
    """Aggregate summary returned by :func:`run_pipeline`."""

    started_at: datetime
    finished_at: Optional[datetime] = None
    phases: List[PhaseResult] = field(default_factory=list)
    ingestion: IngestionResult = field(default_factory=IngestionResult)
    ledger: Ledger = field(default_factory=Ledger)
    ranked: List[RankedEntry] = field(default_factory=list)
    records: List[FinalRecord] = field(default_factory=list)
    quality: DataQualitySummary = field(default_factory=DataQualitySummary)
    outputs: Dict[str, Path] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return all(phase.status == "success" for phase in self.phases)

    def summary_payload(self, timings: Dict[str, float]) -> Dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "ingestion": self.ingestion.to_dict(),
            "ledger_size": len(self.ledger),
            "ranked": len(self.ranked),
            "data_quality": self.quality.to_dict(),
            "timings_seconds": {k: round(v, 3) for k, v in timings.items()},
        }


def _coerce_config(config: PipelineConfig | Dict | str | Path | None) -> PipelineConfig:
    if isinstance(config, PipelineConfig):
        return config
    return load_and_validate_config(config)


def run_pipeline(
    config: PipelineConfig | Dict | str | Path | None = None,
    source: Optional[FileSource] = None,
    lookup: Optional[MetadataLookup] = None,
    write_outputs: bool = True,
) -> PipelineRunResult:
    """Produce the ranked, enriched sales report.

    Args:
        config: PipelineConfig, a config dict, a YAML path, or None for defaults
        source: File source; defaults to a LocalFolderSource on ``paths.source_dir``
        lookup: Catalog lookup callable; defaults to an ISBNdb client built from config
        write_outputs: Persist the report and run summary to ``paths.output_dir``

    Raises:
        PipelineError: When the source folder cannot be enumerated or a phase fails unexpectedly
    """
    cfg = _coerce_config(config)
    logger = setup_logging(cfg)
    source = source or LocalFolderSource(cfg.paths.source_dir)
    timings: Dict[str, float] = {}
    run = PipelineRunResult(started_at=datetime.now(timezone.utc))

    def _phase(name: str, func):
        mark = start_phase_timer(name)
        try:
            detail = func()
        except Exception as exc:
            duration = end_phase_timer(name, mark, timings, logger)
            run.phases.append(PhaseResult(name, "failed", str(exc), duration))
            logger.exception("%s failed after %.2fs", name, duration)
            raise PipelineError(f"{name} failed: {exc}") from exc
        duration = end_phase_timer(name, mark, timings, logger)
        run.phases.append(PhaseResult(name, "success", detail, duration))

    def _ingest() -> str:
        logger.info("Starting to process files in %s", cfg.paths.source_folder)
        try:
            files = source.list_files(cfg.paths.source_folder)
        except SourceEnumerationError:
            raise
        except Exception as exc:
            raise SourceEnumerationError(str(exc)) from exc
        logger.info("Found %s files to process.", len(files))
        run.ingestion = ingest_files(files, source, cfg.ingestion)
        return (
            f"processed={run.ingestion.files_processed} failed={len(run.ingestion.file_errors)} "
            f"skipped={len(run.ingestion.skipped_files)}"
        )

    def _aggregate() -> str:
        run.ledger = aggregate(run.ingestion.tallies)
        return f"identifiers={len(run.ledger)} invalid_rows={run.ledger.invalid_rows}"

    def _rank() -> str:
        run.ranked = rank_ledger(run.ledger, cfg.ranking.top_n)
        return f"ranked={len(run.ranked)} top_n={cfg.ranking.top_n}"

    def _enrich() -> str:
        catalog = lookup if lookup is not None else IsbndbClient.from_config(cfg.metadata)
        run.records = merge_metadata(run.ranked, catalog, Categorizer.from_config(cfg.categories), run.quality)
        return f"found={run.quality.found_in_metadata} missing={run.quality.missing_from_metadata}"

    def _export() -> str:
        sheets = {"Ranking": ranked_to_frame(run.ranked), "Ledger": run.ledger.to_frame()}
        run.outputs = write_report(run.records, cfg, logger, extra_sheets=sheets)
        return f"rows={len(run.records)}"

    _phase("Ingestion", _ingest)
    _phase("Aggregation", _aggregate)
    _phase("Ranking", _rank)
    _phase("Enrichment", _enrich)
    if write_outputs:
        _phase("Export", _export)

    run.finished_at = datetime.now(timezone.utc)
    write_timing_report(timings, cfg)
    if write_outputs:
        run.outputs["summary"] = write_run_summary(run.summary_payload(timings), cfg)
    return run


def _print_summary(results: Sequence[PhaseResult]) -> None:
    if not results:
        print("No phases executed.")
        return
    lines = ["Booksales pipeline summary:"]
    for result in results:
        lines.append(f"  - {result.name}: {result.status.upper()} ({result.detail})")
    print("\n".join(lines))


def build_arg_parser() -> argparse.ArgumentParser:
    """Create an argument parser for the pipeline CLI."""

    parser = argparse.ArgumentParser(description="Booksales ranked sales report")
    parser.add_argument("--config", default=None, help="Path to configuration file (defaults built in)")
    parser.add_argument("--source-dir", help="Override paths.source_dir")
    parser.add_argument("--output-dir", help="Override paths.output_dir")
    parser.add_argument("--top-n", type=int, help="Override ranking.top_n")
    parser.add_argument("--max-workers", type=int, help="Override ingestion.max_workers")
    parser.add_argument("--no-metadata", action="store_true", help="Skip the catalog lookup")
    return parser


def config_from_args(args: argparse.Namespace) -> PipelineConfig:
    raw: Dict[str, Any] = load_config(args.config) if args.config else {}
    if args.source_dir:
        raw.setdefault("paths", {})["source_dir"] = args.source_dir
    if args.output_dir:
        raw.setdefault("paths", {})["output_dir"] = args.output_dir
    if args.top_n is not None:
        raw.setdefault("ranking", {})["top_n"] = args.top_n
    if args.max_workers is not None:
        raw.setdefault("ingestion", {})["max_workers"] = args.max_workers
    if args.no_metadata:
        raw.setdefault("metadata", {})["enabled"] = False
    return load_and_validate_config(raw)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point."""

    parser = build_arg_parser()
    args = parser.parse_args(argv)
    config = config_from_args(args)
    try:
        run = run_pipeline(config)
    except PipelineError as exc:
        print(f"Pipeline failed: {exc}", file=sys.stderr)
        return 1
    _print_summary(run.phases)
    if "csv" in run.outputs:
        print(f"Report: {run.outputs['csv']}")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI guard
    sys.exit(main())

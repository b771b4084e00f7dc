"""Report output layer: CSV/XLSX report and run summary JSON.

- records_to_frame: FinalRecord sequence -> DataFrame in report column order
- write_report: persist the CSV (UTF-8 with BOM) and an optional XLSX workbook
  carrying the report plus any supporting sheets (ranking, ledger)
- write_run_summary: persist counters and timings of a run

Write failures raise; the report is the deliverable of a run.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

import pandas as pd

from ..common.config_validator import PipelineConfig
from ..enrichment import FinalRecord
from ..logging_utils import ensure_directory
from ..standards.aliases import REPORT_COLUMNS

REPORT_SHEET = "Report"


def records_to_frame(records: Iterable[FinalRecord]) -> pd.DataFrame:
    return pd.DataFrame([r.to_row() for r in records], columns=list(REPORT_COLUMNS))


def write_report(
    records: Iterable[FinalRecord],
    config: PipelineConfig,
    logger: logging.Logger,
    extra_sheets: Optional[Mapping[str, pd.DataFrame]] = None,
) -> Dict[str, Path]:
    """Write the report into ``paths.output_dir`` and return the written paths.

    ``extra_sheets`` are only written to the XLSX workbook, after the report sheet.
    """

    base = ensure_directory(Path(config.paths.output_dir).expanduser())
    frame = records_to_frame(records)
    csv_path = base / config.output.report_file_name
    frame.to_csv(csv_path, index=False, encoding="utf-8-sig")
    written = {"csv": csv_path}
    logger.info("Report with %s rows written to %s", len(frame), csv_path)

    if config.output.write_xlsx:
        xlsx_path = csv_path.with_suffix(".xlsx")
        with pd.ExcelWriter(xlsx_path, engine="openpyxl") as writer:
            frame.to_excel(writer, index=False, sheet_name=REPORT_SHEET)
            for sheet_name, sheet in (extra_sheets or {}).items():
                sheet.to_excel(writer, index=False, sheet_name=sheet_name)
        written["xlsx"] = xlsx_path
        logger.info("XLSX workbook written to %s", xlsx_path)
    return written


def write_run_summary(payload: Dict[str, object], config: PipelineConfig) -> Path:
    """Persist run metadata as JSON next to the report."""

    base = ensure_directory(Path(config.paths.output_dir).expanduser())
    summary_path = base / config.output.summary_file_name
    with open(summary_path, "w", encoding="utf-8") as stream:
        json.dump(payload, stream, indent=2, default=str)
    return summary_path

"""Logging utilities for booksales.

Centralizes logger setup and phase timing so every stage emits to:
  - the console
  - ``<logs_dir>/<file_name>`` (system log)
  - ``<logs_dir>/timing.log`` (per-phase durations, written at the end of a run)

Stage modules log through children of the ``booksales`` logger and never
configure handlers themselves.
"""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Dict, Optional

from .common.config_validator import PipelineConfig

LOGGER_NAME = "booksales"
SYSTEM_FMT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FMT = "%Y-%m-%d %H:%M:%S"


def ensure_directory(directory: str | Path) -> Path:
    """Ensure that the directory exists."""

    path = Path(directory)
    path.mkdir(parents=True, exist_ok=True)
    return path


def _safe_add_file_handler(logger: logging.Logger, path: Path, level: int) -> None:
    try:
        fh = logging.FileHandler(path, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(SYSTEM_FMT, datefmt=DATE_FMT))
        logger.addHandler(fh)
    except OSError as exc:  # pragma: no cover - FS issues
        logger.warning("Failed to attach file handler %s (%s)", str(path), exc)


def setup_logging(config: PipelineConfig) -> logging.Logger:
    """Configure the project logger with console + file handlers.

    Handlers are reset on every call so repeated runs in one process do not
    duplicate output.
    """

    logs_dir = ensure_directory(Path(config.paths.logs_dir).expanduser())
    level = getattr(logging, config.logging.level, logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers = []

    sh = logging.StreamHandler()
    sh.setLevel(level)
    sh.setFormatter(logging.Formatter(SYSTEM_FMT, datefmt=DATE_FMT))
    logger.addHandler(sh)

    log_path = logs_dir / config.logging.file_name
    _safe_add_file_handler(logger, log_path, level)
    logger.debug("Logging initialised. Logs will be written to %s", log_path)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the project logger or one of its children."""

    if not name:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def start_phase_timer(phase_name: str) -> float:
    """Start a timer for a given phase and return the perf counter."""
    return time.perf_counter()


def end_phase_timer(phase_name: str, start_time: float, timing_dict: Dict[str, float], logger: logging.Logger) -> float:
    """End timer, record to ``timing_dict`` and log the duration."""
    elapsed = time.perf_counter() - float(start_time)
    timing_dict[phase_name] = float(elapsed)
    logger.info("Phase %s completed in %.2f seconds", phase_name, elapsed)
    return elapsed


def write_timing_report(timing_dict: Dict[str, float], config: PipelineConfig) -> Path | None:
    """Write a timing breakdown to ``<logs_dir>/timing.log``.

    Returns the path to the written report, or None on error.
    """
    logs_dir = ensure_directory(Path(config.paths.logs_dir).expanduser())
    out_path = logs_dir / "timing.log"
    lines = ["---- BOOKSALES PIPELINE TIMING REPORT ----"]
    total = 0.0
    for key, val in timing_dict.items():
        total += float(val)
        lines.append(f"{key}: {float(val):.2f} seconds")
    lines.append(f"Total Duration: {total:.2f} seconds")
    try:
        out_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return out_path
    except OSError as exc:  # pragma: no cover - FS issues
        get_logger().warning("Failed to write timing report (%s): %s", str(out_path), exc)
        return None

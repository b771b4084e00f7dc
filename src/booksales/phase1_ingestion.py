"""Phase 1: ingest sales-report files from a file source into per-file tallies."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

import pandas as pd

from .common.config_validator import IngestionConfig
from .file_sources import FileDescriptor, FileSource
from .ingestion_utils import decode_file
from .ledger import FileTally
from .logging_utils import get_logger
from .normalization import fold_aliases, parse_quantity
from .standards.aliases import IDENTIFIER, QUANTITY

logger = get_logger("ingestion")


@dataclass(frozen=True)
class FileError:
    """A file that could not be processed; the run continues without it."""

    file_id: str
    file_name: str
    error: str


@dataclass
class IngestionResult:
    """Tallies of every processed file plus what was skipped or failed."""

    tallies: List[FileTally] = field(default_factory=list)
    file_errors: List[FileError] = field(default_factory=list)
    skipped_files: List[str] = field(default_factory=list)

    @property
    def files_processed(self) -> int:
        return len(self.tallies)

    def to_dict(self) -> Dict[str, object]:
        return {
            "files_processed": self.files_processed,
            "files_failed": len(self.file_errors),
            "files_skipped": len(self.skipped_files),
            "skipped_files": list(self.skipped_files),
            "file_errors": [
                {"file_id": e.file_id, "file_name": e.file_name, "error": e.error} for e in self.file_errors
            ],
            "rows": sum(t.rows for t in self.tallies),
            "invalid_identifier_rows": sum(t.invalid_identifier_rows for t in self.tallies),
            "invalid_quantity_rows": sum(t.invalid_quantity_rows for t in self.tallies),
        }


def tally_frame(frame: pd.DataFrame, source: str, headers: Optional[List[str]] = None) -> FileTally:
    """Reduce a normalized Identifier/Quantity frame to a FileTally.

    Rows with a rejected identifier, or a valid identifier but an unparseable
    quantity, are counted and excluded. Only valid rows contribute
    identifiers to the file's distinct set.
    """

    identifiers = frame[IDENTIFIER]
    quantities = frame[QUANTITY].map(parse_quantity)
    id_ok = identifiers.notna()
    qty_ok = quantities.notna()
    valid = id_ok & qty_ok

    summed = (
        pd.DataFrame({IDENTIFIER: identifiers[valid], QUANTITY: quantities[valid].astype("int64")})
        .groupby(IDENTIFIER, sort=True)[QUANTITY]
        .sum()
    )
    return FileTally(
        source=source,
        quantities={str(k): int(v) for k, v in summed.items()},
        rows=int(len(frame)),
        invalid_identifier_rows=int((~id_ok).sum()),
        invalid_quantity_rows=int((id_ok & ~qty_ok).sum()),
        headers=tuple(headers or ()),
    )


def ingest_file(
    descriptor: FileDescriptor,
    source: FileSource,
    aliases: Mapping[str, str],
    case_insensitive: bool = True,
    folded: Optional[Mapping[str, str]] = None,
) -> FileTally:
    """Download, decode and tally one file."""

    content = source.download(descriptor.id)
    headers, frame = decode_file(descriptor.name, content, aliases, case_insensitive=case_insensitive, folded=folded)
    logger.info("Parsed %s rows from %s", len(frame), descriptor.name)
    logger.debug("Fields after normalization for %s: %s", descriptor.name, headers)
    tally = tally_frame(frame, source=descriptor.id, headers=headers)
    if tally.invalid_rows:
        logger.info(
            "%s: %s rows dropped (%s invalid identifier, %s invalid quantity)",
            descriptor.name,
            tally.invalid_rows,
            tally.invalid_identifier_rows,
            tally.invalid_quantity_rows,
        )
    return tally


def ingest_files(
    files: List[FileDescriptor],
    source: FileSource,
    config: Optional[IngestionConfig] = None,
) -> IngestionResult:
    """Ingest every supported file; unsupported ones are skipped, broken ones recorded.

    With ``max_workers > 1`` files are decoded on a thread pool. Results are
    collected in input order so the folded ledger does not depend on timing.
    """

    config = config or IngestionConfig()
    aliases = config.resolved_aliases()
    folded = fold_aliases(aliases)
    allowed = set(config.allowed_extensions)
    result = IngestionResult()

    supported: List[FileDescriptor] = []
    for descriptor in files:
        if descriptor.extension in allowed:
            supported.append(descriptor)
        else:
            logger.info("Skipping unsupported file type: %s", descriptor.name)
            result.skipped_files.append(descriptor.name)

    def _process(descriptor: FileDescriptor):
        try:
            return ingest_file(descriptor, source, aliases, config.case_insensitive_headers, folded), None
        except Exception as exc:
            # one failing file never stops the run
            logger.error("Error processing file %s: %s", descriptor.name, exc)
            return None, FileError(descriptor.id, descriptor.name, str(exc))

    if config.max_workers > 1 and len(supported) > 1:
        with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
            outcomes = list(executor.map(_process, supported))
    else:
        outcomes = [_process(d) for d in supported]

    for tally, error in outcomes:
        if error is not None:
            result.file_errors.append(error)
        else:
            result.tallies.append(tally)
    return result

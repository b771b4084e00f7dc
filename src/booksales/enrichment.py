"""Merge ranked ledger entries with catalog metadata into final report records.

The merge never drops an entry: an identifier without metadata becomes a
ledger-only record whose metadata fields read ``DATA_MISSING``, while a
record that was found but has an empty field reads ``UNKNOWN`` for that
field only.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .categorizer import Categorizer
from .logging_utils import get_logger
from .metadata_client import CatalogMetadata, MetadataLookup
from .ranking import RankedEntry
from .standards.aliases import REPORT_COLUMNS
from .standards.categories import UNKNOWN_CATEGORY

logger = get_logger("enrichment")

UNKNOWN = "Unknown"
DATA_MISSING = "Data Missing"


@dataclass(frozen=True)
class FinalRecord:
    identifier: str
    total_quantity: int
    source_breadth: int
    title: str
    authors: str
    publisher: str
    category: str
    description: str
    binding: str
    subjects: str

    def to_row(self) -> Dict[str, object]:
        """Row keyed by report column names, in report column order."""
        values = (
            self.identifier,
            self.total_quantity,
            self.source_breadth,
            self.title,
            self.authors,
            self.publisher,
            self.category,
            self.description,
            self.binding,
            self.subjects,
        )
        return dict(zip(REPORT_COLUMNS, values))


@dataclass
class DataQualitySummary:
    """Counters describing metadata coverage of a run. Observability only."""

    total_ranked: int = 0
    found_in_metadata: int = 0
    missing_from_metadata: int = 0
    missing_description: int = 0
    missing_subjects: int = 0
    uncategorizable: int = 0
    lookup_failed: bool = False

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def _or_unknown(value: Optional[str]) -> str:
    if value is None:
        return UNKNOWN
    text = str(value).strip()
    return text or UNKNOWN


def _join_or_unknown(values: Optional[Iterable[object]]) -> str:
    if not values:
        return UNKNOWN
    parts = [str(v).strip() for v in values if v is not None and str(v).strip()]
    return ", ".join(parts) if parts else UNKNOWN


def ledger_only_record(entry: RankedEntry) -> FinalRecord:
    return FinalRecord(
        identifier=entry.identifier,
        total_quantity=entry.total_quantity,
        source_breadth=entry.source_breadth,
        title=DATA_MISSING,
        authors=DATA_MISSING,
        publisher=DATA_MISSING,
        category=DATA_MISSING,
        description=DATA_MISSING,
        binding=DATA_MISSING,
        subjects=DATA_MISSING,
    )


def enriched_record(entry: RankedEntry, metadata: CatalogMetadata, categorizer: Categorizer) -> FinalRecord:
    """Combine one ranked entry with its metadata; each field falls back on its own."""
    return FinalRecord(
        identifier=entry.identifier,
        total_quantity=entry.total_quantity,
        source_breadth=entry.source_breadth,
        title=_or_unknown(metadata.title),
        authors=_join_or_unknown(metadata.authors),
        publisher=_or_unknown(metadata.publisher),
        category=categorizer.categorize(metadata),
        description=_or_unknown(metadata.description or metadata.synopsis),
        binding=_or_unknown(metadata.binding),
        subjects=_join_or_unknown(metadata.subjects),
    )


def _coerce_metadata(item: object) -> Optional[CatalogMetadata]:
    if isinstance(item, CatalogMetadata):
        return item
    if isinstance(item, Mapping):
        return CatalogMetadata.from_isbndb(item)
    raise TypeError(f"Unexpected metadata item type: {type(item).__name__}")


def fetch_metadata(
    identifiers: Sequence[str],
    lookup: Optional[MetadataLookup],
    summary: Optional[DataQualitySummary] = None,
) -> Dict[str, CatalogMetadata]:
    """Run the single batched lookup and index the result by identifier.

    Any failure, including an unexpected result shape, yields an empty table.
    Records for identifiers that were not requested are ignored.
    """

    if lookup is None or not identifiers:
        return {}
    requested = set(identifiers)
    try:
        table: Dict[str, CatalogMetadata] = {}
        for item in lookup(list(identifiers)) or []:
            record = _coerce_metadata(item)
            if record is None:
                continue
            if record.identifier not in requested:
                logger.debug("Ignoring metadata for unrequested identifier %s", record.identifier)
                continue
            table.setdefault(record.identifier, record)
    except Exception as exc:
        # any lookup failure degrades to ledger-only records
        logger.error("Catalog lookup failed, falling back to ledger data: %s", exc)
        if summary is not None:
            summary.lookup_failed = True
        return {}
    return table


def merge_metadata(
    ranked: Sequence[RankedEntry],
    lookup: Optional[MetadataLookup],
    categorizer: Optional[Categorizer] = None,
    summary: Optional[DataQualitySummary] = None,
) -> List[FinalRecord]:
    """Build one FinalRecord per ranked entry, in ranked order.

    ``summary`` (when given) accumulates coverage counters; it never
    influences the records produced.
    """

    categorizer = categorizer or Categorizer.default()
    summary = summary if summary is not None else DataQualitySummary()
    table = fetch_metadata([r.identifier for r in ranked], lookup, summary)

    records: List[FinalRecord] = []
    for entry in ranked:
        summary.total_ranked += 1
        metadata = table.get(entry.identifier)
        if metadata is None:
            summary.missing_from_metadata += 1
            records.append(ledger_only_record(entry))
            continue
        record = enriched_record(entry, metadata, categorizer)
        summary.found_in_metadata += 1
        if record.description == UNKNOWN:
            summary.missing_description += 1
        if record.subjects == UNKNOWN:
            summary.missing_subjects += 1
        if record.category == UNKNOWN_CATEGORY:
            summary.uncategorizable += 1
        records.append(record)

    logger.info(
        "Metadata coverage: %s/%s found, %s missing, %s without description, %s without subjects, %s uncategorizable",
        summary.found_in_metadata,
        summary.total_ranked,
        summary.missing_from_metadata,
        summary.missing_description,
        summary.missing_subjects,
        summary.uncategorizable,
    )
    return records

"""Per-identifier sales ledger.

Each ingested file is reduced to a ``FileTally`` (quantities summed per
identifier within that file). ``Ledger.add_file`` folds a tally into the
running ledger and is the only place ``source_breadth`` is incremented, once
per distinct identifier per file. Folding is commutative over files.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

import pandas as pd

from .logging_utils import get_logger
from .normalization import is_valid_identifier

LEDGER_COLUMNS = ["Identifier", "TotalQuantity", "SourceBreadth"]


@dataclass(frozen=True)
class FileTally:
    """Normalized, summed rows of one source file."""

    source: str
    quantities: Mapping[str, int]
    rows: int = 0
    invalid_identifier_rows: int = 0
    invalid_quantity_rows: int = 0
    headers: Tuple[str, ...] = ()

    @property
    def invalid_rows(self) -> int:
        return self.invalid_identifier_rows + self.invalid_quantity_rows

    @property
    def valid_rows(self) -> int:
        return self.rows - self.invalid_rows

    @property
    def identifiers(self) -> frozenset:
        return frozenset(self.quantities)


@dataclass(frozen=True)
class LedgerEntry:
    identifier: str
    total_quantity: int
    source_breadth: int


@dataclass
class Ledger:
    """Accumulates FileTally values into one LedgerEntry per identifier."""

    _entries: Dict[str, LedgerEntry] = field(default_factory=dict)
    _sources: set = field(default_factory=set)
    rows: int = 0
    invalid_identifier_rows: int = 0
    invalid_quantity_rows: int = 0

    def add_file(self, tally: FileTally) -> None:
        """Fold one file's tally into the ledger.

        Raises ValueError when the same source is folded twice, since breadth
        counts distinct files, or when a key is not a canonical identifier.
        """
        if tally.source in self._sources:
            raise ValueError(f"Source already folded into ledger: {tally.source}")
        self._sources.add(tally.source)
        for identifier, quantity in tally.quantities.items():
            if not is_valid_identifier(identifier):
                raise ValueError(f"Non-canonical identifier {identifier!r} in {tally.source}")
            if quantity < 0:
                raise ValueError(f"Negative quantity for {identifier} in {tally.source}")
            prev = self._entries.get(identifier)
            if prev is None:
                self._entries[identifier] = LedgerEntry(identifier, int(quantity), 1)
            else:
                self._entries[identifier] = LedgerEntry(
                    identifier,
                    prev.total_quantity + int(quantity),
                    prev.source_breadth + 1,
                )
        self.rows += tally.rows
        self.invalid_identifier_rows += tally.invalid_identifier_rows
        self.invalid_quantity_rows += tally.invalid_quantity_rows

    @property
    def invalid_rows(self) -> int:
        return self.invalid_identifier_rows + self.invalid_quantity_rows

    @property
    def sources(self) -> List[str]:
        return sorted(self._sources)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._entries

    def __iter__(self) -> Iterator[LedgerEntry]:
        return iter(self.entries())

    def get(self, identifier: str) -> Optional[LedgerEntry]:
        return self._entries.get(identifier)

    def entries(self) -> List[LedgerEntry]:
        """Entries ordered by identifier."""
        return [self._entries[k] for k in sorted(self._entries)]

    def to_frame(self) -> pd.DataFrame:
        rows = [
            {"Identifier": e.identifier, "TotalQuantity": e.total_quantity, "SourceBreadth": e.source_breadth}
            for e in self.entries()
        ]
        return pd.DataFrame(rows, columns=LEDGER_COLUMNS)


def aggregate(tallies: Iterable[FileTally]) -> Ledger:
    """Fold tallies into a fresh ledger and log the totals."""

    logger = get_logger("ledger")
    ledger = Ledger()
    for tally in tallies:
        ledger.add_file(tally)
    logger.info("Processed data for %s unique identifiers across %s files", len(ledger), len(ledger.sources))
    logger.info(
        "Skipped %s invalid rows (%s invalid identifier, %s invalid quantity)",
        ledger.invalid_rows,
        ledger.invalid_identifier_rows,
        ledger.invalid_quantity_rows,
    )
    return ledger

"""Rank ledger entries by market breadth, then volume."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

import pandas as pd

from .ledger import Ledger, LedgerEntry

DEFAULT_TOP_N = 250


@dataclass(frozen=True)
class RankedEntry:
    rank: int
    identifier: str
    total_quantity: int
    source_breadth: int


def rank_key(entry: LedgerEntry):
    """Descending breadth, descending quantity, ascending identifier."""
    return (-entry.source_breadth, -entry.total_quantity, entry.identifier)


def rank_ledger(ledger: Ledger | Iterable[LedgerEntry], top_n: int = DEFAULT_TOP_N) -> List[RankedEntry]:
    """Return the first ``top_n`` entries in rank order (all of them if fewer)."""

    if top_n < 1:
        raise ValueError(f"top_n must be >= 1, got {top_n}")
    entries = ledger.entries() if isinstance(ledger, Ledger) else list(ledger)
    ordered = sorted(entries, key=rank_key)[:top_n]
    return [
        RankedEntry(rank=i, identifier=e.identifier, total_quantity=e.total_quantity, source_breadth=e.source_breadth)
        for i, e in enumerate(ordered, start=1)
    ]


def ranked_to_frame(ranked: List[RankedEntry]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"Rank": r.rank, "Identifier": r.identifier, "TotalQuantity": r.total_quantity, "SourceBreadth": r.source_breadth}
            for r in ranked
        ],
        columns=["Rank", "Identifier", "TotalQuantity", "SourceBreadth"],
    )

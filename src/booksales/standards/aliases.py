"""Header vocabulary for vendor sales reports.

The alias table is deliberately over-enumerated: vendors ship headers with
stray padding (``" GTIN"``, ``"ISBN         "``) and each variant is listed
verbatim so an exact lookup resolves it.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

IDENTIFIER = "Identifier"
QUANTITY = "Quantity"
CANONICAL_FIELDS = (IDENTIFIER, QUANTITY)

DEFAULT_HEADER_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        # Identifier variants
        "ISBN": IDENTIFIER,
        "ISBN ": IDENTIFIER,
        "ISBN         ": IDENTIFIER,
        "ISBN13": IDENTIFIER,
        "ISBN-13": IDENTIFIER,
        "ISBN_number": IDENTIFIER,
        "SKU": IDENTIFIER,
        "Ean": IDENTIFIER,
        "EAN": IDENTIFIER,
        "GTIN": IDENTIFIER,
        " GTIN": IDENTIFIER,
        "Item Code": IDENTIFIER,
        # Quantity variants
        "Net quantity": QUANTITY,
        "Qty": QUANTITY,
        "QTY": QUANTITY,
        "Count": QUANTITY,
        "Units": QUANTITY,
        "Items Sold": QUANTITY,
        "Units Sold": QUANTITY,
        "Sales": QUANTITY,
        "SALES": QUANTITY,
        "Sls": QUANTITY,
        " Sls": QUANTITY,
    }
)

# Column order of the exported report
REPORT_COLUMNS = (
    "Identifier",
    "TotalQuantity",
    "SourceBreadth",
    "Title",
    "Authors",
    "Publisher",
    "Category",
    "Description",
    "Binding",
    "Subjects",
)

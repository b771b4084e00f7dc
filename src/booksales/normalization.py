"""Header and value normalization for vendor sales reports.

- ``normalize_headers`` maps raw column names onto the canonical
  ``Identifier``/``Quantity`` fields through an explicit alias mapping.
- ``validate_identifier`` turns one raw cell into a 13-digit ISBN-shaped
  string (978/979 prefix) or None.
- ``parse_quantity`` turns one raw cell into a non-negative int or None.

All functions are pure.
"""
from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

NON_DIGIT_RX = re.compile(r"[^0-9]+")
IDENTIFIER_RX = re.compile(r"^97[89][0-9]{10}$")
EXPONENT_RX = re.compile(r"[eE]")
# Larger exponents cannot yield a 13-digit identifier
MAX_EXPONENT = 15


def _fold_header(text: object) -> str:
    return str(text).strip().casefold()


def fold_aliases(aliases: Mapping[str, str]) -> Dict[str, str]:
    """Build a trimmed, case-folded lookup from an alias mapping.

    When two raw keys fold to the same token the first one registered wins.
    """

    folded: Dict[str, str] = {}
    for raw, canonical in aliases.items():
        folded.setdefault(_fold_header(raw), canonical)
    return folded


def normalize_headers(
    headers: Iterable[object],
    aliases: Mapping[str, str],
    case_insensitive: bool = True,
    folded: Optional[Mapping[str, str]] = None,
) -> List[str]:
    """Map raw header names to canonical names, preserving length and order.

    Lookup is exact first. With ``case_insensitive`` a miss is retried on the
    trimmed, case-folded name. Unmatched names are returned verbatim, so the
    function is idempotent on already-canonical headers.
    """

    if case_insensitive and folded is None:
        folded = fold_aliases(aliases)
    out: List[str] = []
    for header in headers:
        name = "" if header is None else str(header)
        if name in aliases:
            out.append(aliases[name])
        elif case_insensitive and _fold_header(name) in folded:
            out.append(folded[_fold_header(name)])
        else:
            out.append(name)
    return out


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        # array-likes are not scalar cells
        return False


def _coerce_cell_text(value: Any) -> str:
    """Render a raw cell as text; integral floats lose their ``.0``."""

    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _expand_exponent(text: str) -> Optional[str]:
    """Re-render scientific notation without exponent or fraction.

    Returns the original text when it is not a finite decimal, and None when
    the magnitude cannot possibly hold an identifier.
    """

    try:
        number = Decimal(text.replace(",", ""))
    except InvalidOperation:
        return text
    if not number.is_finite():
        return None
    if number.adjusted() > MAX_EXPONENT:
        return None
    return str(int(number))


def validate_identifier(value: Any) -> Optional[str]:
    """Return the canonical 13-digit identifier for a raw cell, or None.

    Steps: coerce to string; expand scientific notation (spreadsheets store
    long identifiers as floats); strip every non-digit; accept exactly 13
    digits beginning with 978 or 979. No check-digit validation.
    """

    if _is_missing(value):
        return None
    text = _coerce_cell_text(value)
    if EXPONENT_RX.search(text):
        expanded = _expand_exponent(text)
        if expanded is None:
            return None
        text = expanded
    digits = NON_DIGIT_RX.sub("", text)
    if IDENTIFIER_RX.fullmatch(digits):
        return digits
    return None


def is_valid_identifier(value: Any) -> bool:
    """True when ``value`` is already a canonical identifier string."""

    return isinstance(value, str) and bool(IDENTIFIER_RX.fullmatch(value))


def parse_quantity(value: Any) -> Optional[int]:
    """Parse a sales quantity cell into a non-negative int.

    - Whitespace and thousands separators are stripped
    - Integral decimals ("5.0") are accepted
    - Fractional, negative, empty or non-numeric values return None
    """

    if _is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    text = _coerce_cell_text(value).replace(",", "").replace(" ", "")
    if not text:
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    if not number.is_finite() or number.adjusted() > MAX_EXPONENT:
        return None
    if number != number.to_integral_value() or number < 0:
        return None
    return int(number)

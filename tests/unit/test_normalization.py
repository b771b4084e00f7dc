"""Unit tests for header mapping, identifier validation and quantity parsing."""
import math

import pytest

from booksales.normalization import (
    fold_aliases,
    is_valid_identifier,
    normalize_headers,
    parse_quantity,
    validate_identifier,
)
from booksales.standards import DEFAULT_HEADER_ALIASES


def test_normalize_headers_maps_aliases_and_keeps_unknown():
    out = normalize_headers(["ISBN", "Qty", "Title"], DEFAULT_HEADER_ALIASES)
    assert out == ["Identifier", "Quantity", "Title"]


def test_normalize_headers_handles_padded_alias_keys():
    # Both the literal padded key and the trimmed fallback land on Identifier
    out = normalize_headers(["ISBN         ", " Sls"], DEFAULT_HEADER_ALIASES)
    assert out == ["Identifier", "Quantity"]


def test_normalize_headers_case_insensitive_fallback():
    out = normalize_headers(["  isbn13 ", "units sold"], DEFAULT_HEADER_ALIASES)
    assert out == ["Identifier", "Quantity"]


def test_normalize_headers_exact_only_when_disabled():
    out = normalize_headers(["isbn", "Qty"], DEFAULT_HEADER_ALIASES, case_insensitive=False)
    assert out == ["isbn", "Quantity"]


def test_normalize_headers_is_idempotent():
    once = normalize_headers(["SKU", "Units", "Publisher"], DEFAULT_HEADER_ALIASES)
    assert normalize_headers(once, DEFAULT_HEADER_ALIASES) == once


def test_normalize_headers_preserves_length_and_duplicates():
    out = normalize_headers(["ISBN", "EAN", "Qty", ""], DEFAULT_HEADER_ALIASES)
    assert out == ["Identifier", "Identifier", "Quantity", ""]


def test_fold_aliases_first_registration_wins():
    folded = fold_aliases({"Code": "Identifier", " code ": "Quantity"})
    assert folded == {"code": "Identifier"}


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("9780306406157", "9780306406157"),
        ("978-0-306-40615-7", "9780306406157"),
        (" 979 1234567890 ", "9791234567890"),
        (9780306406157, "9780306406157"),
        (9780306406157.0, "9780306406157"),
        ("9.780306406157E+12", "9780306406157"),
        ("9.780306406157e12", "9780306406157"),
    ],
)
def test_validate_identifier_accepts(raw, expected):
    assert validate_identifier(raw) == expected


def test_validate_identifier_exponent_with_truncated_mantissa():
    # The mantissa lost its last digit in the spreadsheet; expansion cannot recover
    # it, so the result differs from the true ISBN but still has identifier shape.
    assert validate_identifier("9.78030640616E+12") == "9780306406160"


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "",
        "   ",
        float("nan"),
        "12345",
        "0306406152",
        "9770306406157",
        "97803064061571",
        "ABC-DEF",
        "1E+400",
        "inf",
    ],
)
def test_validate_identifier_rejects(raw):
    assert validate_identifier(raw) is None


def test_is_valid_identifier():
    assert is_valid_identifier("9780306406157")
    assert not is_valid_identifier("978-0306406157")
    assert not is_valid_identifier(9780306406157)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("5", 5),
        (" 12 ", 12),
        ("1,234", 1234),
        ("5.0", 5),
        (7, 7),
        (3.0, 3),
        ("0", 0),
    ],
)
def test_parse_quantity_accepts(raw, expected):
    assert parse_quantity(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "abc", "2.5", "-3", -1, math.nan, True, "NaN"])
def test_parse_quantity_rejects(raw):
    assert parse_quantity(raw) is None

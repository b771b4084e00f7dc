"""Unit tests for ledger folding."""
import itertools

import pytest

from booksales.ledger import FileTally, Ledger, aggregate

X = "9780306406157"
Y = "9791234567896"
Z = "9780000000002"


def _tally(source, quantities, **counters):
    return FileTally(source=source, quantities=quantities, **counters)


def test_add_file_sums_quantity_and_counts_breadth_once_per_file():
    ledger = Ledger()
    ledger.add_file(_tally("a.csv", {X: 5}, rows=2))
    ledger.add_file(_tally("b.xlsx", {X: 5, Y: 1}, rows=2))

    assert ledger.get(X).total_quantity == 10
    assert ledger.get(X).source_breadth == 2
    assert ledger.get(Y).source_breadth == 1
    assert ledger.rows == 4
    assert len(ledger) == 2
    assert X in ledger and Z not in ledger


def test_zero_quantity_still_counts_toward_breadth():
    ledger = aggregate([_tally("a.csv", {X: 0}), _tally("b.csv", {X: 4})])
    entry = ledger.get(X)
    assert entry.total_quantity == 4
    assert entry.source_breadth == 2


def test_folding_order_does_not_change_ledger():
    tallies = [
        _tally("a.csv", {X: 3, Y: 1}),
        _tally("b.csv", {X: 2}),
        _tally("c.csv", {Z: 9, Y: 4}),
    ]
    expected = aggregate(tallies).entries()
    for perm in itertools.permutations(tallies):
        assert aggregate(perm).entries() == expected


def test_same_source_cannot_be_folded_twice():
    ledger = Ledger()
    ledger.add_file(_tally("a.csv", {X: 1}))
    with pytest.raises(ValueError):
        ledger.add_file(_tally("a.csv", {Y: 1}))


def test_negative_quantity_rejected():
    with pytest.raises(ValueError):
        Ledger().add_file(_tally("a.csv", {X: -1}))


def test_invalid_row_counters_accumulate():
    ledger = aggregate(
        [
            _tally("a.csv", {X: 1}, rows=4, invalid_identifier_rows=2, invalid_quantity_rows=1),
            _tally("b.csv", {}, rows=1, invalid_identifier_rows=1),
        ]
    )
    assert ledger.invalid_identifier_rows == 3
    assert ledger.invalid_quantity_rows == 1
    assert ledger.invalid_rows == 4
    assert ledger.sources == ["a.csv", "b.csv"]


def test_file_tally_properties():
    tally = _tally("a.csv", {X: 2, Y: 3}, rows=5, invalid_identifier_rows=1, invalid_quantity_rows=1)
    assert tally.valid_rows == 3
    assert tally.identifiers == frozenset({X, Y})


def test_to_frame_columns_and_order():
    frame = aggregate([_tally("a.csv", {Y: 1, X: 2})]).to_frame()
    assert list(frame.columns) == ["Identifier", "TotalQuantity", "SourceBreadth"]
    assert frame["Identifier"].tolist() == [X, Y]


def test_non_canonical_identifier_rejected():
    with pytest.raises(ValueError):
        Ledger().add_file(_tally("a.csv", {"978-0306406157": 1}))

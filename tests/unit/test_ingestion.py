"""Unit tests for file decoding and per-file tallies."""
from io import BytesIO

import pandas as pd
import pytest

from booksales.common.config_validator import IngestionConfig
from booksales.errors import FileDecodeError, MissingColumnsError
from booksales.file_sources import FileDescriptor
from booksales.ingestion_utils import decode_file, read_csv_bytes
from booksales.phase1_ingestion import ingest_files, tally_frame
from booksales.standards import DEFAULT_HEADER_ALIASES

X = "9780306406157"
Y = "9791234567896"


def _xlsx_bytes(rows, columns) -> bytes:
    buffer = BytesIO()
    pd.DataFrame(rows, columns=columns).to_excel(buffer, index=False)
    return buffer.getvalue()


class MemorySource:
    """File source over an in-memory dict of name -> bytes."""

    def __init__(self, files):
        self.files = files
        self.downloads = []

    def list_files(self, folder_id="."):
        return [FileDescriptor(id=name, name=name) for name in sorted(self.files)]

    def download(self, file_id):
        self.downloads.append(file_id)
        return self.files[file_id]


def test_decode_csv_maps_headers_and_validates_identifiers():
    content = f"ISBN,Qty,Title\n{X},3,A\nnot-an-isbn,1,B\n".encode()
    headers, frame = decode_file("sales.csv", content, DEFAULT_HEADER_ALIASES)
    assert headers == ["Identifier", "Quantity", "Title"]
    assert frame["Identifier"].tolist() == [X, None]
    assert frame["Quantity"].tolist() == ["3", "1"]


def test_decode_csv_keeps_leading_zeros_and_handles_bom_and_cp1252():
    content = "\ufeffEAN;Units;Note\n9780306406157;2;café\n".encode("utf-8")
    headers, frame = decode_file("a.csv", content, DEFAULT_HEADER_ALIASES)
    assert headers[:2] == ["Identifier", "Quantity"]
    assert frame["Identifier"].tolist() == [X]

    legacy = "ISBN,Qty,Note\n9780306406157,2,café\n".encode("cp1252")
    _, frame = decode_file("b.csv", legacy, DEFAULT_HEADER_ALIASES)
    assert frame["Identifier"].tolist() == [X]


def test_decode_xlsx_maps_rows_by_position():
    content = _xlsx_bytes([[X, 5], [9791234567896, 2]], ["SKU", "Units"])
    headers, frame = decode_file("report.xlsx", content, DEFAULT_HEADER_ALIASES)
    assert headers == ["Identifier", "Quantity"]
    assert frame["Identifier"].tolist() == [X, Y]
    assert [int(q) for q in frame["Quantity"].tolist()] == [5, 2]


def test_missing_quantity_column_raises():
    content = f"ISBN,Title\n{X},A\n".encode()
    with pytest.raises(MissingColumnsError) as excinfo:
        decode_file("noqty.csv", content, DEFAULT_HEADER_ALIASES)
    assert excinfo.value.missing == ["Quantity"]


def test_duplicate_canonical_column_first_wins():
    content = f"ISBN,EAN,Qty\n{X},{Y},4\n".encode()
    _, frame = decode_file("dupe.csv", content, DEFAULT_HEADER_ALIASES)
    assert frame["Identifier"].tolist() == [X]


def test_empty_csv_yields_no_rows():
    headers, frame = read_csv_bytes(b"")
    assert headers == [] and frame.empty
    headers, frame = decode_file("empty.csv", b"  \n", DEFAULT_HEADER_ALIASES)
    assert headers == []
    assert frame.empty


def test_bom_only_csv_is_empty():
    headers, frame = decode_file("bom.csv", b"\xef\xbb\xbf", DEFAULT_HEADER_ALIASES)
    assert headers == []
    assert frame.empty


def test_all_empty_rows_are_dropped():
    content = f"ISBN,Qty\n{X},1\n,\n,\n".encode()
    _, frame = decode_file("gaps.csv", content, DEFAULT_HEADER_ALIASES)
    assert len(frame) == 1


def test_unsupported_extension_raises():
    with pytest.raises(FileDecodeError):
        decode_file("notes.txt", b"ISBN,Qty\n", DEFAULT_HEADER_ALIASES)


def test_tally_frame_sums_and_counts_invalid_rows():
    frame = pd.DataFrame(
        {
            "Identifier": [X, X, None, Y, Y],
            "Quantity": ["3", "2", "9", "abc", "1.5"],
        }
    )
    tally = tally_frame(frame, source="a.csv")
    assert dict(tally.quantities) == {X: 5}
    assert tally.rows == 5
    assert tally.invalid_identifier_rows == 1
    assert tally.invalid_quantity_rows == 2
    # an identifier whose every row was invalid does not count toward breadth
    assert Y not in tally.identifiers


def test_ingest_files_skips_unsupported_and_records_broken_files():
    source = MemorySource(
        {
            "good.csv": f"ISBN,Qty\n{X},3\n{X},2\n".encode(),
            "broken.csv": b"Title,Price\nA,1\n",
            "readme.pdf": b"%PDF",
        }
    )
    result = ingest_files(source.list_files(), source, IngestionConfig())

    assert result.files_processed == 1
    assert result.tallies[0].quantities == {X: 5}
    assert [e.file_name for e in result.file_errors] == ["broken.csv"]
    assert result.skipped_files == ["readme.pdf"]
    assert "readme.pdf" not in source.downloads
    assert result.to_dict()["files_failed"] == 1


def test_ingest_files_parallel_matches_serial():
    files = {f"f{i}.csv": f"ISBN,Qty\n{X},{i}\n{Y},1\n".encode() for i in range(6)}
    serial = ingest_files(MemorySource(files).list_files(), MemorySource(files), IngestionConfig())
    parallel = ingest_files(MemorySource(files).list_files(), MemorySource(files), IngestionConfig(max_workers=4))
    assert [t.source for t in parallel.tallies] == [t.source for t in serial.tallies]
    assert [t.quantities for t in parallel.tallies] == [t.quantities for t in serial.tallies]


def test_ingest_files_uses_configured_aliases():
    source = MemorySource({"custom.csv": f"Book Code,Sold\n{X},7\n".encode()})
    config = IngestionConfig(header_aliases={"Book Code": "Identifier", "Sold": "Quantity"})
    result = ingest_files(source.list_files(), source, config)
    assert result.tallies[0].quantities == {X: 7}


def test_download_failure_is_recorded_per_file():
    class FailingSource(MemorySource):
        def download(self, file_id):
            if file_id == "b.csv":
                raise RuntimeError("remote store returned 500")
            return super().download(file_id)

    source = FailingSource(
        {
            "a.csv": f"ISBN,Qty\n{X},3\n".encode(),
            "b.csv": f"ISBN,Qty\n{Y},1\n".encode(),
        }
    )
    result = ingest_files(source.list_files(), source, IngestionConfig(max_workers=2))

    assert [t.source for t in result.tallies] == ["a.csv"]
    assert [(e.file_name, e.error) for e in result.file_errors] == [("b.csv", "remote store returned 500")]

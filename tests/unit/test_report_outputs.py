"""Unit tests for report export."""
import json

import pandas as pd

from booksales.common.config_validator import load_and_validate_config
from booksales.enrichment import merge_metadata
from booksales.logging_utils import get_logger
from booksales.output import records_to_frame, write_report, write_run_summary
from booksales.ranking import RankedEntry


def _records():
    return merge_metadata([RankedEntry(1, "9780306406157", 10, 2)], None)


def _config(tmp_path, **output):
    return load_and_validate_config(
        {"paths": {"output_dir": str(tmp_path / "out"), "logs_dir": str(tmp_path / "logs")}, "output": output}
    )


def test_records_to_frame_empty_keeps_columns():
    frame = records_to_frame([])
    assert frame.empty
    assert len(frame.columns) == 10


def test_write_report_csv_header_and_row(tmp_path):
    written = write_report(_records(), _config(tmp_path), get_logger("test"))

    assert set(written) == {"csv"}
    raw = written["csv"].read_bytes()
    assert raw.startswith(b"\xef\xbb\xbf")
    lines = raw.decode("utf-8-sig").splitlines()
    assert lines[0] == "Identifier,TotalQuantity,SourceBreadth,Title,Authors,Publisher,Category,Description,Binding,Subjects"
    assert lines[1].startswith("9780306406157,10,2,Data Missing")


def test_write_report_xlsx_with_extra_sheets(tmp_path):
    config = _config(tmp_path, write_xlsx=True)
    ranking = pd.DataFrame([{"Rank": 1, "Identifier": "9780306406157"}])
    written = write_report(_records(), config, get_logger("test"), extra_sheets={"Ranking": ranking})

    sheets = pd.read_excel(written["xlsx"], sheet_name=None, dtype=str)
    assert list(sheets) == ["Report", "Ranking"]
    assert sheets["Report"].loc[0, "Category"] == "Data Missing"
    assert sheets["Ranking"].loc[0, "Identifier"] == "9780306406157"


def test_write_run_summary(tmp_path):
    path = write_run_summary({"ranked": 1}, _config(tmp_path))
    assert json.loads(path.read_text(encoding="utf-8")) == {"ranked": 1}

"""Decoders turning raw file bytes into normalized Identifier/Quantity frames."""
from __future__ import annotations

import io
from pathlib import Path
from typing import List, Mapping, Optional, Tuple

import pandas as pd

from .errors import FileDecodeError, MissingColumnsError
from .logging_utils import get_logger
from .normalization import normalize_headers, validate_identifier
from .standards.aliases import IDENTIFIER, QUANTITY

CSV_EXTENSIONS = {".csv"}
EXCEL_EXTENSIONS = {".xlsx", ".xls"}
CSV_ENCODINGS = ("utf-8-sig", "cp1252")
UTF8_BOM = b"\xef\xbb\xbf"

logger = get_logger("ingestion")


def _read_csv_text(content: bytes, encoding: str) -> pd.DataFrame:
    # Let pandas infer the separator; fall back to comma when sniffing fails
    try:
        return pd.read_csv(io.BytesIO(content), dtype=str, sep=None, engine="python", encoding=encoding)
    except UnicodeDecodeError:
        raise
    except Exception:
        return pd.read_csv(io.BytesIO(content), dtype=str, sep=",", engine="python", encoding=encoding)


def read_csv_bytes(content: bytes, name: str = "<csv>") -> Tuple[List[str], pd.DataFrame]:
    """Decode CSV bytes into (raw headers, string frame).

    - UTF-8 (with or without BOM) first, then cp1252
    - dtype=str so identifiers are never coerced to floats
    """

    if not content.removeprefix(UTF8_BOM).strip():
        return [], pd.DataFrame()
    last_exc: Optional[Exception] = None
    for encoding in CSV_ENCODINGS:
        try:
            df = _read_csv_text(content, encoding)
            return [str(c) for c in df.columns], df
        except UnicodeDecodeError as exc:
            last_exc = exc
            continue
        except Exception as exc:
            raise FileDecodeError(f"Failed to read delimited file {name}: {exc}") from exc
    raise FileDecodeError(f"Failed to decode {name}: {last_exc}")


def read_excel_bytes(content: bytes, name: str = "<excel>") -> Tuple[List[str], pd.DataFrame]:
    """Decode the first worksheet: row one is the header, later rows map by position."""

    try:
        sheet = pd.read_excel(io.BytesIO(content), sheet_name=0, header=None, dtype=object)
    except Exception as exc:
        raise FileDecodeError(f"Failed to read Excel file {name}: {exc}") from exc
    if sheet.empty:
        return [], pd.DataFrame()
    headers = ["" if pd.isna(h) else str(h) for h in sheet.iloc[0].tolist()]
    body = sheet.iloc[1:].reset_index(drop=True)
    body.columns = range(len(headers))
    return headers, body


def select_canonical_columns(
    frame: pd.DataFrame,
    headers: List[str],
    canonical: List[str],
    name: str,
) -> pd.DataFrame:
    """Pick canonical columns by position; the first occurrence of a duplicate wins."""

    positions = {}
    for idx, header in enumerate(canonical):
        if header in (IDENTIFIER, QUANTITY):
            if header in positions:
                logger.warning("%s: duplicate %s column '%s' ignored", name, header, headers[idx])
                continue
            positions[header] = idx
    missing = [c for c in (IDENTIFIER, QUANTITY) if c not in positions]
    if missing:
        raise MissingColumnsError(name, missing, headers)
    return pd.DataFrame(
        {
            IDENTIFIER: frame.iloc[:, positions[IDENTIFIER]].tolist(),
            QUANTITY: frame.iloc[:, positions[QUANTITY]].tolist(),
        }
    )


def decode_file(
    name: str,
    content: bytes,
    aliases: Mapping[str, str],
    case_insensitive: bool = True,
    folded: Optional[Mapping[str, str]] = None,
) -> Tuple[List[str], pd.DataFrame]:
    """Decode one file into its normalized headers and an Identifier/Quantity frame.

    The Identifier column holds validated identifiers (None when rejected);
    Quantity keeps the raw cell values.
    """

    ext = Path(name).suffix.lower()
    if ext in CSV_EXTENSIONS:
        headers, raw = read_csv_bytes(content, name)
    elif ext in EXCEL_EXTENSIONS:
        headers, raw = read_excel_bytes(content, name)
    else:
        raise FileDecodeError(f"Unsupported input file extension for {name}")

    canonical = normalize_headers(headers, aliases, case_insensitive=case_insensitive, folded=folded)
    if not headers:
        return canonical, pd.DataFrame(columns=[IDENTIFIER, QUANTITY])

    raw = raw.dropna(how="all")
    normalized = select_canonical_columns(raw, headers, canonical, name)
    # object dtype keeps rejected identifiers as None under string-inferring pandas
    normalized[IDENTIFIER] = pd.Series(
        [validate_identifier(v) for v in normalized[IDENTIFIER].tolist()],
        index=normalized.index,
        dtype=object,
    )
    return canonical, normalized

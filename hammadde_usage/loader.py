"""
loader.py — spreadsheet and delimited-text reader for hammadde-usage

Supports: .csv .tsv .txt .xlsx .xlsm .xls .ods, from a path or raw bytes.

Public API:
    table   = load_table("path/to/report.xlsx")
    records = table.records

Every record is a dict keyed by header label, with one extra field,
"Dosya Adı", holding the source file name. Title rows above the detected
header are kept in table.preamble so the sales processor can read a
report period out of them.
"""

from __future__ import annotations

import csv
import io
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

import chardet
import pandas as pd

from hammadde_usage.columns import SOURCE_FILE_FIELD
from hammadde_usage.config import DEFAULT_SETTINGS, Settings
from hammadde_usage.parsing import (
    extract_date_range,
    is_blank,
    normalize_scalar,
    parse_amount,
    stringify,
    to_iso_date,
)

logger = logging.getLogger(__name__)

# ── Format groups ──────────────────────────────────────────────────────────────
TEXT_FORMATS = {".csv", ".tsv", ".txt"}
EXCEL_FORMATS = {".xlsx", ".xlsm", ".xls"}
ODS_FORMATS = {".ods"}
ALL_FORMATS = TEXT_FORMATS | EXCEL_FORMATS | ODS_FORMATS


class TabularReadError(ValueError):
    pass


@dataclass
class TabularTable:
    records: list[dict[str, Any]]
    file_name: str
    sheet_name: Optional[str] = None
    preamble: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    header_row: int = 0

    @property
    def columns(self) -> list[str]:
        if not self.records:
            return []
        return [key for key in self.records[0] if key != SOURCE_FILE_FIELD]


# ══════════════════════════════════════════════════════════════════════════════
# ENCODING DETECTION
# ══════════════════════════════════════════════════════════════════════════════

def _detect_encoding(raw: bytes) -> str:
    result = chardet.detect(raw)
    detected = result.get("encoding") or "utf-8"
    logger.debug("Detected encoding %s (confidence %.2f)", detected, result.get("confidence") or 0.0)
    return detected


def _read_text_safely(raw: bytes, preferred_encoding: str) -> str:
    """
    Decode raw bytes line-by-line.

    Strategy per line:
      1. Try UTF-8
      2. Try preferred_encoding (chardet result)
      3. Try cp1254 (Turkish Windows exports)
      4. latin-1, which never fails

    Embedded null bytes are stripped.
    """
    decoded_lines: list[str] = []
    for raw_line in raw.split(b"\n"):
        decoded: str | None = None
        for enc in ("utf-8", preferred_encoding, "cp1254"):
            try:
                decoded = raw_line.decode(enc)
                break
            except (LookupError, UnicodeDecodeError):
                continue
        if decoded is None:
            decoded = raw_line.decode("latin-1")
        decoded_lines.append(decoded.replace("\x00", ""))
    return "\n".join(decoded_lines)


# ══════════════════════════════════════════════════════════════════════════════
# DELIMITER DETECTION
# ══════════════════════════════════════════════════════════════════════════════

def _detect_delimiter(text: str) -> str:
    """
    Infer the delimiter from sample lines.

    csv.Sniffer first; otherwise each candidate is scored by column-count
    consistency and width. Turkish exports commonly use ';'.
    """
    sample_lines = [line for line in text.splitlines() if line.strip()][:50]
    sample = "\n".join(sample_lines[:25])

    if sample:
        try:
            return csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
        except csv.Error:
            pass

    best_delim = ","
    best_score = float("-inf")
    for delim in (",", ";", "\t", "|"):
        rows = [
            row
            for row in csv.reader(io.StringIO("\n".join(sample_lines)), delimiter=delim)
            if any(cell.strip() for cell in row)
        ]
        if len(rows) < 2:
            continue
        mode_width, mode_count = Counter(len(row) for row in rows).most_common(1)[0]
        score = mode_width * 2.0 + (mode_count / len(rows)) * mode_width
        if mode_width == 1:
            score -= 10.0
        if score > best_score:
            best_score = score
            best_delim = delim
    return best_delim


# ══════════════════════════════════════════════════════════════════════════════
# HEADER DETECTION
# ══════════════════════════════════════════════════════════════════════════════

def _is_data_like(value: Any) -> bool:
    if isinstance(value, (datetime, date)):
        return True
    if parse_amount(value) is not None:
        return True
    return isinstance(value, str) and to_iso_date(value) is not None


def _looks_like_header_row(row: list[Any]) -> bool:
    non_empty = [cell for cell in row if not is_blank(cell)]
    if len(non_empty) < 2:
        return False
    if sum(1 for cell in non_empty if len(stringify(cell)) > 60) >= 2:
        return False
    # Report titles carry the period ("01.03.2025 - 31.03.2025"); labels never do.
    if any(isinstance(cell, str) and extract_date_range(cell) is not None for cell in non_empty):
        return False
    return sum(1 for cell in non_empty if _is_data_like(cell)) < 2


def detect_header_row_index(rows: list[list[Any]], max_scan: int = DEFAULT_SETTINGS.max_header_scan_rows) -> int:
    """
    First header-like row within the scan window whose next non-blank row
    holds data. Failing that, the first header-like row with any row after
    it, else 0.
    """
    candidates = [
        idx for idx, row in enumerate(rows[:max_scan]) if idx < len(rows) - 1 and _looks_like_header_row(row)
    ]
    for idx in candidates:
        following = next((row for row in rows[idx + 1:] if not all(is_blank(cell) for cell in row)), None)
        if following is not None and any(_is_data_like(cell) for cell in following):
            return idx
    return candidates[0] if candidates else 0


def _header_labels(row: list[Any]) -> list[str]:
    labels: list[str] = []
    seen: Counter = Counter()
    for position, cell in enumerate(row, start=1):
        label = stringify(cell) or f"Column {position}"
        seen[label] += 1
        if seen[label] > 1:
            label = f"{label}_{seen[label]}"
        labels.append(label)
    return labels


def _rows_to_table(
    rows: list[list[Any]],
    file_name: str,
    sheet_name: Optional[str],
    settings: Settings,
    warnings: list[str],
) -> TabularTable:
    rows = [[normalize_scalar(cell) for cell in row] for row in rows]
    while rows and all(is_blank(cell) for cell in rows[-1]):
        rows.pop()
    if not rows:
        raise TabularReadError(f"No data found in {file_name}")

    header_idx = detect_header_row_index(rows, settings.max_header_scan_rows)
    preamble = [
        " ".join(stringify(cell) for cell in row if not is_blank(cell))
        for row in rows[:header_idx]
        if any(not is_blank(cell) for cell in row)
    ]
    if header_idx:
        logger.debug("Header found on row %d of %s", header_idx + 1, file_name)

    width = max(len(row) for row in rows)
    labels = _header_labels(rows[header_idx] + [None] * (width - len(rows[header_idx])))

    records: list[dict[str, Any]] = []
    for row in rows[header_idx + 1:]:
        if all(is_blank(cell) for cell in row):
            continue
        padded = row + [None] * (width - len(row))
        record = dict(zip(labels, padded))
        record[SOURCE_FILE_FIELD] = file_name
        records.append(record)

    if not records:
        raise TabularReadError(f"No data found in {file_name}: only a header row was detected")

    logger.info("Loaded %d rows from %s", len(records), file_name)
    return TabularTable(
        records=records,
        file_name=file_name,
        sheet_name=sheet_name,
        preamble=preamble,
        warnings=warnings,
        header_row=header_idx,
    )


# ══════════════════════════════════════════════════════════════════════════════
# FORMAT LOADERS
# ══════════════════════════════════════════════════════════════════════════════

def _load_text(raw: bytes, suffix: str, file_name: str, settings: Settings) -> TabularTable:
    text = _read_text_safely(raw, _detect_encoding(raw))
    if text.startswith("\ufeff"):
        text = text[1:]
    delimiter = "\t" if suffix == ".tsv" else _detect_delimiter(text)
    rows = [row for row in csv.reader(io.StringIO(text), delimiter=delimiter)]
    return _rows_to_table(rows, file_name, None, settings, [])


def _require_engine(suffix: str) -> Optional[str]:
    if suffix == ".xls":
        try:
            import xlrd  # noqa: F401
        except ImportError:
            raise ImportError(".xls files require xlrd — run: pip install xlrd")
        return "xlrd"
    if suffix == ".ods":
        try:
            import odf  # noqa: F401
        except ImportError:
            raise ImportError(".ods files require odfpy — run: pip install odfpy")
        return "odf"
    return "openpyxl"


def _load_workbook(
    raw: bytes,
    suffix: str,
    file_name: str,
    sheet_name: Optional[str],
    settings: Settings,
) -> TabularTable:
    engine = _require_engine(suffix)
    warnings: list[str] = []
    try:
        with pd.ExcelFile(io.BytesIO(raw), engine=engine) as xf:
            all_sheets = list(xf.sheet_names)
            if not all_sheets:
                raise TabularReadError("Excel file has no sheets")
            if sheet_name is None:
                chosen = all_sheets[0]
                if len(all_sheets) > 1:
                    warnings.append(
                        f"Multiple sheets found ({len(all_sheets)} total); "
                        f"used '{chosen}'. Ignored: {all_sheets[1:]}"
                    )
            elif sheet_name in all_sheets:
                chosen = sheet_name
            else:
                raise TabularReadError(f"Sheet '{sheet_name}' not found. Available: {all_sheets}")
            frame = pd.read_excel(xf, sheet_name=chosen, header=None, dtype=object)
    except TabularReadError:
        raise
    except Exception as exc:
        raise TabularReadError(f"Could not open workbook {file_name}: {exc}") from exc

    rows = frame.astype(object).values.tolist()
    return _rows_to_table(rows, file_name, chosen, settings, warnings)


# ══════════════════════════════════════════════════════════════════════════════
# PUBLIC API
# ══════════════════════════════════════════════════════════════════════════════

def load_table(
    source: "str | Path | bytes",
    file_name: Optional[str] = None,
    sheet_name: Optional[str] = None,
    settings: Settings = DEFAULT_SETTINGS,
) -> TabularTable:
    """
    Load a spreadsheet or delimited text file into header-keyed records.

    Args:
        source:     a filesystem path, or the raw file bytes.
        file_name:  required with bytes; its extension selects the format and
                    it becomes the "Dosya Adı" value. Defaults to the path name.
        sheet_name: for workbooks, the sheet to read. Defaults to the first.

    Raises:
        FileNotFoundError  if a path does not exist.
        TabularReadError   for empty input, unsupported formats, missing
                           sheets or tables without data rows.
        ImportError        if the optional engine for .xls/.ods is missing.
    """
    if isinstance(source, (bytes, bytearray)):
        if not file_name:
            raise TabularReadError("file_name is required when loading from bytes")
        raw = bytes(source)
    else:
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        file_name = file_name or path.name
        raw = path.read_bytes()

    if not raw:
        raise TabularReadError(f"File is empty: {file_name}")

    suffix = Path(file_name).suffix.lower()
    if suffix not in ALL_FORMATS:
        supported = ", ".join(sorted(ALL_FORMATS))
        raise TabularReadError(f"Unsupported format '{suffix}'. Supported: {supported}")

    if suffix in TEXT_FORMATS:
        return _load_text(raw, suffix, file_name, settings)
    return _load_workbook(raw, suffix, file_name, sheet_name, settings)

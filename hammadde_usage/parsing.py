from __future__ import annotations

import calendar
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

import pandas as pd

SENTINEL_NULLS = {"", "na", "n/a", "none", "null", "nil", "nan", "-"}

NUMBER_RE = re.compile(r"[+-]?\d+(?:\.\d+)?")
ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})")
DAY_FIRST_DATE_RE = re.compile(r"^(\d{1,2})[./-](\d{1,2})[./-](\d{4})")
DATE_RANGE_RE = re.compile(
    r"(\d{1,2})[./-](\d{1,2})[./-](\d{4})\s*[-—–]\s*(\d{1,2})[./-](\d{1,2})[./-](\d{4})"
)

# Spreadsheet serials outside this window are treated as plain numbers.
EXCEL_SERIAL_MIN = 1
EXCEL_SERIAL_MAX = 2958465


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    @property
    def start_iso(self) -> str:
        return self.start.isoformat()

    @property
    def end_iso(self) -> str:
        return self.end.isoformat()


def normalize_scalar(value: Any) -> Any:
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        if pd.isna(value):
            return None
        if value.tzinfo is not None:
            value = value.tz_convert(None)
        return value.to_pydatetime()
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, str):
        return value.replace("\x00", "")
    return value


def is_blank(value: Any) -> bool:
    normalized = normalize_scalar(value)
    if normalized is None:
        return True
    if isinstance(normalized, str):
        return not normalized.strip()
    return False


def stringify(value: Any) -> str:
    normalized = normalize_scalar(value)
    if normalized is None:
        return ""
    if isinstance(normalized, datetime):
        return normalized.isoformat(sep=" ")
    if isinstance(normalized, float) and normalized.is_integer():
        return str(int(normalized))
    return str(normalized).strip()


def parse_amount(value: Any) -> float | None:
    """
    Parse a quantity cell, treating a comma as the decimal separator.

    Returns None for blanks, booleans and anything that is not a plain number.
    "1.250,5" style thousands grouping is accepted when both separators appear.
    """
    if isinstance(value, bool):
        return None
    normalized = normalize_scalar(value)
    if normalized is None:
        return None
    if isinstance(normalized, (int, float)):
        number = float(normalized)
        return number if math.isfinite(number) else None

    text = str(normalized).strip().replace(" ", "")
    if text.lower() in SENTINEL_NULLS:
        return None
    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    else:
        text = text.replace(",", ".")

    if not NUMBER_RE.fullmatch(text):
        return None
    return float(text)


def coerce_quantity(value: Any) -> float:
    """Parse a quantity and clamp it to a finite, non-negative float."""
    number = parse_amount(value)
    if number is None or not math.isfinite(number) or number < 0:
        return 0.0
    return number


def excel_serial_to_date(serial: float) -> date | None:
    if not EXCEL_SERIAL_MIN <= serial <= EXCEL_SERIAL_MAX:
        return None
    try:
        return pd.to_datetime(serial, unit="D", origin="1899-12-30").date()
    except (ValueError, OverflowError):
        return None


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def to_iso_date(value: Any) -> str | None:
    """
    Convert a supply date cell to YYYY-MM-DD.

    Accepts datetime/date objects, spreadsheet serial numbers, ISO text and
    day-first text such as 03.02.2025. Anything else gives None.
    """
    if isinstance(value, bool):
        return None
    normalized = normalize_scalar(value)
    if normalized is None:
        return None
    if isinstance(normalized, datetime):
        return normalized.date().isoformat()
    if isinstance(normalized, date):
        return normalized.isoformat()
    if isinstance(normalized, (int, float)):
        parsed = excel_serial_to_date(float(normalized))
        return parsed.isoformat() if parsed else None

    text = str(normalized).strip()
    match = ISO_DATE_RE.match(text)
    if match:
        parsed = _safe_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        return parsed.isoformat() if parsed else None
    match = DAY_FIRST_DATE_RE.match(text)
    if match:
        parsed = _safe_date(int(match.group(3)), int(match.group(2)), int(match.group(1)))
        return parsed.isoformat() if parsed else None
    serial = parse_amount(text)
    if serial is not None:
        parsed = excel_serial_to_date(serial)
        return parsed.isoformat() if parsed else None
    return None


def extract_date_range(text: Any) -> DateRange | None:
    """Find a "D.M.YYYY - D.M.YYYY" range anywhere in ``text``."""
    match = DATE_RANGE_RE.search(stringify(text))
    if not match:
        return None
    day1, month1, year1, day2, month2, year2 = (int(part) for part in match.groups())
    start = _safe_date(year1, month1, day1)
    end = _safe_date(year2, month2, day2)
    if start is None or end is None:
        return None
    return DateRange(start, end)


def current_month_range(today: date | None = None) -> DateRange:
    today = today or date.today()
    last_day = calendar.monthrange(today.year, today.month)[1]
    return DateRange(today.replace(day=1), today.replace(day=last_day))

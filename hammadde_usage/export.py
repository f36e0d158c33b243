"""
export.py — CSV downloads of the detailed results and the branch summary

Headers are Turkish and numbers use tr-TR formatting ("1.234,5"), matching
what branch managers see in the web view.
"""

from __future__ import annotations

import csv
import io
import math
from pathlib import Path
from typing import Sequence

from hammadde_usage.models import BranchLevelResult, BranchSummary

RESULT_HEADERS = (
    "Şube",
    "Hammadde",
    "Birim",
    "Alınan Miktar (HAVI Şube)",
    "Hesaplanan Kullanım (POS Şube)",
    "Fark",
    "Fark (%)",
)

SUMMARY_HEADERS = (
    "Şube",
    "İl",
    "Toplam Kalem",
    "Fazla Kullanım (Adet)",
    "Fazla Sipariş (Adet)",
    "Yakın Eşleşme (Adet)",
    "Toplam Eksik (gr)",
    "Toplam Fazla (gr)",
    "Toplam Eksik (adet)",
    "Toplam Fazla (adet)",
    "Karşılaştırılamayan",
)

NOT_AVAILABLE = "N/A"
NO_PERCENT = "-"
UNKNOWN_PROVINCE = "Bilinmiyor"

DETAIL_FILE_NAME = "hammadde_analizi_detayli.csv"
SUMMARY_FILE_NAME = "hammadde_analizi_sube_ozeti.csv"


def format_number(value: float | None, digits: int = 2) -> str:
    """tr-TR grouping with at most `digits` fraction digits: 1234.5 -> "1.234,5"."""
    if value is None or not math.isfinite(value):
        return NOT_AVAILABLE
    rounded = round(value, digits)
    if rounded == 0:
        rounded = 0.0
    text = f"{abs(rounded):,.{digits}f}"
    if digits:
        text = text.rstrip("0").rstrip(".")
    text = text.replace(",", "\x00").replace(".", ",").replace("\x00", ".")
    return f"-{text}" if rounded < 0 else text


def format_percent(value: float | None) -> str:
    if value is None or not math.isfinite(value):
        return NO_PERCENT
    return f"{value:.1f}".replace(".", ",") + "%"


def _write_rows(headers: Sequence[str], rows: list[list]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue()


def results_to_csv(results: Sequence[BranchLevelResult]) -> str:
    rows = []
    for item in results:
        rows.append(
            [
                item.branch,
                item.resource,
                item.unit,
                format_number(item.supplied),
                format_number(item.demand),
                format_number(item.difference) if item.comparable else NOT_AVAILABLE,
                format_percent(item.difference_percent) if item.comparable else NOT_AVAILABLE,
            ]
        )
    return _write_rows(RESULT_HEADERS, rows)


def summaries_to_csv(summaries: Sequence[BranchSummary]) -> str:
    rows = []
    for item in summaries:
        rows.append(
            [
                item.branch,
                item.province or UNKNOWN_PROVINCE,
                item.total_items,
                item.deficit_count,
                item.surplus_count,
                item.near_match_count,
                format_number(item.total_deficit_gr),
                format_number(item.total_surplus_gr),
                format_number(item.total_deficit_adet, 0),
                format_number(item.total_surplus_adet, 0),
                item.incomparable_unit_count,
            ]
        )
    return _write_rows(SUMMARY_HEADERS, rows)


def write_csv(path: str | Path, content: str) -> Path:
    """Write with a BOM so spreadsheet apps pick up UTF-8 for Turkish letters."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8-sig")
    return path

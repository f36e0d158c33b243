"""
sales.py — point-of-sale (AktifPOS) sales reports to SalesEntry rows

A POS export covers one period. The period is read from a title cell above
the header ("01.03.2025 - 31.03.2025"), then from the source file name, and
falls back to the current calendar month.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable, Mapping, Sequence

from hammadde_usage.columns import (
    ROLE_AMOUNT,
    ROLE_BRANCH,
    ROLE_PRODUCT,
    SALES_PROFILE,
    SOURCE_FILE_FIELD,
    infer_columns,
    required_roles,
)
from hammadde_usage.config import DEFAULT_SETTINGS, Settings
from hammadde_usage.models import ProcessResult, SalesEntry
from hammadde_usage.normalizer import DEFAULT_NORMALIZER, NameNormalizer, strip_branch_prefix
from hammadde_usage.parsing import DateRange, coerce_quantity, current_month_range, extract_date_range, stringify

logger = logging.getLogger(__name__)


def resolve_sales_period(
    records: Sequence[Mapping[str, Any]],
    preamble: Iterable[str] = (),
    today: date | None = None,
) -> tuple[DateRange, str]:
    """Return the report period and where it came from: "sheet", "filename" or "default"."""
    for line in preamble:
        found = extract_date_range(line)
        if found is not None:
            return found, "sheet"
    if records:
        found = extract_date_range(records[0].get(SOURCE_FILE_FIELD))
        if found is not None:
            return found, "filename"
    return current_month_range(today), "default"


def aggregate_sales(entries: Sequence[SalesEntry]) -> list[SalesEntry]:
    totals: dict[tuple[str, str], SalesEntry] = {}
    for entry in entries:
        key = (entry.branch, entry.product)
        existing = totals.get(key)
        if existing is None:
            totals[key] = entry
        else:
            totals[key] = SalesEntry(
                date=existing.date,
                branch=existing.branch,
                product=existing.product,
                amount=existing.amount + entry.amount,
                end_date=existing.end_date,
            )
    return list(totals.values())


def process_sales_records(
    records: Sequence[Mapping[str, Any]],
    preamble: Iterable[str] = (),
    settings: Settings = DEFAULT_SETTINGS,
    normalizer: NameNormalizer = DEFAULT_NORMALIZER,
    today: date | None = None,
) -> ProcessResult:
    if not records:
        return ProcessResult(entries=[], warnings=["Sales report has no data rows."])

    mapping = infer_columns(records, SALES_PROFILE, settings)
    missing = mapping.missing(required_roles(SALES_PROFILE))
    if missing:
        message = f"Could not identify required sales columns: {', '.join(missing)}"
        logger.warning(message)
        return ProcessResult(entries=[], warnings=mapping.warnings + [message])

    period, period_source = resolve_sales_period(records, preamble, today)
    warnings = list(mapping.warnings)
    if period_source == "default":
        warnings.append(
            f"No date range found in the sheet or file name; using {period.start_iso} to {period.end_iso}."
        )
    logger.info("Sales period %s to %s (from %s)", period.start_iso, period.end_iso, period_source)

    stats = {"rows_in": len(records), "skipped": 0, "renamed_products": 0}
    rows: list[SalesEntry] = []
    for record in records:
        raw_product = stringify(record.get(mapping.get(ROLE_PRODUCT)))
        raw_branch = stringify(record.get(mapping.get(ROLE_BRANCH)))
        if not raw_product or not raw_branch:
            stats["skipped"] += 1
            continue

        product = normalizer.normalize_product_name(raw_product)
        if product != raw_product:
            stats["renamed_products"] += 1
        rows.append(
            SalesEntry(
                date=period.start_iso,
                branch=strip_branch_prefix(raw_branch),
                product=product,
                amount=coerce_quantity(record.get(mapping.get(ROLE_AMOUNT))),
                end_date=period.end_iso,
            )
        )

    entries = aggregate_sales(rows)
    stats["entries"] = len(entries)
    logger.info("Sales processing: %s", stats)
    return ProcessResult(entries=entries, warnings=warnings, stats=stats)

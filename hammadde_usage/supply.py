"""
supply.py — central-supply (HAVI) delivery reports to SupplyEntry rows

Only descriptions that match the resource table are tracked; everything else
on the delivery report is dropped. Each kept line becomes
packages x per-package quantity, and lines sharing
(date, branch, resource, unit) are summed.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Mapping, Sequence

from hammadde_usage.columns import (
    ROLE_AMOUNT,
    ROLE_BRANCH,
    ROLE_DATE,
    ROLE_PRODUCT,
    SUPPLY_PROFILE,
    infer_columns,
    required_roles,
)
from hammadde_usage.config import DEFAULT_SETTINGS, Settings
from hammadde_usage.models import ProcessResult, SupplyEntry, SupplySummaryRow, normalize_unit
from hammadde_usage.normalizer import DEFAULT_NORMALIZER, NameNormalizer, strip_branch_prefix
from hammadde_usage.parsing import coerce_quantity, stringify, to_iso_date
from hammadde_usage.units import extract_package_quantity

logger = logging.getLogger(__name__)

UNKNOWN_BRANCH = "Unknown"


def aggregate_supply(entries: Sequence[SupplyEntry]) -> list[SupplyEntry]:
    totals: dict[tuple, SupplyEntry] = {}
    for entry in entries:
        key = (entry.date, entry.branch, entry.resource, entry.unit)
        existing = totals.get(key)
        if existing is None:
            totals[key] = entry
            continue
        totals[key] = SupplyEntry(
            date=entry.date,
            branch=entry.branch,
            resource=entry.resource,
            total_amount=existing.total_amount + entry.total_amount,
            unit=entry.unit,
            packages=existing.packages + entry.packages,
            order_count=existing.order_count + entry.order_count,
        )
    return list(totals.values())


def process_supply_records(
    records: Sequence[Mapping[str, Any]],
    settings: Settings = DEFAULT_SETTINGS,
    normalizer: NameNormalizer = DEFAULT_NORMALIZER,
) -> ProcessResult:
    if not records:
        return ProcessResult(entries=[], warnings=["Supply report has no data rows."])

    mapping = infer_columns(records, SUPPLY_PROFILE, settings)
    missing = mapping.missing(required_roles(SUPPLY_PROFILE))
    if missing:
        message = f"Could not identify required supply columns: {', '.join(missing)}"
        logger.warning(message)
        return ProcessResult(entries=[], warnings=mapping.warnings + [message])

    stats = {"rows_in": len(records), "untracked": 0, "missing_product": 0, "missing_date": 0}
    raw_entries: list[SupplyEntry] = []

    for record in records:
        description = stringify(record.get(mapping.get(ROLE_PRODUCT)))
        if not description:
            stats["missing_product"] += 1
            continue
        resource = normalizer.match_resource(description)
        if resource is None:
            stats["untracked"] += 1
            continue

        invoice_date = to_iso_date(record.get(mapping.get(ROLE_DATE)))
        if invoice_date is None:
            stats["missing_date"] += 1
        branch = strip_branch_prefix(stringify(record.get(mapping.get(ROLE_BRANCH)))) or UNKNOWN_BRANCH
        packages = coerce_quantity(record.get(mapping.get(ROLE_AMOUNT)))
        package = extract_package_quantity(description, packages)

        raw_entries.append(
            SupplyEntry(
                date=invoice_date,
                branch=branch,
                resource=resource,
                total_amount=packages * package.base_quantity,
                unit=normalize_unit(package.unit),
                packages=packages,
            )
        )

    entries = aggregate_supply(raw_entries)
    stats["tracked_rows"] = len(raw_entries)
    stats["entries"] = len(entries)
    warnings = list(mapping.warnings)
    if stats["missing_date"]:
        warnings.append(f"{stats['missing_date']} supply rows have no readable invoice date.")
    logger.info("Supply processing: %s", stats)
    return ProcessResult(entries=entries, warnings=warnings, stats=stats)


def summarize_supply(entries: Sequence[SupplyEntry]) -> list[SupplySummaryRow]:
    """Roll supply up per branch, resource and date with an order count."""
    grouped: dict[tuple, list[SupplyEntry]] = defaultdict(list)
    for entry in entries:
        grouped[(entry.branch, entry.resource, entry.date)].append(entry)

    rows = []
    for (branch, resource, invoice_date), items in grouped.items():
        rows.append(
            SupplySummaryRow(
                branch=branch,
                resource=resource,
                date=invoice_date,
                amount=sum(item.total_amount for item in items),
                unit=items[0].unit,
                order_count=sum(item.order_count for item in items),
            )
        )
    return rows

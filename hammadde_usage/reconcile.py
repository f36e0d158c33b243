"""
reconcile.py — supply vs. recipe-derived demand, per branch and raw material

Demand for a (ingredient, branch) pair is the sum over sold products of
recipe amount x units sold. Supply for the same pair is the sum of delivered
quantities. Both maps share one key: the upper-cased ingredient name and the
normalized branch name, so "CHL izmir_alsancak cafe" on the delivery report
and "İzmir Alsancak" on the POS export land on the same row.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from hammadde_usage.config import DEFAULT_SETTINGS, Settings
from hammadde_usage.models import (
    COMPARABLE_UNITS,
    UNIT_COUNT,
    UNIT_GRAM,
    UNIT_UNKNOWN,
    BranchLevelResult,
    BranchSummary,
    IngredientTotal,
    RecipeEntry,
    SalesEntry,
    SupplyEntry,
    normalize_unit,
)
from hammadde_usage.normalizer import (
    DEFAULT_NORMALIZER,
    NameNormalizer,
    ingredient_key,
    is_count_family,
    province_for_branch,
    turkish_sort_key,
)
from hammadde_usage.recipe import recipe_map

logger = logging.getLogger(__name__)

DEFICIT = "deficit"
SURPLUS = "surplus"
NEAR_MATCH = "near_match"
INCOMPARABLE = "incomparable"

DATASET_NAMES = ("recipe", "supply", "sales")

SORT_COLUMNS = (
    "branch",
    "resource",
    "unit",
    "supplied",
    "demand",
    "difference",
    "difference_percent",
    "province",
)


@dataclass
class _Quantity:
    amount: float = 0.0
    unit: str | None = None


@dataclass
class AnalysisOutcome:
    results: list[BranchLevelResult] = field(default_factory=list)
    summaries: list[BranchSummary] = field(default_factory=list)
    branches: list[str] = field(default_factory=list)
    resources: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return not self.missing and self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [item.to_dict() for item in self.results],
            "summaries": [item.to_dict() for item in self.summaries],
            "branches": list(self.branches),
            "resources": list(self.resources),
            "missing": list(self.missing),
            "error": self.error,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# PER-BRANCH RESULTS
# ═══════════════════════════════════════════════════════════════════════════════

def _difference_percent(supplied: float, difference: float) -> float | None:
    if supplied == 0:
        return None
    percent = difference / supplied * 100
    return percent if math.isfinite(percent) else None


def _resolve_unit(supply_unit: str | None, demand_unit: str | None, display_name: str) -> str:
    unit = supply_unit or demand_unit or UNIT_UNKNOWN
    unit = normalize_unit(unit, default=UNIT_UNKNOWN)
    if is_count_family(display_name):
        unit = UNIT_COUNT
    return unit


def _default_order(result: BranchLevelResult) -> tuple:
    percent = result.difference_percent
    magnitude = -abs(percent) if percent is not None else math.inf
    return (magnitude, turkish_sort_key(result.branch), turkish_sort_key(result.resource))


def reconcile(
    recipes: Sequence[RecipeEntry],
    supply: Sequence[SupplyEntry],
    sales: Sequence[SalesEntry],
    normalizer: NameNormalizer | None = None,
) -> list[BranchLevelResult]:
    normalizer = normalizer or DEFAULT_NORMALIZER
    by_product = recipe_map(recipes)

    demand: dict[tuple[str, str], _Quantity] = defaultdict(_Quantity)
    for sale in sales:
        branch = normalizer.normalize_branch_name(sale.branch)
        for item in by_product.get(sale.product, ()):
            slot = demand[(ingredient_key(item.ingredient), branch)]
            slot.amount += item.amount * sale.amount
            slot.unit = item.unit

    supplied: dict[tuple[str, str], _Quantity] = defaultdict(_Quantity)
    for delivery in supply:
        branch = normalizer.normalize_branch_name(delivery.branch)
        slot = supplied[(ingredient_key(delivery.resource), branch)]
        slot.amount += delivery.total_amount
        slot.unit = delivery.unit

    display_names: dict[str, str] = {}
    for item in recipes:
        display_names.setdefault(ingredient_key(item.ingredient), item.ingredient)
    for delivery in supply:
        display_names.setdefault(ingredient_key(delivery.resource), delivery.resource)

    results = []
    for key in dict.fromkeys([*demand, *supplied]):
        name_key, branch = key
        display_name = display_names.get(name_key, name_key)
        demand_slot = demand.get(key)
        supply_slot = supplied.get(key)
        supplied_amount = supply_slot.amount if supply_slot else 0.0
        demand_amount = demand_slot.amount if demand_slot else 0.0
        unit = _resolve_unit(
            supply_slot.unit if supply_slot else None,
            demand_slot.unit if demand_slot else None,
            display_name,
        )

        difference = None
        percent = None
        if unit in COMPARABLE_UNITS:
            difference = supplied_amount - demand_amount
            percent = _difference_percent(supplied_amount, difference)

        results.append(
            BranchLevelResult(
                branch=branch,
                resource=display_name,
                unit=unit,
                supplied=supplied_amount,
                demand=demand_amount,
                difference=difference,
                difference_percent=percent,
                province=province_for_branch(branch),
            )
        )

    results.sort(key=_default_order)
    logger.info(
        "Reconciled %d rows (%d demand keys, %d supply keys)",
        len(results),
        len(demand),
        len(supplied),
    )
    return results


def classify_result(result: BranchLevelResult, threshold: float = DEFAULT_SETTINGS.near_match_threshold) -> str:
    if not result.comparable or result.difference is None:
        return INCOMPARABLE
    percent = result.difference_percent
    if percent is not None:
        if percent <= -threshold:
            return DEFICIT
        if percent >= threshold:
            return SURPLUS
        return NEAR_MATCH
    # No percentage (nothing supplied): fall back to the sign of the difference.
    if result.difference < 0:
        return DEFICIT
    if result.difference > 0:
        return SURPLUS
    return NEAR_MATCH


# ═══════════════════════════════════════════════════════════════════════════════
# SUMMARIES
# ═══════════════════════════════════════════════════════════════════════════════

def summarize_branches(
    results: Sequence[BranchLevelResult],
    threshold: float = DEFAULT_SETTINGS.near_match_threshold,
) -> list[BranchSummary]:
    summaries: dict[str, BranchSummary] = {}
    for result in results:
        summary = summaries.get(result.branch)
        if summary is None:
            summary = summaries[result.branch] = BranchSummary(branch=result.branch, province=result.province)
        summary.total_items += 1

        verdict = classify_result(result, threshold)
        if verdict == INCOMPARABLE:
            summary.incomparable_unit_count += 1
        elif verdict == NEAR_MATCH:
            summary.near_match_count += 1
        elif verdict == DEFICIT:
            summary.deficit_count += 1
            if result.unit == UNIT_GRAM:
                summary.total_deficit_gr += result.difference
            else:
                summary.total_deficit_adet += result.difference
        else:
            summary.surplus_count += 1
            if result.unit == UNIT_GRAM:
                summary.total_surplus_gr += result.difference
            else:
                summary.total_surplus_adet += result.difference

    return sorted(summaries.values(), key=lambda item: turkish_sort_key(item.branch))


def ingredient_totals(recipes: Sequence[RecipeEntry], sales: Sequence[SalesEntry]) -> list[IngredientTotal]:
    """Recipe demand per ingredient summed over every branch."""
    by_product = recipe_map(recipes)
    totals: dict[str, list] = {}
    for sale in sales:
        for item in by_product.get(sale.product, ()):
            slot = totals.setdefault(ingredient_key(item.ingredient), [item.ingredient, 0.0, item.unit])
            slot[1] += item.amount * sale.amount

    rows = [
        IngredientTotal(ingredient=name, total_amount=amount, unit=UNIT_COUNT if is_count_family(name) else unit)
        for name, amount, unit in totals.values()
    ]
    rows.sort(key=lambda item: (-item.total_amount, turkish_sort_key(item.ingredient)))
    return rows


# ═══════════════════════════════════════════════════════════════════════════════
# FILTERING / SORTING
# ═══════════════════════════════════════════════════════════════════════════════

def filter_results(
    results: Sequence[BranchLevelResult],
    province: str | None = None,
    branch: str | None = None,
    resource: str | None = None,
) -> list[BranchLevelResult]:
    selected = list(results)
    if province:
        selected = [item for item in selected if item.province == province]
    if branch:
        selected = [item for item in selected if item.branch == branch]
    if resource:
        selected = [item for item in selected if item.resource == resource]
    return selected


def _column_key(column: str) -> Callable[[BranchLevelResult], Any]:
    if column in ("branch", "resource", "unit", "province"):
        return lambda item: turkish_sort_key(getattr(item, column) or "")
    return lambda item: getattr(item, column)


def sort_results(
    results: Sequence[BranchLevelResult],
    column: str = "difference_percent",
    descending: bool = False,
) -> list[BranchLevelResult]:
    """Sort by one column. Rows with no value for it stay at the end either way."""
    if column not in SORT_COLUMNS:
        raise ValueError(f"Unknown sort column: {column}")
    key = _column_key(column)
    present = [item for item in results if getattr(item, column) is not None]
    absent = [item for item in results if getattr(item, column) is None]
    return sorted(present, key=key, reverse=descending) + absent


def unique_values(results: Sequence[BranchLevelResult], column: str) -> list[str]:
    values = {getattr(item, column) for item in results if getattr(item, column)}
    return sorted(values, key=turkish_sort_key)


# ═══════════════════════════════════════════════════════════════════════════════
# ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════════════

def analyse_project(
    recipes: Sequence[RecipeEntry],
    supply: Sequence[SupplyEntry],
    sales: Sequence[SalesEntry],
    settings: Settings = DEFAULT_SETTINGS,
    normalizer: NameNormalizer | None = None,
) -> AnalysisOutcome:
    missing = [name for name, rows in zip(DATASET_NAMES, (recipes, supply, sales)) if not rows]
    if missing:
        logger.warning("Analysis skipped, missing datasets: %s", ", ".join(missing))
        return AnalysisOutcome(missing=missing)

    try:
        results = reconcile(recipes, supply, sales, normalizer)
        summaries = summarize_branches(results, settings.near_match_threshold)
    except Exception as exc:
        logger.exception("Analysis failed")
        return AnalysisOutcome(error=f"Analysis failed: {exc}")

    return AnalysisOutcome(
        results=results,
        summaries=summaries,
        branches=unique_values(results, "branch"),
        resources=unique_values(results, "resource"),
    )

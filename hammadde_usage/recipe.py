"""
recipe.py — recipe bill-of-materials sheets to RecipeEntry rows

Recipe sheets list a product once and leave the product cell blank on the
ingredient rows under it. The carry-forward is a fold: RecipeFold holds the
last non-empty product seen so far, and fold_recipe_row() returns the next
state for one record.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, replace
from functools import reduce
from typing import Any, Mapping, Sequence

from hammadde_usage.columns import (
    RECIPE_PROFILE,
    ROLE_AMOUNT,
    ROLE_INGREDIENT,
    ROLE_PRODUCT,
    ROLE_UNIT,
    ColumnMapping,
    infer_columns,
    required_roles,
)
from hammadde_usage.config import DEFAULT_SETTINGS, Settings
from hammadde_usage.models import ProcessResult, RecipeEntry, normalize_unit
from hammadde_usage.parsing import is_blank, parse_amount, stringify

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecipeFold:
    current_product: str | None = None
    entries: tuple[RecipeEntry, ...] = ()
    skipped: int = 0


def fold_recipe_row(state: RecipeFold, record: Mapping[str, Any], mapping: ColumnMapping) -> RecipeFold:
    product_cell = record.get(mapping.get(ROLE_PRODUCT)) if mapping.get(ROLE_PRODUCT) else None
    if not is_blank(product_cell):
        state = replace(state, current_product=stringify(product_cell))

    ingredient = stringify(record.get(mapping.get(ROLE_INGREDIENT)))
    amount_cell = record.get(mapping.get(ROLE_AMOUNT))
    if not ingredient or not state.current_product or is_blank(amount_cell):
        return state

    amount = parse_amount(amount_cell)
    if amount is None:
        logger.warning(
            "Skipping recipe row for %s: invalid amount %r for ingredient %r",
            state.current_product,
            amount_cell,
            ingredient,
        )
        return replace(state, skipped=state.skipped + 1)

    unit_column = mapping.get(ROLE_UNIT)
    unit = normalize_unit(record.get(unit_column) if unit_column else None)
    entry = RecipeEntry(product=state.current_product, ingredient=ingredient, amount=amount, unit=unit)
    return replace(state, entries=state.entries + (entry,))


def process_recipe_records(
    records: Sequence[Mapping[str, Any]],
    settings: Settings = DEFAULT_SETTINGS,
) -> ProcessResult:
    if not records:
        return ProcessResult(entries=[], warnings=["Recipe sheet has no data rows."])

    mapping = infer_columns(records, RECIPE_PROFILE, settings)
    missing = mapping.missing(required_roles(RECIPE_PROFILE))
    if missing:
        message = f"Could not identify required recipe columns: {', '.join(missing)}"
        logger.warning(message)
        return ProcessResult(entries=[], warnings=mapping.warnings + [message])

    final = reduce(lambda state, record: fold_recipe_row(state, record, mapping), records, RecipeFold())
    stats = {
        "rows_in": len(records),
        "entries": len(final.entries),
        "invalid_amounts": final.skipped,
    }
    logger.info("Recipe processing: %s", stats)
    return ProcessResult(entries=list(final.entries), warnings=list(mapping.warnings), stats=stats)


def recipe_map(entries: Sequence[RecipeEntry]) -> dict[str, list[RecipeEntry]]:
    """Group recipe rows by product, keeping sheet order."""
    grouped: dict[str, list[RecipeEntry]] = defaultdict(list)
    for entry in entries:
        grouped[entry.product].append(entry)
    return dict(grouped)


def recipe_ingredients(entries: Sequence[RecipeEntry]) -> list[str]:
    """Distinct ingredient names in first-seen order."""
    seen: dict[str, None] = {}
    for entry in entries:
        seen.setdefault(entry.ingredient, None)
    return list(seen)

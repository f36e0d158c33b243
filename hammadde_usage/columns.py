"""
columns.py — find which column holds which role in a decoded sheet

Inference order per role:
    1. exact header match against known synonyms (case-insensitive)
    2. header contains a synonym token (or every token of a token group)
    3. content shape over the first sampled rows, for roles that allow it
    4. column position, for profiles that allow it (recipe sheets)

A column is assigned to at most one role. Unresolved roles stay None and the
caller decides whether that is fatal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from hammadde_usage.config import DEFAULT_SETTINGS, Settings
from hammadde_usage.parsing import is_blank, normalize_scalar, parse_amount
from hammadde_usage.tables import fold_lower

logger = logging.getLogger(__name__)

SOURCE_FILE_FIELD = "Dosya Adı"

ROLE_BRANCH = "branch"
ROLE_PRODUCT = "product"
ROLE_INGREDIENT = "ingredient"
ROLE_AMOUNT = "amount"
ROLE_UNIT = "unit"
ROLE_DATE = "date"
ROLE_INVOICE_NUMBER = "invoice_number"

SHAPE_BRANCH = "branch"
SHAPE_PRODUCT = "product"
SHAPE_AMOUNT = "amount"


@dataclass(frozen=True)
class RoleRule:
    role: str
    exact: tuple[str, ...] = ()
    # Each token group matches when every token in it appears in the header.
    contains: tuple[tuple[str, ...], ...] = ()
    shape: str | None = None
    required: bool = True


@dataclass(frozen=True)
class ColumnProfile:
    name: str
    rules: tuple[RoleRule, ...]
    positional_fallback: bool = False


@dataclass
class ColumnMapping:
    roles: dict[str, str | None]
    methods: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    def get(self, role: str) -> str | None:
        return self.roles.get(role)

    def missing(self, required: Sequence[str]) -> list[str]:
        return [role for role in required if not self.roles.get(role)]

    def to_dict(self) -> dict[str, Any]:
        return {"roles": dict(self.roles), "methods": dict(self.methods), "warnings": list(self.warnings)}


SALES_PROFILE = ColumnProfile(
    name="sales",
    rules=(
        RoleRule(
            ROLE_BRANCH,
            exact=("şube", "sube", "branch", "mağaza", "magaza", "location", "store"),
            contains=(("şube",), ("sube",), ("branch",), ("mağaza",), ("magaza",), ("location",), ("store",)),
            shape=SHAPE_BRANCH,
        ),
        RoleRule(
            ROLE_PRODUCT,
            exact=("ürün", "urun", "product", "ürün adı", "urun adi", "item"),
            contains=(("ürün",), ("urun",), ("product",), ("item",)),
            shape=SHAPE_PRODUCT,
        ),
        RoleRule(
            ROLE_AMOUNT,
            exact=("miktar", "adet", "amount", "quantity", "qty", "satış adedi", "satis adedi", "satış", "satis"),
            contains=(("miktar",), ("adet",), ("amount",), ("qty",), ("quantity",), ("satış",), ("satis",)),
            shape=SHAPE_AMOUNT,
        ),
    ),
)

SUPPLY_PROFILE = ColumnProfile(
    name="supply",
    rules=(
        RoleRule(
            ROLE_DATE,
            exact=("invoice date", "invoice-date", "fatura tarihi"),
            contains=(("fatura", "tarih"), ("invoice", "date")),
        ),
        RoleRule(
            ROLE_BRANCH,
            exact=("cust-desc",),
            contains=(("müşteri",), ("musteri",), ("şube",), ("sube",)),
            shape=SHAPE_BRANCH,
        ),
        RoleRule(
            ROLE_PRODUCT,
            exact=("adfc-desc",),
            contains=(("ürün",), ("urun",), ("malzeme",)),
            shape=SHAPE_PRODUCT,
        ),
        RoleRule(
            ROLE_AMOUNT,
            exact=("faturadaki miktar",),
            contains=(("miktar",), ("amount",)),
            shape=SHAPE_AMOUNT,
        ),
        RoleRule(
            ROLE_INVOICE_NUMBER,
            exact=("invoice nr", "fatura no"),
            contains=(("fatura", "no"), ("invoice", "nr")),
            required=False,
        ),
    ),
)

RECIPE_PROFILE = ColumnProfile(
    name="recipe",
    rules=(
        RoleRule(ROLE_PRODUCT, exact=("ürün", "urun", "product"), contains=(("ürün",), ("urun",))),
        RoleRule(
            ROLE_INGREDIENT,
            exact=("hammadde", "malzeme", "ingredient"),
            contains=(("hammadde",), ("malzeme",), ("ingredient",)),
        ),
        RoleRule(ROLE_AMOUNT, exact=("miktar", "amount"), contains=(("miktar",), ("amount",))),
        RoleRule(ROLE_UNIT, exact=("birim", "unit"), contains=(("birim",), ("unit",)), required=False),
    ),
    positional_fallback=True,
)


def header_key(label: Any) -> str:
    return fold_lower(str(label)).strip()


def candidate_columns(records: Sequence[Mapping[str, Any]]) -> list[str]:
    if not records:
        return []
    return [str(label) for label in records[0].keys() if label != SOURCE_FILE_FIELD]


def required_roles(profile: ColumnProfile) -> list[str]:
    return [rule.role for rule in profile.rules if rule.required]


def _exact_match(rule: RoleRule, columns: list[str], taken: set[str]) -> str | None:
    wanted = {header_key(name) for name in rule.exact}
    for column in columns:
        if column not in taken and header_key(column) in wanted:
            return column
    return None


def _contains_match(rule: RoleRule, columns: list[str], taken: set[str]) -> str | None:
    for column in columns:
        if column in taken:
            continue
        key = header_key(column)
        for group in rule.contains:
            if all(header_key(token) in key for token in group):
                return column
    return None


def sample_values(records: Sequence[Mapping[str, Any]], column: str, limit: int) -> list[Any]:
    values = []
    for record in records[:limit]:
        value = normalize_scalar(record.get(column))
        if not is_blank(value):
            values.append(value)
    return values


def column_shape(values: list[Any], settings: Settings = DEFAULT_SETTINGS) -> set[str]:
    """Return the content shapes a sampled column is compatible with."""
    if not values:
        return set()
    shapes: set[str] = set()
    if all(parse_amount(value) is not None for value in values):
        shapes.add(SHAPE_AMOUNT)
        return shapes
    if all(isinstance(value, str) for value in values):
        ratio = len({value.strip() for value in values}) / len(values)
        if ratio < settings.branch_distinct_ratio_max:
            shapes.add(SHAPE_BRANCH)
        if ratio > settings.product_distinct_ratio_min:
            shapes.add(SHAPE_PRODUCT)
    return shapes


def infer_columns(
    records: Sequence[Mapping[str, Any]],
    profile: ColumnProfile,
    settings: Settings = DEFAULT_SETTINGS,
) -> ColumnMapping:
    columns = candidate_columns(records)
    mapping = ColumnMapping(roles={rule.role: None for rule in profile.rules})
    taken: set[str] = set()

    for matcher, method in ((_exact_match, "exact"), (_contains_match, "contains")):
        for rule in profile.rules:
            if mapping.roles[rule.role] is not None:
                continue
            column = matcher(rule, columns, taken)
            if column is not None:
                mapping.roles[rule.role] = column
                mapping.methods[rule.role] = method
                taken.add(column)

    pending = [rule for rule in profile.rules if mapping.roles[rule.role] is None and rule.shape]
    if pending:
        for column in columns:
            if column in taken:
                continue
            shapes = column_shape(sample_values(records, column, settings.sample_rows), settings)
            for rule in pending:
                if mapping.roles[rule.role] is None and rule.shape in shapes:
                    mapping.roles[rule.role] = column
                    mapping.methods[rule.role] = "content"
                    taken.add(column)
                    break

    if profile.positional_fallback:
        unresolved = [rule.role for rule in profile.rules if mapping.roles[rule.role] is None]
        if unresolved:
            for index, rule in enumerate(profile.rules):
                if mapping.roles[rule.role] is not None or index >= len(columns):
                    continue
                column = columns[index]
                if column in taken:
                    continue
                mapping.roles[rule.role] = column
                mapping.methods[rule.role] = "position"
                taken.add(column)
            message = f"{profile.name} columns identified by position for: {', '.join(unresolved)}"
            mapping.warnings.append(message)
            logger.warning(message)

    logger.info("%s column mapping: %s", profile.name, mapping.roles)
    return mapping

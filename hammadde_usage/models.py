"""Entity records shared by the source processors, the store and the aggregator."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Mapping

UNIT_GRAM = "gr"
UNIT_COUNT = "adet"
UNIT_UNKNOWN = "unknown"
COMPARABLE_UNITS = (UNIT_GRAM, UNIT_COUNT)


def normalize_unit(raw: Any, default: str = UNIT_GRAM) -> str:
    text = str(raw).strip() if raw is not None else ""
    if not text:
        return default
    if text.lower() == "gram":
        return UNIT_GRAM
    return text


def _from_mapping(cls, payload: Mapping[str, Any]):
    names = {item.name for item in fields(cls)}
    return cls(**{key: value for key, value in payload.items() if key in names})


@dataclass(frozen=True)
class RecipeEntry:
    product: str
    ingredient: str
    amount: float
    unit: str = UNIT_GRAM

    def as_normalized(self) -> dict[str, Any]:
        return {
            "branch": None,
            "product": self.product,
            "ingredient": self.ingredient,
            "quantity": self.amount,
            "unit": self.unit,
            "date": None,
        }

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "RecipeEntry":
        return _from_mapping(cls, payload)


@dataclass(frozen=True)
class SupplyEntry:
    date: str | None
    branch: str
    resource: str
    total_amount: float
    unit: str
    packages: float = 0.0
    order_count: int = 1

    def as_normalized(self) -> dict[str, Any]:
        return {
            "branch": self.branch,
            "product": None,
            "ingredient": self.resource,
            "quantity": self.total_amount,
            "unit": self.unit,
            "date": self.date,
        }

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "SupplyEntry":
        return _from_mapping(cls, payload)


@dataclass(frozen=True)
class SalesEntry:
    date: str
    branch: str
    product: str
    amount: float
    end_date: str | None = None

    def as_normalized(self) -> dict[str, Any]:
        return {
            "branch": self.branch,
            "product": self.product,
            "ingredient": None,
            "quantity": self.amount,
            "unit": UNIT_COUNT,
            "date": self.date,
        }

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "SalesEntry":
        return _from_mapping(cls, payload)


@dataclass
class ProcessResult:
    entries: list
    warnings: list[str] = field(default_factory=list)
    stats: dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return bool(self.entries)


@dataclass(frozen=True)
class BranchLevelResult:
    branch: str
    resource: str
    unit: str
    supplied: float
    demand: float
    difference: float | None
    difference_percent: float | None
    province: str | None

    @property
    def comparable(self) -> bool:
        return self.unit in COMPARABLE_UNITS

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class BranchSummary:
    branch: str
    province: str | None
    total_items: int = 0
    deficit_count: int = 0
    surplus_count: int = 0
    near_match_count: int = 0
    incomparable_unit_count: int = 0
    total_deficit_gr: float = 0.0
    total_surplus_gr: float = 0.0
    total_deficit_adet: float = 0.0
    total_surplus_adet: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class IngredientTotal:
    ingredient: str
    total_amount: float
    unit: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SupplySummaryRow:
    branch: str
    resource: str
    date: str | None
    amount: float
    unit: str
    order_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

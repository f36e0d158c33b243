"""
units.py — per-package quantity from free-text supply descriptions

Supply lines state a package count and hide the package size inside the
description ("LABNE 2,750 KG", "MONIN-FINDIK SURUP 700 ML", "KREP KIRIGI
750 GR X 8 AD"). extract_package_quantity() turns a description into the
amount one package holds, in grams or in items ("adet").

Rules are evaluated top to bottom and the first hit wins.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from hammadde_usage.models import UNIT_COUNT, UNIT_GRAM
from hammadde_usage.tables import fold_lower

SYRUP_DENSITY = 1.35
SAUCE_DENSITY = 1.35
PUREE_DENSITY = 1.1
WATER_DENSITY = 1.0
MONIN_OTHER_DENSITY = 1.3
MONIN_BOTTLE_ML = 700

SADE_KRUVASAN_PER_PACKAGE = 17
UC_PEYNIRLI_KRUVASAN_PER_PACKAGE = 18

CHOCOLATE_MARKERS = ("kuvertur", "çikolata", "cikolata", "callebout", "barlo")
COFFEE_MARKERS = ("kahve", "espresso", "cekirdek")
NUT_MARKERS = ("antep fistik", "antep fıstık", "badem", "findik", "fındık")
COUNT_MARKERS = ("kruvasan", "kuruvasan")

COMMA_KG_RE = re.compile(r"(\d+),(\d+)\s*kg", re.IGNORECASE)
ML_RE = re.compile(r"(\d+(?:\.\d+)?)\s*ml", re.IGNORECASE)
LT_RE = re.compile(r"(\d+(?:[.,]\d+)?)\s*lt", re.IGNORECASE)
GR_TIMES_AD_RE = re.compile(r"(\d+)\s*gr\s*x\s*(\d+)\s*ad", re.IGNORECASE)
GR_PER_AD_RE = re.compile(r"(\d+)\s*gr/ad", re.IGNORECASE)
X_AD_RE = re.compile(r"x\s*(\d+)\s*ad", re.IGNORECASE)
AD_RE = re.compile(r"(\d+)\s*ad", re.IGNORECASE)
KG_RE = re.compile(r"(\d+(?:\.\d+)?)\s*kg\b", re.IGNORECASE)
GR_RE = re.compile(r"(\d+(?:\.\d+)?)\s*gr\b", re.IGNORECASE)
TRAILING_NUMBER_RE = re.compile(r"\s(\d+)$")
KREP_750X8_RE = re.compile(r"750\s*gr\s*x\s*8\s*ad", re.IGNORECASE)
MONIN_700ML_RE = re.compile(r"700\s*ml", re.IGNORECASE)
MONIN_189LT_RE = re.compile(r"1[.,]89\s*lt", re.IGNORECASE)
ONE_LITRE_RE = re.compile(r"1\s*lt", re.IGNORECASE)


@dataclass(frozen=True)
class PackageQuantity:
    base_quantity: float
    unit: str


def _has_any(text: str, markers: tuple[str, ...]) -> bool:
    return any(marker in text for marker in markers)


def _density_for(text: str) -> float:
    if _has_any(text, ("surup", "syrup", "sirup")):
        return SYRUP_DENSITY
    if _has_any(text, ("sos", "sauce")):
        return SAUCE_DENSITY
    if _has_any(text, ("pure", "püre")):
        return PUREE_DENSITY
    return WATER_DENSITY


def _comma_kilograms(match: re.Match[str]) -> float:
    return float(f"{match.group(1)}.{match.group(2)}") * 1000


def _grams(value: float) -> PackageQuantity:
    return PackageQuantity(float(value), UNIT_GRAM)


def _special_sku(text: str) -> PackageQuantity | None:
    if ("festipak sivi bitk.santi" in text or "ambiante sivi bitk.santi" in text) and (
        "12ad" in text or "12 ad" in text
    ):
        return _grams(12000)
    if "barlo dec. chocol bitter bukle" in text:
        return _grams(1000)
    if "krep kirigi" in text and KREP_750X8_RE.search(text):
        return _grams(750 * 8)
    if "labne" in text:
        match = COMMA_KG_RE.search(text)
        if match:
            return _grams(_comma_kilograms(match))
    return None


def _liquid(text: str) -> PackageQuantity | None:
    if "monin" in text:
        if MONIN_700ML_RE.search(text):
            if "surup" in text or "syrup" in text:
                return _grams(MONIN_BOTTLE_ML * SYRUP_DENSITY)
            return _grams(MONIN_BOTTLE_ML * MONIN_OTHER_DENSITY)
        if ("cikolata sos" in text or "chocolate sauce" in text) and MONIN_189LT_RE.search(text):
            return _grams(1890 * SAUCE_DENSITY)
        if ("carkifelek" in text or "passion" in text) and "pure" in text and ONE_LITRE_RE.search(text):
            return _grams(1000 * PUREE_DENSITY)

    match = ML_RE.search(text)
    if match:
        return _grams(float(match.group(1)) * _density_for(text))

    match = LT_RE.search(text)
    if match:
        millilitres = float(match.group(1).replace(",", ".")) * 1000
        return _grams(millilitres * _density_for(text))
    return None


def _count_family(text: str) -> PackageQuantity:
    match = X_AD_RE.search(text) or AD_RE.search(text)
    if match:
        return PackageQuantity(float(match.group(1)), UNIT_COUNT)

    per_package = 1
    if "sade" in text:
        per_package = SADE_KRUVASAN_PER_PACKAGE
    elif "üç peynirli" in text or "uc peynirli" in text:
        per_package = UC_PEYNIRLI_KRUVASAN_PER_PACKAGE
    return PackageQuantity(float(per_package), UNIT_COUNT)


def _trailing_number(text: str, original: str) -> PackageQuantity | None:
    match = TRAILING_NUMBER_RE.search(original)
    if not match:
        return None
    number = float(match.group(1))
    if _has_any(text, CHOCOLATE_MARKERS) or _has_any(text, COFFEE_MARKERS) or _has_any(text, NUT_MARKERS):
        return _grams(number * 1000)
    return _grams(number)


def _resolve(text: str, original: str, declared: float) -> PackageQuantity:
    special = _special_sku(text)
    if special is not None:
        return special

    match = COMMA_KG_RE.search(text)
    if match:
        return _grams(_comma_kilograms(match))

    liquid = _liquid(text)
    if liquid is not None:
        return liquid

    match = GR_TIMES_AD_RE.search(text)
    if match:
        return _grams(float(match.group(1)) * float(match.group(2)))

    match = GR_PER_AD_RE.search(text)
    if match:
        return _grams(float(match.group(1)) * declared)

    if _has_any(text, COUNT_MARKERS):
        return _count_family(text)

    match = KG_RE.search(text)
    if match:
        return _grams(float(match.group(1)) * 1000)
    match = GR_RE.search(text)
    if match:
        return _grams(float(match.group(1)))

    trailing = _trailing_number(text, original)
    if trailing is not None:
        return trailing

    if _has_any(text, COFFEE_MARKERS):
        return _grams(declared * 1000)
    if "monin" in text:
        return _grams(MONIN_BOTTLE_ML * SYRUP_DENSITY)
    return _grams(declared)


def extract_package_quantity(description: str, declared_count: float = 0) -> PackageQuantity:
    """Return how much one package of ``description`` holds."""
    original = str(description or "").strip()
    text = fold_lower(original)
    try:
        declared = float(declared_count or 0)
    except (TypeError, ValueError):
        declared = 0.0
    if not math.isfinite(declared):
        declared = 0.0

    quantity = _resolve(text, original, declared)
    # Digit runs too long for a float end up as inf; treat them as unreadable.
    if not math.isfinite(quantity.base_quantity):
        return _grams(declared)
    return quantity

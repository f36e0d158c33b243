"""
normalizer.py — canonical names for ingredients, branches and POS products

All functions are total: unmatched input comes back cleaned, never raises.
A NameNormalizer holds the lookup tables it uses so tests can inject fixture
tables; the module-level helpers use the default tables.
"""

from __future__ import annotations

import logging
import re
from types import MappingProxyType
from typing import Mapping, Sequence

from hammadde_usage import tables
from hammadde_usage.tables import fold_lower

logger = logging.getLogger(__name__)

KG_TOKEN_RE = re.compile(r"\d+\s*kg\b", re.IGNORECASE)
GR_TOKEN_RE = re.compile(r"\d+\s*gr\b", re.IGNORECASE)
TRAILING_NUMBER_RE = re.compile(r"\s+\d+$")
PAKET_PREFIX_RE = re.compile(r"^PAKET\s+")
CHL_PREFIX_RE = re.compile(r"^CHL\s*", re.IGNORECASE)
CAFE_SUFFIX_RE = re.compile(r" CAFE$")
WHITESPACE_RE = re.compile(r"\s+")

COUNT_FAMILY_MARKERS = ("kruvasan", "kuruvasan")

TURKISH_ALPHABET = "ABCÇDEFGĞHIİJKLMNOÖPRSŞTUÜVYZ"
_TURKISH_ORDER = {letter: index for index, letter in enumerate(TURKISH_ALPHABET)}


def turkish_upper(text: str) -> str:
    return text.replace("i", "İ").replace("ı", "I").upper()


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_RE.sub(" ", text).strip()


def strip_branch_prefix(raw: str) -> str:
    """Remove the distributor's "CHL " customer prefix from a branch label."""
    return CHL_PREFIX_RE.sub("", str(raw).strip()).strip()


def ingredient_key(name: str) -> str:
    """Aggregation key: upper-case with the Turkish capital İ folded to I."""
    return str(name).strip().upper().replace("İ", "I")


def is_count_family(name: str) -> bool:
    lowered = fold_lower(str(name))
    return any(marker in lowered for marker in COUNT_FAMILY_MARKERS)


def turkish_sort_key(text: str) -> tuple:
    """Sort key following the Turkish alphabet; other characters sort after it."""
    upper = turkish_upper(str(text))
    return tuple(
        (0, _TURKISH_ORDER[char]) if char in _TURKISH_ORDER else (1, ord(char))
        for char in upper
    )


class NameNormalizer:
    def __init__(
        self,
        resource_patterns: Sequence[tuple[str, str]] = tables.RESOURCE_PATTERNS,
        product_names: Sequence[tuple[str, str]] = tables.PRODUCT_NAMES,
        product_special_cases: Mapping[str, str] = tables.PRODUCT_SPECIAL_CASES,
        branch_exact_names: Mapping[str, str] = tables.BRANCH_EXACT_NAMES,
        branch_restore_rules: Sequence[tuple[re.Pattern[str], str]] = tables.BRANCH_RESTORE_RULES,
    ) -> None:
        self.resource_patterns = tuple((fold_lower(pattern), canonical) for pattern, canonical in resource_patterns)
        self.product_names = tuple(product_names)
        self.product_lookup: Mapping[str, str] = MappingProxyType(dict(self.product_names))
        self.product_special_cases = MappingProxyType(dict(product_special_cases))
        self.branch_exact_names = MappingProxyType(dict(branch_exact_names))
        self.branch_restore_rules = tuple(branch_restore_rules)

    # ── ingredients / resources ────────────────────────────────────────────

    def match_resource(self, raw: str) -> str | None:
        """Return the canonical resource for the first matching pattern, or None."""
        lowered = fold_lower(str(raw or "")).strip()
        if not lowered:
            return None
        for pattern, canonical in self.resource_patterns:
            if pattern in lowered:
                return canonical
        return None

    def normalize_ingredient_name(self, raw: str) -> str:
        text = str(raw or "")
        matched = self.match_resource(text)
        if matched is not None:
            return matched
        cleaned = KG_TOKEN_RE.sub("", text, count=1)
        cleaned = GR_TOKEN_RE.sub("", cleaned, count=1)
        cleaned = TRAILING_NUMBER_RE.sub("", cleaned)
        return cleaned.strip().upper()

    # ── branches ──────────────────────────────────────────────────────────

    def normalize_branch_name(self, raw: str) -> str:
        text = str(raw or "").strip().translate(tables.TURKISH_TO_ASCII).upper()
        text = collapse_whitespace(re.sub(r"[_-]", " ", text))
        while True:
            stripped = collapse_whitespace(CHL_PREFIX_RE.sub("", CAFE_SUFFIX_RE.sub("", text)))
            if stripped == text:
                break
            text = stripped

        exact = self.branch_exact_names.get(text)
        if exact is not None:
            return exact
        for pattern, replacement in self.branch_restore_rules:
            text = pattern.sub(replacement, text)
        return text

    # ── POS products ──────────────────────────────────────────────────────

    def normalize_product_name(self, raw: str) -> str:
        text = str(raw or "").strip()
        cleaned = collapse_whitespace(PAKET_PREFIX_RE.sub("", text.upper()))
        # The table mixes "ISLAK" and "AMERİCANO" spellings, so lower-case
        # input is also tried with Turkish casing (i -> İ).
        variants = dict.fromkeys(
            (cleaned, collapse_whitespace(PAKET_PREFIX_RE.sub("", turkish_upper(text))))
        )
        for variant in variants:
            special = self.product_special_cases.get(variant)
            if special is not None:
                return special
        for variant in variants:
            exact = self.product_lookup.get(variant)
            if exact is not None:
                return exact
        for variant in variants:
            for name, canonical in self.product_names:
                if name in variant:
                    return canonical
        return cleaned


DEFAULT_NORMALIZER = NameNormalizer()

for _warning in tables.RESOURCE_TABLE_WARNINGS + tables.PRODUCT_TABLE_WARNINGS:
    logger.debug(_warning)


def normalize_ingredient_name(raw: str) -> str:
    return DEFAULT_NORMALIZER.normalize_ingredient_name(raw)


def normalize_branch_name(raw: str) -> str:
    return DEFAULT_NORMALIZER.normalize_branch_name(raw)


def normalize_product_name(raw: str) -> str:
    return DEFAULT_NORMALIZER.normalize_product_name(raw)


def province_for_branch(branch: str) -> str | None:
    tokens = str(branch or "").split()
    return tokens[0] if tokens else None


def table_warnings() -> tuple[str, ...]:
    return tables.RESOURCE_TABLE_WARNINGS + tables.PRODUCT_TABLE_WARNINGS

from __future__ import annotations

import re
import unittest

from hammadde_usage.normalizer import (
    NameNormalizer,
    ingredient_key,
    is_count_family,
    normalize_branch_name,
    normalize_ingredient_name,
    normalize_product_name,
    province_for_branch,
    strip_branch_prefix,
    turkish_sort_key,
    turkish_upper,
)
from hammadde_usage.tables import TableError, validate_pattern_table


BRANCH_SAMPLES = [
    "CHL izmir_alsancak cafe",
    "İzmir Alsancak",
    "izmir-mavibahce",
    "ANKARA ÇANKAYA",
    "ankara cankaya cafe",
    "İstanbul Kadıköy",
    "CHL CHL bursa nilufer CAFE CAFE",
    "  ",
    "",
    "Şube A",
    "x cafe cafe",
    "İZMİR MAVİBAHÇE",
]


class BranchNameTests(unittest.TestCase):
    def test_distributor_label_round_trip(self):
        self.assertEqual(normalize_branch_name("CHL izmir_alsancak cafe"), "İZMİR ALSANCAK")

    def test_pos_and_supply_spellings_meet(self):
        self.assertEqual(normalize_branch_name("İzmir Alsancak"), normalize_branch_name("CHL izmir_alsancak cafe"))
        self.assertEqual(normalize_branch_name("İstanbul Kadıköy"), "İSTANBUL KADIKOY")
        self.assertEqual(normalize_branch_name("ISTANBUL KADIKOY"), "İSTANBUL KADIKOY")

    def test_suffix_restoration(self):
        self.assertEqual(normalize_branch_name("ankara cankaya cafe"), "ANKARA ÇANKAYA")
        self.assertEqual(normalize_branch_name("izmir-mavibahce"), "İZMİR MAVİBAHÇE")

    def test_repeated_prefixes_and_suffixes_are_all_stripped(self):
        self.assertEqual(normalize_branch_name("x cafe cafe"), "X")
        self.assertEqual(normalize_branch_name("CHL CHL bursa nilufer CAFE CAFE"), "BURSA NILUFER")

    def test_normalization_is_idempotent(self):
        for sample in BRANCH_SAMPLES:
            once = normalize_branch_name(sample)
            self.assertEqual(normalize_branch_name(once), once, sample)

    def test_blank_input(self):
        self.assertEqual(normalize_branch_name(""), "")
        self.assertEqual(normalize_branch_name(None), "")

    def test_strip_branch_prefix_keeps_the_rest(self):
        self.assertEqual(strip_branch_prefix("CHL izmir_alsancak cafe"), "izmir_alsancak cafe")
        self.assertEqual(strip_branch_prefix("chl Kadıköy"), "Kadıköy")
        self.assertEqual(strip_branch_prefix("Kadıköy"), "Kadıköy")

    def test_province_is_first_token(self):
        self.assertEqual(province_for_branch("İZMİR ALSANCAK"), "İZMİR")
        self.assertIsNone(province_for_branch(""))


class IngredientNameTests(unittest.TestCase):
    def test_first_matching_pattern_wins(self):
        self.assertEqual(normalize_ingredient_name("ESPRESSO CEKIRDEK 1 KG"), "ESPRESSO")
        self.assertEqual(normalize_ingredient_name("MONIN-VANILYA SURUP 700 ML"), "VANİLYA ŞURUP")
        self.assertEqual(normalize_ingredient_name("Callebout Kuvertur Bitter 2,5 KG"), "BİTTER.ÇİK.")

    def test_unmatched_name_is_cleaned(self):
        self.assertEqual(normalize_ingredient_name("Zzz Ürün 250 gr 3"), "ZZZ ÜRÜN")
        self.assertEqual(normalize_ingredient_name("qqq 5 KG"), "QQQ")

    def test_total_on_empty_input(self):
        self.assertEqual(normalize_ingredient_name(""), "")
        self.assertEqual(normalize_ingredient_name(None), "")

    def test_ingredient_key_folds_dotted_capital_i(self):
        self.assertEqual(ingredient_key("vanilya şurup"), ingredient_key("VANİLYA ŞURUP"))
        self.assertEqual(ingredient_key(" espresso "), "ESPRESSO")

    def test_count_family(self):
        self.assertTrue(is_count_family("KRUVASAN SADE"))
        self.assertTrue(is_count_family("kuruvasan uc peynirli"))
        self.assertFalse(is_count_family("ESPRESSO"))


class ProductNameTests(unittest.TestCase):
    def test_paket_prefix_and_whitespace(self):
        self.assertEqual(normalize_product_name("paket   dark  mocha"), "DARK MOCHA")

    def test_special_cases_come_first(self):
        self.assertEqual(normalize_product_name("Chocolabs Sarma"), "SARMA TEK KİŞİLİK")
        self.assertEqual(normalize_product_name("XL PAKET CHOCOLABS SARMA"), "SARMA ÇİFT KİŞİLİK")

    def test_exact_then_substring_lookup(self):
        self.assertEqual(normalize_product_name("Toffy Nut Latte"), "TOFFEE NUT LATTE")
        self.assertEqual(normalize_product_name("islak kek"), "KAKAOLU KEK-MIX")
        self.assertEqual(normalize_product_name("americano"), "AMERİCANO")

    def test_unmapped_name_is_returned_cleaned(self):
        self.assertEqual(normalize_product_name("paket zzz qqq"), "ZZZ QQQ")
        self.assertEqual(normalize_product_name(""), "")


class InjectedTableTests(unittest.TestCase):
    def test_fixture_tables_replace_defaults(self):
        normalizer = NameNormalizer(
            resource_patterns=(("seker", "ŞEKER"), ("toz seker", "TOZ ŞEKER")),
            product_names=(("TEST", "TEST ÜRÜN"),),
            product_special_cases={},
            branch_exact_names={"SUBE A": "ŞUBE A"},
            branch_restore_rules=(),
        )
        self.assertEqual(normalizer.match_resource("Toz Seker 1 KG"), "ŞEKER")
        self.assertIsNone(normalizer.match_resource("un"))
        self.assertEqual(normalizer.normalize_product_name("bir test"), "TEST ÜRÜN")
        self.assertEqual(normalizer.normalize_branch_name("Şube A"), "ŞUBE A")

    def test_restore_rules_are_applied_in_order(self):
        normalizer = NameNormalizer(branch_exact_names={}, branch_restore_rules=((re.compile(r"^SUBE"), "ŞUBE"),))
        self.assertEqual(normalizer.normalize_branch_name("sube b"), "ŞUBE B")


class TableValidationTests(unittest.TestCase):
    def test_same_target_duplicate_is_dropped(self):
        kept, warnings = validate_pattern_table(
            [("Cay Elma", "ELMA ÇAYI"), ("cay elma", "ELMA ÇAYI")],
            table_name="fixture",
        )
        self.assertEqual(kept, (("cay elma", "ELMA ÇAYI"),))
        self.assertIn("duplicate", warnings[0])

    def test_conflicting_duplicate_raises(self):
        with self.assertRaises(TableError):
            validate_pattern_table([("labne", "LABNE"), ("LABNE", "PEYNİR")], table_name="fixture")

    def test_shadowed_pattern_is_reported(self):
        kept, warnings = validate_pattern_table([("çay", "ÇAY"), ("bergamotlu çay", "DOĞUŞ ÇAY")], table_name="fixture")
        self.assertEqual(len(kept), 2)
        self.assertEqual(len(warnings), 1)
        self.assertIn("shadowed", warnings[0])

    def test_empty_pattern_raises(self):
        with self.assertRaises(TableError):
            validate_pattern_table([("  ", "X")], table_name="fixture")


class TurkishOrderingTests(unittest.TestCase):
    def test_turkish_letters_sort_after_their_base_letters(self):
        names = ["ÇANKAYA", "DENİZLİ", "CİHANGİR", "İZMİR", "IĞDIR", "ŞİŞLİ", "SAMSUN"]
        self.assertEqual(
            sorted(names, key=turkish_sort_key),
            ["CİHANGİR", "ÇANKAYA", "DENİZLİ", "IĞDIR", "İZMİR", "SAMSUN", "ŞİŞLİ"],
        )

    def test_turkish_upper(self):
        self.assertEqual(turkish_upper("istanbul ılgaz"), "İSTANBUL ILGAZ")


if __name__ == "__main__":
    unittest.main()

from __future__ import annotations

import unittest
from unittest import mock

from hammadde_usage import reconcile as reconcile_module
from hammadde_usage.models import BranchLevelResult, RecipeEntry, SalesEntry, SupplyEntry
from hammadde_usage.reconcile import (
    DEFICIT,
    INCOMPARABLE,
    NEAR_MATCH,
    SURPLUS,
    analyse_project,
    classify_result,
    filter_results,
    ingredient_totals,
    reconcile,
    sort_results,
    summarize_branches,
    unique_values,
)

SUGAR_RECIPE = [RecipeEntry("X", "ŞEKER", 10, "gr")]
SUGAR_SALES = [SalesEntry("2025-03-01", "Şube A", "X", 5, "2025-03-31")]


def sugar_supply(amount):
    return [SupplyEntry("2025-03-03", "Şube A", "ŞEKER", amount, "gr", 1)]


def result_row(branch="A", resource="R", unit="gr", supplied=0.0, demand=0.0, percent=None, difference=None):
    if difference is None and unit in ("gr", "adet"):
        difference = supplied - demand
    return BranchLevelResult(
        branch=branch,
        resource=resource,
        unit=unit,
        supplied=supplied,
        demand=demand,
        difference=difference,
        difference_percent=percent,
        province=branch.split()[0] if branch else None,
    )


class ReconcileScenarioTests(unittest.TestCase):
    def test_exact_match(self):
        results = reconcile(SUGAR_RECIPE, sugar_supply(50), SUGAR_SALES)
        self.assertEqual(len(results), 1)
        row = results[0]
        self.assertEqual((row.branch, row.resource, row.unit), ("SUBE A", "ŞEKER", "gr"))
        self.assertEqual((row.supplied, row.demand, row.difference), (50, 50, 0))
        self.assertEqual(row.difference_percent, 0)
        self.assertEqual(row.province, "SUBE")
        self.assertEqual(classify_result(row), NEAR_MATCH)

    def test_deficit(self):
        row = reconcile(SUGAR_RECIPE, sugar_supply(30), SUGAR_SALES)[0]
        self.assertEqual(row.difference, -20)
        self.assertAlmostEqual(row.difference_percent, -20 / 30 * 100)
        self.assertEqual(classify_result(row), DEFICIT)

    def test_surplus(self):
        row = reconcile(SUGAR_RECIPE, sugar_supply(60), SUGAR_SALES)[0]
        self.assertAlmostEqual(row.difference_percent, 10 / 60 * 100)
        self.assertEqual(classify_result(row), SURPLUS)

    def test_supply_only_row(self):
        supply = sugar_supply(50) + [SupplyEntry("2025-03-03", "Şube A", "LABNE", 2750, "gr", 1)]
        results = reconcile(SUGAR_RECIPE, supply, SUGAR_SALES)
        labne = next(row for row in results if row.resource == "LABNE")
        self.assertEqual(labne.demand, 0)
        self.assertEqual(labne.difference_percent, 100)
        self.assertEqual(classify_result(labne), SURPLUS)

    def test_demand_only_row(self):
        row = reconcile(SUGAR_RECIPE, [], SUGAR_SALES)[0]
        self.assertEqual(row.supplied, 0)
        self.assertEqual(row.difference, -50)
        self.assertIsNone(row.difference_percent)
        self.assertEqual(classify_result(row), DEFICIT)

    def test_nothing_supplied_nothing_used_is_a_match(self):
        sales = [SalesEntry("2025-03-01", "Şube A", "X", 0, "2025-03-31")]
        row = reconcile(SUGAR_RECIPE, [], sales)[0]
        self.assertIsNone(row.difference_percent)
        self.assertEqual(classify_result(row), NEAR_MATCH)

    def test_conservation(self):
        recipes = [RecipeEntry("LATTE", "ESPRESSO", 18, "gr")]
        sales = [SalesEntry("2025-03-01", "İzmir Alsancak", "LATTE", 200)]
        supply = [SupplyEntry("2025-03-03", "izmir_alsancak cafe", "ESPRESSO", 4000, "gr", 4)]
        row = reconcile(recipes, supply, sales)[0]
        self.assertEqual(row.branch, "İZMİR ALSANCAK")
        self.assertEqual(row.difference, 4000 - 3600)
        self.assertAlmostEqual(row.difference_percent, (4000 - 3600) / 4000 * 100)


class ReconcileJoinTests(unittest.TestCase):
    def test_branch_spellings_join(self):
        recipes = [RecipeEntry("LATTE", "ESPRESSO", 18, "gr")]
        sales = [
            SalesEntry("2025-03-01", "İzmir Alsancak", "LATTE", 100),
            SalesEntry("2025-03-01", "İstanbul Kadıköy", "LATTE", 50),
        ]
        supply = [
            SupplyEntry("2025-03-03", "izmir_alsancak cafe", "ESPRESSO", 2000, "gr", 2),
            SupplyEntry("2025-03-03", "ISTANBUL KADIKOY", "ESPRESSO", 1000, "gr", 1),
        ]
        results = reconcile(recipes, supply, sales)
        self.assertEqual(sorted(row.branch for row in results), ["İSTANBUL KADIKOY", "İZMİR ALSANCAK"])
        self.assertTrue(all(row.supplied and row.demand for row in results))

    def test_ingredient_names_join_across_dotted_i(self):
        recipes = [RecipeEntry("LATTE", "VANİLYA ŞURUP", 7.5, "gr")]
        sales = [SalesEntry("2025-03-01", "A", "LATTE", 10)]
        supply = [SupplyEntry("2025-03-03", "A", "VANILYA ŞURUP", 100, "gr", 1)]
        results = reconcile(recipes, supply, sales)
        self.assertEqual(len(results), 1)
        self.assertEqual(results[0].resource, "VANİLYA ŞURUP")
        self.assertEqual(results[0].difference, 25)

    def test_croissants_are_forced_to_items(self):
        recipes = [RecipeEntry("KRUVASAN SADE", "KRUVASAN SADE", 1, "gr")]
        sales = [SalesEntry("2025-03-01", "A", "KRUVASAN SADE", 49)]
        supply = [SupplyEntry("2025-03-03", "A", "KRUVASAN SADE", 51, "gr", 3)]
        row = reconcile(recipes, supply, sales)[0]
        self.assertEqual(row.unit, "adet")
        self.assertEqual(row.difference, 2)

    def test_incomparable_units_have_no_difference(self):
        recipes = [RecipeEntry("LIMONATA", "LİMON", 1, "ml")]
        sales = [SalesEntry("2025-03-01", "A", "LIMONATA", 10)]
        row = reconcile(recipes, [], sales)[0]
        self.assertEqual(row.unit, "ml")
        self.assertFalse(row.comparable)
        self.assertIsNone(row.difference)
        self.assertIsNone(row.difference_percent)
        self.assertEqual(classify_result(row), INCOMPARABLE)

    def test_unknown_unit_when_neither_side_declares_one(self):
        recipes = [RecipeEntry("X", "Y", 1, "")]
        sales = [SalesEntry("2025-03-01", "A", "X", 1)]
        row = reconcile(recipes, [], sales)[0]
        self.assertEqual(row.unit, "unknown")

    def test_default_order(self):
        recipes = [RecipeEntry("X", "ŞEKER", 10, "gr"), RecipeEntry("X", "UN", 10, "gr")]
        sales = [SalesEntry("2025-03-01", "B", "X", 1), SalesEntry("2025-03-01", "A", "X", 1)]
        supply = [
            SupplyEntry("2025-03-03", "A", "ŞEKER", 20, "gr", 1),
            SupplyEntry("2025-03-03", "B", "ŞEKER", 20, "gr", 1),
            SupplyEntry("2025-03-03", "A", "UN", 11, "gr", 1),
        ]
        results = reconcile(recipes, supply, sales)
        self.assertEqual(
            [(row.branch, row.resource) for row in results],
            [("A", "ŞEKER"), ("B", "ŞEKER"), ("A", "UN"), ("B", "UN")],
        )
        self.assertIsNone(results[-1].difference_percent)


class SummaryTests(unittest.TestCase):
    def test_counts_and_totals(self):
        results = [
            result_row("İZMİR ALSANCAK", "ŞEKER", "gr", 30, 50, -20 / 30 * 100),
            result_row("İZMİR ALSANCAK", "UN", "gr", 100, 50, 50.0),
            result_row("İZMİR ALSANCAK", "KRUVASAN SADE", "adet", 0, 10, None),
            result_row("İZMİR ALSANCAK", "SÜT", "gr", 100, 95, 5.0),
            result_row("İZMİR ALSANCAK", "LİMON", "ml", 0, 10, None),
            result_row("ANKARA ÇANKAYA", "UN", "gr", 10, 10, 0.0),
        ]
        summaries = summarize_branches(results)
        self.assertEqual([item.branch for item in summaries], ["ANKARA ÇANKAYA", "İZMİR ALSANCAK"])
        izmir = summaries[1]
        self.assertEqual(izmir.province, "İZMİR")
        self.assertEqual(izmir.total_items, 5)
        self.assertEqual((izmir.deficit_count, izmir.surplus_count), (2, 1))
        self.assertEqual((izmir.near_match_count, izmir.incomparable_unit_count), (1, 1))
        self.assertEqual(izmir.total_deficit_gr, -20)
        self.assertEqual(izmir.total_surplus_gr, 50)
        self.assertEqual(izmir.total_deficit_adet, -10)
        self.assertEqual(summaries[0].near_match_count, 1)

    def test_threshold_is_configurable(self):
        row = result_row("A", "UN", "gr", 100, 95, 5.0)
        self.assertEqual(classify_result(row, threshold=5), SURPLUS)
        self.assertEqual(classify_result(row, threshold=10), NEAR_MATCH)

    def test_ingredient_totals(self):
        recipes = [RecipeEntry("LATTE", "ESPRESSO", 18, "gr"), RecipeEntry("MOCHA", "ESPRESSO", 18, "gr"),
                   RecipeEntry("KRUVASAN SADE", "KRUVASAN SADE", 1, "gr")]
        sales = [
            SalesEntry("2025-03-01", "A", "LATTE", 10),
            SalesEntry("2025-03-01", "B", "MOCHA", 5),
            SalesEntry("2025-03-01", "B", "KRUVASAN SADE", 3),
        ]
        totals = ingredient_totals(recipes, sales)
        self.assertEqual([(item.ingredient, item.total_amount, item.unit) for item in totals],
                         [("ESPRESSO", 270, "gr"), ("KRUVASAN SADE", 3, "adet")])


class FilterSortTests(unittest.TestCase):
    def setUp(self):
        self.results = [
            result_row("İZMİR ALSANCAK", "ŞEKER", "gr", 30, 50, -66.0),
            result_row("İZMİR MAVİBAHÇE", "UN", "gr", 0, 50, None),
            result_row("ANKARA ÇANKAYA", "UN", "gr", 100, 50, 50.0),
        ]

    def test_filter_by_province_branch_and_resource(self):
        self.assertEqual(len(filter_results(self.results, province="İZMİR")), 2)
        self.assertEqual(len(filter_results(self.results, branch="ANKARA ÇANKAYA")), 1)
        self.assertEqual(len(filter_results(self.results, province="İZMİR", resource="UN")), 1)
        self.assertEqual(len(filter_results(self.results)), 3)

    def test_sort_keeps_missing_values_last(self):
        ascending = sort_results(self.results, "difference_percent")
        self.assertEqual([row.difference_percent for row in ascending], [-66.0, 50.0, None])
        descending = sort_results(self.results, "difference_percent", descending=True)
        self.assertEqual([row.difference_percent for row in descending], [50.0, -66.0, None])

    def test_sort_by_branch_uses_turkish_order(self):
        ordered = sort_results(self.results, "branch")
        self.assertEqual(ordered[0].branch, "ANKARA ÇANKAYA")

    def test_unknown_sort_column(self):
        with self.assertRaises(ValueError):
            sort_results(self.results, "colour")

    def test_unique_values(self):
        self.assertEqual(unique_values(self.results, "resource"), ["ŞEKER", "UN"])


class AnalyseProjectTests(unittest.TestCase):
    def test_missing_datasets_are_reported(self):
        outcome = analyse_project(SUGAR_RECIPE, [], SUGAR_SALES)
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.missing, ["supply"])
        self.assertEqual(outcome.results, [])

    def test_complete_project(self):
        outcome = analyse_project(SUGAR_RECIPE, sugar_supply(30), SUGAR_SALES)
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.branches, ["SUBE A"])
        self.assertEqual(outcome.resources, ["ŞEKER"])
        self.assertEqual(outcome.summaries[0].deficit_count, 1)
        self.assertEqual(outcome.to_dict()["error"], None)

    def test_unexpected_failure_becomes_error(self):
        with mock.patch.object(reconcile_module, "reconcile", side_effect=RuntimeError("boom")):
            with self.assertLogs("hammadde_usage.reconcile", level="ERROR"):
                outcome = analyse_project(SUGAR_RECIPE, sugar_supply(30), SUGAR_SALES)
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.error, "Analysis failed: boom")


if __name__ == "__main__":
    unittest.main()

from __future__ import annotations

import json
import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from hammadde_usage.models import RecipeEntry, SalesEntry, SupplyEntry
from hammadde_usage.store import (
    FILE_PREFIX,
    AnalysisProject,
    ProjectNotFoundError,
    ProjectStore,
    default_project_name,
)


class ProjectStoreTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.store = ProjectStore(Path(self.tmpdir.name) / "projects")

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_create_writes_one_file_per_project(self):
        project = self.store.create("Mart analizi")
        path = self.store.path_for(project.id)
        self.assertTrue(path.exists())
        self.assertTrue(path.name.startswith(FILE_PREFIX))
        self.assertEqual(project.completed_steps, (False, False, False, False))
        self.assertEqual(self.store.get(project.id).name, "Mart analizi")

    def test_create_without_name_uses_default(self):
        project = self.store.create()
        self.assertTrue(project.name.startswith("Analiz "))

    def test_list_is_newest_first(self):
        first = self.store.create("first")
        second = self.store.create("second")
        payload = json.loads(self.store.path_for(first.id).read_text(encoding="utf-8"))
        payload["created_at"] = "2000-01-01T00:00:00+00:00"
        self.store.path_for(first.id).write_text(json.dumps(payload), encoding="utf-8")
        self.assertEqual([item.id for item in self.store.list()], [second.id, first.id])

    def test_list_skips_invalid_files(self):
        project = self.store.create("ok")
        (self.store.root / f"{FILE_PREFIX}broken.json").write_text("{not json", encoding="utf-8")
        (self.store.root / f"{FILE_PREFIX}partial.json").write_text(json.dumps({"id": "x"}), encoding="utf-8")
        with self.assertLogs("hammadde_usage.store", level="WARNING"):
            projects = self.store.list()
        self.assertEqual([item.id for item in projects], [project.id])

    def test_list_on_missing_directory(self):
        self.assertEqual(ProjectStore(Path(self.tmpdir.name) / "nowhere").list(), [])

    def test_update_dataset_round_trips_entries_and_marks_step(self):
        project = self.store.create("p")
        supply = [SupplyEntry(None, "Unknown", "LABNE", 2750.0, "gr", 1.0, 1)]
        self.store.update_dataset(project.id, "supply", supply)
        self.store.update_dataset(project.id, "recipe", [RecipeEntry("LATTE", "ESPRESSO", 18.0, "gr")])
        self.store.update_dataset(project.id, "sales", [SalesEntry("2025-03-01", "A", "LATTE", 3.0, "2025-03-31")])

        loaded = self.store.get(project.id)
        self.assertEqual(loaded.supply_entries, tuple(supply))
        self.assertEqual(loaded.entries("recipe")[0].ingredient, "ESPRESSO")
        self.assertEqual(loaded.sales_entries[0].end_date, "2025-03-31")
        self.assertEqual(loaded.completed_steps, (True, True, True, False))

    def test_update_dataset_with_no_entries_clears_step(self):
        project = self.store.create("p")
        self.store.update_dataset(project.id, "recipe", [RecipeEntry("LATTE", "ESPRESSO", 18.0)])
        updated = self.store.update_dataset(project.id, "recipe", [])
        self.assertEqual(updated.completed_steps[0], False)
        self.assertEqual(updated.recipe_entries, ())

    def test_update_dataset_rejects_wrong_types(self):
        project = self.store.create("p")
        with self.assertRaises(TypeError):
            self.store.update_dataset(project.id, "recipe", [SalesEntry("2025-03-01", "A", "LATTE", 1.0)])
        with self.assertRaises(ValueError):
            self.store.update_dataset(project.id, "inventory", [])

    def test_update_step(self):
        project = self.store.create("p")
        self.assertTrue(self.store.update_step(project.id, 3, True).completed_steps[3])
        unchanged = self.store.update_step(project.id, 7, True)
        self.assertEqual(unchanged.completed_steps, (False, False, False, True))

    def test_delete(self):
        project = self.store.create("p")
        self.store.delete(project.id)
        self.assertFalse(self.store.path_for(project.id).exists())
        with self.assertRaises(ProjectNotFoundError):
            self.store.get(project.id)
        with self.assertRaises(ProjectNotFoundError):
            self.store.delete(project.id)


class ProjectModelTests(unittest.TestCase):
    def test_default_name_format(self):
        self.assertEqual(default_project_name(datetime(2025, 3, 9, 14, 5)), "Analiz 09.03.2025 14:05")

    def test_from_dict_validates_steps(self):
        with self.assertRaises(ValueError):
            AnalysisProject.from_dict({"id": "a", "name": "b", "created_at": "c", "completed_steps": [True]})

    def test_unknown_dataset_kind(self):
        project = AnalysisProject(id="a", name="b", created_at="c")
        with self.assertRaises(ValueError):
            project.entries("inventory")


if __name__ == "__main__":
    unittest.main()

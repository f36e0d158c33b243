from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from openpyxl import Workbook

from hammadde_usage.columns import SOURCE_FILE_FIELD
from hammadde_usage.loader import TabularReadError, detect_header_row_index, load_table
from hammadde_usage.sales import process_sales_records


class LoaderTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmpdir.name)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_xlsx_title_row_is_kept_as_preamble(self):
        path = self.root / "satis.xlsx"
        wb = Workbook()
        ws = wb.active
        ws.title = "Satış"
        ws.append(["Ürün Satış Raporu 01.03.2025 - 31.03.2025"])
        ws.append(["Şube", "Ürün", "Miktar"])
        ws.append(["CHL Kadıköy", "LATTE", 3])
        ws.append(["CHL Kadıköy", "MOCHA", 4])
        wb.save(path)

        table = load_table(path)
        self.assertEqual(table.header_row, 1)
        self.assertEqual(table.preamble, ["Ürün Satış Raporu 01.03.2025 - 31.03.2025"])
        self.assertEqual(table.columns, ["Şube", "Ürün", "Miktar"])
        self.assertEqual(table.sheet_name, "Satış")
        self.assertEqual(len(table.records), 2)
        self.assertEqual(table.records[0]["Ürün"], "LATTE")
        self.assertEqual(table.records[0]["Miktar"], 3)
        self.assertEqual(table.records[0][SOURCE_FILE_FIELD], "satis.xlsx")

    def test_two_cell_title_with_period_is_not_the_header(self):
        path = self.root / "aktifpos.xlsx"
        wb = Workbook()
        ws = wb.active
        ws.append(["Rapor Tarihi", "01.03.2025 - 31.03.2025"])
        ws.append(["Şube", "Ürün", "Miktar"])
        ws.append(["CHL IZMIR ALSANCAK", "LATTE", 5])
        ws.append(["CHL IZMIR ALSANCAK", "MOCHA", 2])
        wb.save(path)

        table = load_table(path)
        self.assertEqual(table.header_row, 1)
        self.assertEqual(table.preamble, ["Rapor Tarihi 01.03.2025 - 31.03.2025"])

        result = process_sales_records(table.records, table.preamble)
        self.assertEqual(len(result.entries), 2)
        self.assertEqual(result.entries[0].branch, "IZMIR ALSANCAK")
        self.assertEqual((result.entries[0].date, result.entries[0].end_date), ("2025-03-01", "2025-03-31"))

    def test_multiple_sheets_warn_and_can_be_selected(self):
        path = self.root / "receteler.xlsx"
        wb = Workbook()
        first = wb.active
        first.title = "Reçeteler"
        first.append(["Ürün", "Hammadde", "Miktar"])
        first.append(["LATTE", "ESPRESSO", 18])
        second = wb.create_sheet("Eski")
        second.append(["Ürün", "Hammadde", "Miktar"])
        second.append(["MOCHA", "ESPRESSO", 18])
        wb.save(path)

        table = load_table(path)
        self.assertEqual(table.sheet_name, "Reçeteler")
        self.assertTrue(any("Multiple sheets" in item for item in table.warnings))

        chosen = load_table(path, sheet_name="Eski")
        self.assertEqual(chosen.records[0]["Ürün"], "MOCHA")
        self.assertEqual(chosen.warnings, [])

        with self.assertRaises(TabularReadError):
            load_table(path, sheet_name="Yok")

    def test_semicolon_csv_with_bom(self):
        path = self.root / "satis.csv"
        path.write_bytes("\ufeffŞube;Ürün;Miktar\nA;LATTE;3\nB;MOCHA;4\n".encode("utf-8"))
        table = load_table(path)
        self.assertEqual(table.columns, ["Şube", "Ürün", "Miktar"])
        self.assertEqual(table.records[1]["Ürün"], "MOCHA")
        self.assertEqual(table.records[1]["Miktar"], "4")

    def test_bytes_need_a_file_name(self):
        raw = "Ürün,Hammadde,Miktar\nLATTE,ESPRESSO,18\n".encode("utf-8")
        table = load_table(raw, file_name="upload.csv")
        self.assertEqual(table.file_name, "upload.csv")
        self.assertEqual(table.records[0][SOURCE_FILE_FIELD], "upload.csv")
        with self.assertRaises(TabularReadError):
            load_table(raw)

    def test_duplicate_and_blank_header_labels(self):
        table = load_table("Ürün,Ürün,\nLATTE,MOCHA,3\n".encode("utf-8"), file_name="x.csv")
        self.assertEqual(table.columns, ["Ürün", "Ürün_2", "Column 3"])

    def test_empty_file(self):
        with self.assertRaisesRegex(TabularReadError, "File is empty"):
            load_table(b"", file_name="x.csv")

    def test_header_only(self):
        with self.assertRaisesRegex(TabularReadError, "only a header row"):
            load_table(b"a,b\n", file_name="x.csv")

    def test_unsupported_format(self):
        with self.assertRaisesRegex(TabularReadError, "Unsupported format"):
            load_table(b"%PDF", file_name="rapor.pdf")

    def test_corrupt_workbook(self):
        with self.assertRaisesRegex(TabularReadError, "Could not open workbook"):
            load_table(b"not a workbook", file_name="rapor.xlsx")

    def test_missing_path(self):
        with self.assertRaises(FileNotFoundError):
            load_table(self.root / "missing.xlsx")


class HeaderDetectionTests(unittest.TestCase):
    def test_first_header_like_row_wins(self):
        rows = [
            ["Rapor", None, None],
            ["Şube", "Ürün", "Miktar"],
            ["A", "LATTE", 3],
            ["Toplam", "", 3],
        ]
        self.assertEqual(detect_header_row_index(rows), 1)

    def test_header_needs_data_below_it(self):
        rows = [
            ["Satış Raporu", "Mart"],
            ["Şube", "Ürün", "Miktar"],
            ["A", "LATTE", 3],
        ]
        self.assertEqual(detect_header_row_index(rows), 1)

    def test_period_row_is_never_a_header(self):
        rows = [
            ["Rapor Tarihi", "01.03.2025 – 31.03.2025"],
            ["Şube", "Ürün", "Miktar"],
            ["A", "LATTE", 3],
        ]
        self.assertEqual(detect_header_row_index(rows), 1)

    def test_numeric_rows_are_not_headers(self):
        rows = [[1, 2, 3], [4, 5, 6]]
        self.assertEqual(detect_header_row_index(rows), 0)


if __name__ == "__main__":
    unittest.main()

#!/usr/bin/env python3
"""
Generates a matching set of sample inputs for hammadde-usage:

    sample-data/receteler.xlsx          recipe sheet, product on the first row
                                        of each block only
    sample-data/havi_teslimat.xlsx      central-supply delivery lines with
                                        CHL-prefixed branch names and package
                                        sizes inside the descriptions
    sample-data/aktifpos_satis.xlsx     POS sales with a title row carrying
                                        the report period

Run from the repo root:
    python sample-data/generate_samples.py

Then:
    hammadde-usage project create --name Demo
    hammadde-usage ingest <id> recipe sample-data/receteler.xlsx
    hammadde-usage ingest <id> supply sample-data/havi_teslimat.xlsx
    hammadde-usage ingest <id> sales sample-data/aktifpos_satis.xlsx
    hammadde-usage analyse <id>
"""

from datetime import datetime
from pathlib import Path

import openpyxl

OUTPUT_DIR = Path(__file__).parent

# ── Recipes ──────────────────────────────────────────────────────────────────
wb = openpyxl.Workbook()
ws = wb.active
ws.title = "Reçeteler"
ws.append(["Ürün", "Hammadde", "Miktar", "Birim"])
ws.append(["LATTE", "ESPRESSO", 18, "gr"])
ws.append([None, "VANİLYA ŞURUP", "7,5", "gr"])
ws.append(["DARK MOCHA", "ESPRESSO", 18, "gr"])
ws.append([None, "SOS BİTTER", 30, "gram"])
ws.append(["KRUVASAN SADE", "KRUVASAN SADE", 1, "adet"])
ws.append(["SUFLE", "SUFLE MIX", 90, "gr"])
ws.append([None, "BİTTER.ÇİK.", 25, None])
wb.save(OUTPUT_DIR / "receteler.xlsx")

# ── Central supply deliveries ────────────────────────────────────────────────
wb = openpyxl.Workbook()
ws = wb.active
ws.title = "Faturalar"
ws.append(["Invoice Date", "Invoice Nr", "Cust-Desc", "Adfc-Desc", "Faturadaki Miktar"])
deliveries = [
    (datetime(2025, 3, 3), "F-1001", "CHL izmir_alsancak cafe", "ESPRESSO CEKIRDEK 1 KG", 4),
    (datetime(2025, 3, 3), "F-1001", "CHL izmir_alsancak cafe", "MONIN-VANILYA SURUP 700 ML", 2),
    (datetime(2025, 3, 3), "F-1001", "CHL izmir_alsancak cafe", "KURUVASAN SADE X 17 AD", 3),
    (datetime(2025, 3, 10), "F-1017", "CHL ISTANBUL KADIKOY", "ESPRESSO CEKIRDEK 1 KG", 6),
    (datetime(2025, 3, 10), "F-1017", "CHL ISTANBUL KADIKOY", "MONIN-SIYAH CIKOLATA SOS 1,89 LT", 1),
    (datetime(2025, 3, 10), "F-1017", "CHL ISTANBUL KADIKOY", "SUFFLE TOZ KARISIM 2,5 KG", 2),
    (datetime(2025, 3, 10), "F-1017", "CHL ISTANBUL KADIKOY", "CALLEBOUT KUVERTUR BITTER 2,5 KG", 1),
    (datetime(2025, 3, 12), "F-1022", "CHL ISTANBUL KADIKOY", "KARTON BARDAK 8 OZ", 50),
]
for row in deliveries:
    ws.append(list(row))
wb.save(OUTPUT_DIR / "havi_teslimat.xlsx")

# ── POS sales ────────────────────────────────────────────────────────────────
wb = openpyxl.Workbook()
ws = wb.active
ws.title = "Satış"
ws.append(["Ürün Satış Raporu 01.03.2025 - 31.03.2025"])
ws.append([])
ws.append(["Şube", "Ürün", "Miktar"])
sales = [
    ("CHL İzmir Alsancak", "LATTE", 180),
    ("CHL İzmir Alsancak", "PAKET LATTE", 20),
    ("CHL İzmir Alsancak", "KRUVASAN SADE", 49),
    ("CHL İstanbul Kadıköy", "LATTE", 210),
    ("CHL İstanbul Kadıköy", "DARK MOCHA", 95),
    ("CHL İstanbul Kadıköy", "SUFLE", 60),
]
for row in sales:
    ws.append(list(row))
wb.save(OUTPUT_DIR / "aktifpos_satis.xlsx")

print(f"Saved sample inputs to {OUTPUT_DIR}")

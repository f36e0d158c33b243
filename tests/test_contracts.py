from __future__ import annotations

import unittest

from hammadde_usage import __version__
from hammadde_usage.contracts import CONTRACT_VERSIONS, build_contract, build_payload, build_run_summary


class ContractTests(unittest.TestCase):
    def test_every_contract_has_a_version(self):
        for name in ("hammadde_usage.ingest", "hammadde_usage.analysis", "hammadde_usage.project"):
            self.assertEqual(build_contract(name), {"name": name, "version": CONTRACT_VERSIONS[name]})

    def test_unknown_contract(self):
        with self.assertRaises(KeyError):
            build_contract("hammadde_usage.unknown")

    def test_run_summary(self):
        summary = build_run_summary(
            tool="hammadde-usage",
            script="ingest",
            input_path="havi.xlsx",
            metrics={"entries": 3},
            warnings=["one"],
        )
        self.assertEqual(summary["status"], "ok")
        self.assertEqual(summary["input"], "havi.xlsx")
        self.assertIsNone(summary["output_file"])
        self.assertEqual(summary["warnings_count"], 1)
        self.assertEqual(summary["metrics"], {"entries": 3})
        self.assertTrue(summary["generated_at"].endswith("Z"))

    def test_payload_carries_contract_header(self):
        payload = build_payload(
            "hammadde_usage.analysis",
            {"results": []},
            build_run_summary(tool="hammadde-usage", script="analyse", input_path=None),
        )
        self.assertEqual(payload["contract"]["name"], "hammadde_usage.analysis")
        self.assertEqual(payload["schema_version"], CONTRACT_VERSIONS["hammadde_usage.analysis"])
        self.assertEqual(payload["tool_version"], __version__)
        self.assertEqual(payload["results"], [])
        self.assertIsNone(payload["run_summary"]["input"])


if __name__ == "__main__":
    unittest.main()

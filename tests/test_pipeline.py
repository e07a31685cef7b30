from __future__ import annotations

import sys
import tempfile
import unittest
from pathlib import Path

from openpyxl import Workbook

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from tabfold.patterns import DelimiterConfig
from tabfold.pipeline import ReadFailure, WriteFailure, run_aggregate, run_normalize

SAMPLE_INVENTORY = ROOT / "sample-data" / "inventory.tsv"
SAMPLE_CATALOG = ROOT / "sample-data" / "catalog.tsv"


class AggregateRunTests(unittest.TestCase):
    def test_sample_inventory(self):
        echoed: list[str] = []
        with tempfile.TemporaryDirectory() as tmpdir:
            output_path = Path(tmpdir) / "out.tsv"
            result = run_aggregate(SAMPLE_INVENTORY, output_path, DelimiterConfig(), echo=echoed.append)
            written = output_path.read_text(encoding="utf-8")

        self.assertEqual(written, "beverage\t:coke\t:\nfruit\tapple:banana\tgreen:\npet\tdog\tloyal\n")
        self.assertEqual(result.input_lines, 5)
        self.assertEqual(result.header_width, 3)
        self.assertEqual(result.output_records, 3)
        self.assertEqual(result.metrics, {"groups": 3, "largest_group": 2})
        self.assertEqual(echoed[0], "Input:")
        self.assertIn("fruit→apple→green", echoed)
        self.assertIn("Output:", echoed)
        self.assertEqual(echoed[-1], "pet→dog→loyal")

    def test_ragged_lines_are_reconciled_to_header_width(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = Path(tmpdir) / "in.tsv"
            input_path.write_text("k\ta\nk\nk\tb\textra\n", encoding="utf-8")
            output_path = Path(tmpdir) / "out.tsv"
            run_aggregate(input_path, output_path, DelimiterConfig())
            self.assertEqual(output_path.read_text(encoding="utf-8"), "k\ta::b\n")

    def test_empty_input_writes_empty_output(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = Path(tmpdir) / "in.tsv"
            input_path.write_bytes(b"")
            output_path = Path(tmpdir) / "out.tsv"
            result = run_aggregate(input_path, output_path, DelimiterConfig())
            self.assertTrue(output_path.exists())
            self.assertEqual(output_path.read_text(encoding="utf-8"), "")
        self.assertEqual(result.output_records, 0)
        self.assertEqual(result.header_width, 0)

    def test_custom_split_is_used_for_output(self):
        config = DelimiterConfig().replace_split(",")
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = Path(tmpdir) / "in.csv"
            input_path.write_text("b,1\na,2\nb,3\n", encoding="utf-8")
            output_path = Path(tmpdir) / "out.csv"
            run_aggregate(input_path, output_path, config)
            self.assertEqual(output_path.read_text(encoding="utf-8"), "a,2\nb,1:3\n")

    def test_workbook_cells_are_not_resplit(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = Path(tmpdir) / "in.xlsx"
            wb = Workbook()
            wb.active.append(["k", "a\tb", "c"])
            wb.active.append(["k", "d", "e"])
            wb.save(input_path)
            output_path = Path(tmpdir) / "out.tsv"
            result = run_aggregate(input_path, output_path, DelimiterConfig())
            written = output_path.read_text(encoding="utf-8")

        self.assertEqual(written, "k\ta\tb:d\tc:e\n")
        self.assertEqual(result.header_width, 3)


class NormalizeRunTests(unittest.TestCase):
    def test_sample_catalog(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            output_path = Path(tmpdir) / "out.tsv"
            result = run_normalize(SAMPLE_CATALOG, output_path, DelimiterConfig())
            written = output_path.read_text(encoding="utf-8")

        self.assertEqual(
            written,
            "apple\tfruit\napple\tsale\nbanana\tfruit\ncherry\tfruit\n\tbeverage\n",
        )
        self.assertEqual(result.metrics, {"candidate_tuples": 6, "duplicates_dropped": 1})
        self.assertEqual(result.output_records, 5)

    def test_empty_input_writes_empty_output(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            input_path = Path(tmpdir) / "in.tsv"
            input_path.write_bytes(b"")
            output_path = Path(tmpdir) / "out.tsv"
            result = run_normalize(input_path, output_path, DelimiterConfig())
            self.assertEqual(output_path.read_text(encoding="utf-8"), "")
        self.assertEqual(result.output_records, 0)


class FailureTests(unittest.TestCase):
    def test_missing_input_raises_read_failure_without_creating_output(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            output_path = Path(tmpdir) / "out.tsv"
            with self.assertRaises(ReadFailure) as ctx:
                run_normalize(Path(tmpdir) / "missing.tsv", output_path, DelimiterConfig())
            self.assertFalse(output_path.exists())
        self.assertIsInstance(ctx.exception.__cause__, FileNotFoundError)

    def test_unwritable_output_raises_write_failure(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(WriteFailure) as ctx:
                run_aggregate(SAMPLE_INVENTORY, Path(tmpdir), DelimiterConfig())
        self.assertIsInstance(ctx.exception.__cause__, OSError)
        self.assertIn("Could not write", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()

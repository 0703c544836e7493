"""Tests for the pawnmaster command line."""
import io
import os
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pawnmaster.main import main


def run(argv):
    out, err = io.StringIO(), io.StringIO()
    with redirect_stdout(out), redirect_stderr(err):
        code = main(argv)
    return code, out.getvalue(), err.getvalue()


class TestQuote(unittest.TestCase):

    def test_quote_ten_days(self):
        code, out, _ = run(["quote", "--principal", "25.000.000", "--rate", "2000",
                            "--start", "2025-01-10", "--end", "2025-01-19"])
        self.assertEqual(code, 0)
        self.assertIn("Days:          10", out)
        self.assertIn("Interest owed: 500,000", out)
        self.assertNotIn("Overdue", out)

    def test_quote_reports_overdue_days(self):
        code, out, _ = run(["quote", "--principal", "25000000", "--rate", "2000",
                            "--start", "2025-01-10", "--end", "2025-02-14",
                            "--due", "2025-02-09"])
        self.assertEqual(code, 0)
        self.assertIn("Overdue days:  5", out)

    def test_bad_date(self):
        code, _, err = run(["quote", "--principal", "1000", "--start", "tomorrow-ish"])
        self.assertEqual(code, 1)
        self.assertIn("Error", err)


class TestSettings(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.db = os.path.join(self.tmpdir.name, "shop.db")

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_show_defaults(self):
        code, out, _ = run(["settings", "--db", self.db])
        self.assertEqual(code, 0)
        self.assertIn("Default interest rate: 2000", out)
        self.assertIn("Default duration:      30 days", out)

    def test_update_then_quote_uses_saved_rate(self):
        code, _, _ = run(["settings", "--db", self.db, "--rate", "3000", "--duration", "45"])
        self.assertEqual(code, 0)
        _, out, _ = run(["settings", "--db", self.db])
        self.assertIn("Default duration:      45 days", out)

        _, out, _ = run(["quote", "--principal", "10.000.000", "--db", self.db,
                         "--start", "2025-01-10", "--end", "2025-01-10"])
        self.assertIn("Interest owed: 30,000", out)

    def test_zero_rate_is_refused_not_ignored(self):
        code, _, err = run(["settings", "--db", self.db, "--rate", "0"])
        self.assertEqual(code, 2)
        self.assertIn("interest_rate", err)
        _, out, _ = run(["settings", "--db", self.db])
        self.assertIn("Default interest rate: 2000", out)

    def test_json_logging(self):
        code, _, err = run(["--log-level", "INFO", "--log-format", "json",
                            "settings", "--db", self.db, "--rate", "2500"])
        self.assertEqual(code, 0)
        self.assertIn('"logger": "pawnmaster.main"', err)
        self.assertIn('"level": "INFO"', err)

    def test_invalid_duration(self):
        code, _, err = run(["settings", "--db", self.db, "--duration", "0"])
        self.assertEqual(code, 2)
        self.assertIn("duration", err)


if __name__ == "__main__":
    unittest.main(verbosity=2)

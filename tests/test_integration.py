"""Integration tests — E2E via subprocess against the sample logs."""

import json
import os
import subprocess
import sys
import tempfile
import unittest

ROOT = os.path.join(os.path.dirname(__file__), "..")
LOG_DIR = os.path.join(ROOT, "logs")
CONFIG = os.path.join(LOG_DIR, "eventy.yml")
MAIN_PY = os.path.join(ROOT, "main.py")


def _run(*args: str, log_dir: str = LOG_DIR) -> subprocess.CompletedProcess:
    """Run main.py with given args, return CompletedProcess."""
    env = dict(os.environ)
    env.pop("EVENTY_LOG_DIR", None)
    env.pop("EVENTY_CONFIG", None)
    env["NO_COLOR"] = "1"
    return subprocess.run(
        [sys.executable, MAIN_PY, "--config", CONFIG, "--log-dir", log_dir, *args],
        capture_output=True,
        text=True,
        env=env,
    )


class TestListLogs(unittest.TestCase):
    def test_lists_non_empty_logs(self):
        result = _run()
        self.assertEqual(result.returncode, 0)
        lines = result.stdout.strip().split("\n")
        self.assertEqual(lines, ["Application", "System", "Found 2 logs"])


class TestRangeQuery(unittest.TestCase):
    def test_max_one(self):
        result = _run("Application", "-m", "1")
        self.assertEqual(result.returncode, 0)
        lines = result.stdout.strip().split("\n")
        self.assertEqual(len(lines), 2)
        self.assertIn("#105", lines[0])
        self.assertEqual(lines[1], "Found 1 matching entry in Application")

    def test_bare_max_lists_everything(self):
        result = _run("Application", "-m")
        self.assertEqual(result.returncode, 0)
        lines = result.stdout.strip().split("\n")
        self.assertEqual(len(lines), 6)
        self.assertEqual(lines[-1], "Found 5 matching entries in Application")

    def test_reverse(self):
        result = _run("Application", "-m", "2", "-r")
        lines = result.stdout.strip().split("\n")
        self.assertIn("#101", lines[0])
        self.assertIn("#102", lines[1])

    def test_level_and_search(self):
        result = _run("Application", "-m", "0", "-l", "error", "-l", "crit", "-s", "disk")
        lines = result.stdout.strip().split("\n")
        self.assertEqual(len(lines), 3)
        self.assertTrue(lines[0].startswith("Critical"))
        self.assertTrue(lines[1].startswith("Error"))

    def test_search_all(self):
        result = _run("Application", "-s", "disk", "-s", "timeout", "-a")
        lines = result.stdout.strip().split("\n")
        self.assertEqual(len(lines), 2)
        self.assertIn("#105", lines[0])

    def test_search_resolved_owner(self):
        result = _run("Application", "-s", "alice")
        self.assertIn("#103", result.stdout)

    def test_date_window(self):
        result = _run("Application", "-f", "2025-05-15", "-t", "2025-05-15")
        lines = result.stdout.strip().split("\n")
        self.assertEqual(len(lines), 3)
        self.assertIn("Found 2 matching entries", lines[-1])

    def test_export(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "out.json")
            result = _run("Application", "-m", "3", "-x", path)
            self.assertEqual(result.returncode, 0)
            with open(path, encoding="utf-8") as f:
                exported = json.load(f)
            self.assertEqual([item["record_id"] for item in exported], [105, 104, 103])


class TestPointLookup(unittest.TestCase):
    def test_lookup_across_logs(self):
        result = _run("123456")
        self.assertEqual(result.returncode, 0)
        self.assertEqual(result.stdout.count("Record Id:"), 1)
        self.assertIn("NT AUTHORITY\\SYSTEM", result.stdout)
        self.assertIn("Power, Reboot", result.stdout)
        self.assertNotIn("Found", result.stdout)
        self.assertNotIn("not found", result.stderr)

    def test_lookup_missing_in_named_log(self):
        result = _run("Application", "123456")
        self.assertEqual(result.returncode, 0)
        self.assertIn("Record 123456 in Application not found", result.stderr)


class TestValidation(unittest.TestCase):
    def test_invalid_max(self):
        result = _run("Application", "-m", "abc", log_dir="/nonexistent/eventy")
        self.assertEqual(result.returncode, 1)
        self.assertIn("Invalid value for --max", result.stderr)
        self.assertNotIn("Cannot", result.stderr)
        self.assertEqual(result.stdout, "")

    def test_invalid_date(self):
        result = _run("Application", "-f", "yesterday")
        self.assertEqual(result.returncode, 1)
        self.assertIn("Invalid date", result.stderr)

    def test_unknown_log(self):
        result = _run("Nope")
        self.assertEqual(result.returncode, 0)
        self.assertIn("Log Nope not found", result.stderr)


if __name__ == "__main__":
    unittest.main()

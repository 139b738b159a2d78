"""Integration tests — E2E via subprocess against logs/sample.access.log."""

import gzip
import os
import shutil
import subprocess
import sys
import tempfile
import unittest

ROOT = os.path.join(os.path.dirname(__file__), "..")
SAMPLE_LOG = os.path.join(ROOT, "logs", "sample.access.log")
MAIN_PY = os.path.join(ROOT, "main.py")


def _run(*args: str, stdin: str | None = None) -> subprocess.CompletedProcess:
    """Run main.py with given args, return CompletedProcess."""
    env = dict(os.environ)
    for key in list(env):
        if key.startswith("HTTPD_REPORT_"):
            del env[key]
    return subprocess.run(
        [sys.executable, MAIN_PY, *args],
        capture_output=True,
        text=True,
        input=stdin,
        env=env,
    )


class TestSampleReport(unittest.TestCase):
    def test_report_from_file(self):
        result = _run(SAMPLE_LOG)
        self.assertEqual(result.returncode, 0)
        lines = result.stdout.splitlines()
        self.assertEqual(lines[0], "# HTTPD Report")
        self.assertEqual(lines[1], "## Total Unique IPs: 3")
        self.assertEqual(lines[2], "## Skipped Lines: 1")
        rows = [l for l in lines if l.startswith("|") and not l.startswith(("| ", "|-"))]
        self.assertEqual(
            rows[0],
            "|127.0.0.1|     1     |     0     |     0     |     0     |     0     "
            "|     0     |     1     |     1     |     1     |",
        )
        self.assertTrue(rows[1].startswith("|192.168.1.10|     1     |     1     |"))
        self.assertTrue(rows[2].startswith("|203.0.113.7|     0     |     0     |     1     |"))
        self.assertEqual(result.stdout.count("----------\n"), 2)

    def test_stdin(self):
        with open(SAMPLE_LOG) as f:
            data = f.read()
        result = _run("--stdin", stdin=data)
        self.assertEqual(result.returncode, 0)
        self.assertIn("## Total Unique IPs: 3", result.stdout)

    def test_output_file(self):
        out = os.path.join(tempfile.mkdtemp(), "report.md")
        result = _run(SAMPLE_LOG, "-o", out)
        self.assertEqual(result.returncode, 0)
        self.assertEqual(result.stdout, "")
        with open(out) as f:
            self.assertTrue(f.read().startswith("# HTTPD Report\n"))

    def test_connections_listing(self):
        result = _run(SAMPLE_LOG, "--connections")
        self.assertIn("### Connections from 127.0.0.1 (4)", result.stdout)


class TestLogDirectory(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        shutil.copy(SAMPLE_LOG, os.path.join(self.tmpdir, "site.access.log"))
        with open(SAMPLE_LOG, "rb") as src, gzip.open(os.path.join(self.tmpdir, "site.access.log.1.gz"), "wb") as dst:
            dst.write(src.read())

    def test_gzip_skipped_without_flag(self):
        result = _run("-l", self.tmpdir)
        self.assertEqual(result.returncode, 0)
        self.assertIn("Gzipped file detected", result.stderr)
        self.assertIn("## Total Unique IPs: 3", result.stdout)
        self.assertIn("## Skipped Lines: 1", result.stdout)

    def test_gzip_read_with_flag(self):
        result = _run("-l", self.tmpdir, "--gzip", "--connections")
        self.assertEqual(result.returncode, 0)
        self.assertIn("### Connections from 127.0.0.1 (8)", result.stdout)
        self.assertIn("## Skipped Lines: 2", result.stdout)

    def test_empty_directory(self):
        result = _run("-l", tempfile.mkdtemp())
        self.assertEqual(result.returncode, 0)
        self.assertEqual(result.stdout, "# HTTPD Report\n## Total Unique IPs: 0\n")


class TestUndecodableStdin(unittest.TestCase):
    def test_invalid_utf8_line_does_not_drop_report(self):
        with open(SAMPLE_LOG, "rb") as f:
            good = f.read().splitlines(keepends=True)
        data = b"".join(good[:3]) + b'10.9.9.9 - - [10/Oct/2023:13:55:36 -0700] "GET /\xff HTTP/1.1" 200 1\n' + good[3]
        env = {k: v for k, v in os.environ.items() if not k.startswith("HTTPD_REPORT_")}
        env["LC_ALL"] = "C.UTF-8"
        result = subprocess.run(
            [sys.executable, MAIN_PY, "-s"],
            capture_output=True,
            input=data,
            env=env,
        )
        self.assertEqual(result.returncode, 0)
        stdout = result.stdout.decode("utf-8")
        self.assertIn("## Total Unique IPs: 4", stdout)
        self.assertIn("|10.9.9.9", stdout)
        self.assertNotIn(b"Failed to read", result.stderr)


class TestErrors(unittest.TestCase):
    def test_invalid_workers(self):
        result = _run(SAMPLE_LOG, "--workers", "0")
        self.assertEqual(result.returncode, 2)
        self.assertIn("workers", result.stderr)

    def test_version(self):
        result = _run("--version")
        self.assertEqual(result.returncode, 0)
        self.assertIn("httpd-report", result.stdout)


if __name__ == "__main__":
    unittest.main()

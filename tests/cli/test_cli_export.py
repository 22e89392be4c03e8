"""
CLI tests for the 'sysdata-exporter' command.

Tests destination selection, output streams, exit codes, and the
end-to-end scenarios for stdout, unreachable and malformed URLs.
"""

from __future__ import annotations

import json
import unittest
from unittest.mock import MagicMock, patch

import pytest
import requests
from click.testing import CliRunner

from helpers.fakes import FakeProvider
from sysdata_exporter import __version__
from sysdata_exporter.cli import main

POST = "sysdata_exporter.sinks.requests.Session.post"


@pytest.mark.cli
class TestCliExport(unittest.TestCase):
    """Test the exporter command."""

    def setUp(self):
        """Set up test runner with a fake provider and no config files."""
        self.runner = CliRunner()
        self.provider = FakeProvider()

        patchers = [
            patch("sysdata_exporter.core.PsutilProvider", return_value=self.provider),
            patch("sysdata_exporter.config.DEFAULT_CONFIG_PATHS", []),
            patch.dict("os.environ", {"SYSDATA_CPU_INTERVAL": "0"}),
        ]
        for patcher in patchers:
            patcher.start()
            self.addCleanup(patcher.stop)

    def invoke(self, args, provider=None):
        if provider is not None:
            self.provider = provider
            patcher = patch("sysdata_exporter.core.PsutilProvider", return_value=provider)
            patcher.start()
            self.addCleanup(patcher.stop)
        return self.runner.invoke(main, args)

    def test_default_prints_json_line(self):
        """Scenario: no destination prints one JSON line and exits 0."""
        with patch(POST) as mock_post:
            result = self.invoke([])

        self.assertEqual(result.exit_code, 0, result.output)
        mock_post.assert_not_called()

        lines = result.stdout.splitlines()
        self.assertEqual(len(lines), 1)
        parsed = json.loads(lines[0])
        for key in ("virtual_memory_info", "disk_info", "host_info", "cpu_info"):
            self.assertIn(key, parsed)

    def test_explicit_sentinel_prints_json_line(self):
        with patch(POST) as mock_post:
            result = self.invoke(["-url", "-"])

        self.assertEqual(result.exit_code, 0)
        mock_post.assert_not_called()
        self.assertEqual(json.loads(result.stdout)["host_info"]["hostname"], "test-host")

    def test_url_posts_and_reports_response(self):
        response = MagicMock(status_code=201, reason="Created", text='{"id": "snap-123"}')
        with patch(POST, return_value=response) as mock_post:
            result = self.invoke(["-url", "http://collector.example.com/ingest"])

        self.assertEqual(result.exit_code, 0, result.output)
        mock_post.assert_called_once()
        self.assertEqual(mock_post.call_args[0][0], "http://collector.example.com/ingest")
        self.assertEqual(result.stdout, "")
        self.assertIn("Response-Status: 201 Created", result.stderr)
        self.assertIn('Response-Content: {"id": "snap-123"}', result.stderr)

    def test_long_option_form(self):
        response = MagicMock(status_code=200, reason="OK", text="")
        with patch(POST, return_value=response) as mock_post:
            result = self.invoke(["--url", "https://collector.example.com/ingest"])

        self.assertEqual(result.exit_code, 0)
        mock_post.assert_called_once()

    def test_non_2xx_response_exits_zero(self):
        response = MagicMock(status_code=503, reason="Service Unavailable", text="down")
        with patch(POST, return_value=response):
            result = self.invoke(["-url", "http://collector.example.com/ingest"])

        self.assertEqual(result.exit_code, 0)
        self.assertIn("Response-Status: 503 Service Unavailable", result.stderr)

    def test_unreachable_url_exits_non_zero(self):
        """Scenario: no listener behind the URL fails with no stdout."""
        with patch(
            POST,
            side_effect=requests.exceptions.ConnectionError("Name or service not known"),
        ) as mock_post:
            result = self.invoke(["-url", "http://example.invalid/ingest"])

        self.assertNotEqual(result.exit_code, 0)
        mock_post.assert_called_once()
        self.assertEqual(result.stdout, "")
        self.assertIn("transport failed", result.stderr)

    def test_malformed_url_exits_without_network(self):
        """Scenario: a malformed destination fails before any I/O."""
        with patch(POST) as mock_post:
            result = self.invoke(["-url", "not-a-url"])

        self.assertNotEqual(result.exit_code, 0)
        mock_post.assert_not_called()
        self.assertEqual(self.provider.calls, [])
        self.assertEqual(result.stdout, "")
        self.assertIn("validation failed", result.stderr)

    def test_collection_failure_exits_non_zero(self):
        with patch(POST) as mock_post:
            result = self.invoke([], provider=FakeProvider(fail_on="disk_partitions"))

        self.assertEqual(result.exit_code, 1)
        mock_post.assert_not_called()
        self.assertEqual(result.stdout, "")
        self.assertIn("collection failed", result.stderr)

    def test_cpu_interval_option(self):
        result = self.invoke(["--cpu-interval", "0.125"])

        self.assertEqual(result.exit_code, 0)
        self.assertEqual(self.provider.cpu_intervals, [0.125])

    def test_negative_cpu_interval_rejected(self):
        result = self.invoke(["--cpu-interval", "-1"])

        self.assertEqual(result.exit_code, 2)
        self.assertEqual(self.provider.calls, [])

    def test_config_file_destination(self):
        with self.runner.isolated_filesystem():
            with open("config.yaml", "w") as f:
                f.write("delivery:\n  url: not-a-url\n")
            result = self.invoke(["-c", "config.yaml"])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("validation failed", result.stderr)

    def test_flag_overrides_config_file(self):
        with self.runner.isolated_filesystem():
            with open("config.yaml", "w") as f:
                f.write("delivery:\n  url: not-a-url\n")
            result = self.invoke(["-c", "config.yaml", "-url", "-"])

        self.assertEqual(result.exit_code, 0)
        json.loads(result.stdout)

    def test_invalid_config_file_exits_non_zero(self):
        with self.runner.isolated_filesystem():
            with open("config.yaml", "w") as f:
                f.write("delivery: [unclosed\n")
            result = self.invoke(["-c", "config.yaml"])

        self.assertEqual(result.exit_code, 1)
        self.assertEqual(result.stdout, "")
        self.assertIn("configuration failed", result.stderr)

    def test_mistyped_config_value_exits_non_zero(self):
        with self.runner.isolated_filesystem():
            with open("config.yaml", "w") as f:
                f.write("collection:\n  cpu_sample_interval: fast\nlogging:\n  level: INFO\n")
            result = self.invoke(["-c", "config.yaml"])

        self.assertEqual(result.exit_code, 1)
        self.assertEqual(result.stdout, "")
        self.assertIn("configuration failed", result.stderr)
        self.assertEqual(self.provider.calls, [])

    def test_unknown_log_level_exits_non_zero(self):
        with self.runner.isolated_filesystem():
            with open("config.yaml", "w") as f:
                f.write("logging:\n  level: LOUD\n")
            result = self.invoke(["-c", "config.yaml"])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("configuration failed", result.stderr)

    def test_version(self):
        result = self.invoke(["--version"])

        self.assertEqual(result.exit_code, 0)
        self.assertIn(__version__, result.stdout)

    def test_help(self):
        result = self.invoke(["--help"])

        self.assertEqual(result.exit_code, 0)
        self.assertIn("-url", result.stdout)

"""
Error handling tests for Sysdata Exporter.

Tests the error taxonomy, stage tags, exception chaining and the log
records emitted on the way to a failure.
"""

from __future__ import annotations

import logging
from unittest.mock import patch

import pytest

from sysdata_exporter.collector import Collector
from sysdata_exporter.config import Config
from sysdata_exporter.core import Exporter
from sysdata_exporter.errors import (
    CollectionError,
    ConfigError,
    ExporterError,
    OutputError,
    SerializationError,
    TransportError,
    ValidationError,
)


class TestErrorTaxonomy:
    """Test error classes and their stages."""

    @pytest.mark.parametrize(
        "error_cls,stage",
        [
            (ConfigError, "configuration"),
            (ValidationError, "validation"),
            (SerializationError, "serialization"),
            (TransportError, "transport"),
            (OutputError, "output"),
        ],
    )
    def test_stage(self, error_cls, stage):
        error = error_cls("boom")

        assert isinstance(error, ExporterError)
        assert error.stage == stage
        assert str(error) == "boom"

    def test_collection_error_carries_subsystem(self):
        cause = PermissionError("denied")
        error = CollectionError("process", cause)

        assert isinstance(error, ExporterError)
        assert error.stage == "collection"
        assert error.subsystem == "process"
        assert error.cause is cause
        assert str(error) == "process query failed: denied"


class TestCollectionFailureLogging:
    """Test log output during collection."""

    def test_skipped_mountpoint_logged_at_debug(self, make_provider, caplog):
        provider = make_provider(inaccessible=("/mnt/usb",))

        with caplog.at_level(logging.DEBUG, logger="sysdata_exporter"):
            Collector(provider, cpu_sample_interval=0).collect()

        assert "Skipping inaccessible mountpoint /mnt/usb" in caplog.text

    def test_success_logged_at_info(self, fake_provider, caplog):
        with caplog.at_level(logging.INFO, logger="sysdata_exporter"):
            Collector(fake_provider, cpu_sample_interval=0).collect()

        assert "Collected 9 subsystems" in caplog.text

    def test_failure_not_logged_as_error_by_collector(self, make_provider, caplog):
        """Test that the collector leaves error reporting to its caller."""
        with caplog.at_level(logging.DEBUG, logger="sysdata_exporter"):
            with pytest.raises(CollectionError):
                Collector(make_provider(fail_on="uptime"), cpu_sample_interval=0).collect()

        assert not [r for r in caplog.records if r.levelno >= logging.ERROR]

    def test_collection_error_not_rewrapped(self, fake_provider):
        """Test that a CollectionError raised by a provider keeps its original tag."""
        def failing_partitions():
            raise CollectionError("disk", "mount table unreadable")

        fake_provider.disk_partitions = failing_partitions

        with pytest.raises(CollectionError) as exc_info:
            Collector(fake_provider, cpu_sample_interval=0).collect()

        assert exc_info.value.subsystem == "disk"
        assert str(exc_info.value) == "disk query failed: mount table unreadable"


class TestDeliveryFailureLogging:
    """Test log output during delivery."""

    def test_non_2xx_logged_as_warning(self, http_config, fake_provider, mock_response_server_error, caplog):
        with caplog.at_level(logging.INFO, logger="sysdata_exporter"):
            with patch(
                "sysdata_exporter.sinks.requests.Session.post",
                return_value=mock_response_server_error,
            ):
                Exporter(http_config, fake_provider).run()

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "500 Internal Server Error" in warnings[0].getMessage()

    def test_negative_interval_is_config_error(self, fake_provider):
        exporter = Exporter(Config(cpu_sample_interval=-0.5), fake_provider)

        with pytest.raises(ConfigError):
            exporter.run()

        assert fake_provider.calls == []

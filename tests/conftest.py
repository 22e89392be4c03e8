"""
Pytest fixtures and configuration for Sysdata Exporter tests.

Provides a fake stats provider, prebuilt snapshots, and HTTP response
mocks shared across the test suite.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from helpers.fakes import FakeProvider
from sysdata_exporter.collector import Collector
from sysdata_exporter.config import Config


@pytest.fixture
def fake_provider():
    """Provider returning fixed host state."""
    return FakeProvider()


@pytest.fixture
def make_provider():
    """Factory for providers with injected failures or inaccessible mounts."""
    return FakeProvider


@pytest.fixture
def sample_snapshot():
    """Snapshot assembled from the fake provider."""
    return Collector(FakeProvider(), cpu_sample_interval=0).collect()


@pytest.fixture
def stdout_config(tmp_path):
    """Config printing to stdout with no CPU sampling delay."""
    return Config(url="-", cpu_sample_interval=0, state_dir=str(tmp_path))


@pytest.fixture
def http_config(tmp_path):
    """Config posting to a test endpoint with no CPU sampling delay."""
    return Config(
        url="https://collector.example.com/api/v1/ingest",
        cpu_sample_interval=0,
        state_dir=str(tmp_path),
    )


def make_response(status_code: int = 200, reason: str = "OK", text: str = '{"status": "ok"}'):
    response = MagicMock()
    response.status_code = status_code
    response.reason = reason
    response.text = text
    response.ok = 200 <= status_code < 400
    return response


@pytest.fixture
def mock_response_ok():
    """Response for an accepted upload."""
    return make_response(201, "Created", '{"status": "accepted", "id": "snap-123"}')


@pytest.fixture
def mock_response_server_error():
    """Response for a failing server."""
    return make_response(500, "Internal Server Error", '{"error": "Internal server error"}')


# Pytest Configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: marks tests that read the live host")

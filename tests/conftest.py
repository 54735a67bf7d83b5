"""Shared fixtures: fixed clock, in-memory fetcher, recording dispatch."""

from __future__ import annotations

from datetime import datetime

import pytest

from nodewatch.alerts.config import AlertersConfig
from nodewatch.observability.logging import shutdown_logging
from tests.fixtures.cluster import NOW, FakeFetcher, RecordingDispatch


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def dispatch() -> RecordingDispatch:
    return RecordingDispatch()


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def alerters() -> AlertersConfig:
    return AlertersConfig(backends={"slack": {"ops": {"webhook_url": "https://hooks.example/x"}}})


@pytest.fixture(autouse=True)
def _reset_logging():
    """Detach any handler a test wired through setup_logging()."""
    yield
    shutdown_logging()

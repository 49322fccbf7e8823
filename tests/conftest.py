"""Shared test fixtures and configuration for dlcheck tests."""

from typing import Any, Dict, List
from unittest.mock import AsyncMock, MagicMock

import pytest

from dlcheck.config import RunnerConfig
from dlcheck.models.capture import CapturedEvent


def make_events(*payloads: Dict[str, Any]) -> List[CapturedEvent]:
    """Captured events with gapless insertion indices."""
    return [
        CapturedEvent(data=payload, insertion_index=index, captured_at_ms=1_700_000_000_000 + index)
        for index, payload in enumerate(payloads)
    ]


def spy_entries(*payloads: Any) -> List[Dict[str, Any]]:
    """Entries in the shape returned by the in-page ``getEvents`` helper."""
    return [
        {
            "payload": payload,
            "insertionIndex": index,
            "capturedAtMs": 1_700_000_000_000 + index,
            "preExisting": False,
        }
        for index, payload in enumerate(payloads)
    ]


@pytest.fixture
def runner_config():
    """Runner configuration with short timeouts for testing."""
    return RunnerConfig(
        base_url="http://localhost:3000",
        timeout_ms=5000,
        capture_events_on_failure=True,
        data_layer={"wait_timeout_ms": 200, "poll_interval_ms": 10},
        network={"ga4_timeout_ms": 200, "ga4_poll_interval_ms": 10},
    )


@pytest.fixture
def mock_page():
    """Mock Playwright page."""
    page = AsyncMock()
    page.on = MagicMock()
    page.remove_listener = MagicMock()
    page.set_default_timeout = MagicMock()
    page.set_default_navigation_timeout = MagicMock()
    page.url = "http://localhost:3000/"
    return page


@pytest.fixture
def purchase_events():
    """A typical checkout data-layer log."""
    return make_events(
        {"event": "page_view", "page": "/cart"},
        {"event": "add_to_cart", "value": 19.99, "items": [{"item_id": "SKU1", "quantity": 1}]},
        {"event": "begin_checkout", "value": 19.99},
        {"event": "purchase", "value": 99.99, "currency": "USD", "transaction_id": "T-1"},
    )


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


@pytest.fixture
def events_factory():
    """Factory building ``CapturedEvent`` lists from payload dicts."""
    return make_events


@pytest.fixture
def spy_entries_factory():
    """Factory building raw spy entries from payloads."""
    return spy_entries

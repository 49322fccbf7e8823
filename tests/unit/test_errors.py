"""Unit tests for error enhancement."""

import pytest

from dlcheck.errors import (
    AssertionFailure,
    EventTimeoutError,
    GA4EventTimeoutError,
    enhance_error
)


class TestEnhanceError:
    """Tests for enhance_error."""

    def test_assertion_failure_keeps_message(self):
        enhanced = enhance_error(AssertionFailure("Expected: 4\nReceived: 3"))

        assert enhanced.message == "Expected: 4\nReceived: 3"
        assert enhanced.tip is None

    def test_ga4_timeout_has_tip(self):
        enhanced = enhance_error(GA4EventTimeoutError("no hit", "purchase", 5000))

        assert enhanced.message == "no hit"
        assert "GA4" in enhanced.tip

    def test_event_timeout_names_event(self):
        enhanced = enhance_error(EventTimeoutError("purchase", 5000))

        assert "purchase" in enhanced.message
        assert "'purchase'" in enhanced.tip

    def test_selector_timeout(self):
        error = Exception('Timeout 30000ms exceeded waiting for selector "#buy-now"')

        enhanced = enhance_error(error)

        assert enhanced.message == 'Timeout waiting for element "#buy-now"'
        assert "#buy-now" in enhanced.tip

    @pytest.mark.parametrize("text,expected", [
        ("Timeout 30000ms exceeded during click", "Timeout trying to click element"),
        ("page.fill: Timeout 30000ms exceeded", "Timeout trying to fill input field"),
        ("page.goto: Timeout 30000ms exceeded", "Timeout during page navigation"),
        ("Timeout 1000ms exceeded", "Operation timed out"),
    ])
    def test_timeout_variants(self, text, expected):
        assert enhance_error(Exception(text)).message == expected

    def test_strict_mode_violation(self):
        error = Exception('strict mode violation: locator("button") resolved to 2 elements')

        enhanced = enhance_error(error)

        assert enhanced.message == 'Element "button" not found'

    def test_connection_refused(self):
        enhanced = enhance_error(Exception("page.goto: net::ERR_CONNECTION_REFUSED at http://localhost:3000/"))

        assert enhanced.message == "Cannot connect to the application"
        assert enhanced.tip

    def test_unknown_error_passes_through(self):
        enhanced = enhance_error(ValueError("boom"))

        assert enhanced.message == "boom"
        assert enhanced.tip is None

    def test_empty_message_uses_class_name(self):
        assert enhance_error(KeyError()).message == "KeyError"

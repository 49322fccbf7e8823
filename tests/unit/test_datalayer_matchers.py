"""Unit tests for data-layer matchers."""

import pytest

from dlcheck.matchers.asymmetric import Any
from dlcheck.matchers.datalayer import (
    find_sequence,
    to_have_event,
    to_have_event_count,
    to_have_event_data,
    to_have_event_sequence
)


class TestToHaveEvent:
    """Tests for to_have_event."""

    def test_event_by_name(self, purchase_events):
        assert to_have_event(purchase_events, "purchase").passed
        assert not to_have_event(purchase_events, "refund").passed

    def test_alternative_name_fields(self, events_factory):
        """Test eventName and name fields are also matched."""
        events = events_factory({"eventName": "login"}, {"name": "logout"})
        assert to_have_event(events, "login").passed
        assert to_have_event(events, "logout").passed

    def test_partial_data_match(self, purchase_events):
        assert to_have_event(purchase_events, "purchase", {"value": 99.99}).passed
        assert to_have_event(purchase_events, "purchase", {"transaction_id": Any(str)}).passed

    def test_data_mismatch_lists_candidates(self, purchase_events):
        """Test a name match with wrong data reports mismatched keys and the log."""
        result = to_have_event(purchase_events, "purchase", {"value": 50})

        assert not result.passed
        assert "Mismatched keys: value" in result.message
        assert "Captured events (4):" in result.message
        assert "add_to_cart" in result.message

    def test_missing_event_lists_available(self, purchase_events):
        result = to_have_event(purchase_events, "refund", {"value": 1})

        assert not result.passed
        assert "Available events: page_view, add_to_cart, begin_checkout, purchase" in result.message

    def test_empty_log_message(self):
        result = to_have_event([], "page_view")
        assert not result.passed
        assert "No data-layer events were captured." in result.message

    def test_verbose_pass_message_includes_listing(self, purchase_events):
        """Test the negated message carries the log in verbose mode."""
        result = to_have_event(purchase_events, "purchase", is_not=True, verbose=True)

        assert result.passed
        assert "not_.to_have_event" in result.message
        assert "Captured events (4):" in result.message

    def test_failure_listing_not_duplicated_in_verbose(self, purchase_events):
        result = to_have_event(purchase_events, "refund", verbose=True)
        assert result.message.count("Captured events (4):") == 1


class TestToHaveEventData:
    """Tests for to_have_event_data."""

    def test_matches_any_event(self, purchase_events):
        assert to_have_event_data(purchase_events, {"currency": "USD"}).passed
        assert to_have_event_data(purchase_events, {"page": "/cart"}).passed

    def test_no_match(self, purchase_events):
        result = to_have_event_data(purchase_events, {"currency": "EUR"})
        assert not result.passed
        assert "But no event matched." in result.message


class TestToHaveEventCount:
    """Tests for to_have_event_count."""

    def test_exact_count(self, events_factory):
        events = events_factory(
            {"event": "page_view"}, {"event": "click"}, {"event": "page_view"},
        )
        assert to_have_event_count(events, "page_view", 2).passed

        result = to_have_event_count(events, "page_view", 3)
        assert not result.passed
        assert "But found 2 occurrence(s)." in result.message

    def test_zero_count(self, purchase_events):
        assert to_have_event_count(purchase_events, "refund", 0).passed


class TestToHaveEventSequence:
    """Tests for sequence matching."""

    @pytest.mark.parametrize("names,expected,index", [
        (["x", "a", "b", "c"], ["a", "b"], 1),
        (["a", "x", "b"], ["a", "b"], -1),
        (["a", "b"], [], 0),
        (["a"], ["a", "b"], -1),
        (["b", "a", "a", "b"], ["a", "b"], 2),
    ])
    def test_find_sequence(self, names, expected, index):
        assert find_sequence(names, expected) == index

    def test_contiguous_sequence_passes(self, events_factory):
        events = events_factory({"event": "x"}, {"event": "a"}, {"event": "b"}, {"event": "c"})
        result = to_have_event_sequence(events, ["a", "b"])

        assert result.passed
        assert "position 2" in result.message

    def test_interrupted_sequence_fails(self, events_factory):
        events = events_factory({"event": "a"}, {"event": "x"}, {"event": "b"})
        result = to_have_event_sequence(events, ["a", "b"])

        assert not result.passed
        assert "Actual event sequence: [a, x, b]" in result.message

    def test_empty_sequence_passes(self, purchase_events):
        assert to_have_event_sequence(purchase_events, []).passed

    def test_unnamed_events_in_sequence(self, events_factory):
        events = events_factory({"event": "a"}, {"foo": 1}, {"event": "b"})
        result = to_have_event_sequence(events, ["a", "b"])
        assert "[a, unnamed, b]" in result.message

"""Matchers over a snapshot of captured data-layer events.

All functions are pure over the ``events`` list they receive; the caller reads
the log once and passes the same snapshot to a matcher and its negation.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from ..models.capture import CapturedEvent
from .asymmetric import data_matches, mismatched_keys
from .formatting import (
    event_names,
    format_available,
    format_event_list,
    matcher_hint,
    print_expected,
    print_received
)
from .result import MatcherResult

logger = logging.getLogger(__name__)


def _with_listing(message: str, events: Sequence[CapturedEvent], verbose: bool) -> str:
    if not verbose:
        return message
    return f"{message}\n\n{format_event_list(events)}"


def to_have_event(
    events: Sequence[CapturedEvent],
    event_name: str,
    data: Optional[Dict[str, Any]] = None,
    is_not: bool = False,
    verbose: bool = False,
) -> MatcherResult:
    """An event named ``event_name`` exists and, if given, partially matches ``data``."""
    hint = matcher_hint("to_have_event", "data_layer", "event_name, data", is_not=is_not)
    matching = [event for event in events if event.matches_name(event_name)]
    with_data = f"\nWith data: {print_expected(data)}" if data else ""

    if not data:
        passed = bool(matching)
        logger.debug(f"to_have_event('{event_name}'): {len(matching)} name match(es)")
        if passed:
            message = (
                f"{hint}\n\nExpected data layer not to have event: {print_expected(event_name)}\n"
                f"But found {len(matching)} occurrence(s):\n"
                + "\n".join(print_received(event.data) for event in matching)
            )
            return MatcherResult(True, _with_listing(message, events, verbose))
        message = (
            f"{hint}\n\nExpected data layer to have event: {print_expected(event_name)}\n"
            f"But event was not found.\n\n{format_event_list(events)}"
        )
        return MatcherResult(False, message)

    found = next((event for event in matching if data_matches(event.data, data)), None)
    logger.debug(
        f"to_have_event('{event_name}'): {len(matching)} name match(es), "
        f"data match={'yes' if found else 'no'}"
    )

    if found is not None:
        message = (
            f"{hint}\n\nExpected data layer not to have event: {print_expected(event_name)}"
            f"{with_data}\nBut found matching event:\n{print_received(found.data)}"
        )
        return MatcherResult(True, _with_listing(message, events, verbose))

    if not matching:
        message = (
            f"{hint}\n\nExpected data layer to have event: {print_expected(event_name)}"
            f"{with_data}\nBut event was not found.\n\n"
            f"Available events: {format_available(events)}"
        )
    else:
        details = "\n\n".join(
            f"Event {position}:\n{print_received(event.data)}\n"
            f"Mismatched keys: {', '.join(mismatched_keys(event.data, data))}"
            for position, event in enumerate(matching, start=1)
        )
        message = (
            f"{hint}\n\nExpected data layer to have event: {print_expected(event_name)}"
            f"{with_data}\nFound {len(matching)} event(s) with name '{event_name}' "
            f"but none matched the expected data:\n\n{details}"
        )
    return MatcherResult(False, f"{message}\n\n{format_event_list(events)}")


def to_have_event_data(
    events: Sequence[CapturedEvent],
    data: Dict[str, Any],
) -> MatcherResult:
    """Some event, whatever its name, partially matches ``data``."""
    hint = matcher_hint("to_have_event_data", "data_layer", "data")
    found = next((event for event in events if data_matches(event.data, data)), None)

    if found is not None:
        message = (
            f"{hint}\n\nExpected data layer not to have event data: {print_expected(data)}\n"
            f"But found matching event:\n{print_received(found.data)}"
        )
        return MatcherResult(True, message)

    message = (
        f"{hint}\n\nExpected data layer to have event data: {print_expected(data)}\n"
        f"But no event matched.\n\n{format_event_list(events)}"
    )
    return MatcherResult(False, message)


def to_have_event_count(
    events: Sequence[CapturedEvent],
    event_name: str,
    expected_count: int,
    verbose: bool = False,
) -> MatcherResult:
    """Exactly ``expected_count`` events are named ``event_name``."""
    hint = matcher_hint("to_have_event_count", "data_layer", "event_name, count")
    actual_count = len([event for event in events if event.matches_name(event_name)])
    passed = actual_count == expected_count

    if passed:
        message = (
            f"{hint}\n\nExpected data layer not to have {print_expected(expected_count)} "
            f"occurrence(s) of event: {print_expected(event_name)}\n"
            f"But found exactly {actual_count} occurrence(s)."
        )
    else:
        message = (
            f"{hint}\n\nExpected data layer to have {print_expected(expected_count)} "
            f"occurrence(s) of event: {print_expected(event_name)}\n"
            f"But found {print_received(actual_count)} occurrence(s).\n\n"
            f"Available events: {format_available(events)}"
        )
    return MatcherResult(passed, _with_listing(message, events, verbose))


def find_sequence(names: Sequence[str], expected: Sequence[str]) -> int:
    """Start index of ``expected`` as a contiguous run within ``names``, or -1."""
    if not expected:
        return 0
    width = len(expected)
    for start in range(len(names) - width + 1):
        if list(names[start:start + width]) == list(expected):
            return start
    return -1


def to_have_event_sequence(
    events: Sequence[CapturedEvent],
    expected_sequence: List[str],
    verbose: bool = False,
) -> MatcherResult:
    """``expected_sequence`` appears as adjacent event names, in order.

    An empty expected sequence always passes.
    """
    hint = matcher_hint("to_have_event_sequence", "data_layer", "event_sequence")
    names = event_names(events)
    start = find_sequence(names, expected_sequence)
    passed = start >= 0

    if passed:
        message = (
            f"{hint}\n\nExpected data layer not to have event sequence: "
            f"{print_expected(expected_sequence)}\n"
            f"But the sequence was found at position {start + 1} in events: [{', '.join(names)}]"
        )
    else:
        message = (
            f"{hint}\n\nExpected data layer to have event sequence: "
            f"{print_expected(expected_sequence)}\n"
            f"But the sequence was not found.\n\n"
            f"Actual event sequence: [{', '.join(names) or 'none'}]"
        )
    return MatcherResult(passed, _with_listing(message, events, verbose))

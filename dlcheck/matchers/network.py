"""Matchers over the GA4 hit log of a ``NetworkSpy``."""

import json
import logging
from typing import Any, Dict, List, Optional

from ..capture.network import NetworkSpy
from ..errors import GA4EventTimeoutError
from ..models.capture import NetworkHit
from ..runner.polling import poll_until
from ..validators.ga4 import GA4Validator
from .asymmetric import field_matches
from .formatting import matcher_hint, print_expected, print_received
from .result import MatcherResult

logger = logging.getLogger(__name__)

DEBUGGING_TIPS = (
    "Debugging tips:\n"
    "  1. Check if GA4 is properly initialized on the page\n"
    "  2. Verify the event name is correct\n"
    "  3. Ensure the event fires after page actions\n"
    "  4. Try increasing the timeout if the event is sent asynchronously"
)


def _captured_summary(spy: NetworkSpy) -> str:
    names = [hit.event_name or "unnamed" for hit in spy.get_ga4_events()]
    if not names:
        return "No GA4 events were captured"
    return f"Captured events: {', '.join(names)}"


def _hit_details(hit: NetworkHit) -> str:
    lines = [
        "Event details:",
        f"  Name: {hit.event_name}",
        f"  Parameters: {json.dumps(hit.parameters, indent=2, default=str)}",
    ]
    if hit.items:
        lines.append(f"  Items: {len(hit.items)} products")
    return "\n".join(lines)


async def to_have_ga4_event(
    spy: NetworkSpy,
    event_name: str,
    parameters: Optional[Dict[str, Any]] = None,
    valid: Optional[bool] = None,
    timeout_ms: int = 5000,
    interval_ms: int = 100,
    strict: bool = False,
) -> MatcherResult:
    """Wait for a GA4 hit named ``event_name`` and check it.

    The most recent hit with that name is checked against ``parameters``
    (each expected key must be present and match) and, when ``valid`` is not
    None, against the protocol validator.

    Args:
        spy: Network spy of the page under test
        event_name: Expected GA4 event name
        parameters: Expected event parameters (placeholders allowed)
        valid: True to require a valid hit, False to require validation errors
        timeout_ms: How long to poll the hit log
        interval_ms: Poll interval
        strict: Treat validator warnings as errors

    Raises:
        GA4EventTimeoutError: If no hit with that name arrives in time
    """
    hint = matcher_hint("to_have_ga4_event", "network", "event_name")

    def timeout_error() -> GA4EventTimeoutError:
        message = (
            f"{hint}\n\nExpected GA4 event with name: {print_expected(event_name)}\n"
            f"But no such event was captured within {timeout_ms}ms.\n\n"
            f"{_captured_summary(spy)}\n\n{DEBUGGING_TIPS}"
        )
        return GA4EventTimeoutError(message, event_name, timeout_ms)

    hits: List[NetworkHit] = await poll_until(
        lambda: spy.get_ga4_events_by_name(event_name),
        timeout_ms=timeout_ms,
        interval_ms=interval_ms,
        timeout_error=timeout_error,
    )
    hit = hits[-1]

    if parameters is not None:
        actual = hit.parameters
        for key, expected_value in parameters.items():
            if key not in actual:
                return MatcherResult(
                    False,
                    f"{hint}\n\nGA4 event \"{event_name}\" was found but parameter \"{key}\" is missing.\n\n"
                    f"Expected parameters: {print_expected(parameters)}\n"
                    f"Actual parameters: {print_received(actual)}",
                )
            if not field_matches(actual[key], expected_value):
                return MatcherResult(
                    False,
                    f"{hint}\n\nGA4 event \"{event_name}\" parameter \"{key}\" mismatch.\n\n"
                    f"Expected: {print_expected(expected_value)}\n"
                    f"Received: {print_received(actual[key])}",
                )

    validation = GA4Validator(strict=strict).validate_hit(hit)
    logger.debug(
        f"to_have_ga4_event('{event_name}'): {len(hits)} hit(s), valid={validation.valid}"
    )

    if valid is True and not validation.valid:
        errors = "\n".join(f"  - {violation.message}" for violation in validation.errors)
        return MatcherResult(
            False,
            f"{hint}\n\nGA4 event \"{event_name}\" was found but has validation errors:\n\n"
            f"Errors:\n{errors}\n\nFix these issues to ensure proper GA4 tracking.",
        )

    if valid is False and validation.valid:
        return MatcherResult(
            False,
            f"{hint}\n\nExpected GA4 event \"{event_name}\" to have validation errors, "
            "but it is valid.",
        )

    details = [f"Event \"{event_name}\" was sent to GA4"]
    if parameters is not None:
        details.append("Parameters match expected values")
    if validation.valid:
        details.append("Event passes GA4 validation")
    else:
        details.append(f"Event has {len(validation.errors)} validation errors")
    return MatcherResult(True, f"{hint}\n\n" + "\n".join(details) + f"\n\n{_hit_details(hit)}")


def not_to_have_ga4_event(spy: NetworkSpy, event_name: str) -> MatcherResult:
    """No hit named ``event_name`` is in the log right now. Does not wait."""
    hint = matcher_hint("to_have_ga4_event", "network", "event_name", is_not=True)
    hits = spy.get_ga4_events_by_name(event_name)

    if hits:
        return MatcherResult(
            False,
            f"{hint}\n\nExpected NO GA4 event with name: {print_expected(event_name)}\n"
            f"But found {len(hits)} event(s) for this name.\n\n{_hit_details(hits[0])}",
        )
    return MatcherResult(True, f"{hint}\n\nNo GA4 event found for name \"{event_name}\"")

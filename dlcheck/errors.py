"""Exception taxonomy and failure-message enhancement.

Assertion failures and timeouts raised inside a test body are caught by the
runner, passed through ``enhance_error`` to attach an actionable tip, and
recorded against that single test.
"""

import re
from dataclasses import dataclass
from typing import Optional


class DLCheckError(Exception):
    """Base class for dlcheck errors."""
    pass


class CollectionError(DLCheckError):
    """A test file could not be loaded or registered its tests incorrectly."""
    pass


class HitDecodeError(DLCheckError):
    """A tracking request URL could not be decoded into a hit."""
    pass


class PollTimeoutError(DLCheckError, TimeoutError):
    """A bounded poll loop ran out of time."""

    def __init__(self, message: str, timeout_ms: float):
        super().__init__(message)
        self.timeout_ms = timeout_ms


class EventTimeoutError(PollTimeoutError):
    """A data-layer event did not appear within the wait timeout."""

    def __init__(self, event_name: str, timeout_ms: float):
        super().__init__(f"Event '{event_name}' not found within {timeout_ms}ms", timeout_ms)
        self.event_name = event_name


class AssertionFailure(AssertionError):
    """An expectation did not hold."""
    pass


class GA4EventTimeoutError(AssertionFailure):
    """No GA4 hit with the expected name arrived before the matcher timeout."""

    def __init__(self, message: str, event_name: str, timeout_ms: float):
        super().__init__(message)
        self.event_name = event_name
        self.timeout_ms = timeout_ms


@dataclass
class EnhancedError:
    """Human-readable failure message plus an optional tip."""
    message: str
    tip: Optional[str] = None


_SELECTOR_PATTERN = re.compile(r'(?:selector|locator\()\s*"([^"]+)"')


def _selector_from(message: str) -> str:
    match = _SELECTOR_PATTERN.search(message)
    return match.group(1) if match else "element"


def enhance_error(error: BaseException) -> EnhancedError:
    """Map common browser-automation failures to a short message and a tip.

    Assertion failures keep their full message since it already carries the
    diff-style description.
    """
    message = str(error) or error.__class__.__name__

    if isinstance(error, AssertionFailure):
        if isinstance(error, GA4EventTimeoutError):
            return EnhancedError(
                message,
                "Check that GA4 is initialised on the page and that the action "
                "triggering the event ran before the assertion. Increase "
                "timeout_ms if the hit is sent asynchronously.",
            )
        return EnhancedError(message)

    if isinstance(error, EventTimeoutError):
        return EnhancedError(
            message,
            f"Make sure the page pushes '{error.event_name}' to the data layer "
            "after the action under test, and that the data-layer variable name "
            "in the configuration matches the one the page uses.",
        )

    lowered = message.lower()

    if "timeout" in lowered:
        if "waiting for selector" in lowered or "waiting for locator" in lowered:
            selector = _selector_from(message)
            return EnhancedError(
                f'Timeout waiting for element "{selector}"',
                f'Check that the element "{selector}" exists on the page and that '
                "the selector is correct. Use the browser developer tools to inspect it.",
            )
        if "click" in lowered:
            return EnhancedError(
                "Timeout trying to click element",
                "Check that the element is visible and clickable. It may not have "
                "loaded yet or may be covered by another element.",
            )
        if "fill" in lowered or "type" in lowered:
            return EnhancedError(
                "Timeout trying to fill input field",
                "Check that the input field exists and is enabled.",
            )
        if "goto" in lowered or "navigation" in lowered:
            return EnhancedError(
                "Timeout during page navigation",
                "Check that the URL is correct and the server is running. For local "
                "applications confirm the base URL in the configuration.",
            )
        return EnhancedError(
            "Operation timed out",
            "The operation took longer than expected. Check that every element "
            "and service the test depends on is available.",
        )

    if (
        "element not found" in lowered
        or "no element found" in lowered
        or "strict mode violation" in lowered
    ):
        selector = _selector_from(message)
        return EnhancedError(
            f'Element "{selector}" not found',
            f'Check that the element "{selector}" exists on the page. Use the '
            "browser inspector to confirm the selector.",
        )

    if "net::" in message or "ECONNREFUSED" in message or "Connection refused" in message:
        return EnhancedError(
            "Cannot connect to the application",
            "Check that your application is running and reachable from the browser.",
        )

    if "navigation failed" in lowered or "ERR_CONNECTION_REFUSED" in message:
        return EnhancedError(
            "Failed to navigate to page",
            "Check that the URL is correct and the server is listening on the expected port.",
        )

    return EnhancedError(message)

"""Synchronous matchers over plain values.

Each function evaluates one expectation and returns a ``MatcherResult``;
raising on failure is left to the ``expect`` wrapper. Receiving a value of the
wrong kind (for example ``to_have_length`` on an int) raises ``TypeError``.
"""

import math
import re
from collections.abc import Mapping, Sized
from numbers import Real
from typing import Any, Callable, Optional, Type, Union

from .asymmetric import field_matches, strict_equals, structural_equals
from .formatting import matcher_hint, print_expected, print_received
from .result import MatcherResult

_MISSING = object()

_VALUE_TYPES = (int, float, complex, str, bytes)


def _same_value(received: Any, expected: Any) -> bool:
    if received is expected:
        return True
    if isinstance(received, float) and isinstance(expected, float):
        if math.isnan(received) and math.isnan(expected):
            return True
    if type(received) is type(expected) and isinstance(received, _VALUE_TYPES):
        return received == expected
    return False


def to_be(received: Any, expected: Any) -> MatcherResult:
    """Identity for objects, value equality of the same type for scalars."""
    hint = matcher_hint("to_be")
    passed = _same_value(received, expected)
    return MatcherResult(
        passed,
        f"{hint}\n\nExpected: {print_expected(expected)}\nReceived: {print_received(received)}",
    )


def to_equal(received: Any, expected: Any) -> MatcherResult:
    """Recursive structural equality; placeholders may appear anywhere in ``expected``."""
    hint = matcher_hint("to_equal")
    passed = structural_equals(received, expected)
    return MatcherResult(
        passed,
        f"{hint}\n\nExpected: {print_expected(expected)}\nReceived: {print_received(received)}",
    )


def to_be_truthy(received: Any) -> MatcherResult:
    hint = matcher_hint("to_be_truthy", expected="")
    passed = bool(received)
    return MatcherResult(
        passed,
        f"{hint}\n\nExpected value to be truthy, but received: {print_received(received)}",
    )


def to_be_falsy(received: Any) -> MatcherResult:
    hint = matcher_hint("to_be_falsy", expected="")
    passed = not received
    return MatcherResult(
        passed,
        f"{hint}\n\nExpected value to be falsy, but received: {print_received(received)}",
    )


def to_be_defined(received: Any) -> MatcherResult:
    hint = matcher_hint("to_be_defined", expected="")
    passed = received is not None
    return MatcherResult(
        passed,
        f"{hint}\n\nExpected value to be defined, but received: {print_received(received)}",
    )


def to_be_undefined(received: Any) -> MatcherResult:
    hint = matcher_hint("to_be_undefined", expected="")
    passed = received is None
    return MatcherResult(
        passed,
        f"{hint}\n\nExpected value to be undefined, but received: {print_received(received)}",
    )


def _require_number(hint: str, value: Any, label: str) -> None:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise TypeError(f"{hint}\n\n{label} value must be a number, got {print_received(value)}")


def to_be_greater_than(received: Any, expected: Any) -> MatcherResult:
    hint = matcher_hint("to_be_greater_than")
    _require_number(hint, received, "Received")
    _require_number(hint, expected, "Expected")
    passed = received > expected
    return MatcherResult(
        passed,
        f"{hint}\n\nExpected {print_received(received)} to be greater than {print_expected(expected)}",
    )


def to_be_less_than(received: Any, expected: Any) -> MatcherResult:
    hint = matcher_hint("to_be_less_than")
    _require_number(hint, received, "Received")
    _require_number(hint, expected, "Expected")
    passed = received < expected
    return MatcherResult(
        passed,
        f"{hint}\n\nExpected {print_received(received)} to be less than {print_expected(expected)}",
    )


def to_have_length(received: Any, expected: int) -> MatcherResult:
    hint = matcher_hint("to_have_length")
    if not isinstance(received, Sized):
        raise TypeError(f"{hint}\n\nReceived value must have a length")
    passed = len(received) == expected
    return MatcherResult(
        passed,
        f"{hint}\n\nExpected length: {print_expected(expected)}\n"
        f"Received length: {print_received(len(received))}",
    )


def to_have_property(received: Any, name: str, value: Any = _MISSING) -> MatcherResult:
    """Key (for mappings) or attribute presence, optionally with a matching value."""
    hint = matcher_hint("to_have_property", expected="name")

    if isinstance(received, Mapping):
        present = name in received
        actual = received.get(name) if present else None
    else:
        present = received is not None and hasattr(received, name)
        actual = getattr(received, name, None) if present else None

    with_value = ""
    if value is _MISSING:
        passed = present
    else:
        passed = present and field_matches(actual, value)
        with_value = f" with value {print_expected(value)}"
        if present:
            with_value += f"\nReceived value: {print_received(actual)}"

    return MatcherResult(
        passed,
        f"{hint}\n\nExpected object to have property: {print_expected(name)}{with_value}",
    )


def to_contain(received: Any, expected: Any) -> MatcherResult:
    """Substring test for strings, element membership for sequences and sets."""
    hint = matcher_hint("to_contain")

    if isinstance(received, str):
        if not isinstance(expected, str):
            raise TypeError(f"{hint}\n\nExpected value must be a string when received is a string")
        passed = expected in received
    elif isinstance(received, (list, tuple, set, frozenset)):
        passed = any(strict_equals(item, expected) for item in received)
    else:
        raise TypeError(f"{hint}\n\nReceived value must be a string or a collection")

    return MatcherResult(
        passed,
        f"{hint}\n\nExpected {print_received(received)} to contain {print_expected(expected)}",
    )


def to_match(received: Any, pattern: Union[str, re.Pattern]) -> MatcherResult:
    """Regular-expression search against a string."""
    hint = matcher_hint("to_match", expected="pattern")
    if not isinstance(received, str):
        raise TypeError(f"{hint}\n\nReceived value must be a string")

    regex = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern)
    passed = regex.search(received) is not None
    return MatcherResult(
        passed,
        f"{hint}\n\nExpected {print_received(received)} to match {print_expected(regex.pattern)}",
    )


def to_throw(
    received: Callable[[], Any],
    expected: Optional[Union[Type[BaseException], str, re.Pattern]] = None,
) -> MatcherResult:
    """Call ``received`` and check that it raises.

    ``expected`` may be an exception class, a substring of the message, or a
    compiled pattern searched in the message.
    """
    hint = matcher_hint("to_throw")
    if not callable(received):
        raise TypeError(f"{hint}\n\nReceived value must be a callable")

    try:
        received()
    except Exception as e:
        if expected is None:
            return MatcherResult(True, f"{hint}\n\nExpected function not to raise, but it raised {e!r}")
        if isinstance(expected, type):
            passed = isinstance(e, expected)
            description = expected.__name__
        elif isinstance(expected, re.Pattern):
            passed = expected.search(str(e)) is not None
            description = f"message matching {expected.pattern!r}"
        else:
            passed = str(expected) in str(e)
            description = f"message containing {expected!r}"
        return MatcherResult(
            passed,
            f"{hint}\n\nExpected function to raise {description}\nReceived: {e!r}",
        )

    return MatcherResult(False, f"{hint}\n\nExpected function to raise, but it did not")

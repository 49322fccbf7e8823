"""Asymmetric placeholders and the shared field-comparison rules.

A placeholder stands in for an expected value and decides for itself whether
an actual value matches (``expect.any(str)``, ``expect.object_containing``...).
Every matcher that compares expected fields against captured data goes through
``field_matches`` so placeholders behave the same everywhere.
"""

from typing import Any as AnyValue
from typing import Iterable, List, Mapping


class AsymmetricMatcher:
    """Base class for expected-value placeholders."""

    def asymmetric_match(self, actual: AnyValue) -> bool:
        raise NotImplementedError

    def describe(self) -> str:
        return self.__class__.__name__

    def __repr__(self) -> str:
        return self.describe()


class Any(AsymmetricMatcher):
    """Matches any non-None value of the given type.

    ``Any(float)`` also accepts ints, and no numeric type accepts ``bool``.
    """

    def __init__(self, expected_type: type):
        if not isinstance(expected_type, type):
            raise TypeError("expect.any() expects a type, e.g. expect.any(str)")
        self.expected_type = expected_type

    def asymmetric_match(self, actual: AnyValue) -> bool:
        if actual is None:
            return False
        if self.expected_type in (int, float) and isinstance(actual, bool):
            return False
        if self.expected_type is float:
            return isinstance(actual, (int, float))
        return isinstance(actual, self.expected_type)

    def describe(self) -> str:
        return f"Any<{self.expected_type.__name__}>"


class ArrayContaining(AsymmetricMatcher):
    """Matches a list containing every expected element (order-free)."""

    def __init__(self, expected: Iterable[AnyValue]):
        if isinstance(expected, (str, bytes, Mapping)):
            raise TypeError("expect.array_containing() expects a list")
        self.expected = list(expected)

    def asymmetric_match(self, actual: AnyValue) -> bool:
        if not isinstance(actual, (list, tuple)):
            return False
        return all(
            any(field_matches(candidate, wanted) for candidate in actual)
            for wanted in self.expected
        )

    def describe(self) -> str:
        return f"ArrayContaining({self.expected!r})"


class ObjectContaining(AsymmetricMatcher):
    """Matches a mapping whose listed keys match recursively."""

    def __init__(self, expected: Mapping[str, AnyValue]):
        if not isinstance(expected, Mapping):
            raise TypeError("expect.object_containing() expects a dict")
        self.expected = dict(expected)

    def asymmetric_match(self, actual: AnyValue) -> bool:
        if not isinstance(actual, Mapping):
            return False
        return all(
            key in actual and field_matches(actual[key], value)
            for key, value in self.expected.items()
        )

    def describe(self) -> str:
        return f"ObjectContaining({self.expected!r})"


class StringContaining(AsymmetricMatcher):
    """Matches a string that contains the expected substring."""

    def __init__(self, expected: str):
        if not isinstance(expected, str):
            raise TypeError("expect.string_containing() expects a string")
        self.expected = expected

    def asymmetric_match(self, actual: AnyValue) -> bool:
        return isinstance(actual, str) and self.expected in actual

    def describe(self) -> str:
        return f"StringContaining({self.expected!r})"


def is_asymmetric(value: AnyValue) -> bool:
    return isinstance(value, AsymmetricMatcher)


def strict_equals(actual: AnyValue, expected: AnyValue) -> bool:
    """Literal equality that keeps ``True`` distinct from ``1``."""
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual == expected
    if actual is None or expected is None:
        return actual is expected
    return actual == expected


def structural_equals(actual: AnyValue, expected: AnyValue) -> bool:
    """Deep equality over dicts and lists honoring nested placeholders.

    Dicts must have the same key set; lists the same length and order.
    """
    if is_asymmetric(expected):
        return expected.asymmetric_match(actual)

    if isinstance(expected, Mapping):
        if not isinstance(actual, Mapping) or set(actual.keys()) != set(expected.keys()):
            return False
        return all(structural_equals(actual[key], expected[key]) for key in expected)

    if isinstance(expected, (list, tuple)):
        if not isinstance(actual, (list, tuple)) or len(actual) != len(expected):
            return False
        return all(structural_equals(a, e) for a, e in zip(actual, expected))

    return strict_equals(actual, expected)


def field_matches(actual: AnyValue, expected: AnyValue) -> bool:
    """Compare one captured field against its expected value.

    Placeholders decide for themselves, dicts and lists compare structurally,
    anything else compares literally.
    """
    if is_asymmetric(expected):
        return expected.asymmetric_match(actual)
    if isinstance(expected, (Mapping, list, tuple)):
        return structural_equals(actual, expected)
    return strict_equals(actual, expected)


def data_matches(event_data: Mapping[str, AnyValue], expected: Mapping[str, AnyValue]) -> bool:
    """Partial match: every expected key is present and its value matches."""
    return all(
        key in event_data and field_matches(event_data[key], value)
        for key, value in expected.items()
    )


def mismatched_keys(event_data: Mapping[str, AnyValue], expected: Mapping[str, AnyValue]) -> List[str]:
    """Expected keys that are missing from or differ in ``event_data``."""
    return [
        key for key, value in expected.items()
        if key not in event_data or not field_matches(event_data[key], value)
    ]


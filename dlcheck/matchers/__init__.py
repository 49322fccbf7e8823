"""Jest-style matchers for dlcheck tests.

The ``expect`` entry point lives in ``dlcheck.matchers.expect`` (and is
re-exported from ``dlcheck``); this package exports the placeholder types and
the shared comparison rules.
"""

from .asymmetric import (
    Any,
    ArrayContaining,
    AsymmetricMatcher,
    ObjectContaining,
    StringContaining,
    data_matches,
    field_matches,
    is_asymmetric,
    strict_equals,
    structural_equals
)
from .result import MatcherResult

__all__ = [
    # Placeholders
    "Any",
    "ArrayContaining",
    "AsymmetricMatcher",
    "ObjectContaining",
    "StringContaining",

    # Comparison rules
    "data_matches",
    "field_matches",
    "is_asymmetric",
    "strict_equals",
    "structural_equals",

    "MatcherResult",
]

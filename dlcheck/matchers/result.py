"""Matcher outcome type."""

from dataclasses import dataclass


@dataclass
class MatcherResult:
    """Outcome of evaluating one matcher.

    ``message`` describes the outcome from the caller's point of view: when
    ``passed`` is True it explains why a negated assertion would fail.
    """
    passed: bool
    message: str

    def __bool__(self) -> bool:
        return self.passed

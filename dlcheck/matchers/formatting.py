"""Failure message helpers shared by all matchers."""

import reprlib
from typing import Any, List, Sequence

from ..models.capture import CapturedEvent

_repr = reprlib.Repr()
_repr.maxstring = 200
_repr.maxother = 200
_repr.maxdict = 20
_repr.maxlist = 20
_repr.maxlevel = 4


def matcher_hint(
    matcher_name: str,
    received: str = "received",
    expected: str = "expected",
    is_not: bool = False,
) -> str:
    """Header line such as ``expect(data_layer).not_.to_have_event(name)``."""
    negation = "not_." if is_not else ""
    return f"expect({received}).{negation}{matcher_name}({expected})"


def print_expected(value: Any) -> str:
    return _repr.repr(value)


def print_received(value: Any) -> str:
    return _repr.repr(value)


def event_names(events: Sequence[CapturedEvent]) -> List[str]:
    return [event.display_name for event in events]


def format_available(events: Sequence[CapturedEvent]) -> str:
    """Comma-separated event names, or ``none``."""
    return ", ".join(event_names(events)) or "none"


def format_event_list(events: Sequence[CapturedEvent]) -> str:
    """Numbered listing of every captured event with its payload."""
    if not events:
        return "No data-layer events were captured."
    lines = [f"Captured events ({len(events)}):"]
    for position, event in enumerate(events, start=1):
        lines.append(f"  {position}. {event.display_name}: {print_received(event.data)}")
    return "\n".join(lines)

"""Pydantic models for the two evidence streams captured from the browser.

This module defines the records produced by the data-layer spy (one
``CapturedEvent`` per push) and by the network spy (one ``NetworkHit`` per
decoded GA4 collection request, plus a ``RawRequest`` for every request seen).
"""

import time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Conventional fields a data-layer push uses to carry its event name
EVENT_NAME_FIELDS = ("event", "eventName", "name")


def _now_ms() -> int:
    return int(time.time() * 1000)


def normalize_payload(payload: Any) -> Dict[str, Any]:
    """Turn a raw pushed payload into a field map.

    Object pushes are returned as-is. gtag-style pushes arrive as an
    ``arguments`` list such as ``['event', 'purchase', {...}]`` and are folded
    into ``{'event': 'purchase', ...params}``; any other list is kept under
    ``args``.
    """
    if isinstance(payload, dict):
        return payload

    if isinstance(payload, list):
        if len(payload) >= 2 and payload[0] == "event" and isinstance(payload[1], str):
            data: Dict[str, Any] = {"event": payload[1]}
            if len(payload) > 2 and isinstance(payload[2], dict):
                data.update(payload[2])
            return data
        return {"args": payload}

    return {"value": payload}


class CapturedEvent(BaseModel):
    """One logged data-layer push with capture metadata."""

    data: Dict[str, Any] = Field(
        default_factory=dict,
        description="Pushed payload"
    )
    insertion_index: int = Field(
        description="Zero-based position within the capture session"
    )
    captured_at_ms: int = Field(
        default_factory=_now_ms,
        description="Wall-clock capture time in epoch milliseconds"
    )
    pre_existing: bool = Field(
        default=False,
        description="True if the entry was in the queue before interception began"
    )

    @classmethod
    def from_spy_entry(cls, entry: Dict[str, Any]) -> "CapturedEvent":
        """Build from the shape recorded by the in-page spy script."""
        return cls(
            data=normalize_payload(entry.get("payload")),
            insertion_index=entry.get("insertionIndex", 0),
            captured_at_ms=entry.get("capturedAtMs") or _now_ms(),
            pre_existing=bool(entry.get("preExisting", False)),
        )

    @property
    def name(self) -> Optional[str]:
        """Event name from the first populated conventional name field."""
        for field in EVENT_NAME_FIELDS:
            value = self.data.get(field)
            if value:
                return value
        return None

    @property
    def display_name(self) -> str:
        return self.name or "unnamed"

    def matches_name(self, event_name: str) -> bool:
        """Check whether any conventional name field equals ``event_name``."""
        return any(self.data.get(field) == event_name for field in EVENT_NAME_FIELDS)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


class NetworkHit(BaseModel):
    """Normalized GA4 collection request.

    All fields default so partially populated hits (for example in validator
    checks) can be built from plain dicts using either snake_case or camelCase
    keys.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    timestamp: int = Field(
        default_factory=_now_ms,
        description="Capture time in epoch milliseconds"
    )
    url: Optional[str] = Field(default=None, description="Full request URL")
    method: str = Field(default="GET", description="HTTP method")
    event_name: Optional[str] = Field(
        default=None,
        description="Resolved event name (en, legacy hit type, fallback keys)"
    )
    measurement_id: Optional[str] = Field(default=None, description="tid or gtm")
    client_id: Optional[str] = Field(default=None, description="cid")
    session_id: Optional[str] = Field(default=None, description="sid")
    parameters: Dict[str, Any] = Field(
        default_factory=dict,
        description="Event parameters extracted from the query string"
    )
    raw_params: Dict[str, Any] = Field(
        default_factory=dict,
        description="Every query-string key/value as sent"
    )
    user_properties: Optional[Dict[str, Any]] = Field(
        default=None,
        description="up.* / upn.* properties, None when absent"
    )
    items: Optional[List[Dict[str, Any]]] = Field(
        default=None,
        description="Decoded e-commerce items, None when absent"
    )


class RawRequest(BaseModel):
    """Every request observed by the network spy, kept for debugging."""

    url: str = Field(description="Request URL")
    method: str = Field(default="GET", description="HTTP method")
    timestamp: int = Field(default_factory=_now_ms)
    is_tracking: bool = Field(
        default=False,
        description="Whether the URL matched a collection endpoint"
    )
    decode_error: Optional[str] = Field(
        default=None,
        description="Reason the request could not be decoded into a hit"
    )

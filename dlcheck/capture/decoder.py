"""GA4 collection request classification and decoding.

Turns the query string of a GA4 (or legacy Universal Analytics) collection
request into a ``NetworkHit``. Only the URL is decoded; request bodies of
batched POST hits are not inspected.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Union
from urllib.parse import parse_qsl, urlsplit

from ..errors import HitDecodeError
from ..models.capture import NetworkHit

logger = logging.getLogger(__name__)

# Measurement endpoints; a URL is a hit if it contains one of these
TRACKING_SIGNATURES = (
    "google-analytics.com/g/collect",
    "analytics.google.com/g/collect",
    "google-analytics.com/j/collect",
    "google-analytics.com/mp/collect",
    "google-analytics.com/collect",
    "stats.g.doubleclick.net/g/collect",
)

# Library bootstrap scripts that must never be classified as hits
SCRIPT_SIGNATURES = (
    "gtag/js",
    "gtm.js",
    "analytics.js",
)

# Legacy hit type (t=) to GA4 event name
HIT_TYPE_EVENT_NAMES = {
    "pageview": "page_view",
    "transaction": "purchase",
    "item": "item_view",
    "social": "social_share",
    "exception": "exception",
    "timing": "timing",
}

CORE_PARAMETERS = frozenset(
    ["v", "tid", "cid", "sid", "dl", "dt", "dr", "ul", "de", "sr", "vp", "z"]
)

LEGACY_EVENT_PARAMETERS = {
    "ea": "event_action",
    "el": "event_label",
    "ev": "event_value",
    "ec": "event_category",
}

# Positional subfields of prN item strings
ITEM_FIELDS = (
    "item_id",
    "item_name",
    "item_category",
    "item_brand",
    "item_variant",
    "price",
    "quantity",
    "coupon",
    "discount",
)

Number = Union[str, float]


def is_tracking_request(url: str) -> bool:
    """Check whether ``url`` is a GA4/UA collection hit (not a script load)."""
    if not url:
        return False
    is_tracking = any(signature in url for signature in TRACKING_SIGNATURES)
    is_script = any(signature in url for signature in SCRIPT_SIGNATURES)
    return is_tracking and not is_script


def parse_query(url: str) -> Dict[str, str]:
    """Parse the query string of ``url`` into a flat dict.

    Repeated keys keep the last value; blank values are preserved.

    Raises:
        HitDecodeError: If the URL cannot be split
    """
    if not isinstance(url, str):
        raise HitDecodeError(f"Expected URL string, got {type(url).__name__}")
    try:
        query = urlsplit(url).query
        return dict(parse_qsl(query, keep_blank_values=True))
    except ValueError as e:
        raise HitDecodeError(f"Malformed URL {url!r}: {e}") from e


def _to_number(value: str) -> Number:
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.debug(f"Keeping non-numeric value {value!r} as string")
        return value


def resolve_event_name(params: Dict[str, str]) -> Optional[str]:
    """Resolve the event name with a fixed priority.

    ``en`` wins; otherwise a legacy hit type ``t`` is mapped (``event`` hits use
    their action ``ea``); otherwise ``event`` or ``e``; otherwise ``None``.
    """
    if params.get("en"):
        return params["en"]

    hit_type = params.get("t")
    if hit_type:
        if hit_type == "event":
            return params.get("ea") or "event"
        return HIT_TYPE_EVENT_NAMES.get(hit_type, hit_type)

    return params.get("event") or params.get("e") or None


def extract_event_parameters(params: Dict[str, str]) -> Dict[str, Union[str, float]]:
    """Extract event parameters from raw query params.

    ``ep.*`` values stay strings, ``epn.*`` become floats, ``_``-prefixed
    internals and the core tracking keys are kept verbatim, and legacy event
    fields are renamed.
    """
    parameters: Dict[str, Union[str, float]] = {}

    for key, value in params.items():
        if key.startswith("ep."):
            parameters[key[3:]] = value
        elif key.startswith("epn."):
            parameters[key[4:]] = _to_number(value)
        elif key.startswith("_"):
            parameters[key] = value
        elif key in CORE_PARAMETERS:
            parameters[key] = value
        elif key in LEGACY_EVENT_PARAMETERS:
            name = LEGACY_EVENT_PARAMETERS[key]
            parameters[name] = _to_number(value) if key == "ev" else value

    return parameters


def extract_user_properties(params: Dict[str, str]) -> Optional[Dict[str, Union[str, float]]]:
    """Extract ``up.*`` and ``upn.*`` user properties, or ``None`` if there are none."""
    properties: Dict[str, Union[str, float]] = {}

    for key, value in params.items():
        if key.startswith("up."):
            properties[key[3:]] = value
        elif key.startswith("upn."):
            properties[key[4:]] = _to_number(value)

    return properties or None


def _parse_float(value: Optional[str], default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _parse_int(value: Optional[str], default: int) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def decode_item(encoded: str) -> Dict[str, Any]:
    """Decode one ``id~name~category~brand~variant~price~quantity~coupon~discount`` string."""
    parts: List[Optional[str]] = encoded.split("~")
    parts += [None] * (len(ITEM_FIELDS) - len(parts))

    item: Dict[str, Any] = dict(zip(ITEM_FIELDS, parts))
    item["price"] = _parse_float(item["price"], 0.0)
    item["quantity"] = _parse_int(item["quantity"], 1)
    item["discount"] = _parse_float(item["discount"], 0.0)
    return item


def extract_items(params: Dict[str, str]) -> Optional[List[Dict[str, Any]]]:
    """Extract e-commerce items, or ``None`` if there are none.

    Reads ``pr1``, ``pr2``, ... until the first missing index, then appends any
    JSON array found in ``ep.items``.
    """
    items: List[Dict[str, Any]] = []

    index = 1
    while params.get(f"pr{index}"):
        items.append(decode_item(params[f"pr{index}"]))
        index += 1

    encoded_items = params.get("ep.items")
    if encoded_items:
        try:
            decoded = json.loads(encoded_items)
        except ValueError:
            logger.debug("ep.items is not JSON, ignoring")
        else:
            if isinstance(decoded, list):
                items.extend(entry for entry in decoded if isinstance(entry, dict))
            else:
                logger.debug("ep.items JSON is not an array, ignoring")

    return items or None


def decode_hit(url: str, method: str = "GET", timestamp: Optional[int] = None) -> NetworkHit:
    """Decode a collection request URL into a ``NetworkHit``.

    Args:
        url: Full request URL
        method: HTTP method of the request
        timestamp: Capture time in epoch ms (now when omitted)

    Returns:
        Decoded hit

    Raises:
        HitDecodeError: If the URL cannot be parsed
    """
    params = parse_query(url)

    hit = NetworkHit(
        url=url,
        method=method,
        event_name=resolve_event_name(params),
        measurement_id=params.get("tid") or params.get("gtm") or None,
        client_id=params.get("cid"),
        session_id=params.get("sid"),
        parameters=extract_event_parameters(params),
        raw_params=params,
        user_properties=extract_user_properties(params),
        items=extract_items(params),
    )
    if timestamp is not None:
        hit.timestamp = timestamp
    return hit

"""Network spy capturing GA4 collection hits.

This module provides the NetworkSpy class that hooks into Playwright request
and response events, keeps a raw log of every request for debugging, and
decodes collection requests into ``NetworkHit`` records.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from playwright.async_api import BrowserContext, Page, Request, Response

from ..errors import HitDecodeError
from ..models.capture import NetworkHit, RawRequest
from .decoder import decode_hit, is_tracking_request

logger = logging.getLogger(__name__)

OK_STATUSES = (200, 204)


class NetworkSpy:
    """Observes requests on a page (or a whole context) and logs GA4 hits."""

    def __init__(self, target: Union[Page, BrowserContext]):
        """Initialize the spy.

        Args:
            target: Playwright page or browser context to observe
        """
        self.target = target
        self.ga4_events: List[NetworkHit] = []
        self.all_requests: List[RawRequest] = []
        self.is_listening = False

    def start_listening(self) -> None:
        """Subscribe to request and response events. Idempotent."""
        if self.is_listening:
            return

        self.target.on("request", self._on_request)
        self.target.on("response", self._on_response)
        self.is_listening = True

        logger.debug("Network spy listeners setup complete")

    def stop_listening(self) -> None:
        """Unsubscribe from request and response events."""
        if not self.is_listening:
            return

        try:
            self.target.remove_listener("request", self._on_request)
            self.target.remove_listener("response", self._on_response)
        except Exception as e:
            logger.debug(f"Error removing network spy listeners: {e}")
        self.is_listening = False

    def _on_request(self, request: Request) -> None:
        """Handle request start event.

        Args:
            request: Playwright request object
        """
        try:
            self.record_request(request.url, request.method)
        except Exception as e:
            logger.error(f"Error processing request: {e}")

    def record_request(self, url: str, method: str = "GET") -> Optional[NetworkHit]:
        """Log a request and decode it if it is a collection hit.

        Returns:
            The decoded hit, or None for non-tracking and undecodable requests
        """
        is_tracking = is_tracking_request(url)
        raw = RawRequest(url=url, method=method, is_tracking=is_tracking)
        self.all_requests.append(raw)

        if not is_tracking:
            return None

        try:
            hit = decode_hit(url, method=method, timestamp=raw.timestamp)
        except HitDecodeError as e:
            raw.decode_error = str(e)
            logger.warning(f"Could not decode tracking request: {e}")
            return None

        self.ga4_events.append(hit)
        logger.debug(f"GA4 hit captured: {hit.event_name or 'unnamed'} ({hit.measurement_id})")
        return hit

    def _on_response(self, response: Response) -> None:
        """Handle response received event.

        Args:
            response: Playwright response object
        """
        try:
            url = response.url
            if is_tracking_request(url) and response.status not in OK_STATUSES:
                logger.warning(f"GA4 request failed with status {response.status}: {url}")
        except Exception as e:
            logger.debug(f"Error processing response: {e}")

    def get_ga4_events(self) -> List[NetworkHit]:
        """All decoded hits in capture order."""
        return list(self.ga4_events)

    def get_ga4_events_by_name(self, event_name: str) -> List[NetworkHit]:
        return [hit for hit in self.ga4_events if hit.event_name == event_name]

    def has_ga4_event(self, event_name: str) -> bool:
        return any(hit.event_name == event_name for hit in self.ga4_events)

    def get_last_ga4_event(self) -> Optional[NetworkHit]:
        return self.ga4_events[-1] if self.ga4_events else None

    def get_all_requests(self) -> List[RawRequest]:
        """Every observed request, tracking or not."""
        return list(self.all_requests)

    def clear(self) -> None:
        """Clear both the hit log and the raw request log."""
        self.ga4_events.clear()
        self.all_requests.clear()

        logger.debug("Network spy cleared")

    def get_debug_info(self) -> Dict[str, Any]:
        """Summary of what the spy has seen.

        Returns:
            Dictionary with request and hit counts, hit names and the last hit
        """
        last = self.get_last_ga4_event()
        return {
            "total_requests": len(self.all_requests),
            "tracking_requests": len([r for r in self.all_requests if r.is_tracking]),
            "decode_errors": len([r for r in self.all_requests if r.decode_error]),
            "ga4_events": len(self.ga4_events),
            "events": [hit.event_name for hit in self.ga4_events],
            "last_event": last.model_dump(by_alias=True) if last else None,
        }

    def log_debug(self, level: int = logging.INFO) -> None:
        """Log a readable summary of captured hits."""
        lines = [
            "=== GA4 Network Spy Debug ===",
            f"Total Requests: {len(self.all_requests)}",
            f"GA4 Events: {len(self.ga4_events)}",
        ]
        for index, hit in enumerate(self.ga4_events, start=1):
            lines.append(f"{index}. {hit.event_name or 'unnamed'}")
            if hit.parameters:
                lines.append(f"   Parameters: {hit.parameters}")
            if hit.items:
                lines.append(f"   Items: {len(hit.items)}")
        logger.log(level, "\n".join(lines))

    def __repr__(self) -> str:
        return (
            f"NetworkSpy(requests={len(self.all_requests)}, "
            f"ga4_events={len(self.ga4_events)}, "
            f"listening={self.is_listening})"
        )

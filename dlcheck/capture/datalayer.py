"""Async accessors over the in-page data-layer capture log."""

import logging
from typing import Any, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from ..config import DataLayerSettings
from ..errors import EventTimeoutError
from ..matchers.asymmetric import data_matches
from ..models.capture import CapturedEvent
from ..runner.polling import poll_until
from .spy import HELPERS_GLOBAL

logger = logging.getLogger(__name__)


class DataLayerProxy:
    """Reads captured data-layer events from a page.

    Every read degrades to an empty result when the helpers are not installed
    or the page's evaluation context is gone (for example mid-navigation);
    only ``wait_for_event`` can fail, by timing out.
    """

    def __init__(self, page: Page, settings: Optional[DataLayerSettings] = None):
        self.page = page
        self.settings = settings or DataLayerSettings()

    async def _call_helper(self, helper: str, *args: Any) -> Any:
        """Invoke ``window.__dlcheck.<helper>(...args)`` and return its result.

        Returns None if the helper is unavailable.
        """
        script = (
            "([helpers, helper, args]) => {"
            " const state = window[helpers];"
            " if (!state || typeof state[helper] !== 'function') { return null; }"
            " return state[helper](...args);"
            " }"
        )
        try:
            return await self.page.evaluate(script, [HELPERS_GLOBAL, helper, list(args)])
        except PlaywrightError as e:
            logger.debug(f"Data-layer helper '{helper}' unavailable: {e}")
            return None

    @staticmethod
    def _to_events(entries: Any) -> List[CapturedEvent]:
        if not isinstance(entries, list):
            return []
        events = []
        for entry in entries:
            if isinstance(entry, dict):
                events.append(CapturedEvent.from_spy_entry(entry))
        return events

    async def get_events(self) -> List[CapturedEvent]:
        """All captured events in insertion order."""
        return self._to_events(await self._call_helper("getEvents"))

    async def get_events_by_name(self, event_name: str) -> List[CapturedEvent]:
        """Events whose ``event``, ``eventName`` or ``name`` equals ``event_name``."""
        return self._to_events(await self._call_helper("getEventsByName", event_name))

    async def get_event_count(self, event_name: Optional[str] = None) -> int:
        """Number of captured events, optionally restricted to one name."""
        args = (event_name,) if event_name else ()
        count = await self._call_helper("getEventCount", *args)
        return count if isinstance(count, int) else 0

    async def has_event(self, event_name: str, data: Optional[Dict[str, Any]] = None) -> bool:
        """Check for an event by name whose fields partially match ``data``."""
        events = await self.get_events_by_name(event_name)
        if not events:
            return False
        if not data:
            return True
        return any(data_matches(event.data, data) for event in events)

    async def clear_events(self) -> None:
        """Empty the capture log and reset the insertion index."""
        await self._call_helper("clearEvents")

    async def clear(self) -> None:
        await self.clear_events()

    async def wait_for_event(
        self,
        event_name: str,
        timeout_ms: Optional[int] = None
    ) -> CapturedEvent:
        """Wait until an event with ``event_name`` is captured.

        Args:
            event_name: Event name to wait for
            timeout_ms: Hard timeout; the configured default when omitted

        Returns:
            The most recent matching event

        Raises:
            EventTimeoutError: If no matching event appears in time
        """
        timeout = timeout_ms if timeout_ms is not None else self.settings.wait_timeout_ms

        async def latest_match() -> Optional[CapturedEvent]:
            events = await self.get_events_by_name(event_name)
            return events[-1] if events else None

        return await poll_until(
            latest_match,
            timeout_ms=timeout,
            interval_ms=self.settings.poll_interval_ms,
            timeout_error=lambda: EventTimeoutError(event_name, timeout),
        )

    async def is_installed(self) -> bool:
        """Whether the capture helpers exist on the current page."""
        try:
            return bool(await self.page.evaluate(
                "(helpers) => !!window[helpers] && typeof window[helpers].getEvents === 'function'",
                HELPERS_GLOBAL,
            ))
        except PlaywrightError as e:
            logger.debug(f"Could not check data-layer helpers: {e}")
            return False

    def get_page(self) -> Page:
        return self.page

    def __repr__(self) -> str:
        return f"DataLayerProxy(variable_name={self.settings.variable_name!r})"

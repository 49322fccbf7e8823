"""Per-test context passed to test bodies and hooks."""

from dataclasses import dataclass
from typing import Optional

from playwright.async_api import Page

from ..capture.datalayer import DataLayerProxy
from ..capture.network import NetworkSpy
from ..config import RunnerConfig
from ..matchers.expect import Expect


@dataclass
class TestContext:
    """What a test body sees.

    ``page`` is the Playwright page for the whole file; tests drive it directly.
    ``data_layer`` and ``network`` read the two capture logs, and ``expect``
    is bound to the run's verbosity and GA4 timeouts.
    """

    __test__ = False

    page: Page
    data_layer: DataLayerProxy
    network: NetworkSpy
    expect: Expect
    config: RunnerConfig
    suite: Optional[str] = None
    test_name: Optional[str] = None

    def url(self, path: str = "") -> str:
        """Join ``path`` onto the configured base URL."""
        base = (self.config.base_url or "").rstrip("/")
        if not path:
            return base
        if "://" in path:
            return path
        return f"{base}/{path.lstrip('/')}"

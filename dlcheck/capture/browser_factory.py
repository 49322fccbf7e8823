"""Browser factory for creating and managing Playwright browser contexts.

This module provides the BrowserFactory class that handles browser lifecycle
management and creates contexts with the data-layer spy pre-installed, so
every page opened in them records pushes from the first script onwards.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    async_playwright
)

from ..config import RunnerConfig
from .spy import DataLayerSpy

logger = logging.getLogger(__name__)


class BrowserEngineType:
    """Supported browser engine types."""
    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"


class BrowserConfig:
    """Configuration for browser launch and context setup."""

    def __init__(
        self,
        engine: str = BrowserEngineType.CHROMIUM,
        headless: bool = True,
        slow_mo: int = 0,
        viewport: Optional[Dict[str, int]] = None,
        locale: Optional[str] = None,
        timezone: Optional[str] = None,
        base_url: Optional[str] = None,
        http_credentials: Optional[Dict[str, str]] = None,
        ignore_https_errors: bool = False,
        args: Optional[List[str]] = None,
        default_timeout_ms: int = 30000,
        data_layer_variable: str = "dataLayer",
    ):
        """Initialize browser configuration.

        Args:
            engine: Browser engine to use (chromium, firefox, webkit)
            headless: Run browser in headless mode
            slow_mo: Slow down operations by specified milliseconds
            viewport: Viewport size dict with 'width' and 'height'
            locale: Locale for the browser context
            timezone: Timezone ID (e.g., 'America/New_York')
            base_url: Base URL that relative page.goto() calls resolve against
            http_credentials: Dict with 'username' and 'password' for basic auth
            ignore_https_errors: Ignore SSL/TLS certificate errors
            args: Extra launch arguments (chromium only)
            default_timeout_ms: Default timeout for page actions and navigation
            data_layer_variable: Name of the data-layer queue to intercept
        """
        self.engine = engine
        self.headless = headless
        self.slow_mo = slow_mo
        self.viewport = viewport or {'width': 1280, 'height': 720}
        self.locale = locale
        self.timezone = timezone
        self.base_url = base_url
        self.http_credentials = http_credentials
        self.ignore_https_errors = ignore_https_errors
        self.args = args or []
        self.default_timeout_ms = default_timeout_ms
        self.data_layer_variable = data_layer_variable

    @classmethod
    def from_runner_config(cls, config: RunnerConfig) -> "BrowserConfig":
        """Build from the runner configuration."""
        browser = config.browser
        return cls(
            engine=browser.engine,
            headless=browser.headless,
            slow_mo=browser.slow_mo,
            viewport=dict(browser.viewport),
            locale=browser.locale,
            timezone=browser.timezone,
            base_url=config.base_url,
            http_credentials=config.auth.model_dump() if config.auth else None,
            ignore_https_errors=browser.ignore_https_errors,
            args=list(browser.args),
            default_timeout_ms=config.timeout_ms,
            data_layer_variable=config.data_layer.variable_name,
        )

    def to_browser_options(self) -> Dict[str, Any]:
        """Convert to Playwright browser launch options."""
        options: Dict[str, Any] = {
            'headless': self.headless,
            'slow_mo': self.slow_mo,
        }

        if self.args and self.engine == BrowserEngineType.CHROMIUM:
            options['args'] = list(self.args)

        return options

    def to_context_options(self) -> Dict[str, Any]:
        """Convert to Playwright browser context options."""
        options: Dict[str, Any] = {}

        if self.viewport:
            options['viewport'] = self.viewport

        if self.locale:
            options['locale'] = self.locale

        if self.timezone:
            options['timezone_id'] = self.timezone

        if self.base_url:
            options['base_url'] = self.base_url

        if self.http_credentials:
            options['http_credentials'] = self.http_credentials

        if self.ignore_https_errors:
            options['ignore_https_errors'] = True

        return options


class BrowserFactory:
    """Factory for creating and managing Playwright browser instances."""

    def __init__(self, config: BrowserConfig):
        """Initialize browser factory with configuration.

        Args:
            config: Browser configuration object
        """
        self.config = config
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.spy = DataLayerSpy(config.data_layer_variable)
        self._context_count = 0

    async def start(self) -> None:
        """Start Playwright and launch browser."""
        if self.playwright is not None:
            logger.warning("Browser factory already started")
            return

        logger.info(f"Starting browser factory with engine: {self.config.engine}")

        try:
            self.playwright = await async_playwright().start()

            if self.config.engine == BrowserEngineType.FIREFOX:
                browser_type = self.playwright.firefox
            elif self.config.engine == BrowserEngineType.WEBKIT:
                browser_type = self.playwright.webkit
            else:
                browser_type = self.playwright.chromium

            self.browser = await browser_type.launch(**self.config.to_browser_options())

            logger.info(f"Browser launched successfully (headless={self.config.headless})")

        except Exception as e:
            logger.error(f"Failed to start browser: {e}")
            await self.stop()
            raise

    async def stop(self) -> None:
        """Stop browser and cleanup resources."""
        logger.info("Stopping browser factory")

        try:
            if self.browser:
                await self.browser.close()
                self.browser = None

            if self.playwright:
                await self.playwright.stop()
                self.playwright = None

            self._context_count = 0
            logger.info("Browser factory stopped successfully")

        except Exception as e:
            logger.error(f"Error stopping browser factory: {e}")

    async def create_context(self, **context_overrides) -> BrowserContext:
        """Create a new browser context with the data-layer spy attached.

        Args:
            **context_overrides: Override default context options

        Returns:
            New browser context

        Raises:
            RuntimeError: If browser factory not started
        """
        if not self.browser:
            raise RuntimeError("Browser factory not started. Call start() first.")

        try:
            context_options = self.config.to_context_options()
            context_options.update(context_overrides)

            context = await self.browser.new_context(**context_options)
            await self.spy.attach(context)
            self._context_count += 1

            logger.debug(f"Created browser context #{self._context_count}")
            return context

        except Exception as e:
            logger.error(f"Failed to create browser context: {e}")
            raise

    async def create_page(self, context: BrowserContext) -> Page:
        """Open a page in ``context`` with the configured default timeouts."""
        page = await context.new_page()
        page.set_default_timeout(self.config.default_timeout_ms)
        page.set_default_navigation_timeout(self.config.default_timeout_ms)
        return page

    async def close_context(self, context: BrowserContext) -> None:
        """Close a context from ``create_context`` and stop counting it as active.

        Close errors are logged, not raised.
        """
        try:
            await context.close()
        except Exception as e:
            logger.warning(f"Error closing browser context: {e}")
        finally:
            self._context_count = max(0, self._context_count - 1)

    @asynccontextmanager
    async def context(self, **context_overrides) -> AsyncGenerator[BrowserContext, None]:
        """Context manager for browser context lifecycle.

        Args:
            **context_overrides: Override default context options

        Yields:
            Browser context that will be automatically closed
        """
        context = await self.create_context(**context_overrides)
        try:
            yield context
        finally:
            await self.close_context(context)

    async def __aenter__(self) -> "BrowserFactory":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    @property
    def is_running(self) -> bool:
        return self.browser is not None

    @property
    def context_count(self) -> int:
        """Get current number of active contexts."""
        return self._context_count

    def __repr__(self) -> str:
        """String representation of browser factory."""
        return (
            f"BrowserFactory(engine={self.config.engine}, "
            f"headless={self.config.headless}, "
            f"running={self.is_running}, "
            f"contexts={self.context_count})"
        )

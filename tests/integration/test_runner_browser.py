"""Integration tests running test files through TestRunner in real Chromium.

A ``before_all`` hook in each generated test file routes the fake site to an
inline page, so no server is needed. Skipped when Chromium is not installed.
"""

import textwrap

import pytest
import pytest_asyncio
from playwright.async_api import Error as PlaywrightError

from dlcheck.capture.browser_factory import BrowserConfig, BrowserFactory
from dlcheck.config import RunnerConfig
from dlcheck.models.results import TestFailure
from dlcheck.runner.engine import TestRunner

SITE_URL = "http://dlcheck.test"

SITE_PAGE = (
    "<html><body><script>"
    "window.dataLayer = window.dataLayer || [];"
    "dataLayer.push({event: 'page_view', page_path: location.pathname});"
    "</script>"
    "<button id='buy' onclick=\"dataLayer.push({event: 'purchase', value: 25})\">Buy</button>"
    "</body></html>"
)

SERVE_SITE = f"""
SITE_PAGE = {SITE_PAGE!r}


async def serve_site(t):
    async def fulfill(route):
        await route.fulfill(body=SITE_PAGE, content_type="text/html")
    await t.page.route("{SITE_URL}/**", fulfill)
"""


def write_test_file(directory, name, source):
    path = directory / name
    path.write_text(SERVE_SITE + textwrap.dedent(source))
    return path


@pytest.fixture
def config():
    return RunnerConfig(
        base_url=SITE_URL,
        timeout_ms=10000,
        data_layer={"wait_timeout_ms": 2000, "poll_interval_ms": 20},
        network={"ga4_timeout_ms": 200, "ga4_poll_interval_ms": 20},
    )


@pytest_asyncio.fixture
async def browser_factory(config):
    """Started factory, skipped when the browser binary is missing."""
    factory = BrowserFactory(BrowserConfig.from_runner_config(config))
    try:
        await factory.start()
    except PlaywrightError as e:
        pytest.skip(f"Chromium is not available: {e}")
    yield factory
    await factory.stop()


@pytest.mark.integration
class TestRunnerInBrowser:
    """End-to-end runs against an inline site."""

    @pytest.mark.asyncio
    async def test_navigation_in_test_body(self, config, browser_factory, tmp_path):
        """Test pushes made by a navigation inside the body are asserted on."""
        path = write_test_file(tmp_path, "site.dltest.py", """
            def register(api):
                api.before_all(serve_site)

                @api.test("home page pushes page_view")
                async def home(t):
                    await t.page.goto(t.url("/"))
                    await t.expect(t.data_layer).to_have_event("page_view", {"page_path": "/"})
                    await t.expect(t.data_layer).not_.to_have_event("purchase")

                @api.test("buying pushes purchase after page_view")
                async def buy(t):
                    await t.page.goto(t.url("/shop"))
                    await t.page.click("#buy")
                    await t.data_layer.wait_for_event("purchase")
                    await t.expect(t.data_layer).to_have_event_sequence(["page_view", "purchase"])
                    await t.expect(t.network).not_.to_have_ga4_event("purchase")
        """)

        stats = await TestRunner(config, browser_factory=browser_factory).run([path])

        assert (stats.total, stats.passed, stats.failed) == (2, 2, 0)
        assert browser_factory.context_count == 0

    @pytest.mark.asyncio
    async def test_pushes_during_before_each_are_cleared(self, config, browser_factory, tmp_path):
        """Test a page_view pushed while before_each navigates is gone by the body."""
        path = write_test_file(tmp_path, "hook_nav.dltest.py", """
            def register(api):
                api.before_all(serve_site)

                @api.before_each
                async def open_home(t):
                    await t.page.goto(t.url("/"))

                @api.test("page_view from the hook")
                async def from_hook(t):
                    await t.expect(t.data_layer).to_have_event("page_view")
        """)
        runner = TestRunner(config, browser_factory=browser_factory)

        stats = await runner.run([path])

        assert stats.failed == 1
        failure = runner.failures[0]
        assert isinstance(failure, TestFailure)
        assert "page_view" in failure.error
        assert runner.results[0].captured_data_layer_events == []

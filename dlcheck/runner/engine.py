"""Test execution engine.

``TestRunner`` runs test files one after another. Each file gets a fresh
browser context and page with the data-layer spy attached and a network spy
listening; its tests are collected first and then executed sequentially
against that shared page, with the data-layer log cleared before every test.
"""

import inspect
import logging
import time
import traceback
from dataclasses import replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Union

from playwright.async_api import BrowserContext

from ..capture.browser_factory import BrowserConfig, BrowserFactory
from ..capture.datalayer import DataLayerProxy
from ..capture.network import NetworkSpy
from ..config import RunnerConfig
from ..errors import enhance_error
from ..matchers.expect import Expect
from ..models.results import (
    FileFailure,
    RunResult,
    RunStats,
    TestFailure,
    TestResult,
    TestStatus
)
from .collector import CollectedTest, CollectionContext, Hooks, TestBody
from .context import TestContext
from .loader import load_test_file
from .reporter import ConsoleReporter

logger = logging.getLogger(__name__)


class RunnerState(str, Enum):
    """Lifecycle of a run: IDLE -> COLLECTING -> EXECUTING -> REPORTING -> IDLE."""
    IDLE = "idle"
    COLLECTING = "collecting"
    EXECUTING = "executing"
    REPORTING = "reporting"


async def _invoke(fn: TestBody, context: TestContext) -> None:
    result = fn(context)
    if inspect.isawaitable(result):
        await result


class TestRunner:
    """Collects and executes dlcheck test files."""

    __test__ = False

    def __init__(
        self,
        config: RunnerConfig,
        browser_factory: Optional[BrowserFactory] = None,
        reporter: Optional[ConsoleReporter] = None,
    ):
        """Initialize the runner.

        Args:
            config: Run configuration
            browser_factory: Factory used for contexts and pages; one is built
                from ``config`` when omitted. A factory that is not running
                is started by ``run`` and stopped again when it finishes.
            reporter: Receives progress callbacks; silent when omitted
        """
        self.config = config
        self.browser_factory = browser_factory or BrowserFactory(
            BrowserConfig.from_runner_config(config)
        )
        self.reporter = reporter
        self.expect = Expect(
            verbose=config.verbose,
            ga4_timeout_ms=config.network.ga4_timeout_ms,
            ga4_interval_ms=config.network.ga4_poll_interval_ms,
        )
        self.state = RunnerState.IDLE
        self.stats = RunStats()
        self.failures: List[Union[TestFailure, FileFailure]] = []
        self.results: List[TestResult] = []

    def _reset(self) -> None:
        self.stats = RunStats()
        self.failures = []
        self.results = []

    async def run(self, test_files: Sequence[Union[str, Path]]) -> RunStats:
        """Run every file in order and return the aggregate stats.

        Raises:
            Exception: If the browser cannot be started
        """
        self._reset()
        self.stats.start_time = datetime.utcnow()
        logger.info(f"Running {len(test_files)} test file(s)")

        if self.reporter:
            self.reporter.on_run_start(len(test_files))

        started_here = not self.browser_factory.is_running
        try:
            if started_here:
                await self.browser_factory.start()

            for test_file in test_files:
                await self.run_file(test_file)

        except Exception as e:
            logger.error(f"Fatal error during test execution: {e}")
            raise

        finally:
            if started_here:
                await self.browser_factory.stop()

            self.stats.end_time = datetime.utcnow()
            self.state = RunnerState.REPORTING
            logger.info(
                f"Run finished: {self.stats.passed} passed, {self.stats.failed} failed "
                f"in {self.stats.duration_ms:.0f}ms"
            )
            if self.reporter:
                self.reporter.on_run_end(self.get_results())
            self.state = RunnerState.IDLE

        return self.stats

    async def run_file(self, test_file: Union[str, Path]) -> None:
        """Collect and execute one file.

        Errors that stop the whole file (context creation, collection) are
        recorded as a ``FileFailure``; they never propagate.
        """
        path = Path(test_file)
        if self.reporter:
            self.reporter.on_file_start(path)

        context: Optional[BrowserContext] = None
        network: Optional[NetworkSpy] = None
        try:
            self.state = RunnerState.COLLECTING
            context = await self.browser_factory.create_context()
            page = await self.browser_factory.create_page(context)

            network = NetworkSpy(page)
            network.start_listening()

            test_context = TestContext(
                page=page,
                data_layer=DataLayerProxy(page, self.config.data_layer),
                network=network,
                expect=self.expect,
                config=self.config,
            )

            collector = CollectionContext()
            load_test_file(path, collector)
            logger.info(f"Collected {len(collector.collected)} test(s) from {path}")

            self.state = RunnerState.EXECUTING
            await self._run_hook("before_all", collector.hooks.before_all, test_context)

            for suite, tests in collector.suites():
                if suite and self.reporter:
                    self.reporter.on_suite_start(suite)
                for test in tests:
                    await self._run_test(test, collector.hooks, test_context)

            await self._run_hook("after_all", collector.hooks.after_all, test_context)

        except Exception as e:
            logger.error(f"Error running test file {path}: {e}")
            self.failures.append(FileFailure(
                test_file=str(path),
                error=str(e),
                stack=traceback.format_exc(),
            ))
            if self.reporter:
                self.reporter.on_file_error(path, e)

        finally:
            if network is not None:
                network.stop_listening()
            if context is not None:
                await self.browser_factory.close_context(context)

    async def _run_hook(
        self,
        hook_name: str,
        hook: Optional[TestBody],
        context: TestContext,
    ) -> None:
        if hook is None:
            return
        try:
            await _invoke(hook, context)
        except Exception as e:
            logger.warning(f"{hook_name} hook failed: {e}")
            if self.reporter:
                self.reporter.on_hook_warning(hook_name, e)

    async def _run_test(self, test: CollectedTest, hooks: Hooks, file_context: TestContext) -> None:
        """Run one test: before_each, clear events, body, then after_each.

        Only the body decides the outcome; hook failures are reported as warnings.
        """
        self.stats.total += 1
        context = replace(file_context, suite=test.suite, test_name=test.name)
        started = time.monotonic()
        error: Optional[Exception] = None
        stack: Optional[str] = None

        await self._run_hook("before_each", hooks.before_each, context)

        try:
            await context.data_layer.clear_events()
            await _invoke(test.body, context)

        except Exception as e:
            error = e
            stack = traceback.format_exc()

        finally:
            await self._run_hook("after_each", hooks.after_each, context)

        duration_ms = (time.monotonic() - started) * 1000

        if error is None:
            self.stats.passed += 1
            result = TestResult(
                name=test.name,
                suite=test.suite,
                status=TestStatus.PASSED,
                duration_ms=duration_ms,
            )
            self.results.append(result)
            logger.debug(f"PASS {test.full_name} ({duration_ms:.0f}ms)")
            if self.reporter:
                self.reporter.on_test_pass(result)
            return

        self.stats.failed += 1
        enhanced = enhance_error(error)
        logger.debug(f"FAIL {test.full_name}: {enhanced.message}")

        snapshot = None
        if self.config.capture_events_on_failure:
            events = await context.data_layer.get_events()
            snapshot = [event.model_dump(mode="json") for event in events]

        if self.config.verbose:
            context.network.log_debug(logging.DEBUG)

        result = TestResult(
            name=test.name,
            suite=test.suite,
            status=TestStatus.FAILED,
            duration_ms=duration_ms,
            error=enhanced.message,
            tip=enhanced.tip,
            stack=stack,
            captured_data_layer_events=snapshot,
        )
        self.results.append(result)
        self.failures.append(TestFailure(
            suite=test.suite,
            test=test.name,
            error=enhanced.message,
            tip=enhanced.tip,
            stack=stack,
        ))
        if self.reporter:
            self.reporter.on_test_fail(result)

    def get_results(self) -> RunResult:
        """Snapshot of the stats, failures and per-test results so far."""
        return RunResult(
            stats=self.stats.model_copy(),
            failures=list(self.failures),
            tests=list(self.results),
        )

    def __repr__(self) -> str:
        return (
            f"TestRunner(state={self.state.value}, total={self.stats.total}, "
            f"passed={self.stats.passed}, failed={self.stats.failed})"
        )

"""Unit tests for the test execution engine."""

import sys
import textwrap
from unittest.mock import AsyncMock, MagicMock

import pytest

from dlcheck.models.results import FileFailure, TestFailure
from dlcheck.runner.engine import RunnerState, TestRunner


def write_test_file(directory, name, source):
    path = directory / name
    path.write_text(textwrap.dedent(source))
    return path


@pytest.fixture
def browser_context():
    """Mock Playwright browser context."""
    context = MagicMock()
    context.close = AsyncMock()
    return context


@pytest.fixture
def browser_factory(mock_page, browser_context):
    """Running browser factory handing out the mock page."""
    factory = MagicMock()
    factory.is_running = True
    factory.start = AsyncMock()
    factory.stop = AsyncMock()
    factory.create_context = AsyncMock(return_value=browser_context)
    factory.create_page = AsyncMock(return_value=mock_page)
    factory.close_context = AsyncMock()
    return factory


@pytest.fixture
def reporter():
    return MagicMock()


@pytest.fixture
def runner(runner_config, browser_factory, reporter):
    return TestRunner(runner_config, browser_factory=browser_factory, reporter=reporter)


class TestTestRunner:
    """Tests for TestRunner."""

    @pytest.mark.asyncio
    async def test_passing_and_failing_tests(
        self, runner, mock_page, reporter, spy_entries_factory, tmp_path
    ):
        """Test that passes and failures are counted and recorded."""
        mock_page.evaluate.return_value = spy_entries_factory(
            {"event": "page_view"},
            {"event": "purchase", "value": 10},
        )
        path = write_test_file(tmp_path, "checkout.dltest.py", """
            def register(api):
                @api.describe("Checkout")
                def checkout():
                    @api.test("fires purchase")
                    async def fires_purchase(t):
                        await t.expect(t.data_layer).to_have_event("purchase", {"value": 10})

                    @api.test("fires refund")
                    async def fires_refund(t):
                        await t.expect(t.data_layer).to_have_event("refund")

                api.test("sync body", lambda t: t.expect(1).to_be(1))
        """)

        stats = await runner.run([path])

        assert (stats.total, stats.passed, stats.failed) == (3, 2, 1)
        assert stats.start_time is not None and stats.end_time is not None
        assert runner.state == RunnerState.IDLE

        failure = runner.failures[0]
        assert isinstance(failure, TestFailure)
        assert failure.suite == "Checkout"
        assert failure.test == "fires refund"
        assert "refund" in failure.error

        failed = [r for r in runner.results if r.status == "failed"][0]
        assert [e["data"]["event"] for e in failed.captured_data_layer_events] == ["page_view", "purchase"]
        assert failed.stack

        reporter.on_suite_start.assert_called_once_with("Checkout")
        assert reporter.on_test_pass.call_count == 2
        reporter.on_test_fail.assert_called_once()
        reporter.on_run_end.assert_called_once()

    @pytest.mark.asyncio
    async def test_events_cleared_before_each_test(self, runner, mock_page, tmp_path):
        """Test that the data-layer log is cleared once per test."""
        mock_page.evaluate.return_value = []
        path = write_test_file(tmp_path, "clear.dltest.py", """
            def register(api):
                api.test("one", lambda t: None)
                api.test("two", lambda t: None)
        """)

        await runner.run([path])

        helpers = [call.args[1][1] for call in mock_page.evaluate.await_args_list]
        assert helpers.count("clearEvents") == 2

    @pytest.mark.asyncio
    async def test_no_snapshot_when_disabled(self, runner_config, browser_factory, mock_page, tmp_path):
        runner_config.capture_events_on_failure = False
        runner = TestRunner(runner_config, browser_factory=browser_factory)
        mock_page.evaluate.return_value = []
        path = write_test_file(tmp_path, "fail.dltest.py", """
            def register(api):
                api.test("fails", lambda t: t.expect(1).to_be(2))
        """)

        await runner.run([path])

        assert runner.results[0].captured_data_layer_events is None
        assert runner.stats.failed == 1

    @pytest.mark.asyncio
    async def test_hooks_run_in_order(self, runner, mock_page, tmp_path):
        """Test the hook order around each test."""
        mock_page.evaluate.return_value = []
        path = write_test_file(tmp_path, "hooks.dltest.py", """
            calls = []

            def register(api):
                api.before_all(lambda t: calls.append("before_all"))
                api.before_each(lambda t: calls.append(f"before_each:{t.test_name}"))
                api.after_each(lambda t: calls.append(f"after_each:{t.test_name}"))
                api.after_all(lambda t: calls.append("after_all"))
                api.test("a", lambda t: calls.append("a"))
                api.test("b", lambda t: calls.append("b"))
        """)

        await runner.run([path])

        module = [m for m in list(sys.modules.values())
                  if getattr(m, "__file__", None) == str(path.resolve())][-1]
        assert module.calls == [
            "before_all",
            "before_each:a", "a", "after_each:a",
            "before_each:b", "b", "after_each:b",
            "after_all",
        ]

    @pytest.mark.asyncio
    async def test_before_each_failure_is_warning(self, runner, mock_page, reporter, tmp_path):
        """Test the test body still runs on a cleared log after before_each fails."""
        mock_page.evaluate.return_value = []
        path = write_test_file(tmp_path, "before_each.dltest.py", """
            def register(api):
                def broken(t):
                    raise RuntimeError("setup broke")
                api.before_each(broken)
                api.test("a", lambda t: None)
        """)

        await runner.run([path])

        assert runner.stats.passed == 1
        assert runner.stats.failed == 0
        assert runner.failures == []
        hook_name, error = reporter.on_hook_warning.call_args.args
        assert hook_name == "before_each"
        assert str(error) == "setup broke"
        helpers = [call.args[1][1] for call in mock_page.evaluate.await_args_list]
        assert helpers.count("clearEvents") == 1

    @pytest.mark.asyncio
    async def test_after_each_failure_is_warning(self, runner, mock_page, reporter, tmp_path):
        """Test that after_each and after_all failures do not fail tests."""
        mock_page.evaluate.return_value = []
        path = write_test_file(tmp_path, "after.dltest.py", """
            def register(api):
                def broken(t):
                    raise RuntimeError("teardown broke")
                api.after_each(broken)
                api.after_all(broken)
                api.test("a", lambda t: None)
        """)

        await runner.run([path])

        assert runner.stats.passed == 1
        assert runner.failures == []
        hook_names = [call.args[0] for call in reporter.on_hook_warning.call_args_list]
        assert hook_names == ["after_each", "after_all"]

    @pytest.mark.asyncio
    async def test_collection_error_records_file_failure(
        self, runner, reporter, browser_factory, browser_context, tmp_path
    ):
        """Test that a broken file is recorded and the run continues."""
        broken = write_test_file(tmp_path, "broken.dltest.py", "X = 1\n")
        good = write_test_file(tmp_path, "good.dltest.py", """
            def register(api):
                api.test("ok", lambda t: None)
        """)

        stats = await runner.run([broken, good])

        assert stats.passed == 1
        assert isinstance(runner.failures[0], FileFailure)
        assert runner.failures[0].test_file == str(broken)
        reporter.on_file_error.assert_called_once()
        assert browser_factory.close_context.await_count == 2
        browser_factory.close_context.assert_awaited_with(browser_context)
        assert not runner.get_results().success

    @pytest.mark.asyncio
    async def test_network_spy_attached_per_file(self, runner, mock_page, tmp_path):
        mock_page.evaluate.return_value = []
        path = write_test_file(tmp_path, "net.dltest.py", """
            def register(api):
                api.test("ok", lambda t: None)
        """)

        await runner.run([path])

        events = [call.args[0] for call in mock_page.on.call_args_list]
        assert events == ["request", "response"]
        assert mock_page.remove_listener.call_count == 2

    @pytest.mark.asyncio
    async def test_starts_and_stops_idle_factory(self, runner, browser_factory):
        browser_factory.is_running = False

        await runner.run([])

        browser_factory.start.assert_awaited_once()
        browser_factory.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_running_factory_left_running(self, runner, browser_factory):
        await runner.run([])

        browser_factory.start.assert_not_awaited()
        browser_factory.stop.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fatal_browser_error_propagates(self, runner, browser_factory, reporter):
        browser_factory.is_running = False
        browser_factory.start.side_effect = RuntimeError("no browser")

        with pytest.raises(RuntimeError, match="no browser"):
            await runner.run([])

        reporter.on_run_end.assert_called_once()
        assert runner.state == RunnerState.IDLE

    @pytest.mark.asyncio
    async def test_results_reset_between_runs(self, runner, mock_page, tmp_path):
        mock_page.evaluate.return_value = []
        path = write_test_file(tmp_path, "again.dltest.py", """
            def register(api):
                api.test("fails", lambda t: t.expect(True).to_be_falsy())
        """)

        await runner.run([path])
        stats = await runner.run([path])

        assert stats.total == 1
        assert len(runner.failures) == 1

    def test_repr(self, runner):
        assert "state=idle" in repr(runner)

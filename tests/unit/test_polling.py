"""Unit tests for the bounded poll loop."""

from unittest.mock import AsyncMock

import pytest

from dlcheck.errors import EventTimeoutError, PollTimeoutError
from dlcheck.runner.polling import poll_until


class FakeClock:
    """Monotonic clock advanced by the fake sleep."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class TestPollUntil:
    """Tests for poll_until."""

    def setup_method(self):
        """Set up test fixtures."""
        self.clock = FakeClock()

    @pytest.mark.asyncio
    async def test_returns_first_truthy_result(self):
        """Test that polling stops on the first truthy check result."""
        results = iter([None, [], ["hit"]])

        value = await poll_until(
            lambda: next(results), 1000, 50, sleep=self.clock.sleep, clock=self.clock
        )

        assert value == ["hit"]
        assert self.clock.sleeps == [0.05, 0.05]

    @pytest.mark.asyncio
    async def test_async_check(self):
        """Test that coroutine checks are awaited."""
        check = AsyncMock(side_effect=[None, "ready"])

        value = await poll_until(check, 1000, 10, sleep=self.clock.sleep, clock=self.clock)

        assert value == "ready"
        assert check.await_count == 2

    @pytest.mark.asyncio
    async def test_check_runs_at_least_once_with_zero_timeout(self):
        """Test that a zero timeout still checks once."""
        calls = []

        def check():
            calls.append(1)
            return "done"

        assert await poll_until(check, 0, 10, sleep=self.clock.sleep, clock=self.clock) == "done"
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_timeout_raises_poll_timeout_error(self):
        """Test the default timeout error."""
        with pytest.raises(PollTimeoutError) as exc_info:
            await poll_until(lambda: None, 250, 100, sleep=self.clock.sleep, clock=self.clock)

        assert exc_info.value.timeout_ms == 250
        assert isinstance(exc_info.value, TimeoutError)
        assert len(self.clock.sleeps) == 3

    @pytest.mark.asyncio
    async def test_custom_timeout_error(self):
        """Test that the error factory is used on timeout."""
        with pytest.raises(EventTimeoutError) as exc_info:
            await poll_until(
                lambda: False,
                100,
                50,
                timeout_error=lambda: EventTimeoutError("purchase", 100),
                sleep=self.clock.sleep,
                clock=self.clock,
            )

        assert exc_info.value.event_name == "purchase"
        assert "purchase" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_real_sleep(self):
        """Test the default sleep and clock with a tiny interval."""
        results = iter([None, 1])

        assert await poll_until(lambda: next(results), 500, 1) == 1

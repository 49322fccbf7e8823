"""Bounded poll loop used for event waits and GA4 hit lookups."""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, TypeVar, Union

from ..errors import PollTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Check = Callable[[], Union[Optional[T], Awaitable[Optional[T]]]]


async def poll_until(
    check: Check,
    timeout_ms: float,
    interval_ms: float,
    timeout_error: Optional[Callable[[], BaseException]] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> T:
    """Call ``check`` every ``interval_ms`` until it returns a truthy value.

    The check is always called at least once. There is no backoff: the loop
    sleeps a fixed interval between attempts and gives up once ``timeout_ms``
    has elapsed.

    Args:
        check: Sync or async callable returning a truthy result when done
        timeout_ms: Hard timeout in milliseconds
        interval_ms: Fixed delay between attempts in milliseconds
        timeout_error: Factory for the error raised on timeout
        sleep: Awaitable sleep, injectable for tests
        clock: Monotonic clock in seconds, injectable for tests

    Returns:
        The first truthy check result

    Raises:
        PollTimeoutError: If the timeout elapses first
    """
    deadline = clock() + timeout_ms / 1000.0
    attempts = 0

    while True:
        attempts += 1
        result = check()
        if asyncio.iscoroutine(result) or isinstance(result, asyncio.Future):
            result = await result
        if result:
            return result

        if clock() >= deadline:
            logger.debug(f"Poll gave up after {attempts} attempts ({timeout_ms}ms)")
            if timeout_error is not None:
                raise timeout_error()
            raise PollTimeoutError(f"Condition not met within {timeout_ms}ms", timeout_ms)

        await sleep(interval_ms / 1000.0)

"""Collection API handed to a test file's ``register(api)`` function.

A test file registers its tests and hooks against a ``CollectionContext``;
nothing runs during collection except ``describe`` callbacks, which execute
immediately so the tests they declare are tagged with the suite name.

Both ``test`` and ``describe`` work as plain calls and as decorators::

    def register(api):
        @api.describe("Checkout")
        def checkout():
            @api.test("fires purchase")
            async def fires_purchase(t):
                await t.expect(t.data_layer).to_have_event("purchase")

        api.test("homepage loads", homepage_loads)
"""

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from ..errors import CollectionError

logger = logging.getLogger(__name__)

# Test bodies and hooks receive the TestContext; they may be sync or async
TestBody = Callable[[Any], Optional[Awaitable[None]]]


@dataclass
class CollectedTest:
    """A registered test awaiting execution."""

    __test__ = False

    name: str
    body: TestBody
    suite: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.suite} > {self.name}" if self.suite else self.name


@dataclass
class Hooks:
    """One hook of each kind per file."""
    before_all: Optional[TestBody] = None
    before_each: Optional[TestBody] = None
    after_each: Optional[TestBody] = None
    after_all: Optional[TestBody] = None


class _TestRegistrar:
    """The ``api.test`` callable, which also carries ``api.test.describe``."""

    def __init__(self, collector: "CollectionContext"):
        self._collector = collector

    def __call__(self, name: str, body: Optional[TestBody] = None):
        if body is None:
            def decorator(fn: TestBody) -> TestBody:
                self._collector.add_test(name, fn)
                return fn
            return decorator
        self._collector.add_test(name, body)
        return body

    def describe(self, name: str, fn: Optional[Callable[[], Any]] = None):
        return self._collector.describe(name, fn)


class CollectionContext:
    """Collects tests, suites and hooks from one test file."""

    def __init__(self):
        self.collected: List[CollectedTest] = []
        self.hooks = Hooks()
        self.current_suite: Optional[str] = None
        self.test = _TestRegistrar(self)

    def add_test(self, name: str, body: TestBody) -> CollectedTest:
        if not isinstance(name, str) or not name:
            raise CollectionError(f"Test name must be a non-empty string, got {name!r}")
        if not callable(body):
            raise CollectionError(f"Test '{name}' body must be callable")

        test = CollectedTest(name=name, body=body, suite=self.current_suite)
        self.collected.append(test)
        logger.debug(f"Collected test '{test.full_name}'")
        return test

    def describe(self, name: str, fn: Optional[Callable[[], Any]] = None):
        """Run ``fn`` immediately with ``name`` as the current suite.

        The innermost ``describe`` name wins for nested blocks; the enclosing
        suite is restored afterwards even if ``fn`` raises.
        """
        if fn is None:
            def decorator(callback: Callable[[], Any]) -> Callable[[], Any]:
                self.describe(name, callback)
                return callback
            return decorator

        if not isinstance(name, str) or not name:
            raise CollectionError(f"Suite name must be a non-empty string, got {name!r}")
        if inspect.iscoroutinefunction(fn):
            raise CollectionError(f"describe('{name}') callback must not be async")

        previous = self.current_suite
        self.current_suite = name
        try:
            fn()
        finally:
            self.current_suite = previous
        return fn

    def _set_hook(self, hook_name: str, fn: TestBody) -> TestBody:
        if not callable(fn):
            raise CollectionError(f"{hook_name} hook must be callable")
        if getattr(self.hooks, hook_name) is not None:
            logger.debug(f"Replacing previously registered {hook_name} hook")
        setattr(self.hooks, hook_name, fn)
        return fn

    def before_all(self, fn: TestBody) -> TestBody:
        return self._set_hook("before_all", fn)

    def before_each(self, fn: TestBody) -> TestBody:
        return self._set_hook("before_each", fn)

    def after_each(self, fn: TestBody) -> TestBody:
        return self._set_hook("after_each", fn)

    def after_all(self, fn: TestBody) -> TestBody:
        return self._set_hook("after_all", fn)

    def suites(self) -> List[Tuple[Optional[str], List[CollectedTest]]]:
        """Group tests for execution.

        Suites come first, in the order their first test was collected, each
        with its tests in collection order; standalone tests follow as a
        single ``None`` group.
        """
        grouped: Dict[str, List[CollectedTest]] = {}
        standalone: List[CollectedTest] = []

        for test in self.collected:
            if test.suite:
                grouped.setdefault(test.suite, []).append(test)
            else:
                standalone.append(test)

        groups: List[Tuple[Optional[str], List[CollectedTest]]] = list(grouped.items())
        if standalone:
            groups.append((None, standalone))
        return groups

    def __len__(self) -> int:
        return len(self.collected)

    def __repr__(self) -> str:
        return f"CollectionContext(tests={len(self.collected)}, suite={self.current_suite!r})"

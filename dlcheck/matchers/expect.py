"""The ``expect`` entry point.

``expect(value)`` picks an expectation object by the type of ``value``:

- ``DataLayerProxy`` gives async data-layer matchers,
- ``NetworkSpy`` gives the async GA4 matcher,
- anything else gives the synchronous basic matchers.

A failing matcher raises ``AssertionFailure`` carrying the matcher message.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Type, Union

from ..capture.datalayer import DataLayerProxy
from ..capture.network import NetworkSpy
from ..errors import AssertionFailure
from . import basic
from . import datalayer as datalayer_matchers
from . import network as network_matchers
from .asymmetric import Any as AnyOf
from .asymmetric import ArrayContaining, ObjectContaining, StringContaining
from .result import MatcherResult


def _check(result: MatcherResult, negated: bool = False) -> None:
    failed = result.passed if negated else not result.passed
    if failed:
        raise AssertionFailure(result.message)


class ValueExpectation:
    """Synchronous matchers for plain values."""

    def __init__(self, received: Any):
        self.received = received

    def to_be(self, expected: Any) -> None:
        _check(basic.to_be(self.received, expected))

    def to_equal(self, expected: Any) -> None:
        _check(basic.to_equal(self.received, expected))

    def to_be_truthy(self) -> None:
        _check(basic.to_be_truthy(self.received))

    def to_be_falsy(self) -> None:
        _check(basic.to_be_falsy(self.received))

    def to_be_defined(self) -> None:
        _check(basic.to_be_defined(self.received))

    def to_be_undefined(self) -> None:
        _check(basic.to_be_undefined(self.received))

    def to_be_greater_than(self, expected: Any) -> None:
        _check(basic.to_be_greater_than(self.received, expected))

    def to_be_less_than(self, expected: Any) -> None:
        _check(basic.to_be_less_than(self.received, expected))

    def to_have_length(self, expected: int) -> None:
        _check(basic.to_have_length(self.received, expected))

    def to_have_property(self, name: str, *value: Any) -> None:
        _check(basic.to_have_property(self.received, name, *value))

    def to_contain(self, expected: Any) -> None:
        _check(basic.to_contain(self.received, expected))

    def to_match(self, pattern: Any) -> None:
        _check(basic.to_match(self.received, pattern))

    def to_throw(self, expected: Any = None) -> None:
        _check(basic.to_throw(self.received, expected))


class NegatedDataLayerExpectation:
    """``expect(data_layer).not_``: only ``to_have_event`` can be negated."""

    def __init__(self, proxy: DataLayerProxy, verbose: bool = False):
        self.proxy = proxy
        self.verbose = verbose

    async def to_have_event(self, event_name: str, data: Optional[Dict[str, Any]] = None) -> None:
        events = await self.proxy.get_events()
        result = datalayer_matchers.to_have_event(
            events, event_name, data, is_not=True, verbose=self.verbose
        )
        _check(result, negated=True)


class DataLayerExpectation:
    """Async matchers over the captured data-layer log.

    Each matcher reads one snapshot of the log when it starts.
    """

    def __init__(self, proxy: DataLayerProxy, verbose: bool = False):
        self.proxy = proxy
        self.verbose = verbose

    @property
    def not_(self) -> NegatedDataLayerExpectation:
        return NegatedDataLayerExpectation(self.proxy, verbose=self.verbose)

    async def to_have_event(self, event_name: str, data: Optional[Dict[str, Any]] = None) -> None:
        events = await self.proxy.get_events()
        _check(datalayer_matchers.to_have_event(events, event_name, data, verbose=self.verbose))

    async def to_have_event_data(self, data: Dict[str, Any]) -> None:
        events = await self.proxy.get_events()
        _check(datalayer_matchers.to_have_event_data(events, data))

    async def to_have_event_count(self, event_name: str, count: int) -> None:
        events = await self.proxy.get_events()
        _check(datalayer_matchers.to_have_event_count(events, event_name, count, verbose=self.verbose))

    async def to_have_event_sequence(self, sequence: List[str]) -> None:
        events = await self.proxy.get_events()
        _check(datalayer_matchers.to_have_event_sequence(events, sequence, verbose=self.verbose))


class NegatedNetworkExpectation:
    """``expect(network).not_``: checks the current hit log without waiting."""

    def __init__(self, spy: NetworkSpy):
        self.spy = spy

    async def to_have_ga4_event(self, event_name: str) -> None:
        _check(network_matchers.not_to_have_ga4_event(self.spy, event_name))


class NetworkExpectation:
    """Async matcher over the GA4 hit log."""

    def __init__(self, spy: NetworkSpy, timeout_ms: int = 5000, interval_ms: int = 100):
        self.spy = spy
        self.timeout_ms = timeout_ms
        self.interval_ms = interval_ms

    @property
    def not_(self) -> NegatedNetworkExpectation:
        return NegatedNetworkExpectation(self.spy)

    async def to_have_ga4_event(
        self,
        event_name: str,
        parameters: Optional[Dict[str, Any]] = None,
        *,
        valid: Optional[bool] = None,
        timeout_ms: Optional[int] = None,
        strict: bool = False,
    ) -> None:
        result = await network_matchers.to_have_ga4_event(
            self.spy,
            event_name,
            parameters=parameters,
            valid=valid,
            timeout_ms=timeout_ms if timeout_ms is not None else self.timeout_ms,
            interval_ms=self.interval_ms,
            strict=strict,
        )
        _check(result)


Expectation = Union[ValueExpectation, DataLayerExpectation, NetworkExpectation]


class Expect:
    """Callable ``expect`` bound to run settings.

    The asymmetric placeholder factories are available as attributes:
    ``expect.any(str)``, ``expect.array_containing([...])``,
    ``expect.object_containing({...})`` and ``expect.string_containing("...")``.
    """

    def __init__(self, verbose: bool = False, ga4_timeout_ms: int = 5000, ga4_interval_ms: int = 100):
        self.verbose = verbose
        self.ga4_timeout_ms = ga4_timeout_ms
        self.ga4_interval_ms = ga4_interval_ms

    def __call__(self, value: Any) -> Expectation:
        if isinstance(value, DataLayerProxy):
            return DataLayerExpectation(value, verbose=self.verbose)
        if isinstance(value, NetworkSpy):
            return NetworkExpectation(
                value,
                timeout_ms=self.ga4_timeout_ms,
                interval_ms=self.ga4_interval_ms,
            )
        return ValueExpectation(value)

    @staticmethod
    def any(expected_type: Type) -> AnyOf:
        return AnyOf(expected_type)

    @staticmethod
    def array_containing(expected: Iterable[Any]) -> ArrayContaining:
        return ArrayContaining(expected)

    @staticmethod
    def object_containing(expected: Mapping[str, Any]) -> ObjectContaining:
        return ObjectContaining(expected)

    @staticmethod
    def string_containing(expected: str) -> StringContaining:
        return StringContaining(expected)


expect = Expect()

"""dlcheck - automated tests for analytics instrumentation.

Test files (``*.dltest.py``) drive a real browser through Playwright and
assert on two evidence streams: the events pushed to the page's data layer
and the GA4 collection hits the page sends over the network.
"""

from .config import RunnerConfig, load_config
from .errors import (
    AssertionFailure,
    CollectionError,
    DLCheckError,
    EventTimeoutError,
    GA4EventTimeoutError,
    HitDecodeError,
    PollTimeoutError,
    enhance_error
)
from .models import (
    CapturedEvent,
    NetworkHit,
    RunResult,
    RunStats,
    TestResult
)
from .capture import BrowserConfig, BrowserFactory, DataLayerProxy, NetworkSpy, decode_hit
from .validators import GA4Validator, ValidationResult, validate_hit
from .matchers.expect import Expect, expect
from .runner.collector import CollectionContext
from .runner.context import TestContext
from .runner.engine import RunnerState, TestRunner

__all__ = [
    # Configuration
    'RunnerConfig',
    'load_config',

    # Errors
    'AssertionFailure',
    'CollectionError',
    'DLCheckError',
    'EventTimeoutError',
    'GA4EventTimeoutError',
    'HitDecodeError',
    'PollTimeoutError',
    'enhance_error',

    # Models
    'CapturedEvent',
    'NetworkHit',
    'RunResult',
    'RunStats',
    'TestResult',

    # Capture
    'BrowserConfig',
    'BrowserFactory',
    'DataLayerProxy',
    'NetworkSpy',
    'decode_hit',

    # Validation
    'GA4Validator',
    'ValidationResult',
    'validate_hit',

    # Assertions
    'Expect',
    'expect',

    # Runner
    'CollectionContext',
    'TestContext',
    'RunnerState',
    'TestRunner',
]

__version__ = "0.1.0"

"""Data models for captured evidence and run results."""

from .capture import CapturedEvent, NetworkHit, RawRequest, normalize_payload
from .results import (
    FileFailure,
    RunResult,
    RunStats,
    TestFailure,
    TestResult,
    TestStatus,
)

__all__ = [
    "CapturedEvent",
    "NetworkHit",
    "RawRequest",
    "normalize_payload",
    "FileFailure",
    "RunResult",
    "RunStats",
    "TestFailure",
    "TestResult",
    "TestStatus",
]

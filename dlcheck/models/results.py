"""Pydantic models for test execution results.

``RunResult`` is the hand-off object for anything that consumes a finished
run (reporters, exporters): aggregate stats, the failure list and one
``TestResult`` per executed test.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TestStatus(str, Enum):
    """Terminal status of an executed test."""
    PASSED = "passed"
    FAILED = "failed"


class _ExportModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


class TestResult(_ExportModel):
    """Outcome of a single executed test."""

    __test__ = False

    name: str = Field(description="Test name")
    suite: Optional[str] = Field(default=None, description="Enclosing describe block")
    status: TestStatus = Field(description="passed or failed")
    duration_ms: float = Field(default=0.0, description="Wall-clock duration")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    error: Optional[str] = Field(default=None, description="Enhanced error message")
    tip: Optional[str] = Field(default=None, description="Actionable hint for the failure")
    stack: Optional[str] = Field(default=None, description="Formatted traceback")
    captured_data_layer_events: Optional[List[Dict[str, Any]]] = Field(
        default=None,
        description="Data-layer snapshot taken when the test failed"
    )

    @property
    def full_name(self) -> str:
        return f"{self.suite} > {self.name}" if self.suite else self.name


class TestFailure(_ExportModel):
    """Failure entry for a single test."""

    __test__ = False

    suite: Optional[str] = None
    test: str
    error: str
    tip: Optional[str] = None
    stack: Optional[str] = None


class FileFailure(_ExportModel):
    """Failure that prevented a whole test file from running."""

    test_file: str
    error: str
    stack: Optional[str] = None


class RunStats(_ExportModel):
    """Aggregate counters for a run."""

    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def duration_ms(self) -> float:
        if not self.start_time or not self.end_time:
            return 0.0
        return (self.end_time - self.start_time).total_seconds() * 1000


class RunResult(_ExportModel):
    """Complete result of a run: ``{stats, failures, tests}``."""

    stats: RunStats
    failures: List[Union[TestFailure, FileFailure]] = Field(
        default_factory=list,
        description="TestFailure and FileFailure entries in occurrence order"
    )
    tests: List[TestResult] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.stats.failed == 0 and not any(
            isinstance(failure, FileFailure) for failure in self.failures
        )

    def to_export_dict(self) -> Dict[str, Any]:
        """Serialize with camelCase keys for downstream exporters."""
        return {
            "stats": self.stats.model_dump(mode="json", by_alias=True),
            "failures": [
                failure.model_dump(mode="json", by_alias=True) for failure in self.failures
            ],
            "tests": [test.model_dump(mode="json", by_alias=True) for test in self.tests],
        }

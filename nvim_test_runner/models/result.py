"""Models for test files, execution results and run reports."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

TestStatus = Literal["passed", "failed", "timed_out"]


@dataclass(frozen=True, kw_only=True)
class TestFile:
    """A discovered test file, relative to the project root."""

    __test__ = False

    path: str


@dataclass(frozen=True, kw_only=True)
class TestResult:
    """Result of executing a single test file.

    Duration is in seconds, measured around the host process only.
    """

    __test__ = False

    file: TestFile
    status: TestStatus
    duration: float
    message: str | None = None

    @property
    def duration_ms(self) -> int:
        """Duration rounded to milliseconds."""
        return round(self.duration * 1000)


@dataclass(frozen=True, kw_only=True)
class RunReport:
    """Aggregated outcome of one runner invocation."""

    results: Sequence[TestResult]
    passed_count: int
    failed_count: int
    timed_out_count: int
    started_at: datetime
    finished_at: datetime

    @property
    def duration(self) -> float:
        """Wall-clock duration of the run in seconds."""
        return (self.finished_at - self.started_at).total_seconds()

    @property
    def success(self) -> bool:
        """Whether every test file passed."""
        return self.failed_count + self.timed_out_count == 0

    @property
    def unsuccessful(self) -> Sequence[TestResult]:
        """Results of files that failed or timed out."""
        return [result for result in self.results if result.status != "passed"]

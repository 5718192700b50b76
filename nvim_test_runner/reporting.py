"""Aggregation and presentation of test results."""

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from nvim_test_runner.models.result import RunReport, TestResult

STATUS_SYMBOLS = {
    "passed": "✓",
    "failed": "✗",
    "timed_out": "⏱",
}


def aggregate(
    results: Sequence[TestResult], started_at: datetime, finished_at: datetime
) -> RunReport:
    """Build the report of a run.

    The duration comes from the run's own timestamps rather than the sum of
    per-file durations, since files run concurrently.
    """
    return RunReport(
        results=tuple(results),
        passed_count=sum(1 for r in results if r.status == "passed"),
        failed_count=sum(1 for r in results if r.status == "failed"),
        timed_out_count=sum(1 for r in results if r.status == "timed_out"),
        started_at=started_at,
        finished_at=finished_at,
    )


def summary_line(report: RunReport) -> str:
    """One-line count of outcomes, e.g. ``3 passed, 1 failed, 0 timed out``."""
    return (
        f"{report.passed_count} passed, {report.failed_count} failed, "
        f"{report.timed_out_count} timed out in {report.duration:.2f}s"
    )


def log_report_summary(log: logging.Logger, report: RunReport) -> None:
    """Log every file's outcome, failure details and the counts."""
    log.info("=" * 80)
    log.info("Test Results Summary:")
    log.info("=" * 80)

    for result in report.results:
        symbol = STATUS_SYMBOLS.get(result.status, "?")
        log.info("%s %s (%.2fs)", symbol, result.file.path, result.duration)

    for result in report.unsuccessful:
        log.info("-" * 80)
        log.info(
            "%s %s: %s",
            STATUS_SYMBOLS[result.status],
            result.file.path,
            result.status,
        )
        if result.message:
            for line in result.message.splitlines():
                log.info("  %s", line)

    log.info("=" * 80)
    if report.success:
        log.info(summary_line(report))
    else:
        log.error(summary_line(report))


def format_output(report: RunReport) -> dict[str, Any]:
    """Format a run report for JSON output."""
    return {
        "total": len(report.results),
        "passed": report.passed_count,
        "failed": report.failed_count,
        "timeouts": report.timed_out_count,
        "started_at": report.started_at.isoformat(),
        "finished_at": report.finished_at.isoformat(),
        "duration": report.duration,
        "results": [
            {
                "file": result.file.path,
                "status": result.status,
                "duration": result.duration,
                "message": result.message,
            }
            for result in report.results
        ],
    }

"""CLI entry point for the Neovim plugin test runner."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from nvim_test_runner.config_loader import load_config
from nvim_test_runner.errors import RunnerError
from nvim_test_runner.orchestrator import TestOrchestrator
from nvim_test_runner.reporting import format_output, log_report_summary

DEFAULT_LOG_FILE = Path("/tmp/nvim-test-runner.log")

EXIT_SUCCESS = 0
EXIT_TEST_FAILURE = 1
EXIT_ERROR = 2


async def run(
    project_root: Path,
    *,
    skip_remote_check: bool = False,
    timeout: float | None = None,
    concurrency: int | None = None,
    json_output: bool = False,
) -> int:
    """Run the test pipeline for a project and return the exit code."""
    log = logging.getLogger("nvim_test_runner")

    try:
        config = await load_config(project_root)

        overrides = {
            key: value
            for key, value in (("timeout", timeout), ("concurrency", concurrency))
            if value is not None
        }
        if overrides:
            config = config.model_copy(update=overrides)

        orchestrator = TestOrchestrator.from_config(
            config, project_root, skip_remote_check=skip_remote_check
        )
        report = await orchestrator.run()
    except RunnerError as e:
        log.error("%s", e)
        return EXIT_ERROR

    log_report_summary(log, report)

    if json_output:
        print(json.dumps(format_output(report), indent=2))

    return EXIT_SUCCESS if report.success else EXIT_TEST_FAILURE


def configure_logging(log_file: Path) -> None:
    """Log INFO to stderr and everything, including test output, to log_file."""
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.INFO)
    console.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            "[%(levelname)s] %(asctime)s %(name)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.addHandler(console)
    root.addHandler(file_handler)


def positive_float(value: str) -> float:
    """Parse a strictly positive float argument."""
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return number


def positive_int(value: str) -> int:
    """Parse a strictly positive integer argument."""
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return number


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Run tests for Neovim plugins")
    parser.add_argument(
        "--project-dir",
        type=Path,
        default=Path.cwd(),
        help="Project to test (default: current directory)",
    )
    parser.add_argument(
        "-s",
        "--skip-remote-check",
        action="store_true",
        help="Use cached dependency checkouts without checking their remotes",
    )
    parser.add_argument(
        "--timeout",
        type=positive_float,
        help="Per-file timeout in seconds (overrides the config file)",
    )
    parser.add_argument(
        "--concurrency",
        type=positive_int,
        help="Number of test files run at once (overrides the config file)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=DEFAULT_LOG_FILE,
        help=f"Log file receiving all test output (default: {DEFAULT_LOG_FILE})",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the results as JSON on stdout",
    )

    args = parser.parse_args()

    configure_logging(args.log_file)

    exit_code = asyncio.run(
        run(
            args.project_dir.resolve(),
            skip_remote_check=args.skip_remote_check,
            timeout=args.timeout,
            concurrency=args.concurrency,
            json_output=args.json,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()

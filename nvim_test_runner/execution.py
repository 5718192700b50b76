"""Execute test files in isolated host processes."""

import asyncio
import contextlib
import logging
import os
import signal
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from nvim_test_runner.errors import ExecutionError
from nvim_test_runner.hosts.base import HostApplication
from nvim_test_runner.models.dependency import ResolvedDependency
from nvim_test_runner.models.result import TestFile, TestResult, TestStatus

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def default_concurrency() -> int:
    """Number of test processes to run at once: one per CPU."""
    return os.cpu_count() or 1


@dataclass(frozen=True, kw_only=True)
class ExecutionEngine:
    """Runs each test file in its own headless host process.

    Output is captured and only written to the debug log. The outcome is
    decided by the exit status alone.
    """

    host: HostApplication
    project_root: Path
    timeout: float = DEFAULT_TIMEOUT
    concurrency: int = field(default_factory=default_concurrency)

    def runtime_path(
        self, dependencies: Sequence[ResolvedDependency]
    ) -> Sequence[Path]:
        """Project root followed by dependencies in declaration order."""
        return [self.project_root, *(dep.local_path for dep in dependencies)]

    async def run(
        self,
        test_files: Sequence[TestFile],
        dependencies: Sequence[ResolvedDependency],
    ) -> Sequence[TestResult]:
        """Run all test files with bounded parallelism.

        Files are dispatched in the given order; results are returned in the
        same order whatever order they complete in.
        """
        if not test_files:
            log.info("No test files to run")
            return []

        runtime_path = self.runtime_path(dependencies)
        log.debug("Runtime path: %s", [str(path) for path in runtime_path])

        queue: asyncio.Queue[tuple[int, TestFile]] = asyncio.Queue()
        for item in enumerate(test_files):
            queue.put_nowait(item)

        results: dict[int, TestResult] = {}

        async def worker() -> None:
            while not queue.empty():
                index, test_file = queue.get_nowait()
                results[index] = await self.run_file(test_file, runtime_path)

        workers = min(self.concurrency, len(test_files))
        log.info(
            "Running %d test file(s) with %d worker(s)...", len(test_files), workers
        )
        await asyncio.gather(*(worker() for _ in range(workers)))

        return [results[index] for index in range(len(test_files))]

    async def run_file(
        self, test_file: TestFile, runtime_path: Sequence[Path]
    ) -> TestResult:
        """Run a single test file and classify its outcome.

        Never raises for problems of the test itself: launch failures,
        crashes and timeouts are all recorded in the result.
        """
        loop = asyncio.get_running_loop()
        test_path = self.project_root / test_file.path
        command = self.host.build_command(runtime_path, test_path)
        log.debug("Running %s: %s", test_file.path, command)

        started = loop.time()
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=self.project_root,
                env=self.host.build_env(runtime_path),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            error = ExecutionError(f"Failed to launch {command[0]}: {e}")
            log.error("Cannot run %s: %s", test_file.path, error)
            return self._result(test_file, "failed", loop.time() - started, str(error))

        output = asyncio.gather(
            read_output(process.stdout), read_output(process.stderr)
        )
        try:
            returncode: int | None = await asyncio.wait_for(
                process.wait(), self.timeout
            )
        except TimeoutError:
            returncode = None
            await kill(process)
            log.debug(
                "Killed %s (pid %d) after %gs",
                test_file.path,
                process.pid,
                self.timeout,
            )
        except asyncio.CancelledError:
            output.cancel()
            await kill(process)
            raise
        out, err = await output
        duration = loop.time() - started

        log.debug(
            "Output of %s (exit status %s):\n--- stdout ---\n%s\n--- stderr ---\n%s",
            test_file.path,
            process.returncode,
            out,
            err,
        )

        if returncode is None:
            return self._result(
                test_file,
                "timed_out",
                duration,
                f"timed out after {self.timeout:g}s",
            )
        if returncode == 0:
            return self._result(test_file, "passed", duration)

        message = self.host.failure_message(returncode, out, err)
        return self._result(test_file, "failed", duration, message)

    def _result(
        self,
        test_file: TestFile,
        status: TestStatus,
        duration: float,
        message: str | None = None,
    ) -> TestResult:
        log.info(
            "Test completed: file=%s status=%s duration=%.2fs",
            test_file.path,
            status,
            duration,
        )
        return TestResult(
            file=test_file, status=status, duration=duration, message=message
        )


async def kill(process: asyncio.subprocess.Process) -> None:
    """Kill a test process together with anything it spawned, and reap it."""
    with contextlib.suppress(ProcessLookupError):
        os.killpg(process.pid, signal.SIGKILL)
    await process.wait()


async def read_output(stream: asyncio.StreamReader | None) -> str:
    """Read a pipe of a test process until it is closed."""
    if stream is None:
        return ""
    return (await stream.read()).decode(errors="replace")

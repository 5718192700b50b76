"""Abstract base class for host applications."""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, kw_only=True)
class HostApplication(ABC):
    """Describes how to run one test file headless in a host application.

    The engine owns process lifecycle, output capture and timeouts; a host
    only builds the command line and interprets a failed run's output.
    """

    @abstractmethod
    def build_command(
        self, runtime_path: Sequence[Path], test_file: Path
    ) -> Sequence[str]:
        """Build the command executing test_file and then exiting.

        Args:
            runtime_path: Directories to search for code, highest precedence
                first. They must come before the host's built-in paths.
            test_file: Absolute path of the test file

        Returns:
            Program and arguments

        """

    def build_env(self, runtime_path: Sequence[Path]) -> Mapping[str, str] | None:
        """Environment for the process, or None to inherit the runner's."""
        return None

    def failure_message(self, returncode: int, stdout: str, stderr: str) -> str:
        """Extract the error that made a run fail.

        Falls back to the exit status when the process wrote nothing to
        stderr.
        """
        if message := stderr.strip():
            return message
        return f"exited with status {returncode}"

"""Neovim host implementation."""

import json
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from nvim_test_runner.hosts.base import HostApplication
from nvim_test_runner.hosts.neovim.config import NeovimConfig

TRACEBACK_MARKER = "stack traceback:"

# Keep the user's files untouched: no backup, swap or shada files
ISOLATION_COMMANDS = (
    "set nobackup nowritebackup noswapfile",
    "set shadafile=NONE",
)


@dataclass(frozen=True, kw_only=True)
class NeovimHost(HostApplication):
    """Runs Lua test files with ``nvim -l``.

    ``-l`` exits non-zero when the script raises, so failures are detected
    from the exit status alone.
    """

    config: NeovimConfig

    @classmethod
    def from_config(cls, config: NeovimConfig) -> "NeovimHost":
        """Create host from its configuration."""
        return cls(config=config)

    def build_command(
        self, runtime_path: Sequence[Path], test_file: Path
    ) -> Sequence[str]:
        """Build the headless nvim command line for a test file."""
        command = [
            self.config.executable,
            "--headless",
            "--noplugin",
            "-n",
            "-i",
            "NONE",
            "-u",
            "NONE",
        ]
        for cmd in ISOLATION_COMMANDS:
            command += ["--cmd", cmd]

        if runtime_path:
            command += ["--cmd", prepend_runtimepath_command(runtime_path)]

        for cmd in self.config.extra_commands:
            command += ["--cmd", cmd]

        command += ["-l", str(test_file)]
        return command

    def failure_message(self, returncode: int, stdout: str, stderr: str) -> str:
        """Return the first error raised by the test, without its traceback."""
        message = stderr.split(TRACEBACK_MARKER, 1)[0].strip()
        return message or super().failure_message(returncode, stdout, stderr)


def prepend_runtimepath_command(runtime_path: Sequence[Path]) -> str:
    """Lua command putting directories ahead of the default runtimepath.

    Order is kept: the first directory takes precedence.
    """
    value = ",".join(escape_option_item(str(path)) for path in runtime_path)
    return f"lua vim.opt.runtimepath:prepend({json.dumps(value, ensure_ascii=False)})"


def escape_option_item(item: str) -> str:
    """Escape an item of a comma-separated Vim option."""
    return item.replace("\\", "\\\\").replace(",", "\\,")

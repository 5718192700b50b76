"""Exceptions raised by the runner."""

from collections.abc import Sequence

from nvim_test_runner.models.config import DependencySpec


class RunnerError(Exception):
    """Base class for errors that abort a run."""


class ConfigError(RunnerError):
    """Raised when the configuration is missing, malformed or invalid."""


class DependencyError(RunnerError):
    """Raised when a single dependency cannot be resolved."""

    def __init__(self, spec: DependencySpec, reason: str) -> None:
        super().__init__(f"{spec.uri} ({spec.target}): {reason}")
        self.spec = spec
        self.reason = reason


class DependencyResolutionError(RunnerError):
    """Raised after resolution when one or more dependencies failed."""

    def __init__(self, errors: Sequence[DependencyError]) -> None:
        details = "\n".join(f"  - {error}" for error in errors)
        super().__init__(
            f"Failed to resolve {len(errors)} dependency(ies):\n{details}"
        )
        self.errors = errors


class ExecutionError(RunnerError):
    """Raised when the host application cannot be launched for a test file."""

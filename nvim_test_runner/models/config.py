"""Models for the runner configuration loaded from nvim-test-runner.json."""

from collections.abc import Mapping, Sequence
from pathlib import Path, PurePosixPath
from typing import Any

from pydantic import ConfigDict, Field, field_validator, model_validator

from nvim_test_runner.models.base import Model

LOCAL_SCHEME = "file:"

DEFAULT_TEST_PATHS: Sequence[str] = (
    "tests/**/*.lua",
    "test/**/*.lua",
    "lua/tests/**/*.lua",
    "lua/test/**/*.lua",
)


class DependencySpec(Model):
    """External code that must be on the runtime path while tests run.

    A pinned ``sha`` takes precedence over ``branch``. A remote spec with
    neither tracks the remote ``HEAD``. Local specs (``file:`` URIs) ignore
    both.
    """

    uri: str = Field(..., min_length=1, description="Git remote or file: path")
    branch: str | None = Field(default=None, description="Branch to track")
    sha: str | None = Field(
        default=None,
        pattern=r"^[0-9a-fA-F]{4,64}$",
        description="Commit to pin, takes precedence over branch",
    )

    @field_validator("uri")
    @classmethod
    def validate_uri(cls, value: str) -> str:
        value = value.strip()
        if value.startswith(LOCAL_SCHEME):
            if not value.removeprefix("file://").removeprefix(LOCAL_SCHEME):
                raise ValueError(f"Empty path in local dependency uri: {value!r}")
            return value
        if not repository_name(value):
            raise ValueError(f"Invalid dependency uri: {value!r}")
        return value

    @property
    def is_local(self) -> bool:
        """Whether the spec points at a directory on this machine."""
        return self.uri.startswith(LOCAL_SCHEME)

    @property
    def ref(self) -> str:
        """Remote ref whose head is tracked when no sha is pinned."""
        return f"refs/heads/{self.branch}" if self.branch else "HEAD"

    @property
    def target(self) -> str:
        """Human-readable description of what the spec points at."""
        if self.is_local:
            return "local"
        if self.sha:
            return f"sha={self.sha}"
        return f"branch={self.branch or 'HEAD'}"

    @property
    def cache_key(self) -> str:
        """Identity of the spec in the cache: uri plus its target."""
        if self.is_local:
            return self.uri
        return f"{self.uri}#{self.target}"

    @property
    def name(self) -> str:
        """Repository name, used to label the cache directory."""
        return repository_name(self.uri)

    def local_path(self, project_root: Path) -> Path:
        """Resolve a file: URI against the project root.

        ``file://`` is followed by an absolute path, ``file:`` by a path
        relative to the project.
        """
        if self.uri.startswith("file://"):
            return Path(self.uri.removeprefix("file://"))
        return project_root / self.uri.removeprefix(LOCAL_SCHEME)


def repository_name(uri: str) -> str:
    """Last path component of a repository locator, without ``.git``.

    Handles URLs, filesystem paths and scp-like ``host:path`` locators.
    """
    path = uri.rstrip("/")
    if "://" not in path and ":" in path:
        path = path.split(":", 1)[1]
    return PurePosixPath(path).name.removesuffix(".git")


class RunnerConfig(Model):
    """Complete runner configuration."""

    model_config = ConfigDict(extra="forbid")

    test_dependencies: Sequence[DependencySpec] = Field(
        default_factory=tuple, description="Dependencies in precedence order"
    )
    test_paths: Sequence[str] = Field(
        default=DEFAULT_TEST_PATHS, description="Glob patterns relative to root"
    )
    timeout: float = Field(default=30.0, gt=0, description="Per-file timeout (s)")
    concurrency: int | None = Field(
        default=None, ge=1, description="Parallel test processes (default: CPUs)"
    )
    host: str = Field(default="neovim", description="Host application key")
    host_config: Mapping[str, Any] = Field(
        default_factory=dict, description="Options for the host application"
    )

    @model_validator(mode="after")
    def validate_unique_dependencies(self) -> "RunnerConfig":
        seen: set[str] = set()
        for spec in self.test_dependencies:
            if spec.cache_key in seen:
                raise ValueError(f"Duplicate test dependency: {spec.cache_key}")
            seen.add(spec.cache_key)
        return self

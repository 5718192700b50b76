"""Models for cached and resolved dependencies."""

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from pydantic import Field

from nvim_test_runner.models.base import Model
from nvim_test_runner.models.config import DependencySpec

LOCAL_REVISION = "local"


class CacheEntry(Model):
    """On-disk checkout of a remote dependency, as recorded in the state file."""

    key: str
    local_path: Path
    last_revision: str
    spec: DependencySpec


class CacheState(Model):
    """Contents of the cache state file."""

    entries: Sequence[CacheEntry] = Field(default_factory=tuple)


@dataclass(frozen=True, kw_only=True)
class ResolvedDependency:
    """A dependency ready to be put on the runtime path for this run."""

    spec: DependencySpec
    local_path: Path
    revision: str
    was_updated: bool = False


@dataclass(frozen=True, kw_only=True)
class DependencyWarning:
    """Notice that a dependency changed underneath the user."""

    spec: DependencySpec
    message: str
    previous_revision: str | None = None
    revision: str | None = None

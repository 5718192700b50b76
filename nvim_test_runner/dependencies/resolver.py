"""Resolution of test dependencies into local directories."""

import asyncio
import logging
import shutil
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeAlias

from nvim_test_runner.dependencies.cache import CacheStore
from nvim_test_runner.dependencies.git import GitClient, GitError
from nvim_test_runner.errors import DependencyError, DependencyResolutionError
from nvim_test_runner.models.config import DependencySpec
from nvim_test_runner.models.dependency import (
    LOCAL_REVISION,
    CacheEntry,
    DependencyWarning,
    ResolvedDependency,
)

log = logging.getLogger(__name__)

WarningHandler: TypeAlias = Callable[[DependencyWarning], None]


def log_warning(warning: DependencyWarning) -> None:
    """Default warning handler: log the warning."""
    log.warning("%s: %s", warning.spec.uri, warning.message)


def revisions_match(pinned: str, recorded: str) -> bool:
    """Compare a pinned, possibly abbreviated, SHA with a full recorded SHA."""
    return recorded.lower().startswith(pinned.lower())


@dataclass(frozen=True, kw_only=True)
class DependencyResolver:
    """Brings dependency checkouts in the cache up to date.

    Branch-tracking dependencies are checked against the remote on every
    run unless ``skip_remote_check`` is set, in which case no command
    touching the network is run and an existing checkout is used as is.
    """

    project_root: Path
    cache: CacheStore
    git: GitClient = field(default_factory=GitClient)
    on_warning: WarningHandler = log_warning
    skip_remote_check: bool = False

    async def resolve_all(
        self, specs: Sequence[DependencySpec]
    ) -> Sequence[ResolvedDependency]:
        """Resolve all specs concurrently, preserving declaration order.

        Raises:
            DependencyResolutionError: If any dependency failed to resolve,
                carrying every individual failure

        """
        if not specs:
            return []

        log.info("Resolving %d test dependency(ies)...", len(specs))
        results = await asyncio.gather(
            *(self.resolve(spec) for spec in specs), return_exceptions=True
        )

        resolved: list[ResolvedDependency] = []
        errors: list[DependencyError] = []
        for spec, result in zip(specs, results, strict=True):
            if isinstance(result, ResolvedDependency):
                resolved.append(result)
            elif isinstance(result, DependencyError):
                log.error("Failed to resolve dependency: %s", result)
                errors.append(result)
            elif isinstance(result, Exception):
                log.error(
                    "Failed to resolve dependency: %s", result, exc_info=result
                )
                errors.append(DependencyError(spec, str(result)))
            else:
                raise result

        if errors:
            raise DependencyResolutionError(errors)

        return resolved

    async def resolve(self, spec: DependencySpec) -> ResolvedDependency:
        """Resolve a single spec to a local directory.

        Raises:
            DependencyError: If the dependency cannot be made available

        """
        if spec.is_local:
            return self._resolve_local(spec)

        async with self.cache.lock(spec):
            try:
                return await self._resolve_remote(spec)
            except GitError as e:
                raise DependencyError(spec, str(e)) from e

    def _resolve_local(self, spec: DependencySpec) -> ResolvedDependency:
        path = spec.local_path(self.project_root)
        if not path.exists():
            raise DependencyError(spec, f"Path {path} does not exist")
        if not path.is_dir():
            raise DependencyError(spec, f"{path} is not a directory")

        log.info("Using local dependency %s", path)
        return ResolvedDependency(spec=spec, local_path=path, revision=LOCAL_REVISION)

    async def _resolve_remote(self, spec: DependencySpec) -> ResolvedDependency:
        path = self.cache.path_for(spec)
        entry = self.cache.get(spec)

        if entry is not None and not path.is_dir():
            log.info("Checkout of %s is missing, cloning again", spec.cache_key)
            entry = None

        if entry is None:
            return await self._acquire(spec, path)

        if entry.local_path != path:
            entry = entry.model_copy(update={"local_path": path})

        if spec.sha:
            return await self._update_pinned(spec, entry, spec.sha)

        return await self._update_branch(spec, entry)

    async def _acquire(self, spec: DependencySpec, path: Path) -> ResolvedDependency:
        if self.skip_remote_check:
            raise DependencyError(
                spec, "No cached checkout exists and remote checks are disabled"
            )

        if path.exists():
            self.on_warning(
                DependencyWarning(
                    spec=spec,
                    message=f"Overwriting existing test dependency at path {path}",
                )
            )
            await asyncio.to_thread(shutil.rmtree, path)

        target = spec.sha or await self.git.remote_head(spec.uri, spec.ref)

        log.info("Cloning %s @ %s into %s...", spec.uri, spec.target, path)
        path.parent.mkdir(parents=True, exist_ok=True)
        await self.git.clone(spec.uri, path, None if spec.sha else spec.branch)
        if not await self.git.has_revision(path, target):
            await self.git.fetch(path, target)
        await self.git.checkout(path, target)
        revision = await self.git.rev_parse(path)

        self.cache.update(
            CacheEntry(
                key=spec.cache_key, local_path=path, last_revision=revision, spec=spec
            )
        )
        return ResolvedDependency(
            spec=spec, local_path=path, revision=revision, was_updated=True
        )

    async def _update_pinned(
        self, spec: DependencySpec, entry: CacheEntry, sha: str
    ) -> ResolvedDependency:
        if revisions_match(sha, entry.last_revision):
            log.debug("%s is at pinned revision %s", spec.uri, entry.last_revision)
            return ResolvedDependency(
                spec=spec, local_path=entry.local_path, revision=entry.last_revision
            )

        if not self.skip_remote_check and not await self.git.has_revision(
            entry.local_path, sha
        ):
            await self.git.fetch(entry.local_path)
        return await self._move_to(spec, entry, sha)

    async def _update_branch(
        self, spec: DependencySpec, entry: CacheEntry
    ) -> ResolvedDependency:
        if self.skip_remote_check:
            log.debug("Skipping remote check for %s", spec.uri)
            return ResolvedDependency(
                spec=spec, local_path=entry.local_path, revision=entry.last_revision
            )

        head = await self.git.remote_head(spec.uri, spec.ref)
        if head == entry.last_revision:
            log.debug("%s is up to date at %s", spec.uri, head)
            return ResolvedDependency(
                spec=spec, local_path=entry.local_path, revision=head
            )

        await self.git.fetch(entry.local_path, spec.branch or "HEAD")
        return await self._move_to(spec, entry, head)

    async def _move_to(
        self, spec: DependencySpec, entry: CacheEntry, target: str
    ) -> ResolvedDependency:
        await self.git.checkout(entry.local_path, target)
        revision = await self.git.rev_parse(entry.local_path)

        self.cache.update(entry.model_copy(update={"last_revision": revision}))
        self.on_warning(
            DependencyWarning(
                spec=spec,
                message=f"Updated from {entry.last_revision} to {revision}",
                previous_revision=entry.last_revision,
                revision=revision,
            )
        )
        return ResolvedDependency(
            spec=spec, local_path=entry.local_path, revision=revision, was_updated=True
        )

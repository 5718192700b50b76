"""Filesystem-backed cache of dependency checkouts."""

import asyncio
import fcntl
import hashlib
import logging
import os
from collections.abc import AsyncIterator, Iterator, Sequence
from contextlib import asynccontextmanager, contextmanager
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from nvim_test_runner.models.config import DependencySpec
from nvim_test_runner.models.dependency import CacheEntry, CacheState

log = logging.getLogger(__name__)

CACHE_DIR = ".test"
STATE_FILE = "state.json"
CHECKOUT_DIR = "external-dep"
LOCK_DIR = "locks"


@dataclass(frozen=True, kw_only=True)
class CacheStore:
    """Keyed storage of dependency checkouts under a single root directory.

    Layout::

        <root>/state.json               recorded entries
        <root>/external-dep/<dir>/      one checkout per cache key
        <root>/locks/<dir>.lock         advisory lock per cache key

    Entries are never removed automatically.
    """

    root: Path

    @classmethod
    def for_project(cls, project_root: Path) -> "CacheStore":
        """Create the store used for a project."""
        return cls(root=project_root / CACHE_DIR)

    @property
    def state_path(self) -> Path:
        """Path of the state file."""
        return self.root / STATE_FILE

    def path_for(self, spec: DependencySpec) -> Path:
        """Checkout directory of a spec; stable across runs."""
        return self.root / CHECKOUT_DIR / directory_name(spec)

    def entries(self) -> Sequence[CacheEntry]:
        """Read all recorded entries."""
        return self._read_state().entries

    def get(self, spec: DependencySpec) -> CacheEntry | None:
        """Look up the entry recorded for a spec."""
        for entry in self.entries():
            if entry.key == spec.cache_key:
                return entry
        return None

    def update(self, entry: CacheEntry) -> None:
        """Record an entry, replacing any previous entry with the same key.

        The state file is re-read under a lock so that entries written by
        concurrent invocations are kept.
        """
        with self._file_lock(self.root / LOCK_DIR / f"{STATE_FILE}.lock"):
            entries = [e for e in self._read_state().entries if e.key != entry.key]
            entries.append(entry)
            self._write_state(CacheState(entries=entries))
        log.debug("Recorded %s at revision %s", entry.key, entry.last_revision)

    @asynccontextmanager
    async def lock(self, spec: DependencySpec) -> AsyncIterator[None]:
        """Hold the advisory lock of a spec's checkout directory."""
        path = self.root / LOCK_DIR / f"{directory_name(spec)}.lock"
        path.parent.mkdir(parents=True, exist_ok=True)

        with path.open("a") as handle:
            await asyncio.to_thread(fcntl.flock, handle.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)

    @contextmanager
    def _file_lock(self, path: Path) -> Iterator[None]:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a") as handle:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)

    def _read_state(self) -> CacheState:
        try:
            contents = self.state_path.read_text()
        except FileNotFoundError:
            return CacheState()

        try:
            return CacheState.model_validate_json(contents)
        except ValidationError as e:
            log.warning("Ignoring unreadable cache state %s: %s", self.state_path, e)
            return CacheState()

    def _write_state(self, state: CacheState) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        tmp_path = self.state_path.with_suffix(".tmp")
        tmp_path.write_text(state.model_dump_json(by_alias=True, indent=2))
        os.replace(tmp_path, self.state_path)


def directory_name(spec: DependencySpec) -> str:
    """Directory name for a spec: readable name plus a digest of its cache key."""
    digest = hashlib.sha256(spec.cache_key.encode()).hexdigest()[:16]
    return f"{spec.name or 'dependency'}-{digest}"

"""Tests for the dependency cache store."""

import asyncio
from pathlib import Path

import pytest

from nvim_test_runner.dependencies.cache import CacheStore, directory_name
from nvim_test_runner.models.config import DependencySpec
from nvim_test_runner.models.dependency import CacheEntry
from nvim_test_runner.testing.factories import DependencySpecFactory


@pytest.fixture
def store(tmp_path: Path) -> CacheStore:
    """Create a store for a project in tmp_path."""
    return CacheStore.for_project(tmp_path)


def make_entry(store: CacheStore, spec: DependencySpec, revision: str) -> CacheEntry:
    """Create an entry for spec at revision."""
    return CacheEntry(
        key=spec.cache_key,
        local_path=store.path_for(spec),
        last_revision=revision,
        spec=spec,
    )


def test_for_project_uses_hidden_directory(tmp_path: Path) -> None:
    """Cache lives in .test under the project."""
    store = CacheStore.for_project(tmp_path)

    assert store.root == tmp_path / ".test"
    assert store.state_path == tmp_path / ".test" / "state.json"


def test_path_for_is_stable(store: CacheStore) -> None:
    """Same spec maps to the same directory across store instances."""
    spec = DependencySpec(uri="https://github.com/org/plugin.nvim", branch="main")
    other_store = CacheStore(root=store.root)

    assert store.path_for(spec) == other_store.path_for(spec)
    assert store.path_for(spec).parent == store.root / "external-dep"
    assert store.path_for(spec).name.startswith("plugin.nvim-")


def test_directory_names_differ_by_target() -> None:
    """Specs differing only by target get distinct directories."""
    uri = "https://github.com/org/plugin.nvim"
    specs = [
        DependencySpec(uri=uri),
        DependencySpec(uri=uri, branch="main"),
        DependencySpec(uri=uri, branch="dev"),
        DependencySpec(uri=uri, sha="abc123"),
    ]

    assert len({directory_name(spec) for spec in specs}) == len(specs)


def test_get_returns_none_when_empty(store: CacheStore) -> None:
    """No entries recorded yet."""
    assert store.get(DependencySpecFactory.build()) is None
    assert store.entries() == ()


def test_update_and_get(store: CacheStore) -> None:
    """Recorded entries can be looked up by spec."""
    spec = DependencySpecFactory.build()
    entry = make_entry(store, spec, "a" * 40)

    store.update(entry)

    assert store.get(spec) == entry
    assert store.state_path.exists()


def test_update_replaces_entry(store: CacheStore) -> None:
    """Updating an entry replaces the previous revision."""
    spec = DependencySpecFactory.build()
    store.update(make_entry(store, spec, "a" * 40))

    store.update(make_entry(store, spec, "b" * 40))

    assert len(store.entries()) == 1
    entry = store.get(spec)
    assert entry is not None
    assert entry.last_revision == "b" * 40


def test_update_keeps_other_entries(store: CacheStore) -> None:
    """Entries written through another store instance are kept."""
    first = DependencySpecFactory.build()
    second = DependencySpecFactory.build()
    store.update(make_entry(store, first, "a" * 40))

    CacheStore(root=store.root).update(make_entry(store, second, "b" * 40))

    assert store.get(first) is not None
    assert store.get(second) is not None


def test_state_file_uses_camel_case(store: CacheStore) -> None:
    """State file is written with camelCase keys."""
    store.update(make_entry(store, DependencySpecFactory.build(), "a" * 40))

    content = store.state_path.read_text()

    assert '"lastRevision"' in content
    assert '"localPath"' in content


def test_ignores_unreadable_state(store: CacheStore) -> None:
    """A corrupted state file is treated as empty."""
    store.root.mkdir(parents=True)
    store.state_path.write_text("{not json")

    assert store.entries() == ()


async def test_lock_serializes_access(store: CacheStore) -> None:
    """A second holder of the same lock waits for the first."""
    spec = DependencySpecFactory.build()
    events: list[str] = []

    async def hold(name: str, delay: float) -> None:
        await asyncio.sleep(delay)
        async with store.lock(spec):
            events.append(f"{name} start")
            await asyncio.sleep(0.1)
            events.append(f"{name} end")

    await asyncio.gather(hold("first", 0), hold("second", 0.02))

    assert events == ["first start", "first end", "second start", "second end"]


async def test_locks_are_per_spec(store: CacheStore) -> None:
    """Different specs do not contend."""
    first = DependencySpecFactory.build()
    second = DependencySpecFactory.build()

    async with store.lock(first):
        await asyncio.wait_for(_acquire(store, second), timeout=1)


async def _acquire(store: CacheStore, spec: DependencySpec) -> None:
    async with store.lock(spec):
        pass

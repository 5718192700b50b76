"""Loading of host applications from entry points."""

from collections.abc import Mapping
from importlib.metadata import entry_points
from typing import Any

from pydantic import ValidationError

from nvim_test_runner.errors import ConfigError
from nvim_test_runner.hosts.base import HostApplication
from nvim_test_runner.hosts.manifest import HostManifest

ENTRY_POINT_GROUP = "nvim_test_runner.hosts"


class HostNotFoundError(ConfigError):
    """Raised when a host is not found."""


def load_host_manifest(key: str) -> HostManifest[Any]:
    """Load a host manifest by key.

    Args:
        key: The host key as registered in pyproject.toml (e.g., "neovim")

    Returns:
        The host manifest instance

    Raises:
        HostNotFoundError: If no host with the given key is found

    """
    entries = entry_points(group=ENTRY_POINT_GROUP)

    for entry in entries:
        if entry.name == key:
            manifest: HostManifest[Any] = entry.load()
            return manifest

    available = [e.name for e in entries]
    raise HostNotFoundError(f"Host '{key}' not found. Available hosts: {available}")


def create_host(key: str, options: Mapping[str, Any]) -> HostApplication:
    """Load a host by key and build it from its configuration options.

    Raises:
        ConfigError: If the host is unknown or its options are invalid

    """
    manifest = load_host_manifest(key)
    try:
        config = manifest.config_cls(**options)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration for host '{key}': {e}") from e
    return manifest.host_factory(config)

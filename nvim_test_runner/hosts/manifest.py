"""Host manifest definition for the plugin system."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel

from nvim_test_runner.hosts.base import HostApplication

ConfigT = TypeVar("ConfigT", bound=BaseModel)


@dataclass(frozen=True, kw_only=True)
class HostManifest(Generic[ConfigT]):
    """Manifest describing a host plugin.

    The manifest contains references to the configuration class and the
    host factory function for lazy loading of hosts based on their key.
    """

    config_cls: type[ConfigT]
    host_factory: Callable[[ConfigT], HostApplication]

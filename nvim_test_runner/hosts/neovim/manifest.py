"""Neovim host manifest."""

from nvim_test_runner.hosts.manifest import HostManifest
from nvim_test_runner.hosts.neovim.config import NeovimConfig
from nvim_test_runner.hosts.neovim.host import NeovimHost

neovim_manifest = HostManifest(
    config_cls=NeovimConfig,
    host_factory=NeovimHost.from_config,
)

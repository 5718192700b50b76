"""Neovim host module."""

from nvim_test_runner.hosts.neovim.config import NeovimConfig
from nvim_test_runner.hosts.neovim.host import NeovimHost
from nvim_test_runner.hosts.neovim.manifest import neovim_manifest

__all__ = ["NeovimConfig", "NeovimHost", "neovim_manifest"]

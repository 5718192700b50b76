"""Resolution and caching of test dependencies."""

from nvim_test_runner.dependencies.cache import CacheStore
from nvim_test_runner.dependencies.git import GitClient, GitError
from nvim_test_runner.dependencies.resolver import DependencyResolver

__all__ = ["CacheStore", "DependencyResolver", "GitClient", "GitError"]

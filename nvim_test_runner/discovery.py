"""Discover test files from glob patterns."""

import glob
import logging
import os
from collections.abc import Sequence
from pathlib import Path

from nvim_test_runner.models.result import TestFile

log = logging.getLogger(__name__)


def discover(patterns: Sequence[str], root: Path) -> Sequence[TestFile]:
    """Expand glob patterns into test files.

    Args:
        patterns: Glob patterns relative to root; ``**`` matches any number
            of directories
        root: Project root

    Returns:
        Matched regular files, deduplicated and sorted by path
        (e.g., [TestFile(path="tests/a.lua"), TestFile(path="tests/b/c.lua")])

    """
    paths: dict[Path, str] = {}

    for pattern in patterns:
        log.debug("Test path pattern: %s", pattern)
        for match in glob.glob(pattern, root_dir=root, recursive=True):
            file = root / match
            if not file.is_file():
                continue
            path = normalize(match, root)
            log.debug("Matched test file: %s", path)
            # The same file reached through a symlink keeps its smallest path
            key = file.resolve()
            paths[key] = min(paths.get(key, path), path)

    return [TestFile(path=path) for path in sorted(paths.values())]


def normalize(match: str, root: Path) -> str:
    """Express a match as a normalized posix path, relative to root where possible."""
    path = Path(os.path.normpath(match))
    if path.is_absolute() and path.is_relative_to(root):
        path = path.relative_to(root)
    return path.as_posix()

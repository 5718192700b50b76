"""Thin async wrapper around the git command line."""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

log = logging.getLogger(__name__)


class GitError(RuntimeError):
    """Raised when a git command exits unsuccessfully."""


@dataclass(frozen=True, kw_only=True)
class GitClient:
    """Runs git commands needed to maintain dependency checkouts."""

    executable: str = "git"

    async def ls_remote(self, uri: str) -> Mapping[str, str]:
        """List remote refs as a mapping of ref name to commit SHA."""
        output = await self._run("ls-remote", uri)

        refs: dict[str, str] = {}
        for line in output.splitlines():
            parts = line.split()
            if len(parts) >= 2:
                refs[parts[1]] = parts[0]
        return refs

    async def remote_head(self, uri: str, ref: str) -> str:
        """Return the commit SHA a remote ref currently points at.

        Raises:
            GitError: If the remote is unreachable or the ref does not exist

        """
        refs = await self.ls_remote(uri)
        if (sha := refs.get(ref)) is None:
            raise GitError(f"Ref {ref} does not exist in repository {uri}")
        return sha

    async def clone(self, uri: str, path: Path, branch: str | None = None) -> None:
        """Clone a repository into path, optionally checking out a branch."""
        args = ["clone", "--quiet"]
        if branch:
            args += ["--branch", branch]
        await self._run(*args, uri, str(path))

    async def fetch(self, path: Path, ref: str | None = None) -> None:
        """Fetch from origin, or only the given ref when one is passed."""
        args = ["fetch", "--quiet", "origin"]
        if ref:
            args.append(ref)
        await self._run(*args, cwd=path)

    async def checkout(self, path: Path, revision: str) -> None:
        """Force a detached checkout of revision, discarding local changes."""
        await self._run(
            "checkout", "--quiet", "--force", "--detach", revision, cwd=path
        )

    async def rev_parse(self, path: Path, revision: str = "HEAD") -> str:
        """Resolve a revision to a full commit SHA."""
        output = await self._run(
            "rev-parse", "--verify", f"{revision}^{{commit}}", cwd=path
        )
        return output.strip()

    async def has_revision(self, path: Path, revision: str) -> bool:
        """Check whether a commit is available locally."""
        try:
            await self.rev_parse(path, revision)
        except GitError:
            return False
        return True

    async def _run(self, *args: str, cwd: Path | None = None) -> str:
        log.debug("Running git %s (cwd=%s)", " ".join(args), cwd)
        try:
            process = await asyncio.create_subprocess_exec(
                self.executable,
                *args,
                cwd=cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise GitError(f"Cannot run {self.executable}: {e}") from e

        stdout, stderr = await process.communicate()

        if process.returncode != 0:
            raise GitError(
                f"git {args[0]} failed: {stderr.decode(errors='replace').strip()}"
            )

        return stdout.decode(errors="replace")

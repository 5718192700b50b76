"""Test orchestrator tying dependency resolution, discovery and execution."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from nvim_test_runner.dependencies.cache import CacheStore
from nvim_test_runner.dependencies.resolver import (
    DependencyResolver,
    WarningHandler,
    log_warning,
)
from nvim_test_runner.discovery import discover
from nvim_test_runner.execution import ExecutionEngine, default_concurrency
from nvim_test_runner.hosts.loading import create_host
from nvim_test_runner.models.config import RunnerConfig
from nvim_test_runner.models.result import RunReport
from nvim_test_runner.reporting import aggregate

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class TestOrchestrator:
    """Runs the whole pipeline for one project."""

    __test__ = False

    config: RunnerConfig
    project_root: Path
    resolver: DependencyResolver
    engine: ExecutionEngine

    @classmethod
    def from_config(
        cls,
        config: RunnerConfig,
        project_root: Path,
        *,
        skip_remote_check: bool = False,
        on_warning: WarningHandler = log_warning,
    ) -> "TestOrchestrator":
        """Assemble the resolver, host and engine described by a config.

        Raises:
            ConfigError: If the configured host is unknown or misconfigured

        """
        resolver = DependencyResolver(
            project_root=project_root,
            cache=CacheStore.for_project(project_root),
            on_warning=on_warning,
            skip_remote_check=skip_remote_check,
        )
        engine = ExecutionEngine(
            host=create_host(config.host, config.host_config),
            project_root=project_root,
            timeout=config.timeout,
            concurrency=config.concurrency or default_concurrency(),
        )
        return cls(
            config=config, project_root=project_root, resolver=resolver, engine=engine
        )

    async def run(self) -> RunReport:
        """Resolve dependencies, discover test files and run them.

        Discovery runs while dependencies are being resolved; no test is
        started unless every dependency resolved.

        Raises:
            DependencyResolutionError: If any dependency failed to resolve

        """
        started_at = datetime.now(timezone.utc)

        resolved, test_files = await asyncio.gather(
            self.resolver.resolve_all(self.config.test_dependencies),
            asyncio.to_thread(discover, self.config.test_paths, self.project_root),
        )

        for dependency in resolved:
            log.info(
                "Dependency %s at %s (%s)%s",
                dependency.spec.uri,
                dependency.revision,
                dependency.local_path,
                " [updated]" if dependency.was_updated else "",
            )
        log.info("Discovered %d test file(s)", len(test_files))

        results = await self.engine.run(test_files, resolved)

        finished_at = datetime.now(timezone.utc)
        log.info("Test execution completed")
        return aggregate(results, started_at, finished_at)

"""Load the runner configuration from the project directory."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from nvim_test_runner.errors import ConfigError
from nvim_test_runner.models.config import RunnerConfig

log = logging.getLogger(__name__)

CONFIG_FILES = (
    "nvim-test-runner.json",
    "nvim-test-runner.yaml",
    "nvim-test-runner.yml",
)


def find_config_file(project_root: Path) -> Path | None:
    """Return the first config file present in the project, if any."""
    for name in CONFIG_FILES:
        if (path := project_root / name).is_file():
            return path
    return None


async def load_config(project_root: Path) -> RunnerConfig:
    """Load and validate the project's configuration.

    Falls back to the default configuration when no config file exists.

    Raises:
        ConfigError: If the file cannot be read, parsed or validated

    """
    path = find_config_file(project_root)
    if path is None:
        log.info("Config file not found, using default config")
        return RunnerConfig()

    log.info("Loading config from %s", path)
    try:
        content = await asyncio.to_thread(path.read_text)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    data = parse_config(path, content)
    if data is None:
        raise ConfigError(f"Empty config file: {path}")
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain an object")

    try:
        return RunnerConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config schema in {path}: {e}") from e


def parse_config(path: Path, content: str) -> Any:
    """Parse config file content according to its extension."""
    if path.suffix == ".json":
        if not content.strip():
            return None
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e

    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

"""Tests for config loader."""

import json
from pathlib import Path

import pytest

from nvim_test_runner.config_loader import find_config_file, load_config
from nvim_test_runner.errors import ConfigError
from nvim_test_runner.models.config import DEFAULT_TEST_PATHS


class TestLoadConfig:
    """Tests for load_config function."""

    async def test_returns_defaults_without_config_file(self, tmp_path: Path) -> None:
        """Uses the default config when the project has no config file."""
        config = await load_config(tmp_path)

        assert config.test_dependencies == ()
        assert list(config.test_paths) == list(DEFAULT_TEST_PATHS)

    async def test_loads_json(self, tmp_path: Path) -> None:
        """Loads and validates nvim-test-runner.json."""
        (tmp_path / "nvim-test-runner.json").write_text(
            json.dumps(
                {
                    "testDependencies": [
                        {"uri": "https://github.com/nvim-lua/plenary.nvim"},
                        {"uri": "file:../local.nvim"},
                    ],
                    "testPaths": ["spec/**/*.lua"],
                    "timeout": 5,
                }
            )
        )

        config = await load_config(tmp_path)

        assert len(config.test_dependencies) == 2
        assert config.test_dependencies[1].is_local
        assert list(config.test_paths) == ["spec/**/*.lua"]
        assert config.timeout == 5

    async def test_loads_yaml(self, tmp_path: Path) -> None:
        """Loads nvim-test-runner.yaml when no JSON config exists."""
        (tmp_path / "nvim-test-runner.yaml").write_text(
            """
testDependencies:
  - uri: "https://github.com/nvim-lua/plenary.nvim"
    sha: "abc123"
concurrency: 2
"""
        )

        config = await load_config(tmp_path)

        assert config.test_dependencies[0].sha == "abc123"
        assert config.concurrency == 2

    async def test_prefers_json_over_yaml(self, tmp_path: Path) -> None:
        """JSON config wins when both files exist."""
        (tmp_path / "nvim-test-runner.json").write_text('{"timeout": 1}')
        (tmp_path / "nvim-test-runner.yaml").write_text("timeout: 2\n")

        assert find_config_file(tmp_path) == tmp_path / "nvim-test-runner.json"
        assert (await load_config(tmp_path)).timeout == 1

    async def test_raises_for_invalid_json(self, tmp_path: Path) -> None:
        """Raises ConfigError for malformed JSON."""
        (tmp_path / "nvim-test-runner.json").write_text('{"testPaths": [')

        with pytest.raises(ConfigError, match="Invalid JSON"):
            await load_config(tmp_path)

    async def test_raises_for_invalid_yaml(self, tmp_path: Path) -> None:
        """Raises ConfigError for malformed YAML."""
        (tmp_path / "nvim-test-runner.yml").write_text("invalid: yaml: content: [")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            await load_config(tmp_path)

    @pytest.mark.parametrize(
        "name", ["nvim-test-runner.json", "nvim-test-runner.yaml"]
    )
    async def test_raises_for_empty_file(self, tmp_path: Path, name: str) -> None:
        """Raises ConfigError for an empty config file."""
        (tmp_path / name).write_text("")

        with pytest.raises(ConfigError, match="Empty config file"):
            await load_config(tmp_path)

    async def test_raises_for_non_object(self, tmp_path: Path) -> None:
        """Raises ConfigError when the top level is not an object."""
        (tmp_path / "nvim-test-runner.json").write_text('["tests/*.lua"]')

        with pytest.raises(ConfigError, match="must contain an object"):
            await load_config(tmp_path)

    async def test_raises_for_invalid_schema(self, tmp_path: Path) -> None:
        """Raises ConfigError for schema validation errors."""
        (tmp_path / "nvim-test-runner.json").write_text(
            json.dumps({"testDependencies": [{"branch": "main"}]})
        )

        with pytest.raises(ConfigError, match="Invalid config schema"):
            await load_config(tmp_path)

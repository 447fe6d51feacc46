"""Tests for configuration management."""

from __future__ import annotations

from pathlib import Path

import pytest

from relgraph.config import (
    ProjectConfig,
    find_project_root,
    get_config_value,
    load_config,
    save_config,
    set_config_value,
)
from relgraph.exceptions import ConfigError


class TestConfig:
    def test_default_config(self):
        config = ProjectConfig()
        assert config.inspector.cluster_name == "Cycle Rep"
        assert config.inspector.placeholder_suffix == " (unreferenced)"
        assert config.display.max_depth == 8
        assert len(config.inspector.exclude_patterns) > 0

    def test_save_and_load(self, tmp_path: Path):
        config = ProjectConfig(name="test-project")
        config.inspector.cluster_name = "Loop"
        config.display.max_depth = 3

        save_config(tmp_path, config)
        loaded = load_config(tmp_path)

        assert loaded.name == "test-project"
        assert loaded.inspector.cluster_name == "Loop"
        assert loaded.display.max_depth == 3

    def test_load_without_file(self, tmp_path: Path):
        config = load_config(tmp_path)
        assert config.name == tmp_path.name

    def test_load_invalid_file(self, tmp_path: Path):
        (tmp_path / ".relgraph").mkdir()
        (tmp_path / ".relgraph" / "config.json").write_text("{broken")
        with pytest.raises(ConfigError):
            load_config(tmp_path)

    def test_find_project_root(self, tmp_path: Path):
        # No .relgraph dir - should return None
        assert find_project_root(tmp_path) is None

        (tmp_path / ".relgraph").mkdir()
        assert find_project_root(tmp_path) == tmp_path

        # Should find from subdirectory
        sub = tmp_path / "assets" / "scenes"
        sub.mkdir(parents=True)
        assert find_project_root(sub) == tmp_path

    def test_set_config_value(self):
        config = ProjectConfig()
        updated = set_config_value(config, "inspector.cluster_name", "Loop")
        assert updated.inspector.cluster_name == "Loop"

    def test_set_config_nested(self):
        config = ProjectConfig()
        updated = set_config_value(config, "display.max_depth", 20)
        assert updated.display.max_depth == 20

    def test_set_config_invalid_key(self):
        config = ProjectConfig()
        with pytest.raises(KeyError):
            set_config_value(config, "nonexistent.key", "value")

    def test_set_config_validates(self):
        with pytest.raises(ValueError):
            set_config_value(ProjectConfig(), "display.max_depth", "deep")

    def test_set_config_returns_copy(self):
        config = ProjectConfig()
        set_config_value(config, "display.max_depth", 2)
        assert config.display.max_depth == 8

    def test_get_config_value(self):
        config = ProjectConfig()
        assert get_config_value(config, "inspector.cluster_name") == "Cycle Rep"
        assert get_config_value(config, "display")["max_depth"] == 8
        with pytest.raises(KeyError):
            get_config_value(config, "display.max_depth.deeper")

    def test_exclude_patterns(self):
        config = ProjectConfig()
        assert "*.meta" in config.inspector.exclude_patterns

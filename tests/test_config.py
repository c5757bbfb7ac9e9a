"""Tests for the configuration module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from enginebridge.config import Config, load_config
from enginebridge.config.loader import dict_to_config, load_yaml_file, normalize_extensions
from enginebridge.config.merge import deep_merge, merge_configs
from enginebridge.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_user_config_path,
)


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the user config at an empty directory and clear overrides."""
    xdg = tmp_path / "xdg"
    xdg.mkdir()
    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg))
    monkeypatch.delenv("ENGINEBRIDGE_LOG", raising=False)
    monkeypatch.delenv("ENGINEBRIDGE_ENGINE", raising=False)
    return xdg


class TestDeepMerge:
    """Test the deep merge algorithm."""

    def test_nested_merge(self) -> None:
        base = {"mirror": {"extensions": [".spx"], "watch": {"enabled": True}}}
        override = {"mirror": {"watch": {"poll_interval": 2.0}}}
        result = deep_merge(base, override)
        assert result["mirror"]["extensions"] == [".spx"]
        assert result["mirror"]["watch"] == {"enabled": True, "poll_interval": 2.0}

    def test_none_does_not_override(self) -> None:
        assert deep_merge({"a": 1}, {"a": None}) == {"a": 1}

    def test_list_replaced_not_merged(self) -> None:
        assert deep_merge({"items": [1, 2, 3]}, {"items": [4]}) == {"items": [4]}

    def test_merge_configs_order(self) -> None:
        assert merge_configs({"a": 1, "b": 2}, {}, {"b": 3}, {"c": 4}) == {"a": 1, "b": 3, "c": 4}


class TestConfigPaths:
    def test_user_path_respects_xdg(self, isolated_env: Path) -> None:
        assert get_user_config_path() == isolated_env / "enginebridge" / "config.yaml"

    def test_windows_user_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "win32")
        monkeypatch.setenv("APPDATA", "C:\\Users\\Test\\AppData\\Roaming")

        path = get_user_config_path()

        assert path is not None
        assert "AppData" in str(path)
        assert "enginebridge" in str(path)

    def test_project_path(self) -> None:
        assert get_project_config_path("/home/user/proj") == Path("/home/user/proj/.enginebridge/config.yaml")

    def test_paths_order(self, isolated_env: Path) -> None:
        paths = get_config_paths("/proj")
        assert paths[-1] == Path("/proj/.enginebridge/config.yaml")
        assert paths[0].is_relative_to(isolated_env)


class TestLoading:
    """Tests for YAML loading and conversion."""

    def test_defaults(self, isolated_env: Path, tmp_path: Path) -> None:
        config = load_config(tmp_path)

        assert isinstance(config, Config)
        assert config.mirror.extensions == [".spx", ".gmx", ".gox"]
        assert config.mirror.exclude_dirs == ["node_modules", ".git"]
        assert config.mirror.watch.enabled is True
        assert config.engine.factory is None
        assert config.engine.ready_timeout == 5.0
        assert config.client.language_id == "xgo"

    def test_project_overrides_user(self, isolated_env: Path, tmp_path: Path) -> None:
        user_file = isolated_env / "enginebridge" / "config.yaml"
        user_file.parent.mkdir(parents=True)
        user_file.write_text(
            "engine:\n  factory: user.engine:create\n  ready_timeout: 2\n"
            "mirror:\n  extensions: [spx]\n"
        )
        project_file = tmp_path / ".enginebridge" / "config.yaml"
        project_file.parent.mkdir(parents=True)
        project_file.write_text("engine:\n  factory: project.engine:create\n")

        config = load_config(tmp_path)

        assert config.engine.factory == "project.engine:create"
        assert config.engine.ready_timeout == 2.0
        assert config.mirror.extensions == [".spx"]

    def test_env_overrides_win(
        self, isolated_env: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        project_file = tmp_path / ".enginebridge" / "config.yaml"
        project_file.parent.mkdir(parents=True)
        project_file.write_text("engine:\n  factory: project.engine:create\n")
        monkeypatch.setenv("ENGINEBRIDGE_ENGINE", "env.engine:create")
        monkeypatch.setenv("ENGINEBRIDGE_LOG", "/tmp/bridge.log")

        config = load_config(tmp_path)

        assert config.engine.factory == "env.engine:create"
        assert config.logging.file == "/tmp/bridge.log"

    def test_invalid_yaml_ignored(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.yaml"
        bad.write_text("mirror: [unclosed\n")
        assert load_yaml_file(bad) == {}

    def test_non_mapping_yaml_ignored(self, tmp_path: Path) -> None:
        listing = tmp_path / "list.yaml"
        listing.write_text("- a\n- b\n")
        assert load_yaml_file(listing) == {}

    def test_unknown_sections_kept_as_extra(self) -> None:
        config = dict_to_config({"custom": {"x": 1}, "logging": {"verbose": 3}})
        assert config.extra == {"custom": {"x": 1}}
        assert config.logging.verbose == 3

    def test_normalize_extensions(self) -> None:
        assert normalize_extensions(["spx", ".GMX", ".spx", "", 3]) == [".spx", ".gmx"]
        assert normalize_extensions("spx") == [".spx", ".gmx", ".gox"]

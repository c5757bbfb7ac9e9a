"""Configuration path resolution.

Config files are looked up at:
- User: $XDG_CONFIG_HOME/enginebridge/, ~/.config/enginebridge/ or ~/.enginebridge/
  (%APPDATA%\\enginebridge\\ on Windows)
- Project: <workspace root>/.enginebridge/
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

CONFIG_FILENAME = "config.yaml"
APP_NAME = "enginebridge"
SHORT_NAME = ".enginebridge"


def get_user_config_path() -> Path | None:
    """Get user-level config path.

    Returns:
        Path to the user config file, or None if not determinable.
        The file may not exist.
    """
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        if app_data:
            return Path(app_data) / APP_NAME / CONFIG_FILENAME
        return None

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME / CONFIG_FILENAME

    home = Path.home()
    xdg_default = home / ".config"
    if xdg_default.exists():
        return xdg_default / APP_NAME / CONFIG_FILENAME

    return home / SHORT_NAME / CONFIG_FILENAME


def get_project_config_path(workspace_root: str | Path) -> Path:
    """Get project-level config path (may not exist)."""
    return Path(workspace_root) / SHORT_NAME / CONFIG_FILENAME


def get_config_paths(workspace_root: str | Path | None = None) -> list[Path]:
    """Get all config paths, lowest priority first.

    Later paths override earlier ones when merging.
    """
    paths: list[Path] = []

    user_path = get_user_config_path()
    if user_path:
        paths.append(user_path)

    if workspace_root:
        paths.append(get_project_config_path(workspace_root))

    return paths

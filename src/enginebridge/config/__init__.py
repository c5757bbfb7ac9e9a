"""Configuration management for enginebridge.

Layered YAML configuration:
- User-level config (~/.config/enginebridge/ or %APPDATA%)
- Project-level config (<workspace root>/.enginebridge/)
- Environment variable overrides (highest priority)

Example usage:
    from enginebridge.config import load_config

    config = load_config(workspace_root="/path/to/project")
    print(config.mirror.extensions)
"""

from enginebridge.config.loader import load_config
from enginebridge.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_user_config_path,
)
from enginebridge.config.schema import (
    ClientConfig,
    Config,
    EngineConfig,
    LoggingConfig,
    MirrorConfig,
    WatchConfig,
)

__all__ = [
    "Config",
    "load_config",
    # Schema types
    "ClientConfig",
    "EngineConfig",
    "LoggingConfig",
    "MirrorConfig",
    "WatchConfig",
    # Path utilities
    "get_config_paths",
    "get_project_config_path",
    "get_user_config_path",
]

"""Configuration file loading.

Handles:
- YAML file parsing
- Environment variable overrides
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from enginebridge.config.merge import merge_configs
from enginebridge.config.paths import get_config_paths
from enginebridge.config.schema import (
    DEFAULT_EXTENSIONS,
    ClientConfig,
    Config,
    EngineConfig,
    LoggingConfig,
    MirrorConfig,
    WatchConfig,
)

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("enginebridge.config")

ENGINE_ENV_VAR = "ENGINEBRIDGE_ENGINE"
LOG_ENV_VAR = "ENGINEBRIDGE_LOG"

_KNOWN_KEYS = {"mirror", "engine", "client", "logging"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning an empty dict if missing or invalid."""
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}

    return data if isinstance(data, dict) else {}


def env_overrides() -> dict[str, Any]:
    """Build a config layer from environment variables."""
    overrides: dict[str, Any] = {}

    log_path = os.environ.get(LOG_ENV_VAR)
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    factory = os.environ.get(ENGINE_ENV_VAR)
    if factory:
        overrides.setdefault("engine", {})["factory"] = factory

    return overrides


def normalize_extensions(values: Any) -> list[str]:
    """Lowercase extensions and give each a leading dot."""
    if not isinstance(values, list):
        return list(DEFAULT_EXTENSIONS)
    result: list[str] = []
    for value in values:
        if not isinstance(value, str) or not value.strip("."):
            continue
        ext = value.lower()
        if not ext.startswith("."):
            ext = "." + ext
        if ext not in result:
            result.append(ext)
    return result


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert a merged dict to the typed Config dataclass."""
    mirror_data = data.get("mirror", {})
    watch_data = mirror_data.get("watch", {})
    watch = WatchConfig(
        enabled=bool(watch_data.get("enabled", True)),
        poll_interval=float(watch_data.get("poll_interval", 1.0)),
    )
    mirror = MirrorConfig(
        extensions=normalize_extensions(mirror_data.get("extensions", DEFAULT_EXTENSIONS)),
        exclude_dirs=[
            d for d in mirror_data.get("exclude_dirs", ["node_modules", ".git"]) if isinstance(d, str)
        ],
        prefer_editor_content=bool(mirror_data.get("prefer_editor_content", True)),
        watch=watch,
    )

    engine_data = data.get("engine", {})
    engine = EngineConfig(
        factory=engine_data.get("factory"),
        ready_timeout=float(engine_data.get("ready_timeout", 5.0)),
    )

    client_data = data.get("client", {})
    defaults = ClientConfig()
    client = ClientConfig(
        language_id=client_data.get("language_id", defaults.language_id),
        name=client_data.get("name", defaults.name),
    )

    log_data = data.get("logging", {})
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=log_data.get("verbose"),
        file=log_data.get("file"),
    )

    extra = {k: v for k, v in data.items() if k not in _KNOWN_KEYS}

    return Config(
        mirror=mirror,
        engine=engine,
        client=client,
        logging=logging_config,
        extra=extra,
    )


def load_config(workspace_root: str | Path | None = None) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables
    2. Project config (<workspace_root>/.enginebridge/config.yaml)
    3. User config

    Args:
        workspace_root: Workspace directory for the project-level config.
    """
    layers: list[dict[str, Any]] = []

    for path in get_config_paths(workspace_root):
        layer = load_yaml_file(path)
        if layer:
            _log.debug("Loaded config from %s", path)
            layers.append(layer)

    env_layer = env_overrides()
    if env_layer:
        layers.append(env_layer)

    return dict_to_config(merge_configs(*layers))

"""Configuration schema dataclasses for enginebridge.

Defines the structure of configuration at all levels (user, project).
All fields carry defaults so partial configs merge cleanly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_EXTENSIONS = [".spx", ".gmx", ".gox"]


@dataclass
class WatchConfig:
    """Workspace watching configuration.

    Example config.yaml:
        mirror:
          watch:
            enabled: true
            poll_interval: 1.0
    """

    enabled: bool = True
    poll_interval: float = 1.0  # Seconds between polling cycles


@dataclass
class MirrorConfig:
    """Workspace file mirror configuration.

    Example config.yaml:
        mirror:
          extensions: [".spx", ".gmx", ".gox"]
          exclude_dirs: ["node_modules", ".git"]
          prefer_editor_content: true
    """

    extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    exclude_dirs: list[str] = field(default_factory=lambda: ["node_modules", ".git"])
    # Skip watch-driven reloads older than an unsaved editor edit
    prefer_editor_content: bool = True
    watch: WatchConfig = field(default_factory=WatchConfig)


@dataclass
class EngineConfig:
    """Engine loading configuration."""

    factory: str | None = None  # "package.module:attribute"
    ready_timeout: float = 5.0  # Seconds to wait for the engine module


@dataclass
class ClientConfig:
    """Values handed to the editor's language client."""

    language_id: str = "xgo"
    name: str = "XGo Language Server"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # TRACE, DEBUG, VERBOSE, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, overrides level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object."""

    mirror: MirrorConfig = field(default_factory=MirrorConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    client: ClientConfig = field(default_factory=ClientConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    extra: dict[str, Any] = field(default_factory=dict)

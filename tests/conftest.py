"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from enginebridge.config.schema import Config, MirrorConfig, WatchConfig

pytest_plugins = ("pytest_asyncio",)


class FakeEngine:
    """Engine double that records every message handed to it.

    Attributes:
        received: Messages in the order handle_message saw them.
        result: Value returned from handle_message (None accepts).
        raises: Exception raised from handle_message instead.
        auto_reply: Reply to requests synchronously with {"result": "ok"}.
    """

    def __init__(self, files_provider: Callable[[], Any], replier: Callable[[dict], None]) -> None:
        self.files_provider = files_provider
        self.replier = replier
        self.received: list[dict[str, Any]] = []
        self.result: Any = None
        self.raises: Exception | None = None
        self.auto_reply = False

    def handle_message(self, message: dict[str, Any]) -> Any:
        if self.raises is not None:
            raise self.raises
        self.received.append(message)
        if self.result is not None:
            return self.result
        if self.auto_reply and "id" in message and "method" in message:
            self.replier({"jsonrpc": "2.0", "id": message["id"], "result": "ok"})
        return None


class FakeFactory:
    """Engine construction entry point that keeps the engines it built."""

    def __init__(self) -> None:
        self.created: list[FakeEngine] = []
        self.calls: list[tuple[Callable, Callable]] = []

    def __call__(self, files_provider: Callable[[], Any], replier: Callable[[dict], None]) -> FakeEngine:
        self.calls.append((files_provider, replier))
        engine = FakeEngine(files_provider, replier)
        self.created.append(engine)
        return engine

    @property
    def engine(self) -> FakeEngine:
        return self.created[-1]


@pytest.fixture
def fake_factory() -> FakeFactory:
    return FakeFactory()


@pytest.fixture
def make_workspace(tmp_path: Path) -> Callable[[dict[str, bytes | str]], Path]:
    """Create a workspace directory populated with the given files."""

    def _make(files: dict[str, bytes | str]) -> Path:
        root = tmp_path / "workspace"
        root.mkdir(exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, str):
                content = content.encode("utf-8")
            path.write_bytes(content)
        return root

    return _make


@pytest.fixture
def mirror_config() -> MirrorConfig:
    """Mirror config for `.src` files with watching disabled."""
    return MirrorConfig(extensions=[".src"], watch=WatchConfig(enabled=False))


@pytest.fixture
def bridge_config(mirror_config: MirrorConfig) -> Config:
    return Config(mirror=mirror_config)

"""Startup sequencing: engine, mirror and transport wired together.

Order matters:
1. The engine module is loaded and its entry point is ready
2. The mirror has scanned the workspace (the engine may read it at once)
3. The transport exists, so its replier can be handed to the engine
4. The engine is constructed with exactly the files accessor and the replier
5. The transport is bound to the engine

Any failure aborts startup with StartupError and leaves nothing running.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from enginebridge.config.schema import Config
from enginebridge.engine.loader import load_engine_factory
from enginebridge.exceptions import StartupError
from enginebridge.logging import get_logger
from enginebridge.mirror.provider import WorkspaceMirror
from enginebridge.transport.bridge import EngineTransport, MessageReader, MessageWriter

if TYPE_CHECKING:
    from enginebridge.engine.protocol import Engine, EngineFactory

log = get_logger("bridge")


class BridgeSession:
    """A running bridge: mirror, transport and engine for one workspace.

    Usage:
        async with await start_bridge("/path/to/project", config) as session:
            session.reader.listen(on_message)
            await session.writer.write(request)
            session.document_changed(path, text)
    """

    def __init__(
        self,
        config: Config,
        mirror: WorkspaceMirror,
        transport: EngineTransport,
        engine: Engine,
    ) -> None:
        self.config = config
        self.mirror = mirror
        self.transport = transport
        self.engine = engine
        self._closed = False

    @property
    def reader(self) -> MessageReader:
        return self.transport.reader

    @property
    def writer(self) -> MessageWriter:
        return self.transport.writer

    @property
    def closed(self) -> bool:
        return self._closed

    def document_opened(self, path: str | Path, text: str) -> bool:
        """Mirror the content of a document the editor opened."""
        return self._mirror_document(path, text)

    def document_changed(self, path: str | Path, text: str) -> bool:
        """Mirror unsaved buffer content after an edit."""
        return self._mirror_document(path, text)

    def _mirror_document(self, path: str | Path, text: str) -> bool:
        if self._closed or not self.mirror.matches(path):
            return False
        self.mirror.update_file_content(path, text)
        return True

    def document_selector(self) -> list[dict[str, str]]:
        """Document selector for the editor's language client."""
        return [
            {"scheme": "file", "language": self.config.client.language_id},
            {"scheme": "file", "pattern": self.file_watch_glob()},
        ]

    def file_watch_glob(self) -> str:
        """Glob the editor should watch, e.g. ``**/*.{spx,gmx,gox}``."""
        return file_watch_glob(self.config.mirror.extensions)

    def close(self) -> None:
        """Dispose transport then mirror. Idempotent; never raises."""
        if self._closed:
            return
        self._closed = True
        for name, dispose in (("transport", self.transport.dispose), ("mirror", self.mirror.dispose)):
            try:
                dispose()
            except Exception as e:
                log.warning("Error disposing %s: %s", name, e)
        log.info("Bridge closed")

    async def __aenter__(self) -> BridgeSession:
        return self

    async def __aexit__(self, *args: object) -> None:
        self.close()


def file_watch_glob(extensions: list[str]) -> str:
    names = [ext.lstrip(".") for ext in extensions]
    if len(names) == 1:
        return f"**/*.{names[0]}"
    return "**/*.{" + ",".join(names) + "}"


def _construct_engine(
    factory: EngineFactory,
    mirror: WorkspaceMirror,
    transport: EngineTransport,
) -> Engine:
    try:
        result: Any = factory(mirror.get_files, transport.create_message_replier())
    except Exception as e:
        raise StartupError(f"Engine construction failed: {e}") from e

    if isinstance(result, BaseException):
        raise StartupError(f"Engine construction failed: {result}") from result
    if result is None or not callable(getattr(result, "handle_message", None)):
        raise StartupError("Engine construction returned an object without handle_message")
    return result


async def start_bridge(
    workspace_root: str | Path,
    config: Config | None = None,
    factory: EngineFactory | None = None,
) -> BridgeSession:
    """Bring the bridge up for ``workspace_root``.

    Args:
        workspace_root: Workspace directory to mirror.
        config: Bridge configuration; defaults are used when omitted.
        factory: Engine entry point. When omitted, ``config.engine.factory``
            is loaded.

    Raises:
        StartupError: If any step fails. EngineLoadError and WorkspaceError
            are subclasses.
    """
    config = config or Config()

    if factory is None:
        if not config.engine.factory:
            raise StartupError("No engine factory configured")
        factory = await load_engine_factory(config.engine.factory, config.engine.ready_timeout)

    mirror = WorkspaceMirror(workspace_root, config.mirror)
    transport = EngineTransport()
    try:
        await mirror.initialize()
        log.info("Workspace mirrored: %d files", len(mirror.get_files()))

        engine = _construct_engine(factory, mirror, transport)
        transport.set_engine(engine)
    except BaseException:
        transport.dispose()
        mirror.dispose()
        raise

    log.info("Bridge started for %s", mirror.root)
    return BridgeSession(config, mirror, transport, engine)

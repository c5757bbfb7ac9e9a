"""Workspace file mirror.

Keeps an in-memory copy of every tracked workspace file so the engine can
read a whole-workspace snapshot synchronously. Three sources write to the
mapping without any lock:

1. The initial scan (``initialize``)
2. Watch events (``on_create`` / ``on_change`` / ``on_delete``)
3. Editor buffer edits (``update_file_content``)

Each write replaces a whole FileRecord, so content and timestamp are never
mixed. Ordering between sources is "last write wins by arrival", with one
refinement: a disk load never replaces an editor record whose timestamp is
newer than the file's mtime (see ``MirrorConfig.prefer_editor_content``).
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

from enginebridge.config.schema import MirrorConfig
from enginebridge.exceptions import WorkspaceError
from enginebridge.logging import get_logger
from enginebridge.mirror.records import (
    FileRecord,
    RecordSource,
    WorkspaceMapping,
    mtime_ms,
    now_ms,
)
from enginebridge.mirror.scan import has_extension, iter_workspace_files
from enginebridge.mirror.watcher import CREATED, DELETED, FileChangeEvent, WorkspaceWatcher

log = get_logger("mirror")


class WorkspaceMirror:
    """In-memory mirror of the workspace's source files.

    Example:
        mirror = WorkspaceMirror(Path("/project"))
        await mirror.initialize()
        files = mirror.get_files()
        mirror.update_file_content("/project/main.spx", "onStart => {}")
        mirror.dispose()
    """

    def __init__(self, root: str | Path, config: MirrorConfig | None = None) -> None:
        self._given_root = Path(os.path.normpath(Path(root).absolute()))
        self._root = Path(root).resolve()
        self._config = config or MirrorConfig()
        self._extensions = [ext.lower() for ext in self._config.extensions]
        self._files: WorkspaceMapping = {}
        self._watcher = WorkspaceWatcher(
            self._root,
            self._extensions,
            self._config.exclude_dirs,
            poll_interval=self._config.watch.poll_interval,
        )
        self._disposed = False

    @property
    def root(self) -> Path:
        return self._root

    @property
    def watcher(self) -> WorkspaceWatcher:
        return self._watcher

    def get_files(self) -> WorkspaceMapping:
        """Return the live mapping of relative path to FileRecord.

        This is the accessor handed to the engine. The returned dict is the
        mirror's own; callers must not mutate it.
        """
        return self._files

    def matches(self, path: str | Path) -> bool:
        """Check whether ``path`` has one of the mirrored extensions."""
        return has_extension(path, self._extensions)

    def relative_path(self, path: str | Path) -> str | None:
        """Workspace-relative POSIX path, or None if ``path`` is outside the root."""
        p = Path(path)
        if not p.is_absolute():
            p = self._root / p
        p = Path(os.path.normpath(p))
        # Editors may report paths through the unresolved root (symlinks)
        for base in (self._root, self._given_root):
            try:
                rel = p.relative_to(base)
            except ValueError:
                continue
            if rel == Path("."):
                return None
            return rel.as_posix()
        return None

    def is_tracked(self, path: str | Path) -> bool:
        rel = self.relative_path(path)
        return rel is not None and rel in self._files

    async def initialize(self) -> None:
        """Scan the workspace and start watching it.

        Raises:
            WorkspaceError: If the workspace root cannot be listed.
        """
        log.info("Initializing mirror for %s", self._root)
        try:
            with os.scandir(self._root):
                pass
        except OSError as e:
            raise WorkspaceError(
                f"Workspace root is not accessible: {self._root}", {"error": str(e)}
            ) from e

        # Baseline first so changes made during the scan still get reported
        await asyncio.to_thread(self._watcher.snapshot)
        loaded, failed = await asyncio.to_thread(self._scan)
        log.info("Mirror initialized: %d files loaded, %d failed", loaded, failed)

        if self._config.watch.enabled and not self._disposed:
            self._watcher.start(self._on_watch_event)

    def _scan(self) -> tuple[int, int]:
        loaded = failed = 0
        for path in iter_workspace_files(self._root, self._extensions, self._config.exclude_dirs):
            if self._load_file(path):
                loaded += 1
            else:
                failed += 1
        return loaded, failed

    def _load_file(self, path: str | Path) -> bool:
        """Read ``path`` from disk and install its record.

        Returns False when the file could not be read. A skipped install
        (newer editor content) still counts as success.
        """
        rel = self.relative_path(path)
        if rel is None:
            log.debug("Ignoring path outside workspace: %s", path)
            return False

        abs_path = self._root / rel
        try:
            content = abs_path.read_bytes()
            st = abs_path.stat()
        except OSError as e:
            log.warning("Failed to load file %s: %s", rel, e)
            return False

        record = FileRecord(content=content, mod_time=mtime_ms(st.st_mtime_ns))

        current = self._files.get(rel)
        if (
            self._config.prefer_editor_content
            and current is not None
            and current.source is RecordSource.EDITOR
            and current.mod_time > record.mod_time
        ):
            log.debug("Kept editor content for %s (disk copy is older)", rel)
            return True

        self._files[rel] = record
        log.debug("Loaded file: %s", rel)
        return True

    def _remove_file(self, path: str | Path) -> None:
        rel = self.relative_path(path)
        if rel is None:
            return
        if self._files.pop(rel, None) is not None:
            log.debug("Removed file: %s", rel)

    def update_file_content(self, path: str | Path, text: str) -> None:
        """Mirror unsaved editor content for ``path``.

        Args:
            path: Absolute path inside the workspace, or a relative one.
            text: Full buffer text; stored UTF-8 encoded.
        """
        rel = self.relative_path(path)
        if rel is None:
            log.debug("Ignoring edit outside workspace: %s", path)
            return
        self._files[rel] = FileRecord(
            content=text.encode("utf-8"),
            mod_time=now_ms(),
            source=RecordSource.EDITOR,
        )

    def on_create(self, path: str | Path) -> None:
        self._load_file(path)

    def on_change(self, path: str | Path) -> None:
        self._load_file(path)

    def on_delete(self, path: str | Path) -> None:
        self._remove_file(path)

    def _on_watch_event(self, event: FileChangeEvent) -> None:
        if event.change_type == DELETED:
            self.on_delete(event.path)
        elif event.change_type == CREATED:
            self.on_create(event.path)
        else:
            self.on_change(event.path)

    def dispose(self) -> None:
        """Stop watching the workspace. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        self._watcher.stop()
        log.debug("Mirror disposed")

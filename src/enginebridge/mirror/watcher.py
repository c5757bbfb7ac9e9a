"""Workspace watching using polling.

Each cycle re-walks the workspace with the mirror's filters and diffs
(mtime, size) snapshots.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from enginebridge.logging import get_logger
from enginebridge.mirror.scan import iter_workspace_files

log = get_logger("mirror.watcher")

CREATED = "created"
MODIFIED = "modified"
DELETED = "deleted"


@dataclass
class FileChangeEvent:
    """Represents a detected file change."""

    path: Path
    change_type: str  # "created", "modified", "deleted"
    timestamp: float = field(default_factory=time.time)


class WorkspaceWatcher:
    """Watches a workspace tree for created, modified and deleted files.

    Example:
        watcher = WorkspaceWatcher(Path("/project"), [".spx"], poll_interval=1.0)
        watcher.snapshot()
        watcher.start(lambda event: print(event.change_type, event.path))
        ...
        watcher.stop()
    """

    def __init__(
        self,
        root: Path,
        extensions: Iterable[str],
        exclude_dirs: Iterable[str] = (),
        poll_interval: float = 1.0,
    ) -> None:
        self._root = root
        self._extensions = list(extensions)
        self._exclude_dirs = list(exclude_dirs)
        self._poll_interval = max(0.1, poll_interval)  # Minimum 100ms

        # Baseline: path -> (mtime_ns, size)
        self._state: dict[Path, tuple[int, int]] = {}

        self._running = False
        self._task: asyncio.Task[None] | None = None

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    @property
    def watched_count(self) -> int:
        return len(self._state)

    def is_running(self) -> bool:
        return self._running

    def _collect(self) -> dict[Path, tuple[int, int]]:
        state: dict[Path, tuple[int, int]] = {}
        for path in iter_workspace_files(self._root, self._extensions, self._exclude_dirs):
            try:
                st = path.stat()
            except FileNotFoundError:
                continue
            except OSError as e:
                log.warning("Error checking %s: %s", path, e)
                continue
            state[path] = (st.st_mtime_ns, st.st_size)
        return state

    def snapshot(self) -> None:
        """Record the current tree as the baseline for change detection."""
        self._state = self._collect()

    def check_changes(self) -> list[FileChangeEvent]:
        """Diff the tree against the baseline and advance the baseline.

        This is a synchronous check; the polling loop runs it off the
        event loop.
        """
        current = self._collect()
        events: list[FileChangeEvent] = []

        for path, old in self._state.items():
            new = current.get(path)
            if new is None:
                events.append(FileChangeEvent(path=path, change_type=DELETED))
            elif new != old:
                events.append(FileChangeEvent(path=path, change_type=MODIFIED))

        for path in current:
            if path not in self._state:
                events.append(FileChangeEvent(path=path, change_type=CREATED))

        self._state = current
        return events

    async def _poll_loop(self, callback: Callable[[FileChangeEvent], None]) -> None:
        try:
            while self._running:
                await asyncio.sleep(self._poll_interval)
                if not self._running:
                    break

                events = await asyncio.to_thread(self.check_changes)
                for event in events:
                    try:
                        callback(event)
                    except Exception as e:
                        log.error("Error in file change callback for %s: %s", event.path, e)
        except asyncio.CancelledError:
            log.debug("Workspace watcher cancelled")
            raise
        finally:
            self._running = False

    def start(self, callback: Callable[[FileChangeEvent], None]) -> None:
        """Start the polling loop as a task on the running event loop.

        Args:
            callback: Called on the event loop for every detected change.
        """
        if self._running:
            log.warning("Workspace watcher already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._poll_loop(callback))
        log.info("Watching %s (interval: %.1fs)", self._root, self._poll_interval)

    def stop(self) -> None:
        """Stop the polling loop. Safe to call repeatedly."""
        self._running = False
        if self._task is not None:
            if not self._task.done():
                self._task.cancel()
            self._task = None
            log.debug("Workspace watcher stopped")

"""Tests for the polling workspace watcher."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

import pytest

from enginebridge.mirror.scan import has_extension, iter_workspace_files
from enginebridge.mirror.watcher import FileChangeEvent, WorkspaceWatcher


def _changes(events: list[FileChangeEvent]) -> set[tuple[str, str]]:
    return {(e.path.name, e.change_type) for e in events}


class TestScan:
    def test_has_extension(self) -> None:
        assert has_extension("a/b/main.spx", [".spx"])
        assert has_extension("MAIN.SPX", [".spx"])
        assert not has_extension("main.spx.bak", [".spx"])
        assert not has_extension("Makefile", [".spx"])

    def test_iter_prunes_excluded_dirs_at_any_depth(self, tmp_path: Path) -> None:
        for rel in ("a.src", "x/node_modules/b.src", "x/y/c.src", "node_modules/d.src"):
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("x")

        found = {p.relative_to(tmp_path).as_posix() for p in iter_workspace_files(tmp_path, [".src"], ["node_modules"])}

        assert found == {"a.src", "x/y/c.src"}


class TestCheckChanges:
    """Tests for snapshot diffing."""

    def test_no_changes(self, tmp_path: Path) -> None:
        (tmp_path / "a.src").write_text("a")
        watcher = WorkspaceWatcher(tmp_path, [".src"])
        watcher.snapshot()

        assert watcher.check_changes() == []
        assert watcher.watched_count == 1

    def test_created_modified_deleted(self, tmp_path: Path) -> None:
        (tmp_path / "keep.src").write_text("k")
        (tmp_path / "edit.src").write_text("short")
        (tmp_path / "gone.src").write_text("g")
        watcher = WorkspaceWatcher(tmp_path, [".src"])
        watcher.snapshot()

        (tmp_path / "new.src").write_text("n")
        (tmp_path / "edit.src").write_text("much longer content")
        (tmp_path / "gone.src").unlink()

        assert _changes(watcher.check_changes()) == {
            ("new.src", "created"),
            ("edit.src", "modified"),
            ("gone.src", "deleted"),
        }
        # Baseline advanced
        assert watcher.check_changes() == []

    def test_mtime_only_change_is_modified(self, tmp_path: Path) -> None:
        path = tmp_path / "a.src"
        path.write_text("same")
        watcher = WorkspaceWatcher(tmp_path, [".src"])
        watcher.snapshot()

        os.utime(path, (1_000_000_000, 1_000_000_000))

        assert _changes(watcher.check_changes()) == {("a.src", "modified")}

    def test_ignores_other_extensions_and_excluded_dirs(self, tmp_path: Path) -> None:
        watcher = WorkspaceWatcher(tmp_path, [".src"], exclude_dirs=["node_modules"])
        watcher.snapshot()

        (tmp_path / "notes.txt").write_text("x")
        (tmp_path / "node_modules").mkdir()
        (tmp_path / "node_modules" / "dep.src").write_text("x")

        assert watcher.check_changes() == []


class TestPolling:
    """Tests for the asyncio polling loop."""

    @pytest.mark.asyncio
    async def test_start_reports_changes_and_stop(self, tmp_path: Path) -> None:
        watcher = WorkspaceWatcher(tmp_path, [".src"], poll_interval=0.1)
        watcher.snapshot()
        events: list[FileChangeEvent] = []

        watcher.start(events.append)
        try:
            (tmp_path / "a.src").write_text("a")
            for _ in range(60):
                await asyncio.sleep(0.05)
                if events:
                    break
        finally:
            watcher.stop()
            watcher.stop()

        assert _changes(events) == {("a.src", "created")}
        assert not watcher.is_running()

    @pytest.mark.asyncio
    async def test_callback_error_does_not_stop_loop(self, tmp_path: Path) -> None:
        watcher = WorkspaceWatcher(tmp_path, [".src"], poll_interval=0.1)
        watcher.snapshot()
        seen: list[str] = []

        def callback(event: FileChangeEvent) -> None:
            seen.append(event.path.name)
            if event.path.name == "first.src":
                raise RuntimeError("callback failed")

        watcher.start(callback)
        try:
            (tmp_path / "first.src").write_text("1")
            for _ in range(60):
                await asyncio.sleep(0.05)
                if "first.src" in seen:
                    break
            (tmp_path / "second.src").write_text("2")
            for _ in range(60):
                await asyncio.sleep(0.05)
                if "second.src" in seen:
                    break
        finally:
            watcher.stop()

        assert seen == ["first.src", "second.src"]

    def test_poll_interval_has_floor(self, tmp_path: Path) -> None:
        assert WorkspaceWatcher(tmp_path, [".src"], poll_interval=0.0).poll_interval == 0.1

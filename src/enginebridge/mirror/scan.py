"""Workspace traversal shared by the mirror and its watcher."""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator
from pathlib import Path

from enginebridge.logging import get_logger

log = get_logger("mirror.scan")


def has_extension(path: str | Path, extensions: Iterable[str]) -> bool:
    """Check whether ``path`` ends with one of ``extensions`` (case-insensitive)."""
    suffix = Path(path).suffix.lower()
    return bool(suffix) and suffix in extensions


def iter_workspace_files(
    root: Path,
    extensions: Iterable[str],
    exclude_dirs: Iterable[str] = (),
) -> Iterator[Path]:
    """Yield every file under ``root`` with a matching extension.

    Directories whose name is in ``exclude_dirs`` are pruned at any depth.
    Unreadable subdirectories are logged and skipped.
    """
    wanted = {ext.lower() for ext in extensions}
    excluded = set(exclude_dirs)

    def on_error(err: OSError) -> None:
        log.warning("Cannot scan %s: %s", err.filename, err.strerror or err)

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        dirnames[:] = sorted(d for d in dirnames if d not in excluded)
        for name in sorted(filenames):
            if has_extension(name, wanted):
                yield Path(dirpath) / name

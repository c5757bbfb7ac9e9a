"""File records held by the workspace mirror."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum


class RecordSource(Enum):
    """Where a record's content was observed."""

    DISK = "disk"
    EDITOR = "editor"


@dataclass(frozen=True)
class FileRecord:
    """Most recent observation of one workspace file.

    Records are immutable; the mirror replaces a whole record on every
    change so content and timestamp always belong to the same observation.
    """

    content: bytes
    mod_time: int  # Milliseconds since the epoch
    source: RecordSource = RecordSource.DISK

    def text(self, encoding: str = "utf-8") -> str:
        """Decode the content."""
        return self.content.decode(encoding)


# Workspace-relative POSIX path -> record
WorkspaceMapping = dict[str, FileRecord]


def now_ms() -> int:
    """Current wall-clock time in milliseconds."""
    return time.time_ns() // 1_000_000


def mtime_ms(st_mtime_ns: int) -> int:
    """Convert a stat nanosecond mtime to milliseconds."""
    return st_mtime_ns // 1_000_000

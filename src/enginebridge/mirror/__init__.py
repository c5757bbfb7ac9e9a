"""Workspace file mirror.

Holds the engine's view of workspace source files: populated by a
recursive scan, kept live by a polling watcher and by editor buffer edits.
"""

from enginebridge.mirror.provider import WorkspaceMirror
from enginebridge.mirror.records import FileRecord, RecordSource, WorkspaceMapping
from enginebridge.mirror.watcher import FileChangeEvent, WorkspaceWatcher

__all__ = [
    "FileChangeEvent",
    "FileRecord",
    "RecordSource",
    "WorkspaceMapping",
    "WorkspaceMirror",
    "WorkspaceWatcher",
]

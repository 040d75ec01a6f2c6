"""Long-running workspace watcher."""

from .watcher import WorkspaceWatcher

__all__ = ["WorkspaceWatcher"]

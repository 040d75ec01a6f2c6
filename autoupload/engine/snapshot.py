"""Workspace snapshots used to detect saves and deletions."""

from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Sequence

from autoupload import types


class SnapshotError(RuntimeError):
    """Raised when building a snapshot fails."""


@dataclass(frozen=True)
class SnapshotEntry:
    path: str
    is_dir: bool
    size: int
    mtime: float


@dataclass(frozen=True)
class SnapshotResult:
    root: Path
    entries: Dict[str, SnapshotEntry]


def build_snapshot(
    root: Path | str,
    *,
    ignore_patterns: Sequence[str] | None = None,
) -> SnapshotResult:
    """Walk a directory tree and return metadata for each file/directory."""
    base = Path(root).expanduser().resolve()
    if not base.exists():
        raise SnapshotError(f"Snapshot root {base} does not exist.")
    if not base.is_dir():
        raise SnapshotError(f"Snapshot root {base} is not a directory.")

    entries: Dict[str, SnapshotEntry] = {}
    resolved_ignore = tuple(ignore_patterns or [])

    for current_root, dirs, files in os.walk(base):
        current_path = Path(current_root)
        rel_dir = current_path.relative_to(base)
        rel_str = "." if str(rel_dir) == "." else rel_dir.as_posix()
        if rel_str != ".":
            try:
                entries[rel_str] = _make_entry(current_path, rel_str, is_dir=True)
            except FileNotFoundError:
                dirs[:] = []
                continue

        dirs[:] = [d for d in dirs if not is_ignored(_join_rel(rel_dir, d), resolved_ignore)]
        for name in files:
            rel_file = _join_rel(rel_dir, name)
            if is_ignored(rel_file, resolved_ignore):
                continue
            try:
                entries[rel_file] = _make_entry(current_path / name, rel_file, is_dir=False)
            except FileNotFoundError:
                # removed between listing and stat
                continue

    return SnapshotResult(root=base, entries=entries)


def diff_snapshots(previous: SnapshotResult, current: SnapshotResult) -> List[types.TriggerEvent]:
    """Translate the difference between two snapshots into trigger events.

    New or modified files become saves. Removed entries become deletions,
    reported once for the top-most removed directory.
    """
    events: List[types.TriggerEvent] = []
    for rel_path in sorted(current.entries):
        entry = current.entries[rel_path]
        if entry.is_dir:
            continue
        before = previous.entries.get(rel_path)
        if before is None or before.is_dir or before.mtime != entry.mtime or before.size != entry.size:
            events.append(types.TriggerEvent(current.root / rel_path, types.EventKind.SAVED))

    removed = sorted(set(previous.entries) - set(current.entries))
    removed_dirs: List[str] = []
    for rel_path in removed:
        if any(rel_path.startswith(parent + "/") for parent in removed_dirs):
            continue
        entry = previous.entries[rel_path]
        if entry.is_dir:
            removed_dirs.append(rel_path)
        events.append(types.TriggerEvent(previous.root / rel_path, types.EventKind.DELETED, is_dir=entry.is_dir))
    return events


def is_ignored(rel_path: str, patterns: Sequence[str]) -> bool:
    """Match a workspace-relative path, or any of its components, against patterns."""
    if not patterns:
        return False
    parts = rel_path.split("/")
    prefixes = ["/".join(parts[: index + 1]) for index in range(len(parts))]
    for pattern in patterns:
        cleaned = pattern.rstrip("/")
        if not cleaned:
            continue
        if fnmatch.fnmatch(rel_path, cleaned):
            return True
        if any(fnmatch.fnmatch(prefix, cleaned) for prefix in prefixes):
            return True
        if "/" not in cleaned and any(fnmatch.fnmatch(part, cleaned) for part in parts):
            return True
    return False


def _join_rel(base: Path, child: str) -> str:
    if str(base) == ".":
        return child
    return Path(base, child).as_posix()


def _make_entry(path: Path, rel_path: str, *, is_dir: bool) -> SnapshotEntry:
    stat = path.stat()
    return SnapshotEntry(
        path=rel_path,
        is_dir=is_dir,
        size=0 if is_dir else stat.st_size,
        mtime=stat.st_mtime,
    )


__all__ = [
    "SnapshotEntry",
    "SnapshotError",
    "SnapshotResult",
    "build_snapshot",
    "diff_snapshots",
    "is_ignored",
]

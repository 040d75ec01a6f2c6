"""Translate local workspace paths into remote POSIX paths."""

from __future__ import annotations

import posixpath
import re
from pathlib import Path, PurePosixPath

_DRIVE_PATTERN = re.compile(r"^[A-Za-z]:")


class NotInWorkspaceError(ValueError):
    """Raised when a local path lies outside the workspace root."""


def to_remote(local_path: Path | str, workspace_root: Path | str, remote_root: str) -> str:
    """Map ``local_path`` under ``workspace_root`` onto ``remote_root``."""
    relative = relative_workspace_path(local_path, workspace_root)
    if relative == ".":
        return _normalize_separators(remote_root) or "."
    return join_remote(remote_root, relative)


def relative_workspace_path(local_path: Path | str, workspace_root: Path | str) -> str:
    """Return the POSIX-style path of ``local_path`` relative to ``workspace_root``."""
    local = _as_posix(local_path)
    root = _as_posix(workspace_root)
    if _DRIVE_PATTERN.match(local) and _DRIVE_PATTERN.match(root):
        # drive letters compare case-insensitively
        local = local[0].lower() + local[1:]
        root = root[0].lower() + root[1:]
    try:
        relative = PurePosixPath(local).relative_to(PurePosixPath(root))
    except ValueError as exc:
        raise NotInWorkspaceError(f"{local_path} is not inside workspace {workspace_root}.") from exc
    return relative.as_posix()


def join_remote(remote_dir: str, name: str) -> str:
    """Join a remote directory and a child name using ``/`` only."""
    base = _normalize_separators(remote_dir)
    child = _normalize_separators(name).lstrip("/")
    if not base:
        return child
    if not child:
        return base
    if base.endswith("/"):
        return base + child
    return f"{base}/{child}"


def remote_parent(remote_path: str) -> str:
    """Return the parent directory of a remote path."""
    parent = posixpath.dirname(_normalize_separators(remote_path).rstrip("/"))
    return parent or "."


def _as_posix(path: Path | str) -> str:
    normalized = posixpath.normpath(_normalize_separators(str(path)))
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    return normalized


def _normalize_separators(path: str) -> str:
    return path.replace("\\", "/")


__all__ = [
    "NotInWorkspaceError",
    "join_remote",
    "relative_workspace_path",
    "remote_parent",
    "to_remote",
]

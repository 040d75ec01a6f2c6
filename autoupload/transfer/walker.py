"""Recursive folder upload, download and delete.

The walkers only use the public operations of a connected
``RemoteTransferClient``, so both protocols share one traversal. Traversal
is sequential and depth-first: a single session cannot carry concurrent
commands. Nothing is rolled back when a walk fails part way; the error is
re-raised after logging what already completed.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, List, Set, Tuple

from autoupload import paths
from .errors import DirectoryError, RemoteClientError

if TYPE_CHECKING:  # pragma: no cover
    from .base import RemoteTransferClient

logger = logging.getLogger(__name__)

SKIPPED_NAMES = (".", "..")


@dataclass
class WalkStats:
    """Paths touched by one walk, in the order they completed."""

    files: List[str] = field(default_factory=list)
    directories: List[str] = field(default_factory=list)


def upload_tree(client: "RemoteTransferClient", local_dir: Path, remote_dir: str) -> WalkStats:
    """Mirror ``local_dir`` onto ``remote_dir``."""
    stats = WalkStats()
    try:
        _upload(client, Path(local_dir), remote_dir, stats, set())
    except RemoteClientError:
        _log_partial("Folder upload", local_dir, stats)
        raise
    return stats


def download_tree(client: "RemoteTransferClient", remote_dir: str, local_dir: Path) -> WalkStats:
    """Mirror ``remote_dir`` into ``local_dir``."""
    stats = WalkStats()
    try:
        _download(client, remote_dir, Path(local_dir), stats)
    except RemoteClientError:
        _log_partial("Folder download", remote_dir, stats)
        raise
    return stats


def delete_tree(client: "RemoteTransferClient", remote_dir: str) -> WalkStats:
    """Remove ``remote_dir`` and everything below it."""
    stats = WalkStats()
    try:
        _delete(client, remote_dir, stats)
    except RemoteClientError:
        _log_partial("Folder delete", remote_dir, stats)
        raise
    return stats


def ensure_local_directory(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DirectoryError(f"Failed to create local directory {path}: {exc}", path=str(path)) from exc


def _upload(
    client: "RemoteTransferClient",
    local_dir: Path,
    remote_dir: str,
    stats: WalkStats,
    ancestors: Set[Tuple[int, int]],
) -> None:
    identity = _directory_identity(local_dir)
    if identity in ancestors:
        # a symlink pointing back at a folder that is already being uploaded
        logger.warning("Skipping %s: it links back to a folder above it.", local_dir)
        return
    ancestors.add(identity)
    try:
        client.ensure_remote_directory(remote_dir)
        stats.directories.append(remote_dir)
        for name, is_dir in _local_entries(local_dir):
            local_path = local_dir / name
            remote_path = paths.join_remote(remote_dir, name)
            if is_dir:
                _upload(client, local_path, remote_path, stats, ancestors)
            else:
                client.upload_file(local_path, remote_path)
                stats.files.append(remote_path)
    finally:
        ancestors.discard(identity)


def _download(client: "RemoteTransferClient", remote_dir: str, local_dir: Path, stats: WalkStats) -> None:
    ensure_local_directory(local_dir)
    stats.directories.append(str(local_dir))
    for entry in client.list_directory(remote_dir):
        if not _is_safe_name(entry.name):
            continue
        remote_path = paths.join_remote(remote_dir, entry.name)
        local_path = local_dir / entry.name
        if entry.is_dir:
            _download(client, remote_path, local_path, stats)
        else:
            client.download_file(remote_path, local_path)
            stats.files.append(str(local_path))


def _delete(client: "RemoteTransferClient", remote_dir: str, stats: WalkStats) -> None:
    for entry in client.list_directory(remote_dir):
        if not _is_safe_name(entry.name):
            continue
        remote_path = paths.join_remote(remote_dir, entry.name)
        if entry.is_dir:
            _delete(client, remote_path, stats)
        else:
            client.delete_file(remote_path)
            stats.files.append(remote_path)
    client.remove_directory(remote_dir)
    stats.directories.append(remote_dir)


def _local_entries(local_dir: Path) -> List[Tuple[str, bool]]:
    try:
        with os.scandir(local_dir) as iterator:
            return [(entry.name, entry.is_dir()) for entry in iterator]
    except OSError as exc:
        raise DirectoryError(f"Unable to read local directory {local_dir}: {exc}", path=str(local_dir)) from exc


def _directory_identity(local_dir: Path) -> Tuple[int, int]:
    try:
        info = os.stat(local_dir)
    except OSError as exc:
        raise DirectoryError(f"Unable to read local directory {local_dir}: {exc}", path=str(local_dir)) from exc
    return info.st_dev, info.st_ino


def _is_safe_name(name: str) -> bool:
    if name in SKIPPED_NAMES:
        return False
    # a backslash is an ordinary character in POSIX names, except where it is the local separator
    if "/" in name or (os.sep != "/" and os.sep in name):
        logger.warning("Skipping remote entry with a path separator in its name: %r", name)
        return False
    return True


def _log_partial(action: str, root: Path | str, stats: WalkStats) -> None:
    logger.warning(
        "%s of %s stopped after %d file(s) and %d folder(s); completed entries were kept.",
        action,
        root,
        len(stats.files),
        len(stats.directories),
    )
    for completed in stats.files:
        logger.debug(" - completed %s", completed)


__all__ = [
    "WalkStats",
    "delete_tree",
    "download_tree",
    "ensure_local_directory",
    "upload_tree",
]

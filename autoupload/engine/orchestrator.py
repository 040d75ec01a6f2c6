"""Command-level driver for single transfer operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from autoupload import config, paths, types
from autoupload.engine import snapshot
from autoupload.notifier import LoggingNotifier, TransferNotifier
from autoupload.transfer import RemoteClientError, RemoteTransferClient, WalkStats, create_client

logger = logging.getLogger(__name__)

ClientFactory = Callable[[types.ServerConfig, Optional[TransferNotifier]], RemoteTransferClient]
ConfigLoader = Callable[[Path], types.ServerConfig]

SUCCESS_MESSAGES = {
    types.OperationKind.UPLOAD_FILE: "File uploaded",
    types.OperationKind.DOWNLOAD_FILE: "File downloaded",
    types.OperationKind.UPLOAD_FOLDER: "Folder uploaded",
    types.OperationKind.DOWNLOAD_FOLDER: "Folder downloaded",
    types.OperationKind.DELETE_FILE: "Remote file deleted",
    types.OperationKind.DELETE_FOLDER: "Remote folder deleted",
    types.OperationKind.RENAME: "Renamed",
}


class OperationError(RuntimeError):
    """A single operation failed; the message names the operation and path."""

    def __init__(self, kind: types.OperationKind, path: Path | str, cause: BaseException):
        super().__init__(f"{kind.label} failed for {path}: {cause}")
        self.kind = kind
        self.path = Path(path)
        self.cause = cause


@dataclass(frozen=True)
class OperationResult:
    kind: types.OperationKind
    local_path: Path
    remote_path: str
    stats: Optional[WalkStats] = None


class SyncOrchestrator:
    """Resolves config, builds a client and brackets one operation with connect/disconnect."""

    def __init__(
        self,
        *,
        notifier: Optional[TransferNotifier] = None,
        client_factory: ClientFactory = create_client,
        config_loader: ConfigLoader = config.load_server_config,
        workspace_root: Path | str | None = None,
    ):
        self._notifier = notifier or LoggingNotifier()
        self._client_factory = client_factory
        self._config_loader = config_loader
        self._workspace_root = Path(workspace_root).expanduser().absolute() if workspace_root else None

    def execute(
        self,
        kind: types.OperationKind | str,
        local_path: Path | str,
        *,
        workspace_root: Path | str | None = None,
        target: Path | str | None = None,
    ) -> OperationResult:
        """Run one operation for ``local_path``.

        ``ConfigError`` propagates untouched and means no connection was
        attempted. Every other failure is raised as ``OperationError``.
        """
        resolved_kind = types.OperationKind(kind)
        local = _absolute(local_path)
        root = _absolute(workspace_root) if workspace_root else self._resolve_workspace(local)
        server_config = self._config_loader(root)
        return self._run(resolved_kind, local, root, server_config, target)

    def handle_event(self, event: types.TriggerEvent) -> Optional[OperationResult]:
        """Mirror a save or delete notification; returns None when skipped."""
        local = _absolute(event.local_path)
        workspace_root = self._resolve_workspace(local)
        server_config = self._config_loader(workspace_root)
        if not server_config.upload_on_save:
            logger.debug("uploadOnSave is disabled; ignoring %s event for %s.", event.kind.value, local)
            return None
        try:
            rel_path = paths.relative_workspace_path(local, workspace_root)
        except paths.NotInWorkspaceError:
            logger.debug("Ignoring %s outside workspace %s.", local, workspace_root)
            return None
        if rel_path == config.CONFIG_RELATIVE_PATH.as_posix():
            return None
        if snapshot.is_ignored(rel_path, server_config.ignore):
            logger.debug("Ignoring %s (matches ignore patterns).", rel_path)
            return None
        if event.kind == types.EventKind.SAVED:
            if local.is_dir():
                return None
            kind = types.OperationKind.UPLOAD_FILE
        elif event.is_dir:
            kind = types.OperationKind.DELETE_FOLDER
        else:
            kind = types.OperationKind.DELETE_FILE
        return self._run(kind, local, workspace_root, server_config, None)

    def _resolve_workspace(self, local: Path) -> Path:
        if self._workspace_root is not None:
            return self._workspace_root
        return config.find_workspace_root(local)

    def _run(
        self,
        kind: types.OperationKind,
        local: Path,
        workspace_root: Path,
        server_config: types.ServerConfig,
        target: Path | str | None,
    ) -> OperationResult:
        try:
            remote_path = paths.to_remote(local, workspace_root, server_config.remote_path)
            remote_target = None
            if kind == types.OperationKind.RENAME:
                if target is None:
                    raise ValueError("rename requires a target path.")
                remote_target = paths.to_remote(_absolute(target), workspace_root, server_config.remote_path)
        except ValueError as exc:
            raise OperationError(kind, local, exc) from exc

        client: Optional[RemoteTransferClient] = None
        try:
            client = self._client_factory(server_config, self._notifier)
            client.connect()
            stats = _dispatch(client, kind, local, remote_path, remote_target)
        except (RemoteClientError, OSError, UnicodeError) as exc:
            raise OperationError(kind, local, exc) from exc
        finally:
            if client is not None:
                _safe_disconnect(client)

        logger.info("%s: %s", SUCCESS_MESSAGES[kind], local.name)
        return OperationResult(kind=kind, local_path=local, remote_path=remote_path, stats=stats)


def _dispatch(
    client: RemoteTransferClient,
    kind: types.OperationKind,
    local: Path,
    remote_path: str,
    remote_target: Optional[str],
) -> Optional[WalkStats]:
    if kind == types.OperationKind.UPLOAD_FILE:
        client.upload_file(local, remote_path)
    elif kind == types.OperationKind.DOWNLOAD_FILE:
        client.download_file(remote_path, local)
    elif kind == types.OperationKind.UPLOAD_FOLDER:
        return client.upload_folder(local, remote_path)
    elif kind == types.OperationKind.DOWNLOAD_FOLDER:
        return client.download_folder(remote_path, local)
    elif kind == types.OperationKind.DELETE_FILE:
        client.delete_file(remote_path)
    elif kind == types.OperationKind.DELETE_FOLDER:
        return client.delete_folder(remote_path)
    elif kind == types.OperationKind.RENAME:
        assert remote_target is not None
        client.rename(remote_path, remote_target)
    else:  # pragma: no cover - OperationKind is closed
        raise RemoteClientError(f"Unsupported operation: {kind}")
    return None


def _safe_disconnect(client: RemoteTransferClient) -> None:
    try:
        client.disconnect()
    except Exception as exc:
        logger.warning("Disconnect failed: %s", exc)


def _absolute(path: Path | str) -> Path:
    return Path(path).expanduser().absolute()


__all__ = ["OperationError", "OperationResult", "SyncOrchestrator"]

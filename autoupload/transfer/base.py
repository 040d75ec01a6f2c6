"""Protocol-agnostic remote transfer client."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Type

from autoupload import paths, types
from autoupload.notifier import NullNotifier, TransferNotifier
from . import walker
from .errors import (
    DeleteError,
    DirectoryError,
    RemoteClientError,
    RemoteConnectionError,
    RenameError,
    TransferError,
)

logger = logging.getLogger(__name__)


class RemoteTransferClient(ABC):
    """Owns one protocol session for the duration of a single operation.

    Subclasses implement the session primitives; this class adds the
    connection state, error translation and status reporting shared by
    every protocol. Operations other than ``connect`` and ``disconnect``
    require an open session and raise ``RemoteConnectionError`` otherwise.
    """

    protocol: types.Protocol
    # exceptions raised by the underlying library that map onto our errors;
    # UnicodeError covers remote names that are not valid UTF-8
    session_errors: Tuple[Type[BaseException], ...] = (OSError, UnicodeError)

    def __init__(self, server_config: types.ServerConfig, notifier: Optional[TransferNotifier] = None):
        self._config = server_config
        self._notifier: TransferNotifier = notifier or NullNotifier()
        self._connected = False

    @property
    def config(self) -> types.ServerConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        return self._connected

    def __enter__(self) -> "RemoteTransferClient":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()

    def connect(self) -> None:
        """Open the session; a no-op when already connected."""
        if self._connected:
            return
        logger.debug(
            "Connecting to %s://%s@%s:%d",
            self.protocol.value,
            self._config.username,
            self._config.host,
            self._config.effective_port,
        )
        self._open_session()
        self._connected = True

    def disconnect(self) -> None:
        """Close the session; safe to call at any time and never raises."""
        if not self._connected:
            return
        try:
            self._close_session()
        except Exception as exc:
            logger.warning("Error while closing %s session: %s", self.protocol.value, exc)
        finally:
            self._connected = False
        logger.debug("Disconnected from %s.", self._config.host)

    def upload_file(self, local_path: Path | str, remote_path: str) -> None:
        self._require_connected()
        self.ensure_remote_directory(paths.remote_parent(remote_path))
        self._notifier.update_transfer_status(Path(local_path).name)
        with self._translate(TransferError, "Upload", remote_path):
            self._put(Path(local_path), remote_path)

    def download_file(self, remote_path: str, local_path: Path | str) -> None:
        self._require_connected()
        local = Path(local_path)
        walker.ensure_local_directory(local.parent)
        self._notifier.update_transfer_status(local.name)
        with self._translate(TransferError, "Download", remote_path):
            self._get(remote_path, local)

    def upload_folder(self, local_path: Path | str, remote_path: str) -> walker.WalkStats:
        self._require_connected()
        return walker.upload_tree(self, Path(local_path), remote_path)

    def download_folder(self, remote_path: str, local_path: Path | str) -> walker.WalkStats:
        self._require_connected()
        return walker.download_tree(self, remote_path, Path(local_path))

    def delete_file(self, remote_path: str) -> None:
        self._require_connected()
        with self._translate(DeleteError, "Delete", remote_path):
            self._remove_file(remote_path)

    def delete_folder(self, remote_path: str) -> walker.WalkStats:
        self._require_connected()
        return walker.delete_tree(self, remote_path)

    def remove_directory(self, remote_path: str) -> None:
        """Remove one empty remote directory."""
        self._require_connected()
        with self._translate(DeleteError, "Folder delete", remote_path):
            self._remove_directory(remote_path)

    def rename(self, old_remote_path: str, new_remote_path: str) -> None:
        self._require_connected()
        with self._translate(RenameError, "Rename", old_remote_path):
            self._rename(old_remote_path, new_remote_path)

    def ensure_remote_directory(self, remote_path: str) -> None:
        """Create ``remote_path`` and its parents; existing directories are fine."""
        self._require_connected()
        with self._translate(DirectoryError, "Creating remote directory", remote_path):
            self._ensure_directory(remote_path)

    def list_directory(self, remote_path: str) -> List[types.RemoteEntry]:
        self._require_connected()
        with self._translate(DirectoryError, "Listing", remote_path):
            entries = self._list(remote_path)
        return [entry for entry in entries if entry.name not in (".", "..")]

    def _require_connected(self) -> None:
        if not self._connected:
            raise RemoteConnectionError(
                f"{self.protocol.value.upper()} client for {self._config.host} is not connected."
            )

    @contextmanager
    def _translate(self, error_cls: Type[RemoteClientError], action: str, path: str) -> Iterator[None]:
        try:
            yield
        except RemoteClientError:
            raise
        except self.session_errors as exc:
            raise error_cls(f"{action} failed for {path}: {exc}", path=path) from exc

    @abstractmethod
    def _open_session(self) -> None:
        """Establish the session or raise RemoteConnectionError."""

    @abstractmethod
    def _close_session(self) -> None:
        ...

    @abstractmethod
    def _put(self, local_path: Path, remote_path: str) -> None:
        ...

    @abstractmethod
    def _get(self, remote_path: str, local_path: Path) -> None:
        ...

    @abstractmethod
    def _list(self, remote_path: str) -> List[types.RemoteEntry]:
        ...

    @abstractmethod
    def _ensure_directory(self, remote_path: str) -> None:
        ...

    @abstractmethod
    def _remove_file(self, remote_path: str) -> None:
        ...

    @abstractmethod
    def _remove_directory(self, remote_path: str) -> None:
        ...

    @abstractmethod
    def _rename(self, old_remote_path: str, new_remote_path: str) -> None:
        ...


__all__ = ["RemoteTransferClient"]

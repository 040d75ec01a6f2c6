"""Remote transfer clients for SFTP and FTP servers."""

from __future__ import annotations

from typing import Dict, Optional, Type

from autoupload import types
from autoupload.notifier import TransferNotifier
from .base import RemoteTransferClient
from .errors import (
    DeleteError,
    DirectoryError,
    RemoteClientError,
    RemoteConnectionError,
    RenameError,
    TransferError,
)
from .ftp import FtpTransferClient
from .sftp import SftpTransferClient
from .walker import WalkStats

CLIENT_CLASSES: Dict[types.Protocol, Type[RemoteTransferClient]] = {
    types.Protocol.SFTP: SftpTransferClient,
    types.Protocol.FTP: FtpTransferClient,
}


def create_client(
    server_config: types.ServerConfig,
    notifier: Optional[TransferNotifier] = None,
) -> RemoteTransferClient:
    """Build the client matching ``server_config.protocol``."""
    try:
        client_cls = CLIENT_CLASSES[server_config.protocol]
    except KeyError as exc:  # pragma: no cover - Protocol is a closed enum
        raise RemoteClientError(f"Unsupported protocol: {server_config.protocol}") from exc
    return client_cls(server_config, notifier)


__all__ = [
    "CLIENT_CLASSES",
    "DeleteError",
    "DirectoryError",
    "FtpTransferClient",
    "RemoteClientError",
    "RemoteConnectionError",
    "RemoteTransferClient",
    "RenameError",
    "SftpTransferClient",
    "TransferError",
    "WalkStats",
    "create_client",
]

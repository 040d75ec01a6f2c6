"""Errors raised by remote transfer clients."""

from __future__ import annotations

from typing import Optional


class RemoteClientError(RuntimeError):
    """Base class for failures reported by a transfer client."""

    def __init__(self, message: str, *, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class RemoteConnectionError(RemoteClientError):
    """Raised when a session cannot be established or is not open."""


class TransferError(RemoteClientError):
    """Raised when a single file upload or download fails."""


class DirectoryError(RemoteClientError):
    """Raised when creating or listing a directory fails."""


class DeleteError(RemoteClientError):
    """Raised when a remote file or directory cannot be removed."""


class RenameError(RemoteClientError):
    """Raised when a remote rename fails."""


__all__ = [
    "DeleteError",
    "DirectoryError",
    "RemoteClientError",
    "RemoteConnectionError",
    "RenameError",
    "TransferError",
]

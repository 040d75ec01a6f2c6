"""Core data types shared by the transfer clients and the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

DEFAULT_PORTS = {"sftp": 22, "ftp": 21}


class Protocol(str, Enum):
    SFTP = "sftp"
    FTP = "ftp"


@dataclass(frozen=True)
class ServerConfig:
    """Connection and mirroring settings for one workspace."""

    protocol: Protocol
    host: str
    username: str
    remote_path: str
    port: Optional[int] = None
    password: Optional[str] = None
    private_key: Optional[str] = None
    passphrase: Optional[str] = None
    upload_on_save: bool = False
    ignore: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "protocol", Protocol(self.protocol))
        object.__setattr__(self, "remote_path", self.remote_path.replace("\\", "/"))
        object.__setattr__(self, "ignore", tuple(self.ignore))
        if not self.host:
            raise ValueError("Server configuration must include a host.")

    @property
    def effective_port(self) -> int:
        if self.port is not None:
            return self.port
        return DEFAULT_PORTS[self.protocol.value]


class EntryType(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class RemoteEntry:
    """One entry of a remote directory listing."""

    name: str
    type: EntryType
    size: Optional[int] = None

    @property
    def is_dir(self) -> bool:
        return self.type == EntryType.DIRECTORY


class OperationKind(str, Enum):
    UPLOAD_FILE = "upload-file"
    DOWNLOAD_FILE = "download-file"
    UPLOAD_FOLDER = "upload-folder"
    DOWNLOAD_FOLDER = "download-folder"
    DELETE_FILE = "delete-file"
    DELETE_FOLDER = "delete-folder"
    RENAME = "rename"

    @property
    def label(self) -> str:
        return self.value.replace("-", " ").capitalize()


class EventKind(str, Enum):
    SAVED = "saved"
    DELETED = "deleted"


@dataclass(frozen=True)
class TriggerEvent:
    """A save or delete notification delivered by the host."""

    local_path: Path
    kind: EventKind
    is_dir: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "local_path", Path(self.local_path))
        object.__setattr__(self, "kind", EventKind(self.kind))


__all__ = [
    "DEFAULT_PORTS",
    "EntryType",
    "EventKind",
    "OperationKind",
    "Protocol",
    "RemoteEntry",
    "ServerConfig",
    "TriggerEvent",
]

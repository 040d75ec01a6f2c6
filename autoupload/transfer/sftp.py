"""SFTP transfer client built on paramiko."""

from __future__ import annotations

import io
import logging
import stat
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import paramiko

from autoupload import paths, types
from autoupload.notifier import TransferNotifier
from .base import RemoteTransferClient
from .errors import DirectoryError, RemoteConnectionError

logger = logging.getLogger(__name__)

PEM_MARKER = "-----BEGIN"
KEY_CLASSES = (paramiko.Ed25519Key, paramiko.ECDSAKey, paramiko.RSAKey)


class SftpTransferClient(RemoteTransferClient):
    """One paramiko SSH connection with an SFTP channel on top."""

    protocol = types.Protocol.SFTP
    session_errors = (OSError, UnicodeError, paramiko.SSHException)

    def __init__(
        self,
        server_config: types.ServerConfig,
        notifier: Optional[TransferNotifier] = None,
        *,
        ssh_client_factory: Callable[[], paramiko.SSHClient] = paramiko.SSHClient,
    ):
        super().__init__(server_config, notifier)
        self._ssh_client_factory = ssh_client_factory
        self._ssh: Optional[paramiko.SSHClient] = None
        self._sftp: Optional[paramiko.SFTPClient] = None

    def _open_session(self) -> None:
        ssh = self._ssh_client_factory()
        ssh.load_system_host_keys()
        ssh.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            ssh.connect(**self._connect_kwargs())
            sftp = ssh.open_sftp()
        except self.session_errors as exc:
            ssh.close()
            raise RemoteConnectionError(
                f"SFTP connection to {self._config.host}:{self._config.effective_port} failed: {exc}"
            ) from exc
        self._ssh = ssh
        self._sftp = sftp

    def _close_session(self) -> None:
        sftp, ssh = self._sftp, self._ssh
        self._sftp = None
        self._ssh = None
        try:
            if sftp is not None:
                sftp.close()
        finally:
            if ssh is not None:
                ssh.close()

    def _connect_kwargs(self) -> Dict[str, Any]:
        cfg = self._config
        kwargs: Dict[str, Any] = {
            "hostname": cfg.host,
            "port": cfg.effective_port,
            "username": cfg.username,
        }
        if cfg.password is not None:
            kwargs["password"] = cfg.password
        if cfg.private_key:
            if cfg.private_key.lstrip().startswith(PEM_MARKER):
                kwargs["pkey"] = load_private_key(cfg.private_key, cfg.passphrase)
            else:
                kwargs["key_filename"] = str(Path(cfg.private_key).expanduser())
                if cfg.passphrase is not None:
                    kwargs["passphrase"] = cfg.passphrase
        return kwargs

    @property
    def _session(self) -> paramiko.SFTPClient:
        if self._sftp is None:
            raise RemoteConnectionError(f"SFTP session to {self._config.host} is not open.")
        return self._sftp

    def _put(self, local_path: Path, remote_path: str) -> None:
        self._session.put(str(local_path), remote_path)

    def _get(self, remote_path: str, local_path: Path) -> None:
        self._session.get(remote_path, str(local_path))

    def _list(self, remote_path: str) -> List[types.RemoteEntry]:
        entries = []
        for attrs in self._session.listdir_attr(remote_path):
            is_dir = stat.S_ISDIR(attrs.st_mode or 0)
            entries.append(
                types.RemoteEntry(
                    name=attrs.filename,
                    type=types.EntryType.DIRECTORY if is_dir else types.EntryType.FILE,
                    size=None if is_dir else attrs.st_size,
                )
            )
        return entries

    def _ensure_directory(self, remote_path: str) -> None:
        if remote_path in ("", ".", "/"):
            return
        existing = self._stat(remote_path)
        if existing is not None:
            if stat.S_ISDIR(existing.st_mode or 0):
                return
            raise DirectoryError(f"Remote path {remote_path} exists and is not a directory.", path=remote_path)
        self._ensure_directory(paths.remote_parent(remote_path))
        try:
            self._session.mkdir(remote_path)
        except OSError as exc:
            # another client may have created it between stat and mkdir
            existing = self._stat(remote_path)
            if existing is None or not stat.S_ISDIR(existing.st_mode or 0):
                raise DirectoryError(
                    f"Failed to create remote directory {remote_path}: {exc}", path=remote_path
                ) from exc
        logger.debug("Created remote directory %s", remote_path)

    def _stat(self, remote_path: str) -> Optional[paramiko.SFTPAttributes]:
        try:
            return self._session.stat(remote_path)
        except FileNotFoundError:
            return None

    def _remove_file(self, remote_path: str) -> None:
        self._session.remove(remote_path)

    def _remove_directory(self, remote_path: str) -> None:
        self._session.rmdir(remote_path)

    def _rename(self, old_remote_path: str, new_remote_path: str) -> None:
        self._session.rename(old_remote_path, new_remote_path)


def load_private_key(key_text: str, passphrase: Optional[str] = None) -> paramiko.PKey:
    """Parse PEM/OpenSSH key material given inline in the descriptor."""
    last_error: Optional[Exception] = None
    for key_cls in KEY_CLASSES:
        try:
            return key_cls.from_private_key(io.StringIO(key_text), password=passphrase)
        except (paramiko.SSHException, ValueError) as exc:
            last_error = exc
    raise paramiko.SSHException(f"Unsupported private key: {last_error}")


__all__ = ["SftpTransferClient", "load_private_key"]

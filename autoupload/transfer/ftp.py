"""FTP transfer client built on ftplib."""

from __future__ import annotations

import ftplib
import logging
import os
import tempfile
from pathlib import Path
from typing import Callable, List, Optional

from autoupload import paths, types
from autoupload.notifier import TransferNotifier
from . import listing
from .base import RemoteTransferClient
from .errors import DirectoryError, RemoteConnectionError

logger = logging.getLogger(__name__)

# MKD on an existing directory answers 550
ALREADY_EXISTS_CODE = "550"
# replies meaning the server does not understand MLSD
UNSUPPORTED_COMMAND_CODES = ("500", "501", "502", "504")


class FtpTransferClient(RemoteTransferClient):
    """One FTP control connection in passive, binary mode."""

    protocol = types.Protocol.FTP
    session_errors = ftplib.all_errors + (UnicodeError,)

    def __init__(
        self,
        server_config: types.ServerConfig,
        notifier: Optional[TransferNotifier] = None,
        *,
        ftp_factory: Callable[[], ftplib.FTP] = ftplib.FTP,
    ):
        super().__init__(server_config, notifier)
        self._ftp_factory = ftp_factory
        self._ftp: Optional[ftplib.FTP] = None
        self._mlsd_supported = True

    def _open_session(self) -> None:
        ftp = self._ftp_factory()
        try:
            ftp.connect(self._config.host, self._config.effective_port)
            ftp.login(self._config.username, self._config.password or "")
            ftp.set_pasv(True)
        except self.session_errors as exc:
            ftp.close()
            raise RemoteConnectionError(
                f"FTP connection to {self._config.host}:{self._config.effective_port} failed: {exc}"
            ) from exc
        self._ftp = ftp
        self._mlsd_supported = True

    def _close_session(self) -> None:
        ftp = self._ftp
        self._ftp = None
        if ftp is None:
            return
        try:
            ftp.quit()
        except ftplib.all_errors as exc:
            logger.debug("FTP QUIT failed (%s); closing socket.", exc)
            ftp.close()

    @property
    def _session(self) -> ftplib.FTP:
        if self._ftp is None:
            raise RemoteConnectionError(f"FTP session to {self._config.host} is not open.")
        return self._ftp

    def _put(self, local_path: Path, remote_path: str) -> None:
        with open(local_path, "rb") as handle:
            self._session.storbinary(f"STOR {remote_path}", handle)

    def _get(self, remote_path: str, local_path: Path) -> None:
        # bytes land in a sibling temp file; the target only appears once
        # the local file has been closed without error
        fd, temp_name = tempfile.mkstemp(prefix=f".{local_path.name}.", suffix=".part", dir=local_path.parent)
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "wb") as handle:
                self._session.retrbinary(f"RETR {remote_path}", handle.write)
            os.replace(temp_path, local_path)
        finally:
            if temp_path.exists():
                temp_path.unlink()

    def _list(self, remote_path: str) -> List[types.RemoteEntry]:
        if self._mlsd_supported:
            try:
                entries = []
                for name, facts in self._session.mlsd(remote_path, facts=["type", "size"]):
                    entry = listing.entry_from_facts(name, facts)
                    if entry is not None:
                        entries.append(entry)
                return entries
            except ftplib.error_perm as exc:
                if reply_code(exc) not in UNSUPPORTED_COMMAND_CODES:
                    raise
                logger.debug("Server rejected MLSD (%s); falling back to LIST.", exc)
                self._mlsd_supported = False
        lines: List[str] = []
        self._session.retrlines(f"LIST {remote_path}", lines.append)
        return listing.parse_list_lines(lines)

    def _ensure_directory(self, remote_path: str) -> None:
        if remote_path in ("", ".", "/"):
            return
        current = "/" if remote_path.startswith("/") else ""
        for part in remote_path.split("/"):
            if part in ("", "."):
                continue
            current = paths.join_remote(current, part)
            try:
                self._session.mkd(current)
            except ftplib.error_perm as exc:
                if reply_code(exc) != ALREADY_EXISTS_CODE:
                    raise DirectoryError(
                        f"Failed to create remote directory {current}: {exc}", path=current
                    ) from exc
                logger.debug("Remote directory %s already exists.", current)

    def _remove_file(self, remote_path: str) -> None:
        self._session.delete(remote_path)

    def _remove_directory(self, remote_path: str) -> None:
        self._session.rmd(remote_path)

    def _rename(self, old_remote_path: str, new_remote_path: str) -> None:
        self._session.rename(old_remote_path, new_remote_path)


def reply_code(exc: BaseException) -> str:
    """Return the three digit reply code carried by an ftplib error."""
    return str(exc).strip()[:3]


__all__ = ["FtpTransferClient", "reply_code"]

"""Tests for the ftplib-backed FTP client."""

from __future__ import annotations

import ftplib
import logging
import posixpath
import tempfile
import unittest
from pathlib import Path

from autoupload import config, types
from autoupload.engine.orchestrator import OperationError, SyncOrchestrator
from autoupload.notifier import NullNotifier
from autoupload.transfer import DirectoryError, RemoteConnectionError, RenameError, TransferError
from autoupload.transfer import create_client
from autoupload.transfer.ftp import FtpTransferClient, reply_code

from fakes import RecordingNotifier, make_config


class FakeFTP:
    """Just enough of ftplib.FTP over in-memory dictionaries."""

    def __init__(self, *, login_error=None, supports_mlsd=True):
        self.login_error = login_error
        self.supports_mlsd = supports_mlsd
        self.files = {}
        self.directories = {"/"}
        self.mkd_calls = []
        self.commands = []
        self.connect_calls = 0
        self.passive = None
        self.quit_called = False
        self.closed = False
        self.fail_retr_after = None

    def connect(self, host, port):
        self.connect_calls += 1
        self.commands.append(f"CONNECT {host}:{port}")

    def login(self, user, passwd):
        if self.login_error is not None:
            raise self.login_error
        self.commands.append(f"USER {user}")

    def set_pasv(self, value):
        self.passive = value

    def mkd(self, path):
        self.mkd_calls.append(path)
        if path in self.directories:
            raise ftplib.error_perm(f"550 {path}: File exists")
        if posixpath.dirname(path) not in self.directories:
            raise ftplib.error_perm(f"553 {path}: No such directory")
        self.directories.add(path)
        return path

    def storbinary(self, cmd, fp):
        path = cmd.split(" ", 1)[1]
        if posixpath.dirname(path) not in self.directories:
            raise ftplib.error_perm("553 Could not create file.")
        self.files[path] = fp.read()

    def retrbinary(self, cmd, callback):
        path = cmd.split(" ", 1)[1]
        if path not in self.files:
            raise ftplib.error_perm("550 Failed to open file.")
        data = self.files[path]
        callback(data[:2])
        if self.fail_retr_after is not None:
            raise ftplib.error_temp("426 Connection closed; transfer aborted.")
        callback(data[2:])

    def mlsd(self, path, facts=()):
        if not self.supports_mlsd:
            raise ftplib.error_perm("500 Unknown command.")
        yield ".", {"type": "cdir"}
        yield "..", {"type": "pdir"}
        for directory in sorted(self.directories):
            if directory != path and posixpath.dirname(directory) == path:
                yield posixpath.basename(directory), {"type": "dir"}
        for name, data in sorted(self.files.items()):
            if posixpath.dirname(name) == path:
                yield posixpath.basename(name), {"type": "file", "size": str(len(data))}

    def retrlines(self, cmd, callback):
        self.commands.append(cmd)
        path = cmd.split(" ", 1)[1]
        callback("total 2")
        for directory in sorted(self.directories):
            if directory != path and posixpath.dirname(directory) == path:
                callback(f"drwxr-xr-x    2 ftp      ftp          4096 Jan 15 10:30 {posixpath.basename(directory)}")
        for name, data in sorted(self.files.items()):
            if posixpath.dirname(name) == path:
                callback(f"-rw-r--r--    1 ftp      ftp      {len(data):>8} Jan 15 10:30 {posixpath.basename(name)}")

    def delete(self, path):
        if path not in self.files:
            raise ftplib.error_perm("550 No such file.")
        del self.files[path]

    def rmd(self, path):
        self.directories.discard(path)

    def rename(self, old, new):
        if old not in self.files:
            raise ftplib.error_perm("550 RNFR command failed.")
        self.files[new] = self.files.pop(old)

    def quit(self):
        self.quit_called = True

    def close(self):
        self.closed = True


class UndecodableListingFTP(FakeFTP):
    """Server whose MLSD reply holds a name that is not valid UTF-8."""

    def mlsd(self, path, facts=()):
        yield "ok.txt", {"type": "file", "size": "1"}
        yield b"caf\xe9.txt".decode("utf-8"), {"type": "file"}


def _client(ftp=None, notifier=None, **config_overrides):
    ftp = ftp or FakeFTP()
    client = FtpTransferClient(make_config("ftp", **config_overrides), notifier, ftp_factory=lambda: ftp)
    return client, ftp


class TestFtpConnection(unittest.TestCase):
    def test_connects_and_logs_in_once(self):
        client, ftp = _client()
        client.connect()
        client.connect()
        self.assertEqual(ftp.connect_calls, 1)
        self.assertEqual(ftp.commands, ["CONNECT example.com:21", "USER deploy"])
        self.assertTrue(ftp.passive)

    def test_login_failure_closes_socket(self):
        ftp = FakeFTP(login_error=ftplib.error_perm("530 Login incorrect."))
        client, _ = _client(ftp=ftp)
        with self.assertRaises(RemoteConnectionError) as ctx:
            client.connect()
        self.assertIn("530", str(ctx.exception))
        self.assertTrue(ftp.closed)
        self.assertFalse(client.is_connected)

    def test_disconnect_sends_quit(self):
        client, ftp = _client()
        with client:
            pass
        self.assertTrue(ftp.quit_called)
        client.disconnect()
        self.assertFalse(client.is_connected)

    def test_operations_require_connection(self):
        client, _ = _client()
        with self.assertRaises(RemoteConnectionError):
            client.list_directory("/")


class TestFtpTransfers(unittest.TestCase):
    def test_folder_upload_tolerates_existing_directories(self):
        notifier = RecordingNotifier()
        client, ftp = _client(notifier=notifier)
        ftp.directories.update({"/srv", "/srv/app", "/srv/app/assets"})
        with tempfile.TemporaryDirectory() as tmp:
            local = Path(tmp) / "assets"
            (local / "img").mkdir(parents=True)
            (local / "img" / "logo.png").write_bytes(b"\x89PNG")
            with client:
                client.upload_folder(local, "/srv/app/assets")
        self.assertEqual(ftp.files["/srv/app/assets/img/logo.png"], b"\x89PNG")
        self.assertIn("/srv/app/assets", ftp.mkd_calls)
        self.assertIn("/srv/app/assets/img", ftp.directories)
        self.assertEqual(notifier.labels, ["logo.png"])

    def test_ensure_directory_is_idempotent(self):
        client, ftp = _client()
        with client:
            client.ensure_remote_directory("/srv/app")
            client.ensure_remote_directory("/srv/app")
        self.assertEqual(ftp.directories, {"/", "/srv", "/srv/app"})

    def test_other_mkd_errors_raise_directory_error(self):
        client, ftp = _client()
        with client:
            with self.assertRaises(DirectoryError) as ctx:
                client.ensure_remote_directory("relative/dir")
        self.assertEqual(ctx.exception.path, "relative")

    def test_download_replaces_target_atomically(self):
        client, ftp = _client()
        ftp.files["/srv/app/data.bin"] = b"0123456789"
        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / "out" / "data.bin"
            with client:
                client.download_file("/srv/app/data.bin", target)
            self.assertEqual(target.read_bytes(), b"0123456789")
            self.assertEqual(sorted(p.name for p in target.parent.iterdir()), ["data.bin"])

    def test_interrupted_download_leaves_no_partial_file(self):
        client, ftp = _client()
        ftp.files["/srv/app/data.bin"] = b"0123456789"
        ftp.fail_retr_after = 2
        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / "data.bin"
            with client:
                with self.assertRaises(TransferError):
                    client.download_file("/srv/app/data.bin", target)
            self.assertEqual(list(Path(tmp).iterdir()), [])

    def test_interrupted_download_keeps_previous_content(self):
        client, ftp = _client()
        ftp.files["/srv/app/data.bin"] = b"0123456789"
        ftp.fail_retr_after = 2
        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / "data.bin"
            target.write_bytes(b"old")
            with client:
                with self.assertRaises(TransferError):
                    client.download_file("/srv/app/data.bin", target)
            self.assertEqual(target.read_bytes(), b"old")

    def test_list_uses_mlsd(self):
        client, ftp = _client()
        ftp.directories.update({"/srv", "/srv/sub"})
        ftp.files["/srv/a.txt"] = b"abc"
        with client:
            entries = client.list_directory("/srv")
        self.assertEqual([(e.name, e.is_dir, e.size) for e in entries], [("sub", True, None), ("a.txt", False, 3)])
        self.assertFalse(any(cmd.startswith("LIST") for cmd in ftp.commands))

    def test_list_falls_back_to_list_command(self):
        client, ftp = _client(ftp=FakeFTP(supports_mlsd=False))
        ftp.directories.update({"/srv", "/srv/sub"})
        ftp.files["/srv/a b.txt"] = b"abc"
        with client:
            entries = client.list_directory("/srv")
            client.list_directory("/srv")
        self.assertEqual([(e.name, e.is_dir) for e in entries], [("sub", True), ("a b.txt", False)])
        self.assertEqual([cmd for cmd in ftp.commands if cmd.startswith("LIST")], ["LIST /srv", "LIST /srv"])

    def test_delete_folder_removes_tree(self):
        client, ftp = _client()
        ftp.directories.update({"/srv", "/srv/old", "/srv/old/sub"})
        ftp.files.update({"/srv/old/a.txt": b"a", "/srv/old/sub/b.txt": b"b"})
        with client:
            client.delete_folder("/srv/old")
        self.assertEqual(ftp.files, {})
        self.assertEqual(ftp.directories, {"/", "/srv"})

    def test_undecodable_listing_raises_directory_error(self):
        client, _ = _client(ftp=UndecodableListingFTP())
        with client:
            with self.assertRaises(DirectoryError) as ctx:
                client.list_directory("/srv/app/logs")
        self.assertEqual(ctx.exception.path, "/srv/app/logs")
        self.assertIsInstance(ctx.exception.__cause__, UnicodeDecodeError)

    def test_undecodable_listing_fails_folder_download_cleanly(self):
        ftp = UndecodableListingFTP()
        orchestrator = SyncOrchestrator(
            notifier=NullNotifier(),
            client_factory=lambda cfg, notifier=None: FtpTransferClient(cfg, notifier, ftp_factory=lambda: ftp),
        )
        with tempfile.TemporaryDirectory() as tmp:
            workspace = Path(tmp).resolve()
            config.write_server_config(workspace, make_config("ftp"))
            with self.assertLogs("autoupload.transfer.walker", level=logging.WARNING):
                with self.assertRaises(OperationError) as ctx:
                    orchestrator.execute(types.OperationKind.DOWNLOAD_FOLDER, workspace / "logs")
        self.assertIsInstance(ctx.exception.cause, DirectoryError)
        self.assertTrue(ftp.quit_called)

    def test_rename_failure_raises_rename_error(self):
        client, _ = _client()
        with client:
            with self.assertRaises(RenameError) as ctx:
                client.rename("/srv/missing.txt", "/srv/new.txt")
        self.assertEqual(ctx.exception.path, "/srv/missing.txt")
        self.assertIn("550", str(ctx.exception))


class TestReplyCode(unittest.TestCase):
    def test_extracts_code(self):
        self.assertEqual(reply_code(ftplib.error_perm("550 exists")), "550")
        self.assertEqual(reply_code(ftplib.error_reply(" 502 nope")), "502")

    def test_factory_picks_ftp_client(self):
        self.assertIsInstance(create_client(make_config("ftp")), FtpTransferClient)


if __name__ == "__main__":
    unittest.main()

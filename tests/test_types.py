"""Tests for shared data types."""

from __future__ import annotations

import unittest
from pathlib import Path

from autoupload import types


class TestServerConfig(unittest.TestCase):
    def test_default_ports(self):
        sftp = types.ServerConfig(protocol="sftp", host="h", username="u", remote_path="/r")
        ftp = types.ServerConfig(protocol="ftp", host="h", username="u", remote_path="/r")
        self.assertEqual(sftp.effective_port, 22)
        self.assertEqual(ftp.effective_port, 21)
        self.assertIs(sftp.protocol, types.Protocol.SFTP)

    def test_explicit_port_wins(self):
        cfg = types.ServerConfig(protocol="sftp", host="h", username="u", remote_path="/r", port=2222)
        self.assertEqual(cfg.effective_port, 2222)

    def test_remote_path_backslashes_normalized(self):
        cfg = types.ServerConfig(protocol="ftp", host="h", username="u", remote_path="\\srv\\app")
        self.assertEqual(cfg.remote_path, "/srv/app")

    def test_missing_host_rejected(self):
        with self.assertRaises(ValueError):
            types.ServerConfig(protocol="ftp", host="", username="u", remote_path="/r")


class TestOperationKind(unittest.TestCase):
    def test_label(self):
        self.assertEqual(types.OperationKind.UPLOAD_FILE.label, "Upload file")
        self.assertEqual(types.OperationKind.DELETE_FOLDER.label, "Delete folder")


class TestTriggerEvent(unittest.TestCase):
    def test_coerces_fields(self):
        event = types.TriggerEvent("/ws/a.txt", "deleted")
        self.assertEqual(event.local_path, Path("/ws/a.txt"))
        self.assertIs(event.kind, types.EventKind.DELETED)
        self.assertFalse(event.is_dir)

    def test_remote_entry_is_dir(self):
        self.assertTrue(types.RemoteEntry("d", types.EntryType.DIRECTORY).is_dir)
        self.assertFalse(types.RemoteEntry("f", types.EntryType.FILE, 3).is_dir)


if __name__ == "__main__":
    unittest.main()

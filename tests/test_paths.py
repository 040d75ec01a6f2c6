"""Tests for local-to-remote path translation."""

from __future__ import annotations

import unittest
from pathlib import Path

from autoupload import paths


class TestToRemote(unittest.TestCase):
    def test_nested_file_maps_under_remote_root(self):
        remote = paths.to_remote(Path("/ws/src/a.txt"), Path("/ws"), "/srv/app")
        self.assertEqual(remote, "/srv/app/src/a.txt")

    def test_trailing_slash_on_remote_root(self):
        self.assertEqual(paths.to_remote("/ws/a.txt", "/ws", "/srv/app/"), "/srv/app/a.txt")

    def test_workspace_root_maps_to_remote_root(self):
        self.assertEqual(paths.to_remote("/ws", "/ws", "/srv/app"), "/srv/app")

    def test_windows_separators_are_normalized(self):
        remote = paths.to_remote("C:\\ws\\src\\a.txt", "c:\\ws", "/srv/app")
        self.assertEqual(remote, "/srv/app/src/a.txt")

    def test_outside_workspace_raises(self):
        with self.assertRaises(paths.NotInWorkspaceError):
            paths.to_remote("/elsewhere/a.txt", "/ws", "/srv/app")

    def test_sibling_with_common_prefix_is_outside(self):
        with self.assertRaises(paths.NotInWorkspaceError):
            paths.to_remote("/ws2/a.txt", "/ws", "/srv/app")

    def test_result_is_stable(self):
        first = paths.to_remote("/ws/x/y.txt", "/ws", "/srv")
        second = paths.to_remote("/ws/x/y.txt", "/ws", "/srv")
        self.assertEqual(first, second)


class TestRemoteHelpers(unittest.TestCase):
    def test_join_remote(self):
        self.assertEqual(paths.join_remote("/srv", "a"), "/srv/a")
        self.assertEqual(paths.join_remote("/", "a"), "/a")
        self.assertEqual(paths.join_remote("", "a"), "a")
        self.assertEqual(paths.join_remote("/srv", ""), "/srv")

    def test_remote_parent(self):
        self.assertEqual(paths.remote_parent("/srv/app/a.txt"), "/srv/app")
        self.assertEqual(paths.remote_parent("/a.txt"), "/")
        self.assertEqual(paths.remote_parent("a.txt"), ".")

    def test_relative_workspace_path(self):
        self.assertEqual(paths.relative_workspace_path("/ws/a/b.txt", "/ws"), "a/b.txt")

    def test_exported_names_exist(self):
        for name in paths.__all__:
            self.assertTrue(hasattr(paths, name), name)


if __name__ == "__main__":
    unittest.main()

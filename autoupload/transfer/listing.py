"""Parsers for FTP directory listings."""

from __future__ import annotations

import re
from typing import Iterable, List, Mapping, Optional

from autoupload import types

# 01-15-24  10:30AM       <DIR>          logs
DOS_LINE = re.compile(
    r"^\d{2}-\d{2}-\d{2,4}\s+\d{1,2}:\d{2}(?:[AP]M)?\s+(?P<size><DIR>|\d+)\s+(?P<name>.+)$",
    re.IGNORECASE,
)
MLSD_SKIPPED_TYPES = {"cdir", "pdir"}


def entry_from_facts(name: str, facts: Mapping[str, str]) -> Optional[types.RemoteEntry]:
    """Build an entry from one MLSD line; ``None`` for the directory itself or its parent."""
    entry_type = facts.get("type", "").lower()
    if entry_type in MLSD_SKIPPED_TYPES:
        return None
    is_dir = entry_type == "dir"
    return types.RemoteEntry(
        name=name,
        type=types.EntryType.DIRECTORY if is_dir else types.EntryType.FILE,
        size=None if is_dir else _parse_size(facts.get("size")),
    )


def parse_list_lines(lines: Iterable[str]) -> List[types.RemoteEntry]:
    """Parse Unix or DOS style ``LIST`` output."""
    entries: List[types.RemoteEntry] = []
    for raw_line in lines:
        line = raw_line.rstrip("\r\n")
        if not line.strip() or line.lower().startswith("total "):
            continue
        entry = _parse_unix_line(line) or _parse_dos_line(line)
        if entry is None or entry.name in (".", ".."):
            continue
        entries.append(entry)
    return entries


def _parse_unix_line(line: str) -> Optional[types.RemoteEntry]:
    parts = line.split(None, 8)
    if len(parts) < 9 or len(parts[0]) < 10:
        return None
    type_char = parts[0][0]
    if type_char not in "-dl":
        return None
    name = parts[8]
    if type_char == "l" and " -> " in name:
        name = name.split(" -> ", 1)[0]
    is_dir = type_char == "d"
    return types.RemoteEntry(
        name=name,
        type=types.EntryType.DIRECTORY if is_dir else types.EntryType.FILE,
        size=None if is_dir else _parse_size(parts[4]),
    )


def _parse_dos_line(line: str) -> Optional[types.RemoteEntry]:
    match = DOS_LINE.match(line.strip())
    if not match:
        return None
    is_dir = match.group("size").upper() == "<DIR>"
    return types.RemoteEntry(
        name=match.group("name"),
        type=types.EntryType.DIRECTORY if is_dir else types.EntryType.FILE,
        size=None if is_dir else int(match.group("size")),
    )


def _parse_size(value: Optional[str]) -> Optional[int]:
    if value is None or not value.isdigit():
        return None
    return int(value)


__all__ = ["entry_from_facts", "parse_list_lines"]

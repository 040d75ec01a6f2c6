"""Tab completion support for the autoupload CLI."""

from __future__ import annotations

import argparse
from typing import Iterable

from . import types


def protocol_completer(prefix: str, parsed_args: argparse.Namespace, **kwargs) -> Iterable[str]:
    """Complete protocol names for ``init --protocol``."""
    return [protocol.value for protocol in types.Protocol if protocol.value.startswith(prefix)]


def local_path_completer(prefix: str, parsed_args: argparse.Namespace, **kwargs) -> Iterable[str]:
    """
    Complete local file and directory paths.

    Args:
        prefix: The current partial path being typed
        parsed_args: Parsed arguments so far
        **kwargs: Additional context from argcomplete

    Returns:
        List of matching paths
    """
    try:
        from argcomplete.completers import FilesCompleter

        completer = FilesCompleter()
        return completer(prefix, **kwargs)
    except Exception:
        return []


def directory_completer(prefix: str, parsed_args: argparse.Namespace, **kwargs) -> Iterable[str]:
    try:
        from argcomplete.completers import DirectoriesCompleter

        completer = DirectoriesCompleter()
        return completer(prefix, **kwargs)
    except Exception:
        return []


__all__ = ["directory_completer", "local_path_completer", "protocol_completer"]

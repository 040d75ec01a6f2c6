"""Transfer status reporting."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class TransferNotifier(Protocol):
    """Receives a label each time a file transfer is about to start."""

    def update_transfer_status(self, label: str) -> None:
        ...


class LoggingNotifier:
    """Reports transfer status through the logging module."""

    def __init__(self, *, level: int = logging.INFO):
        self._level = level
        self.last_status: Optional[str] = None

    def update_transfer_status(self, label: str) -> None:
        self.last_status = label
        logger.log(self._level, "Transferring %s", label)


class NullNotifier:
    def update_transfer_status(self, label: str) -> None:
        return None


__all__ = ["LoggingNotifier", "NullNotifier", "TransferNotifier"]

"""Polling watcher that turns workspace changes into trigger events."""

from __future__ import annotations

import logging
import signal
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from autoupload import config
from autoupload.engine import snapshot
from autoupload.engine.orchestrator import OperationError, SyncOrchestrator

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 1.0


class WorkspaceWatcher:
    """Polls a workspace and mirrors saves and deletions one event at a time."""

    def __init__(
        self,
        workspace_root: Path | str,
        *,
        orchestrator: Optional[SyncOrchestrator] = None,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        config_loader=config.load_server_config,
    ):
        self._root = Path(workspace_root).expanduser().resolve()
        self._orchestrator = orchestrator or SyncOrchestrator(workspace_root=self._root)
        self._interval = interval
        self._config_loader = config_loader
        self._previous: Optional[snapshot.SnapshotResult] = None
        self._stop = False

    def run_forever(self, *, run_once: bool = False, log_file: Path | str | None = None) -> None:
        signal.signal(signal.SIGINT, self._handle_signal)
        signal.signal(signal.SIGTERM, self._handle_signal)
        with self._file_logger(log_file):
            self._previous = self._take_snapshot()
            logger.info("Watching %s for changes.", self._root)
            while not self._stop:
                time.sleep(self._interval)
                self.poll()
                if run_once:
                    break
            logger.info("Stopped watching %s.", self._root)

    def poll(self) -> int:
        """Take a snapshot, handle the changes since the last one, return how many ran."""
        current = self._take_snapshot()
        previous, self._previous = self._previous, current
        if previous is None:
            return 0
        handled = 0
        for event in snapshot.diff_snapshots(previous, current):
            try:
                result = self._orchestrator.handle_event(event)
            except (config.ConfigError, OperationError) as exc:
                logger.error("%s", exc)
                continue
            if result is not None:
                handled += 1
        return handled

    def _take_snapshot(self) -> snapshot.SnapshotResult:
        return snapshot.build_snapshot(self._root, ignore_patterns=self._ignore_patterns())

    def _ignore_patterns(self) -> List[str]:
        try:
            server_config = self._config_loader(self._root)
        except config.ConfigError as exc:
            logger.warning("%s", exc)
            return [config.CONFIG_DIR_NAME]
        return list(server_config.ignore)

    def _handle_signal(self, signum, frame):  # pragma: no cover
        logger.info("Received signal %s; stopping watcher.", signum)
        self._stop = True

    @contextmanager
    def _file_logger(self, log_file: Path | str | None) -> Iterator[None]:
        if not log_file:
            yield
            return
        file_path = Path(log_file).expanduser()
        file_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(file_path)
        handler.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s %(message)s"))
        root = logging.getLogger()
        root.addHandler(handler)
        try:
            yield
        finally:
            root.removeHandler(handler)
            handler.close()


__all__ = ["DEFAULT_INTERVAL_SECONDS", "WorkspaceWatcher"]

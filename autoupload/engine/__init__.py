"""Engine package exposing orchestration components."""

from . import orchestrator, snapshot

__all__ = ["orchestrator", "snapshot"]

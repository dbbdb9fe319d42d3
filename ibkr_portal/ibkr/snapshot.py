"""
Persistence for poll snapshots.

The host owns snapshot storage; these stores cover embedding without a host
(in memory) and the CLI (one JSON file per trigger).
"""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path
from typing import Protocol

import structlog
from pydantic import ValidationError

from ibkr_portal.ibkr.models import PollSnapshot

logger = structlog.get_logger(__name__)


class SnapshotStore(Protocol):
    def load(self, key: str) -> PollSnapshot: ...

    def save(self, key: str, snapshot: PollSnapshot) -> None: ...


class InMemorySnapshotStore:
    """Process-lifetime store. Hands out copies so callers cannot alias state."""

    def __init__(self):
        self._snapshots: dict[str, PollSnapshot] = {}

    def load(self, key: str) -> PollSnapshot:
        snapshot = self._snapshots.get(key)
        return snapshot.model_copy(deep=True) if snapshot else PollSnapshot()

    def save(self, key: str, snapshot: PollSnapshot) -> None:
        self._snapshots[key] = snapshot.model_copy(deep=True)


_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class JsonFileSnapshotStore:
    """One `<key>.json` document per trigger, replaced atomically on save."""

    def __init__(self, directory: Path | str):
        self._directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self._directory / f"{_UNSAFE_CHARS.sub('_', key)}.json"

    def load(self, key: str) -> PollSnapshot:
        path = self.path_for(key)
        if not path.exists():
            return PollSnapshot()
        try:
            return PollSnapshot.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            # A corrupt snapshot only costs one cycle of re-emitted events
            logger.warning("snapshot_unreadable", path=str(path), error=str(e))
            return PollSnapshot()

    def save(self, key: str, snapshot: PollSnapshot) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._directory, prefix=f".{path.stem}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(snapshot.model_dump_json(indent=2))
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

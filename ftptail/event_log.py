"""
JSONL record of tail notifications.

Appends one JSON object per engine notification so other processes can
follow a watch (connects, errors, disconnects, optionally lines) without
sockets.
"""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Any, Optional

import portalocker

from .events import EventBus, EventKind
from .interfaces import ClockInterface

# Enough to hold the last record of any realistic log.
_TAIL_BYTES = 4096


class EventLog:
    """Append-only JSONL event log with simple sequence tracking."""

    def __init__(self, clock: ClockInterface, events_path: str, include_lines: bool = False) -> None:
        self._clock = clock
        self._events_path = events_path
        self._include_lines = include_lines
        self._remote_path: Optional[str] = None

        events_dir = os.path.dirname(events_path) or "."
        os.makedirs(events_dir, exist_ok=True)
        self._sequence = _last_sequence(events_path)

    def set_remote_path(self, remote_path: str) -> None:
        self._remote_path = remote_path

    def attach(self, bus: EventBus) -> None:
        """Subscribe to every notification kind on ``bus``."""
        bus.on(EventKind.CONNECTED, lambda: self.record("connected"))
        bus.on(EventKind.DISCONNECTED, lambda: self.record("disconnected"))
        bus.on(
            EventKind.ERROR,
            lambda err: self.record("error", {"error": type(err).__name__, "message": str(err)}, level="error"),
        )
        if self._include_lines:
            bus.on(EventKind.LINE, lambda line: self.record("line", {"line": line}))

    def record(self, event_type: str, data: Optional[dict[str, Any]] = None, level: str = "info") -> dict[str, Any]:
        self._sequence += 1
        payload = {
            "schema_version": 1,
            "sequence": self._sequence,
            "timestamp": datetime.fromtimestamp(self._clock.timestamp(), tz=timezone.utc).isoformat(),
            "type": event_type,
            "level": level,
            "remote_path": self._remote_path,
            "data": data or {},
        }
        self._append_line(json.dumps(payload, sort_keys=True))
        return payload

    def _append_line(self, content: str) -> None:
        with portalocker.Lock(self._events_path, mode="a", timeout=5, encoding="utf-8") as f:
            f.write(content + "\n")
            f.flush()


def _last_record(path: str) -> Optional[dict[str, Any]]:
    """Decode the final JSONL record in ``path``; None if absent or unreadable."""
    try:
        with open(path, "rb") as f:
            f.seek(0, os.SEEK_END)
            f.seek(max(0, f.tell() - _TAIL_BYTES))
            lines = f.read().splitlines()
    except FileNotFoundError:
        return None
    if not lines:
        return None
    try:
        record = json.loads(lines[-1])
    except ValueError:
        return None
    return record if isinstance(record, dict) else None


def _last_sequence(path: str) -> int:
    record = _last_record(path) or {}
    sequence = record.get("sequence")
    return sequence if isinstance(sequence, int) else 0

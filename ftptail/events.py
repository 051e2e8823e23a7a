"""
Notification channel between the tail engine and its caller.

Listeners are plain callables registered per event kind.  Dispatch is
synchronous, on the poll thread, in emission order.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Callable, Optional, Union

from .interfaces import LoggerInterface

logger = logging.getLogger(__name__)


class EventKind(Enum):
    LINE = "line"
    ERROR = "error"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


Listener = Callable[..., Any]


def _coerce(kind: Union[EventKind, str]) -> EventKind:
    if isinstance(kind, EventKind):
        return kind
    try:
        return EventKind(kind)
    except ValueError:
        raise ValueError(f"Unknown event kind {kind!r}") from None


class EventBus:
    """Per-kind listener registry.

    A listener that raises is reported through the logger; the remaining
    listeners still run and the exception does not reach the emitter.
    """

    def __init__(self, logger: Optional[LoggerInterface] = None) -> None:
        self._logger = logger
        self._lock = threading.Lock()
        self._listeners: dict[EventKind, list[Listener]] = {kind: [] for kind in EventKind}

    def on(self, kind: Union[EventKind, str], listener: Listener) -> None:
        with self._lock:
            self._listeners[_coerce(kind)].append(listener)

    def off(self, kind: Union[EventKind, str], listener: Listener) -> None:
        with self._lock:
            listeners = self._listeners[_coerce(kind)]
            if listener in listeners:
                listeners.remove(listener)

    def listener_count(self, kind: Union[EventKind, str]) -> int:
        with self._lock:
            return len(self._listeners[_coerce(kind)])

    def emit(self, kind: Union[EventKind, str], *args: Any) -> None:
        kind = _coerce(kind)
        with self._lock:
            listeners = list(self._listeners[kind])
        for listener in listeners:
            try:
                listener(*args)
            except Exception as e:
                if self._logger:
                    self._logger.error(f"{kind.value} listener {listener!r} failed: {e!r}")
                else:
                    logger.exception("%s listener %r failed", kind.value, listener)

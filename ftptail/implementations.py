"""
Real implementations of interfaces for production use.

These classes wrap actual system resources (clock, console, logging)
and implement the abstract interfaces.
"""

import logging
import threading
import time
from typing import Optional, TextIO

from .interfaces import ClockInterface, LoggerInterface


class RealClock(ClockInterface):
    """
    Real clock implementation using system time.
    """

    def timestamp(self) -> float:
        return time.time()

    def wait(self, event: threading.Event, seconds: float) -> bool:
        return event.wait(seconds)


class ConsoleLogger(LoggerInterface):
    """
    Simple console logger implementation.

    Debug and info output is only printed when ``verbose`` is at least 1.
    Lines go to ``stream`` (stdout when None).
    """

    def __init__(self, prefix: str = "FTPTail", verbose: int = 1, stream: Optional[TextIO] = None):
        self._prefix = prefix
        self._verbose = verbose
        self._stream = stream

    def _stamp(self) -> int:
        return int(time.time() * 1000)

    def debug(self, msg: str) -> None:
        if self._verbose >= 1:
            print(f"[{self._stamp()}] {self._prefix} DEBUG: {msg}", file=self._stream, flush=True)

    def info(self, msg: str) -> None:
        if self._verbose >= 1:
            print(f"[{self._stamp()}] {self._prefix} INFO: {msg}", file=self._stream, flush=True)

    def warning(self, msg: str) -> None:
        print(f"[{self._stamp()}] {self._prefix} WARN: {msg}", file=self._stream, flush=True)

    def error(self, msg: str) -> None:
        print(f"[{self._stamp()}] {self._prefix} ERROR: {msg}", file=self._stream, flush=True)


class StdlibLogger(LoggerInterface):
    """
    Forwards to a standard library logger (``ftptail`` by default).
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger("ftptail")

    def debug(self, msg: str) -> None:
        self._logger.debug(msg)

    def info(self, msg: str) -> None:
        self._logger.info(msg)

    def warning(self, msg: str) -> None:
        self._logger.warning(msg)

    def error(self, msg: str) -> None:
        self._logger.error(msg)

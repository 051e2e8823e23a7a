"""
Mock implementations for testing.

These classes implement the abstract interfaces with in-memory behavior
suitable for unit testing without an FTP or SFTP server.
"""

import threading
from typing import BinaryIO, Callable, Dict, List, Optional, Tuple
from datetime import datetime

from .config import TransportConfig
from .errors import RemoteConnectionError, RemoteNotFoundError, TransferError
from .interfaces import RemoteFileClientInterface, ClockInterface, LoggerInterface


class MockRemoteFileClient(RemoteFileClientInterface):
    """
    Mock remote file client for testing.

    Holds remote files as in-memory bytes.  Test code can grow, truncate or
    delete files, inject failures, and inspect the calls that were made.
    """

    def __init__(self):
        self._files: Dict[str, bytes] = {}
        self._closed = True
        self._connect_failures = 0
        self._size_errors: List[Exception] = []
        self._download_errors: List[Exception] = []
        self._append_on_download: Dict[str, bytes] = {}
        self._size_hook: Optional[Callable[[str], None]] = None

        self.connect_calls: List[TransportConfig] = []
        self.size_calls: List[str] = []
        self.download_calls: List[Tuple[str, int]] = []
        self.close_calls = 0

    def connect(self, config: TransportConfig) -> None:
        self.connect_calls.append(config)
        if self._connect_failures:
            self._connect_failures -= 1
            raise RemoteConnectionError(f"Mock connection to {config.address} refused")
        self._closed = False

    def size(self, path: str) -> int:
        self.size_calls.append(path)
        if self._size_hook:
            self._size_hook(path)
        if self._closed:
            raise RemoteConnectionError("Mock client is not connected")
        if self._size_errors:
            raise self._size_errors.pop(0)
        if path not in self._files:
            raise RemoteNotFoundError(f"No such file: {path}")
        return len(self._files[path])

    def download_range(self, sink: BinaryIO, path: str, start_offset: int) -> None:
        self.download_calls.append((path, start_offset))
        if self._closed:
            raise RemoteConnectionError("Mock client is not connected")
        if self._download_errors:
            raise self._download_errors.pop(0)
        if path not in self._files:
            raise RemoteNotFoundError(f"No such file: {path}")
        # Growth that lands between the size query and the transfer.
        extra = self._append_on_download.pop(path, b"")
        if extra:
            self._files[path] += extra
        sink.write(self._files[path][start_offset:])

    def close(self) -> None:
        self.close_calls += 1
        self._closed = True

    def is_closed(self) -> bool:
        return self._closed

    # Test helper methods

    def set_file(self, path: str, content: bytes) -> None:
        """Create or replace a remote file."""
        self._files[path] = content

    def append(self, path: str, content: bytes) -> None:
        """Append to a remote file (created if missing)."""
        self._files[path] = self._files.get(path, b"") + content

    def delete_file(self, path: str) -> None:
        self._files.pop(path, None)

    def get_file(self, path: str) -> bytes:
        return self._files[path]

    def drop_connection(self) -> None:
        """Simulate the server closing the session."""
        self._closed = True

    def set_connect_failures(self, count: int) -> None:
        """Make the next ``count`` connect() calls fail."""
        self._connect_failures = count

    def fail_next_size(self, error: Exception) -> None:
        self._size_errors.append(error)

    def fail_next_download(self, error: Optional[Exception] = None) -> None:
        self._download_errors.append(error or TransferError("Mock transfer interrupted"))

    def append_during_download(self, path: str, content: bytes) -> None:
        """Append ``content`` after the next size() but before the transfer."""
        self._append_on_download[path] = content

    def set_size_hook(self, hook: Optional[Callable[[str], None]]) -> None:
        """Call ``hook(path)`` at the start of every size() query."""
        self._size_hook = hook


class MockClock(ClockInterface):
    """
    Controllable clock for testing.

    wait() records the requested duration and advances time without
    actually sleeping, unless the event is already set.
    """

    def __init__(self, start_time: Optional[datetime] = None):
        self._current = (start_time or datetime(2025, 1, 1, 0, 0, 0)).timestamp()
        self._sleep_calls: List[float] = []

    def timestamp(self) -> float:
        return self._current

    def sleep(self, seconds: float) -> None:
        self._sleep_calls.append(seconds)
        self._current += seconds

    def wait(self, event: threading.Event, seconds: float) -> bool:
        if event.is_set():
            return True
        self.sleep(seconds)
        return event.is_set()

    # Test helper methods

    def advance(self, seconds: float) -> None:
        """Advance time by specified seconds."""
        self._current += seconds

    def get_sleep_calls(self) -> List[float]:
        """Get list of all sleep() calls made."""
        return self._sleep_calls.copy()


class MockLogger(LoggerInterface):
    """
    Logger that captures all messages for testing.
    """

    def __init__(self):
        self._messages: List[tuple] = []

    def debug(self, msg: str) -> None:
        self._messages.append(("DEBUG", msg))

    def info(self, msg: str) -> None:
        self._messages.append(("INFO", msg))

    def warning(self, msg: str) -> None:
        self._messages.append(("WARNING", msg))

    def error(self, msg: str) -> None:
        self._messages.append(("ERROR", msg))

    # Test helper methods

    def get_messages(self, level: Optional[str] = None) -> List[tuple]:
        """Get logged messages, optionally filtered by level."""
        if level:
            return [(l, m) for l, m in self._messages if l == level]
        return self._messages.copy()

    def clear(self) -> None:
        """Clear all logged messages."""
        self._messages.clear()

    def contains(self, substring: str, level: Optional[str] = None) -> bool:
        """Check if any message contains substring."""
        messages = self.get_messages(level)
        return any(substring in m for _, m in messages)

"""
Interfaces for FTP Tail

Abstract base classes that define contracts for all pluggable components.
This enables dependency injection and mock-based testing without a server.
"""

import threading
from abc import ABC, abstractmethod
from typing import BinaryIO, Optional
from dataclasses import dataclass
from enum import Enum

from .config import TransportConfig


class ConnectionState(Enum):
    """Remote connection states."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    ERROR = "error"


class RemoteFileClientInterface(ABC):
    """
    Abstract interface for the remote file transport.

    Implementations:
    - FtpClient: Wraps ftplib (FTP and FTPS)
    - SftpClient: Wraps paramiko
    - MockRemoteFileClient: In-memory files for unit testing
    """

    @abstractmethod
    def connect(self, config: TransportConfig) -> None:
        """Open a session. Raises RemoteConnectionError on failure."""
        pass

    @abstractmethod
    def size(self, path: str) -> int:
        """Return the remote byte length. Raises RemoteNotFoundError if missing."""
        pass

    @abstractmethod
    def download_range(self, sink: BinaryIO, path: str, start_offset: int) -> None:
        """Stream bytes from start_offset to end-of-file into sink.

        Raises TransferError if the transfer is interrupted.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the session. Safe to call when already closed."""
        pass

    @abstractmethod
    def is_closed(self) -> bool:
        """Report liveness without a network round trip."""
        pass


class ScratchStoreInterface(ABC):
    """
    Abstract interface for the local staging area of downloaded deltas.

    Implementations:
    - FileScratchStore: One file per location inside a directory
    - MemoryScratchStore: In-memory buffers
    """

    @abstractmethod
    def overwrite(self, location: str) -> BinaryIO:
        """Return a sink opened in truncate mode. Prior content is discarded."""
        pass

    @abstractmethod
    def size_of(self, location: str) -> int:
        """Byte length of the current content (0 if nothing was written)."""
        pass

    @abstractmethod
    def read_all_text(self, location: str, encoding: str = "utf-8") -> str:
        """Decode and return the full content."""
        pass

    @abstractmethod
    def remove(self, location: str) -> None:
        """Best-effort deletion. Never raises."""
        pass


class ClockInterface(ABC):
    """
    Abstract interface for time operations.

    Enables deterministic testing of the poll loop.
    """

    @abstractmethod
    def timestamp(self) -> float:
        """Get current timestamp (seconds since epoch)."""
        pass

    @abstractmethod
    def wait(self, event: threading.Event, seconds: float) -> bool:
        """Sleep up to ``seconds``, returning early (True) once ``event`` is set."""
        pass


class LoggerInterface(ABC):
    """
    Abstract interface for logging.

    Separates tail logic from log output formatting.
    """

    @abstractmethod
    def debug(self, msg: str) -> None:
        """Log debug message."""
        pass

    @abstractmethod
    def info(self, msg: str) -> None:
        """Log info message."""
        pass

    @abstractmethod
    def warning(self, msg: str) -> None:
        """Log warning message."""
        pass

    @abstractmethod
    def error(self, msg: str) -> None:
        """Log error message."""
        pass


@dataclass
class TailStats:
    """Counters for one tail session."""
    remote_path: str
    connection_state: ConnectionState
    last_byte_offset: Optional[int]
    iterations: int
    lines_emitted: int
    bytes_downloaded: int
    errors: int
    reconnects: int

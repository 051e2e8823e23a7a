"""
FTP Tail - follow a growing file on an FTP or SFTP server.

Polls the remote size, downloads only the new bytes, and emits each new
line as an event.
"""

__version__ = "1.0.0"

from .errors import (
    TailError,
    RemoteConnectionError,
    RemoteNotFoundError,
    TransferError,
    InvalidStateError,
)

from .interfaces import (
    ConnectionState,
    RemoteFileClientInterface,
    ScratchStoreInterface,
    ClockInterface,
    LoggerInterface,
    TailStats,
)

from .config import TransportConfig, WatchConfig, load_config
from .events import EventBus, EventKind
from .offset_tracker import Decision, reconcile
from .line_splitter import split_lines
from .scratch_store import FileScratchStore, MemoryScratchStore, scratch_location
from .engine import TailEngine, TailPoller, TailSession

__all__ = [
    "__version__",
    "TailError",
    "RemoteConnectionError",
    "RemoteNotFoundError",
    "TransferError",
    "InvalidStateError",
    "ConnectionState",
    "RemoteFileClientInterface",
    "ScratchStoreInterface",
    "ClockInterface",
    "LoggerInterface",
    "TailStats",
    "TransportConfig",
    "WatchConfig",
    "load_config",
    "EventBus",
    "EventKind",
    "Decision",
    "reconcile",
    "split_lines",
    "FileScratchStore",
    "MemoryScratchStore",
    "scratch_location",
    "TailEngine",
    "TailPoller",
    "TailSession",
]

"""
Scratch storage for downloaded deltas.

Each watch owns a single scratch location that is truncated and refilled
on every iteration, then measured and read back once the download has
finished.
"""

import hashlib
import os
from typing import BinaryIO, Dict, Optional

from .interfaces import ScratchStoreInterface, LoggerInterface


def scratch_location(address: str, remote_path: str) -> str:
    """Deterministic scratch name for a server address and remote path."""
    digest = hashlib.md5(f"{address}:{remote_path}".encode("utf-8")).hexdigest()
    return f"{digest}.tmp"


class FileScratchStore(ScratchStoreInterface):
    """
    Scratch store backed by files in a directory (cwd by default).
    """

    def __init__(self, directory: Optional[str] = None, logger: Optional[LoggerInterface] = None):
        self._directory = directory or os.getcwd()
        self._logger = logger

    def path_for(self, location: str) -> str:
        return os.path.join(self._directory, location)

    def overwrite(self, location: str) -> BinaryIO:
        os.makedirs(self._directory, exist_ok=True)
        return open(self.path_for(location), "wb")

    def size_of(self, location: str) -> int:
        path = self.path_for(location)
        if not os.path.exists(path):
            return 0
        return os.path.getsize(path)

    def read_all_text(self, location: str, encoding: str = "utf-8") -> str:
        path = self.path_for(location)
        if not os.path.exists(path):
            return ""
        with open(path, "r", encoding=encoding, errors="replace", newline="") as f:
            return f.read()

    def remove(self, location: str) -> None:
        path = self.path_for(location)
        try:
            if os.path.exists(path):
                os.remove(path)
                if self._logger:
                    self._logger.debug(f"Deleted scratch file {path}")
        except OSError as e:
            if self._logger:
                self._logger.warning(f"Could not delete scratch file {path}: {e}")


class _MemorySink:
    """Write-only binary sink that appends into a MemoryScratchStore buffer."""

    def __init__(self, buffer: bytearray):
        self._buffer = buffer
        self.closed = False

    def write(self, data: bytes) -> int:
        if self.closed:
            raise ValueError("write to closed scratch sink")
        self._buffer.extend(data)
        return len(data)

    def flush(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "_MemorySink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class MemoryScratchStore(ScratchStoreInterface):
    """
    Scratch store that keeps each location in an in-memory buffer.
    """

    def __init__(self):
        self._buffers: Dict[str, bytearray] = {}

    def overwrite(self, location: str) -> BinaryIO:
        buffer = bytearray()
        self._buffers[location] = buffer
        return _MemorySink(buffer)  # type: ignore[return-value]

    def size_of(self, location: str) -> int:
        return len(self._buffers.get(location, b""))

    def read_all_text(self, location: str, encoding: str = "utf-8") -> str:
        return bytes(self._buffers.get(location, b"")).decode(encoding, errors="replace")

    def remove(self, location: str) -> None:
        self._buffers.pop(location, None)

    def exists(self, location: str) -> bool:
        return location in self._buffers

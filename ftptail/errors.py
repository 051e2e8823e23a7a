"""
Error taxonomy for FTP Tail.

Each error also derives from the closest builtin so callers that only
know about ``ConnectionError`` or ``FileNotFoundError`` still catch them.
"""


class TailError(Exception):
    """Base class for all ftptail errors."""


class RemoteConnectionError(TailError, ConnectionError):
    """Transport could not connect or lost its session (auth, network)."""


class RemoteNotFoundError(TailError, FileNotFoundError):
    """The remote path does not exist."""


class TransferError(TailError, OSError):
    """A download was interrupted or the server refused it."""


class InvalidStateError(TailError, RuntimeError):
    """Programmer misuse, e.g. calling watch() twice on one engine."""

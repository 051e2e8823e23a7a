"""
Reconnection Manager for the tail loop.

Checks transport liveness at the top of every poll iteration and
re-establishes the session when it has dropped.  There is no backoff:
a failed reconnect is simply retried on the next iteration, at the
regular poll cadence.
"""

from typing import Optional, Callable

from .config import TransportConfig
from .errors import RemoteConnectionError
from .interfaces import RemoteFileClientInterface, LoggerInterface, ConnectionState


class ReconnectionManager:
    """
    Manages the remote connection for one tail session.

    Features:
    - Liveness polled via ``is_closed()`` (no push notification)
    - Reconnect on the next iteration after any drop
    - Callback on every successful connect
    """

    def __init__(
        self,
        client: RemoteFileClientInterface,
        logger: LoggerInterface,
        config: TransportConfig,
        on_connect: Optional[Callable[[], None]] = None,
    ):
        self._client = client
        self._logger = logger
        self._config = config
        self._on_connect = on_connect

        self._state = ConnectionState.DISCONNECTED
        self._reconnect_count = 0

    @property
    def state(self) -> ConnectionState:
        """Current connection state."""
        return self._state

    @property
    def reconnect_count(self) -> int:
        """Number of successful reconnections (initial connect excluded)."""
        return self._reconnect_count

    def connect(self) -> None:
        """
        Open the initial connection.

        Raises RemoteConnectionError on failure and leaves the state at ERROR.
        """
        self._state = ConnectionState.CONNECTING
        self._logger.info(f"Connecting to {self._config.protocol.upper()} server {self._config.address}...")
        self._open()
        self._logger.info(f"Connected to {self._config.address}.")

        if self._on_connect:
            self._on_connect()

    def check_and_reconnect(self) -> bool:
        """
        Reconnect if the transport reports closed.

        Call this at the top of every loop iteration.
        Returns True if a new session was opened, False if the existing
        one is still alive.  Raises RemoteConnectionError if the
        reconnect fails.
        """
        if not self._client.is_closed():
            return False

        if self._state == ConnectionState.CONNECTED:
            self._logger.warning(f"Connection lost to {self._config.address}")

        self._state = ConnectionState.RECONNECTING
        self._logger.info("Reconnecting...")
        self._open()
        self._reconnect_count += 1
        self._logger.info(f"Reconnected to {self._config.address} (reconnect #{self._reconnect_count})")

        if self._on_connect:
            self._on_connect()

        return True

    def disconnect(self) -> bool:
        """Gracefully disconnect. Returns True if an open session was closed."""
        was_open = not self._client.is_closed()
        if was_open:
            self._logger.info(f"Disconnecting from {self._config.address}...")
            self._client.close()
            self._logger.info(f"Disconnected from {self._config.address}.")
        self._state = ConnectionState.DISCONNECTED
        return was_open

    def _open(self) -> None:
        try:
            self._client.connect(self._config)
        except RemoteConnectionError:
            self._state = ConnectionState.ERROR
            raise
        except Exception as e:
            self._state = ConnectionState.ERROR
            raise RemoteConnectionError(f"Failed to connect to {self._config.address}: {e}") from e
        self._state = ConnectionState.CONNECTED

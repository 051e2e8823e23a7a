"""
Tail engine for FTP Tail.

Follows one remote file over FTP or SFTP by polling its size and
downloading only the bytes appended since the last iteration.

Architecture:
    TailEngine (watch/unwatch, poll thread, sleep, teardown)
        └─ TailPoller.poll_once() per iteration
             ├─ ReconnectionManager.check_and_reconnect()
             ├─ RemoteFileClient.size()
             ├─ reconcile()              (offset_tracker)
             ├─ RemoteFileClient.download_range() -> ScratchStore
             └─ split_lines() -> EventBus "line"

Only the poll thread mutates the session offset.  ``unwatch`` clears the
``active`` flag, sets ``stop_requested`` and waits for ``released``.  The
loop notices at the next iteration boundary or cuts its sleep short; an
in-flight download is allowed to finish first.  A stop requested while
``watch`` is still connecting makes ``watch`` tear the session down
instead of starting the loop.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Optional, Union

from .clients import create_client
from .config import WatchConfig
from .errors import InvalidStateError
from .events import EventBus, EventKind, Listener
from .implementations import RealClock, StdlibLogger
from .interfaces import (
    ClockInterface,
    ConnectionState,
    LoggerInterface,
    RemoteFileClientInterface,
    ScratchStoreInterface,
    TailStats,
)
from .line_splitter import split_lines
from .offset_tracker import reconcile
from .reconnection import ReconnectionManager
from .scratch_store import FileScratchStore, scratch_location


@dataclass
class TailSession:
    """State of one watched remote path."""
    remote_path: str
    scratch_location: str
    tail_window_bytes: int
    poll_interval_ms: int
    text_encoding: str = "utf-8"
    last_byte_offset: Optional[int] = None
    active: bool = False
    # Set by unwatch; also wakes the loop out of its poll interval.
    stop_requested: threading.Event = field(default_factory=threading.Event, repr=False)
    released: threading.Event = field(default_factory=threading.Event, repr=False)


class TailPoller:
    """Runs single iterations of the tail loop for one session.

    ``poll_once`` raises whatever the transport or scratch store raised;
    the engine turns those into ``error`` events.
    """

    def __init__(
        self,
        session: TailSession,
        client: RemoteFileClientInterface,
        scratch: ScratchStoreInterface,
        reconnection: ReconnectionManager,
        events: EventBus,
        logger: LoggerInterface,
        clock: ClockInterface,
    ):
        self._session = session
        self._client = client
        self._scratch = scratch
        self._reconnection = reconnection
        self._events = events
        self._logger = logger
        self._clock = clock

        self.iterations = 0
        self.lines_emitted = 0
        self.bytes_downloaded = 0
        self.errors = 0

    @property
    def session(self) -> TailSession:
        return self._session

    def poll_once(self) -> int:
        """Run one iteration. Returns the number of lines emitted."""
        session = self._session
        started = self._clock.timestamp()
        self.iterations += 1
        self._logger.debug(f"Fetch iteration {self.iterations} for {session.remote_path}")

        self._reconnection.check_and_reconnect()

        self._logger.debug("Fetching size of file...")
        file_size = self._client.size(session.remote_path)
        self._logger.debug(f"File size is {file_size}.")

        decision = reconcile(session.last_byte_offset, file_size, session.tail_window_bytes)
        if decision.skip:
            self._logger.debug("File has not changed.")
            return 0
        if decision.rewound:
            self._logger.info("File has not been tailed before or has decreased in size.")

        start_offset = decision.start_offset
        self._logger.debug(f"Downloading file with offset of {start_offset}...")
        with self._scratch.overwrite(session.scratch_location) as sink:
            self._client.download_range(sink, session.remote_path, start_offset)

        # Advance by what actually arrived, not by the size observed above.
        download_size = self._scratch.size_of(session.scratch_location)
        session.last_byte_offset = start_offset + download_size
        self.bytes_downloaded += download_size
        self._logger.debug(f"Downloaded file of size {download_size}.")

        data = self._scratch.read_all_text(session.scratch_location, session.text_encoding)
        if not data:
            self._logger.debug("No data was fetched.")
            return 0

        lines = split_lines(data)
        for line in lines:
            self._events.emit(EventKind.LINE, line)
        self.lines_emitted += len(lines)

        elapsed_ms = int((self._clock.timestamp() - started) * 1000)
        self._logger.debug(f"Fetch loop took {elapsed_ms}ms.")
        return len(lines)


class TailEngine:
    """
    Follows a remote file and emits its new lines.

    Events (register with :meth:`on`):
    - ``line(text)``: one line of newly appended content
    - ``error(exc)``: an iteration failed; the loop keeps going
    - ``connected()``: initial connect and every reconnect
    - ``disconnected()``: the loop has exited and the session is released

    One watch at a time per engine; the engine can be reused after
    :meth:`unwatch` returns.
    """

    def __init__(
        self,
        client: Optional[RemoteFileClientInterface] = None,
        scratch_store: Optional[ScratchStoreInterface] = None,
        logger: Optional[LoggerInterface] = None,
        clock: Optional[ClockInterface] = None,
    ):
        self._client = client
        self._scratch = scratch_store
        self._logger = logger or StdlibLogger()
        self._clock = clock or RealClock()
        self._events = EventBus(self._logger)

        self._watch_lock = threading.Lock()
        self._session: Optional[TailSession] = None
        self._poller: Optional[TailPoller] = None
        self._reconnection: Optional[ReconnectionManager] = None
        self._thread: Optional[threading.Thread] = None
        self._connecting: Optional[threading.Thread] = None

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def session(self) -> Optional[TailSession]:
        return self._session

    @property
    def active(self) -> bool:
        session = self._session
        return session is not None and session.active

    def on(self, kind: Union[EventKind, str], listener: Listener) -> None:
        self._events.on(kind, listener)

    def off(self, kind: Union[EventKind, str], listener: Listener) -> None:
        self._events.off(kind, listener)

    @property
    def stats(self) -> TailStats:
        poller = self._poller
        reconnection = self._reconnection
        if poller is None or reconnection is None:
            return TailStats(
                remote_path="",
                connection_state=ConnectionState.DISCONNECTED,
                last_byte_offset=None,
                iterations=0,
                lines_emitted=0,
                bytes_downloaded=0,
                errors=0,
                reconnects=0,
            )
        return TailStats(
            remote_path=poller.session.remote_path,
            connection_state=reconnection.state,
            last_byte_offset=poller.session.last_byte_offset,
            iterations=poller.iterations,
            lines_emitted=poller.lines_emitted,
            bytes_downloaded=poller.bytes_downloaded,
            errors=poller.errors,
            reconnects=reconnection.reconnect_count,
        )

    def watch(self, remote_path: Optional[str] = None, config: Optional[WatchConfig] = None) -> None:
        """
        Connect and start following ``remote_path``.

        Returns once the initial connection is open and the poll thread
        has started.  Raises InvalidStateError if a watch is already
        active and RemoteConnectionError if the initial connect fails.
        If :meth:`unwatch` is called while the connect is in progress,
        the session is torn down and no poll thread is started.
        """
        config = config or WatchConfig()
        remote_path = remote_path or config.remote_path
        if not remote_path:
            raise ValueError("remote_path must not be empty")

        with self._watch_lock:
            if self._session is not None:
                raise InvalidStateError(f"Already watching {self._session.remote_path}")
            session = TailSession(
                remote_path=remote_path,
                scratch_location=scratch_location(config.transport.address, remote_path),
                tail_window_bytes=config.tail_window_bytes,
                poll_interval_ms=config.poll_interval_ms,
                text_encoding=config.text_encoding,
            )
            # Reserve the engine before connecting so a concurrent watch is rejected.
            self._session = session
            self._thread = None
            self._connecting = threading.current_thread()

        try:
            client = self._client or create_client(config.transport)
            scratch = self._scratch or FileScratchStore(config.scratch_dir, logger=self._logger)
            reconnection = ReconnectionManager(
                client=client,
                logger=self._logger,
                config=config.transport,
                on_connect=lambda: self._events.emit(EventKind.CONNECTED),
            )
            reconnection.connect()
        except BaseException:
            with self._watch_lock:
                self._session = None
                self._connecting = None
            session.released.set()
            raise

        poller = TailPoller(
            session=session,
            client=client,
            scratch=scratch,
            reconnection=reconnection,
            events=self._events,
            logger=self._logger,
            clock=self._clock,
        )
        self._poller = poller
        self._reconnection = reconnection

        with self._watch_lock:
            self._connecting = None
            cancelled = session.stop_requested.is_set()
            if not cancelled:
                self._logger.info("Starting fetch loop...")
                session.active = True
                self._thread = threading.Thread(
                    target=self._run,
                    args=(session, poller, reconnection, scratch),
                    daemon=True,
                    name="ftptail-poll",
                )
                self._thread.start()

        if cancelled:
            self._logger.info("Watch stopped before the fetch loop started.")
            self._teardown(session, reconnection, scratch)

    def unwatch(self) -> None:
        """
        Stop the poll loop and wait for it to release its resources.

        Idempotent: a second call (or a call with no watch) is a no-op.
        Called from a listener on the poll thread, it only requests the
        stop; the loop exits once the listener returns.
        """
        with self._watch_lock:
            session = self._session
            if session is None or session.stop_requested.is_set():
                return
            session.stop_requested.set()
            session.active = False
            thread = self._thread
            own_threads = (thread, self._connecting)

        self._logger.info("Stopping fetch loop...")
        if threading.current_thread() in own_threads:
            return
        session.released.wait()
        if thread is not None:
            thread.join()

    def _run(
        self,
        session: TailSession,
        poller: TailPoller,
        reconnection: ReconnectionManager,
        scratch: ScratchStoreInterface,
    ) -> None:
        try:
            while session.active:
                try:
                    poller.poll_once()
                except Exception as e:
                    poller.errors += 1
                    self._logger.error(f"Error in fetch loop: {e!r}")
                    self._events.emit(EventKind.ERROR, e)

                if not session.active:
                    break
                if session.poll_interval_ms > 0:
                    self._logger.debug(f"Sleeping for {session.poll_interval_ms} ms...")
                    if self._clock.wait(session.stop_requested, session.poll_interval_ms / 1000.0):
                        break
        finally:
            self._teardown(session, reconnection, scratch)

    def _teardown(
        self,
        session: TailSession,
        reconnection: ReconnectionManager,
        scratch: ScratchStoreInterface,
    ) -> None:
        session.active = False
        scratch.remove(session.scratch_location)
        try:
            reconnection.disconnect()
        except Exception as e:
            self._logger.error(f"Error while disconnecting: {e!r}")
        self._logger.info("Fetch loop stopped.")
        self._events.emit(EventKind.DISCONNECTED)
        with self._watch_lock:
            if self._session is session:
                self._session = None
        session.released.set()

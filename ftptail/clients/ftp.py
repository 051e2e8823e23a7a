"""FTP/FTPS transport built on :mod:`ftplib`.

SIZE is used to measure the remote file unless ``use_list_for_size`` is
set, in which case the parent directory is listed and the size of the
matching entry is parsed (for servers that refuse SIZE in some modes).
Downloads use ``REST`` + ``RETR`` so only the bytes past the offset are
transferred.
"""

from __future__ import annotations

import ftplib
import logging
import posixpath
import re
from typing import BinaryIO, Optional

from ..config import TransportConfig
from ..errors import RemoteConnectionError, RemoteNotFoundError, TransferError
from ..interfaces import RemoteFileClientInterface

logger = logging.getLogger(__name__)

# Errors that mean the control connection is gone (or about to be).
_CONNECTION_ERRORS = (OSError, EOFError, ftplib.error_temp, ftplib.error_reply, ftplib.error_proto)

# drwxr-xr-x 1 owner group 1234 Jan 01 12:00 name
_UNIX_LIST_RE = re.compile(
    r"^[\-dlcbps][\w\-]{9}[+.@]?\s+\d+\s+\S+\s+\S+\s+(?P<size>\d+)\s+"
    r"\w{3}\s+\d{1,2}\s+[\d:]+\s+(?P<name>.+)$"
)
# 01-01-24  10:00AM       1234 name
_DOS_LIST_RE = re.compile(
    r"^\d{2}-\d{2}-\d{2,4}\s+\d{1,2}:\d{2}[AP]M\s+(?P<size>\d+|<DIR>)\s+(?P<name>.+)$",
    re.IGNORECASE,
)


def parse_list_line(line: str) -> Optional[tuple[str, Optional[int]]]:
    """Parse one LIST line into ``(name, size)``.

    Directories in DOS listings have size None.  Returns None for lines
    in an unrecognised format (e.g. the ``total`` header).
    """
    m = _UNIX_LIST_RE.match(line)
    if m:
        name = m.group("name")
        if line.startswith("l") and " -> " in name:
            name = name.split(" -> ", 1)[0]
        return name, int(m.group("size"))
    m = _DOS_LIST_RE.match(line)
    if m:
        size = m.group("size")
        return m.group("name"), None if size.upper() == "<DIR>" else int(size)
    return None


def _is_not_found(err: ftplib.error_perm) -> bool:
    return str(err).startswith("550")


class FtpClient(RemoteFileClientInterface):
    """
    Remote file client for FTP, or explicit FTPS when ``secure`` is set.
    """

    def __init__(self):
        self._ftp: Optional[ftplib.FTP] = None
        self._config: Optional[TransportConfig] = None

    def connect(self, config: TransportConfig) -> None:
        self.close()
        ftp_cls = ftplib.FTP_TLS if config.secure else ftplib.FTP
        ftp = ftp_cls(encoding=config.encoding)
        if config.verbose >= 2:
            ftp.set_debuglevel(1)

        connect_kwargs = {}
        if config.timeout is not None:
            connect_kwargs["timeout"] = config.timeout

        try:
            ftp.connect(config.host, config.port, **connect_kwargs)
            ftp.login(config.user or "anonymous", config.password or "")
            if config.secure:
                ftp.prot_p()
            # SIZE is only reliable in binary mode.
            ftp.voidcmd("TYPE I")
        except ftplib.error_perm as e:
            ftp.close()
            raise RemoteConnectionError(f"FTP login to {config.address} refused: {e}") from e
        except _CONNECTION_ERRORS as e:
            ftp.close()
            raise RemoteConnectionError(f"FTP connection to {config.address} failed: {e}") from e

        logger.debug("FTP session open: %s", ftp.getwelcome())
        self._ftp = ftp
        self._config = config

    def size(self, path: str) -> int:
        ftp = self._require()
        if self._config is not None and self._config.use_list_for_size:
            return self._list_size(ftp, path)
        try:
            size = ftp.size(path)
        except ftplib.error_perm as e:
            if _is_not_found(e):
                raise RemoteNotFoundError(f"{path}: {e}") from e
            raise TransferError(f"SIZE {path} refused: {e}") from e
        except _CONNECTION_ERRORS as e:
            self._drop()
            raise RemoteConnectionError(f"SIZE {path} failed: {e}") from e
        if size is None:
            raise TransferError(f"SIZE {path} returned no value")
        return size

    def download_range(self, sink: BinaryIO, path: str, start_offset: int) -> None:
        ftp = self._require()
        try:
            ftp.retrbinary(f"RETR {path}", sink.write, rest=start_offset or None)
        except ftplib.error_perm as e:
            if _is_not_found(e):
                raise RemoteNotFoundError(f"{path}: {e}") from e
            raise TransferError(f"RETR {path} refused: {e}") from e
        except _CONNECTION_ERRORS as e:
            self._drop()
            raise TransferError(f"RETR {path} from offset {start_offset} interrupted: {e}") from e

    def close(self) -> None:
        ftp = self._ftp
        self._ftp = None
        if ftp is None:
            return
        try:
            ftp.quit()
        except ftplib.all_errors:
            ftp.close()

    def is_closed(self) -> bool:
        return self._ftp is None or self._ftp.sock is None

    def _require(self) -> ftplib.FTP:
        if self.is_closed():
            raise RemoteConnectionError("FTP client is not connected")
        return self._ftp  # type: ignore[return-value]

    def _drop(self) -> None:
        ftp = self._ftp
        self._ftp = None
        if ftp is not None:
            ftp.close()

    def _list_size(self, ftp: ftplib.FTP, path: str) -> int:
        directory, base = posixpath.split(path)
        lines: list[str] = []
        try:
            ftp.retrlines(f"LIST {directory}" if directory else "LIST", lines.append)
        except ftplib.error_perm as e:
            if _is_not_found(e):
                raise RemoteNotFoundError(f"{directory}: {e}") from e
            raise TransferError(f"LIST {directory} refused: {e}") from e
        except _CONNECTION_ERRORS as e:
            self._drop()
            raise RemoteConnectionError(f"LIST {directory} failed: {e}") from e

        matches = []
        for line in lines:
            parsed = parse_list_line(line)
            if parsed is not None and parsed[0] == base:
                matches.append(parsed)

        if not matches:
            raise RemoteNotFoundError(f"unable to get file size: no matching files for {path}")
        if len(matches) > 1:
            raise TransferError(f"unable to get file size: multiple matching files: {len(matches)}")
        size = matches[0][1]
        if size is None:
            raise TransferError(f"unable to get file size: {path} is a directory")
        return size

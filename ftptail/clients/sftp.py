"""SFTP transport built on paramiko."""

from __future__ import annotations

import logging
from typing import BinaryIO, Optional

import paramiko

from ..config import TransportConfig
from ..errors import RemoteConnectionError, RemoteNotFoundError, TransferError
from ..interfaces import RemoteFileClientInterface

logger = logging.getLogger(__name__)

CHUNK_SIZE = 32 * 1024


class SftpClient(RemoteFileClientInterface):
    """
    Remote file client for SFTP over SSH.

    Authenticates with a password, a private key file, or (when neither
    is configured) the local agent and default keys.
    """

    def __init__(self):
        self._ssh: Optional[paramiko.SSHClient] = None
        self._sftp: Optional[paramiko.SFTPClient] = None

    def connect(self, config: TransportConfig) -> None:
        self.close()
        ssh = paramiko.SSHClient()
        ssh.load_system_host_keys()
        if config.strict_host_keys:
            ssh.set_missing_host_key_policy(paramiko.RejectPolicy())
        else:
            ssh.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        use_defaults = config.password is None and config.private_key_path is None
        try:
            ssh.connect(
                hostname=config.host,
                port=config.port,
                username=config.user,
                password=config.password,
                key_filename=config.private_key_path,
                timeout=config.timeout,
                banner_timeout=config.timeout,
                auth_timeout=config.timeout,
                look_for_keys=use_defaults,
                allow_agent=use_defaults,
            )
            sftp = ssh.open_sftp()
        except paramiko.AuthenticationException as e:
            ssh.close()
            raise RemoteConnectionError(f"SFTP authentication to {config.address} failed: {e}") from e
        except (paramiko.SSHException, OSError, EOFError) as e:
            ssh.close()
            raise RemoteConnectionError(f"SFTP connection to {config.address} failed: {e}") from e

        if config.timeout is not None:
            sftp.get_channel().settimeout(config.timeout)
        logger.debug("SFTP session open to %s", config.address)
        self._ssh = ssh
        self._sftp = sftp

    def size(self, path: str) -> int:
        sftp = self._require()
        try:
            attrs = sftp.stat(path)
        except FileNotFoundError as e:
            raise RemoteNotFoundError(f"{path}: {e}") from e
        except (paramiko.SSHException, OSError, EOFError) as e:
            if self.is_closed():
                self._drop()
                raise RemoteConnectionError(f"stat {path} failed: {e}") from e
            raise TransferError(f"stat {path} failed: {e}") from e
        if attrs.st_size is None:
            raise TransferError(f"stat {path} returned no size")
        return attrs.st_size

    def download_range(self, sink: BinaryIO, path: str, start_offset: int) -> None:
        sftp = self._require()
        try:
            with sftp.open(path, "rb") as remote:
                remote.seek(start_offset)
                while True:
                    chunk = remote.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    sink.write(chunk)
        except FileNotFoundError as e:
            raise RemoteNotFoundError(f"{path}: {e}") from e
        except (paramiko.SSHException, OSError, EOFError) as e:
            if self.is_closed():
                self._drop()
            raise TransferError(f"download of {path} from offset {start_offset} interrupted: {e}") from e

    def close(self) -> None:
        self._drop()

    def is_closed(self) -> bool:
        if self._ssh is None or self._sftp is None:
            return True
        transport = self._ssh.get_transport()
        return transport is None or not transport.is_active()

    def _require(self) -> paramiko.SFTPClient:
        if self.is_closed():
            raise RemoteConnectionError("SFTP client is not connected")
        return self._sftp  # type: ignore[return-value]

    def _drop(self) -> None:
        sftp, ssh = self._sftp, self._ssh
        self._sftp = None
        self._ssh = None
        if sftp is not None:
            sftp.close()
        if ssh is not None:
            ssh.close()

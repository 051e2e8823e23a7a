"""Remote file client adapters, selected by ``TransportConfig.protocol``."""

from ..config import TransportConfig
from ..interfaces import RemoteFileClientInterface
from .ftp import FtpClient
from .sftp import SftpClient


def create_client(config: TransportConfig) -> RemoteFileClientInterface:
    """Return an unconnected client for the configured protocol."""
    if config.protocol == "sftp":
        return SftpClient()
    if config.protocol == "ftp":
        return FtpClient()
    raise ValueError(f"Unsupported protocol {config.protocol!r}")


__all__ = ["FtpClient", "SftpClient", "create_client"]

"""Configuration for FTP Tail watches.

A watch is described by a :class:`WatchConfig` holding the remote path,
poll cadence and tail window, plus a nested :class:`TransportConfig` with
the server address and credentials.  Both can be built in code, from CLI
flags, or loaded from a YAML file::

    remote_path: /var/log/app.log
    poll_interval_ms: 1000
    tail_window_bytes: 10000
    transport:
      protocol: sftp
      host: logs.example.com
      user: tail
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional, Union

import yaml

PROTOCOLS = ("ftp", "sftp")
DEFAULT_PORTS = {"ftp": 21, "sftp": 22}

DEFAULT_POLL_INTERVAL_MS = 0
DEFAULT_TAIL_WINDOW_BYTES = 10 * 1000
DEFAULT_TEXT_ENCODING = "utf-8"

PASSWORD_ENV = "FTPTAIL_PASSWORD"


@dataclass
class TransportConfig:
    """Server address, credentials and transport options."""
    protocol: str = "ftp"
    host: str = "localhost"
    port: Optional[int] = None
    user: Optional[str] = None
    password: Optional[str] = None
    secure: bool = False
    timeout: Optional[float] = None
    encoding: str = "utf-8"
    use_list_for_size: bool = False
    private_key_path: Optional[str] = None
    strict_host_keys: bool = False
    verbose: int = 0

    def __post_init__(self) -> None:
        self.protocol = self.protocol.lower()
        if self.protocol not in PROTOCOLS:
            raise ValueError(f"Unsupported protocol {self.protocol!r}; expected one of {PROTOCOLS}")
        if self.port is None:
            self.port = DEFAULT_PORTS[self.protocol]

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass
class WatchConfig:
    """Everything ``TailEngine.watch`` needs to follow one remote file."""
    remote_path: Optional[str] = None
    transport: TransportConfig = field(default_factory=TransportConfig)
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    tail_window_bytes: int = DEFAULT_TAIL_WINDOW_BYTES
    text_encoding: str = DEFAULT_TEXT_ENCODING
    scratch_dir: Optional[str] = None

    def __post_init__(self) -> None:
        if self.poll_interval_ms < 0:
            raise ValueError(f"poll_interval_ms must be >= 0, got {self.poll_interval_ms}")
        if self.tail_window_bytes < 0:
            raise ValueError(f"tail_window_bytes must be >= 0, got {self.tail_window_bytes}")

    @property
    def poll_interval_s(self) -> float:
        return self.poll_interval_ms / 1000.0


def _known_keys(cls) -> set[str]:
    return {f.name for f in fields(cls)}


def _build_transport(raw: dict[str, Any]) -> TransportConfig:
    unknown = set(raw) - _known_keys(TransportConfig)
    if unknown:
        raise ValueError(f"Unknown transport keys: {', '.join(sorted(unknown))}")
    data = dict(raw)
    if data.get("password") is None and os.environ.get(PASSWORD_ENV):
        data["password"] = os.environ[PASSWORD_ENV]
    return TransportConfig(**data)


def config_from_dict(raw: dict[str, Any]) -> WatchConfig:
    """Build a WatchConfig from a parsed mapping (YAML or JSON shaped)."""
    if not isinstance(raw, dict):
        raise ValueError("Config must be a mapping")
    data = dict(raw)
    transport_raw = data.pop("transport", None) or {}
    if not isinstance(transport_raw, dict):
        raise ValueError("'transport' must be a mapping")
    unknown = set(data) - _known_keys(WatchConfig)
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")
    return WatchConfig(transport=_build_transport(transport_raw), **data)


def load_config(path: Union[str, Path]) -> WatchConfig:
    """Load a WatchConfig from a YAML file.

    Raises FileNotFoundError if the file is missing and ValueError if it is
    not a valid config document.
    """
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {p}: {e}") from e
    return config_from_dict(raw or {})

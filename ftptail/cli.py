"""
ftptail: follow a file on an FTP or SFTP server.

Usage:
    ftptail --host ftp.example.com --user bob /logs/server.log
    ftptail --protocol sftp --host example.com --interval 2000 /var/log/app.log
    ftptail --config watch.yaml --json

Prints every new line to stdout.  Stops cleanly on Ctrl-C / SIGTERM.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import os
import signal
import sys
import threading
from typing import Any, Optional

from . import __version__
from .config import PASSWORD_ENV, PROTOCOLS, TransportConfig, WatchConfig, load_config
from .engine import TailEngine
from .errors import RemoteConnectionError
from .event_log import EventLog
from .events import EventKind
from .implementations import ConsoleLogger, RealClock, StdlibLogger

EXIT_OK = 0
EXIT_CONNECT_FAILED = 1
EXIT_BAD_CONFIG = 2


def _print(obj: Any, *, json_mode: bool) -> None:
    if json_mode:
        print(json.dumps(obj, sort_keys=True), flush=True)
    else:
        print(obj if isinstance(obj, str) else json.dumps(obj, sort_keys=True), flush=True)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ftptail",
        description="Follow a growing file on an FTP or SFTP server",
    )
    parser.add_argument("path", nargs="?", help="Remote file to follow")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="YAML watch config; flags override its values")

    transport = parser.add_argument_group("transport")
    transport.add_argument("--protocol", choices=PROTOCOLS, help="Transport (default: ftp)")
    transport.add_argument("--host", help="Server host name")
    transport.add_argument("--port", type=int, help="Server port (default: 21 for ftp, 22 for sftp)")
    transport.add_argument("--user", help="Login user")
    transport.add_argument("--password", help=f"Login password (or set {PASSWORD_ENV})")
    transport.add_argument("--secure", action="store_true", default=None, help="Use explicit FTPS")
    transport.add_argument("--timeout", type=float, help="Connect/transfer timeout in seconds")
    transport.add_argument("--encoding", help="FTP control channel encoding (default: utf-8)")
    transport.add_argument("--list-size", action="store_true", default=None,
                           help="Measure the file with LIST instead of SIZE (FTP only)")
    transport.add_argument("--key", help="Private key file for SFTP")
    transport.add_argument("--strict-host-keys", action="store_true", default=None,
                           help="Reject SFTP hosts missing from known_hosts")

    watch = parser.add_argument_group("watch")
    watch.add_argument("--interval", type=int, help="Milliseconds between polls (default: 0)")
    watch.add_argument("--tail-bytes", type=int, help="Bytes to read on first poll and after rotation (default: 10000)")
    watch.add_argument("--text-encoding", help="Encoding of the remote file (default: utf-8)")
    watch.add_argument("--scratch-dir", help="Directory for the scratch file (default: cwd)")

    output = parser.add_argument_group("output")
    output.add_argument("--json", action="store_true", help="Emit one JSON object per line")
    output.add_argument("--events-file", help="Append connect/error/disconnect events as JSONL")
    output.add_argument("-v", "--verbose", action="count", default=0,
                        help="Log progress (-v), plus transport debug output (-vv)")
    return parser


_TRANSPORT_FLAGS = {
    "protocol": "protocol",
    "host": "host",
    "port": "port",
    "user": "user",
    "password": "password",
    "secure": "secure",
    "timeout": "timeout",
    "encoding": "encoding",
    "list_size": "use_list_for_size",
    "key": "private_key_path",
    "strict_host_keys": "strict_host_keys",
}

_WATCH_FLAGS = {
    "path": "remote_path",
    "interval": "poll_interval_ms",
    "tail_bytes": "tail_window_bytes",
    "text_encoding": "text_encoding",
    "scratch_dir": "scratch_dir",
}


def _resolve_config(args: argparse.Namespace) -> WatchConfig:
    """Merge the optional YAML config with command line flags."""
    base = load_config(args.config) if args.config else WatchConfig()

    transport_values = dataclasses.asdict(base.transport)
    for flag, key in _TRANSPORT_FLAGS.items():
        value = getattr(args, flag)
        if value is not None:
            transport_values[key] = value
    if transport_values.get("password") is None and os.environ.get(PASSWORD_ENV):
        transport_values["password"] = os.environ[PASSWORD_ENV]
    if args.protocol and args.port is None and base.transport.protocol != args.protocol:
        # Port followed the old protocol's default; let the new one pick its own.
        transport_values["port"] = None
    transport_values["verbose"] = max(transport_values.get("verbose", 0), args.verbose)

    watch_values = {f.name: getattr(base, f.name) for f in dataclasses.fields(base) if f.name != "transport"}
    for flag, key in _WATCH_FLAGS.items():
        value = getattr(args, flag)
        if value is not None:
            watch_values[key] = value

    config = WatchConfig(transport=TransportConfig(**transport_values), **watch_values)
    if not config.remote_path:
        raise ValueError("No remote path given (positional PATH or 'remote_path' in --config)")
    return config


def _configure_logging(verbose: int) -> None:
    if verbose >= 2:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s: %(message)s")
        logging.getLogger("paramiko").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING, format="%(name)s %(levelname)s: %(message)s")


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the ``ftptail`` CLI.

    Returns:
        Exit code: 0 after a clean stop, 1 if the first connection failed,
        2 for configuration errors.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = _resolve_config(args)
    except (OSError, ValueError, TypeError) as e:
        print(f"ftptail: invalid configuration: {e}", file=sys.stderr)
        return EXIT_BAD_CONFIG

    _configure_logging(args.verbose)
    # stdout carries only tailed lines; progress logging goes to stderr.
    log = ConsoleLogger(verbose=args.verbose, stream=sys.stderr) if args.verbose else StdlibLogger()
    clock = RealClock()
    engine = TailEngine(logger=log, clock=clock)

    json_mode = args.json
    if json_mode:
        engine.on(EventKind.LINE, lambda line: _print({"type": "line", "line": line}, json_mode=True))
    else:
        engine.on(EventKind.LINE, lambda line: _print(line, json_mode=False))
    engine.on(EventKind.ERROR, lambda err: print(f"ftptail: {type(err).__name__}: {err}", file=sys.stderr))

    if args.events_file:
        event_log = EventLog(clock=clock, events_path=args.events_file)
        event_log.set_remote_path(config.remote_path)
        event_log.attach(engine.events)

    stopped = threading.Event()
    engine.on(EventKind.DISCONNECTED, stopped.set)

    def signal_handler(sig, frame):
        stopped.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        engine.watch(config.remote_path, config)
    except RemoteConnectionError as e:
        print(f"ftptail: {e}", file=sys.stderr)
        return EXIT_CONNECT_FAILED

    while not stopped.wait(0.5):
        pass
    engine.unwatch()
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())

"""
Transport connector: opens a sink for a collection URL.

Supported forms:
    file:<path>           text file, truncated on open
    file:-                standard output (never closed)
    tcp:<host>[:<port>]   stream socket, default port 3003
"""

from __future__ import annotations

import socket
import sys
from typing import Protocol, TextIO

from loguru import logger

from ..errors import ConfigurationError
from ..log import verbose
from ..protocol import DEFAULT_SERVER_PORT


class Sink(Protocol):
    """Destination a channel writes protocol text to."""

    closeable: bool

    def write(self, text: str) -> None: ...

    def flush(self) -> None: ...

    def close(self) -> None: ...


class StreamSink:
    """Sink over an already open text stream."""

    def __init__(self, stream: TextIO, closeable: bool = True):
        self._stream = stream
        self.closeable = closeable

    def write(self, text: str) -> None:
        self._stream.write(text)

    def flush(self) -> None:
        self._stream.flush()

    def close(self) -> None:
        if self.closeable:
            self._stream.close()


class SocketSink:
    """Sink over a connected TCP socket."""

    closeable = True

    def __init__(self, sock: socket.socket):
        self._sock = sock
        self._out = sock.makefile("w", encoding="utf-8", newline="\n")

    def write(self, text: str) -> None:
        self._out.write(text)

    def flush(self) -> None:
        self._out.flush()

    def close(self) -> None:
        try:
            self._out.close()
        finally:
            self._sock.close()


def parse_tcp_url(url: str) -> tuple[str, int]:
    _, _, target = url.partition(":")
    host, sep, port = target.partition(":")
    if not host:
        raise ConfigurationError(f"Missing host in server url '{url}'")
    if not sep or not port:
        return host, DEFAULT_SERVER_PORT
    try:
        return host, int(port)
    except ValueError:
        raise ConfigurationError(f"Invalid port '{port}' in server url '{url}'")


def connect(url: str) -> Sink:
    """Open a sink for ``url``; raises ConfigurationError for unknown schemes."""
    if url.startswith("file:"):
        path = url[len("file:") :]
        if path == "-":
            return StreamSink(sys.stdout, closeable=False)
        if verbose():
            logger.debug(f"Opening file sink '{path}'")
        return StreamSink(open(path, "w", encoding="utf-8"))

    if url.startswith("tcp:"):
        host, port = parse_tcp_url(url)
        if verbose():
            logger.debug(f"Connecting to {host}:{port}")
        return SocketSink(socket.create_connection((host, port)))

    raise ConfigurationError(f"Unknown transport in server url '{url}'")

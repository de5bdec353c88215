"""Local channel transports: Unix domain sockets and Windows named pipes."""

from __future__ import annotations

import logging
import socket
import threading
from typing import BinaryIO

from stardash.channel.base import Channel
from stardash.pipeline.models import ChannelEndpoint

logger = logging.getLogger(__name__)

# Read timeout so the I/O thread can notice a stop request between reads
_POLL_TIMEOUT = 0.2


class UnixSocketChannel:
    """Client end of the daemon's AF_UNIX stream socket."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock
        self._lock = threading.Lock()
        self._closed = False

    @classmethod
    def connect(cls, path: str, timeout: float = 2.0) -> UnixSocketChannel:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.settimeout(timeout)
            sock.connect(path)
            sock.settimeout(_POLL_TIMEOUT)
        except OSError:
            sock.close()
            raise
        return cls(sock)

    def read(self, size: int) -> bytes | None:
        try:
            return self._sock.recv(size)
        except TimeoutError:
            return None

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # Peer already gone
            pass
        self._sock.close()


class NamedPipeChannel:
    """Client end of a Windows named pipe, opened as an unbuffered binary file."""

    def __init__(self, handle: BinaryIO) -> None:
        self._handle = handle

    @classmethod
    def connect(cls, address: str) -> NamedPipeChannel:
        return cls(open(address, "rb", buffering=0))  # noqa: SIM115

    def read(self, size: int) -> bytes | None:
        try:
            return self._handle.read(size)
        except ValueError as exc:
            # Read on a handle closed by stop()
            raise OSError("pipe closed") from exc

    def close(self) -> None:
        self._handle.close()


def open_channel(endpoint: ChannelEndpoint, timeout: float = 2.0) -> Channel:
    """Connect to *endpoint*. Raises OSError when the daemon is unreachable."""
    if endpoint.is_named_pipe:
        channel: Channel = NamedPipeChannel.connect(endpoint.address)
    else:
        if not hasattr(socket, "AF_UNIX"):
            raise OSError(f"Unix sockets unavailable on this platform: {endpoint}")
        channel = UnixSocketChannel.connect(endpoint.address, timeout=timeout)
    logger.debug("Opened channel %s", endpoint)
    return channel

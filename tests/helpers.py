"""Test doubles for the channel layer and signal listeners."""

from __future__ import annotations

import queue
import socket
import tempfile
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

from stardash.pipeline.models import ChannelEndpoint, Signal

EOF_MARK = b""


class FakeChannel:
    """In-memory Channel: tests push chunks, EOF, or an OSError."""

    def __init__(self) -> None:
        self._chunks: queue.Queue[bytes | Exception] = queue.Queue()
        self.closed = False

    def push(self, chunk: bytes) -> None:
        self._chunks.put(chunk)

    def end(self) -> None:
        self._chunks.put(EOF_MARK)

    def fail(self, message: str = "broken pipe") -> None:
        self._chunks.put(OSError(message))

    def read(self, size: int) -> bytes | None:
        if self.closed:
            raise OSError("closed")
        try:
            item = self._chunks.get(timeout=0.01)
        except queue.Empty:
            return None
        if isinstance(item, Exception):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


class FakeOpener:
    """Opener failing ``failures`` times, then handing out queued channels."""

    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.attempts = 0
        self.channels: list[FakeChannel] = []
        self._lock = threading.Lock()

    def __call__(self, endpoint: ChannelEndpoint) -> FakeChannel:
        with self._lock:
            self.attempts += 1
            if self.attempts <= self.failures:
                raise ConnectionRefusedError(f"no daemon at {endpoint}")
            channel = FakeChannel()
            self.channels.append(channel)
            return channel


class Recorder:
    """Thread-safe listener collecting every signal it receives."""

    def __init__(self) -> None:
        self.signals: list[Signal] = []
        self._lock = threading.Lock()

    def __call__(self, signal: Signal) -> None:
        with self._lock:
            self.signals.append(signal)

    @property
    def texts(self) -> list[str]:
        with self._lock:
            return [s.text for s in self.signals]


def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    """Poll *predicate* until true or *timeout* elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


class FakeDaemon:
    """Single-client AF_UNIX server that writes scripted chunks then closes."""

    def __init__(self, path: str, chunks: list[bytes]) -> None:
        self._server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self._server.bind(path)
        self._server.listen(1)
        self._chunks = chunks
        self.release = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        try:
            conn, _ = self._server.accept()
        except OSError:
            # Server closed before any client connected
            return
        with conn:
            for chunk in self._chunks:
                conn.sendall(chunk)
            self.release.wait(2.0)

    def close(self) -> None:
        self.release.set()
        self._thread.join(2.0)
        self._server.close()


@contextmanager
def short_socket_path() -> Iterator[str]:
    """Yield a Unix socket path short enough for AF_UNIX limits."""
    with tempfile.TemporaryDirectory(prefix="sd") as tmp:
        yield str(Path(tmp) / "d.sock")

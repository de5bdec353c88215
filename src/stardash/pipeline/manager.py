"""Connection manager — owns the daemon channel, reconnects, and fans out signals."""

from __future__ import annotations

import enum
import logging
import threading
from collections.abc import Callable, Iterable
from functools import partial

from stardash.channel.base import Channel
from stardash.channel.local import open_channel
from stardash.pipeline.classifier import classify
from stardash.pipeline.framer import LineFramer, decode_frame
from stardash.pipeline.models import (
    ChannelEndpoint,
    ConnectionState,
    Lifecycle,
    Signal,
)

logger = logging.getLogger(__name__)

Listener = Callable[[Signal], None]
Opener = Callable[[ChannelEndpoint], Channel]


class _Outcome(enum.Enum):
    """How a connected session ended."""

    END = "end"
    ERROR = "error"
    STOPPED = "stopped"


class ConnectionManager:
    """Drives DISCONNECTED → CONNECTING → CONNECTED and back, on one I/O thread.

    Connect failures and mid-stream transport errors schedule a reconnect
    after ``retry_delay`` (multiplied by ``backoff`` per consecutive failed
    attempt, capped at ``max_retry_delay``), forever. A graceful close by
    the daemon ends the run without retrying unless ``retry_on_peer_close``
    is set or ``start()`` is called again.

    Listeners run on the I/O thread, in registration order, under a single
    dispatch lock; every listener observes signals in framing order.
    """

    def __init__(
        self,
        endpoint: ChannelEndpoint,
        *,
        retry_delay: float = 2.0,
        backoff: float = 1.0,
        max_retry_delay: float = 30.0,
        retry_on_peer_close: bool = False,
        read_size: int = 4096,
        max_line_bytes: int | None = None,
        connect_timeout: float = 2.0,
        opener: Opener | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._retry_delay = retry_delay
        self._backoff = backoff
        self._max_retry_delay = max(max_retry_delay, retry_delay)
        self._retry_on_peer_close = retry_on_peer_close
        self._read_size = read_size
        self._max_line_bytes = max_line_bytes
        self._opener: Opener = opener or partial(open_channel, timeout=connect_timeout)

        self._state = ConnectionState.DISCONNECTED
        self._listeners: list[Listener] = []
        self._dispatch_lock = threading.RLock()
        self._channel: Channel | None = None
        self._channel_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._run_lock = threading.Lock()
        self._active = False
        self._restart_requested = False
        self._retries = 0

    @property
    def endpoint(self) -> ChannelEndpoint:
        return self._endpoint

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def retries(self) -> int:
        """Reconnect delays waited since the last start()."""
        return self._retries

    @property
    def is_running(self) -> bool:
        return self._active

    # --- Observers ---

    def subscribe(self, listener: Listener, announce: bool = False) -> Callable[[], None]:
        """Register *listener*; returns a callable that unregisters it.

        With ``announce``, the listener immediately receives the lifecycle
        signal for the current state, atomically with registration.
        """
        with self._dispatch_lock:
            self._listeners.append(listener)
            if announce:
                self._deliver(listener, Signal.for_state(self._state))

        def unsubscribe() -> None:
            with self._dispatch_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def announce(self, listener: Listener) -> None:
        """Send *listener* the lifecycle signal for the current state."""
        with self._dispatch_lock:
            self._deliver(listener, Signal.for_state(self._state))

    # --- Lifecycle ---

    def start(self) -> None:
        """Begin connecting. No-op while a run is already active.

        A call that lands while a closed session is winding down (state
        DISCONNECTED, run still active) reconnects once that session ends.
        """
        with self._run_lock:
            if self._active:
                if self._state == ConnectionState.DISCONNECTED:
                    self._restart_requested = True
                    logger.debug("start() during close — reconnecting")
                else:
                    logger.debug("start() ignored — already running")
                return

            self._active = True
            self._stop_event.clear()
            self._restart_requested = False
            self._retries = 0
            self._set_state(ConnectionState.CONNECTING)
            self._thread = threading.Thread(
                target=self._run, name="stardash-io", daemon=True
            )
            self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        """Cancel any pending retry, close the channel, and join the I/O thread.

        No signal is delivered after this returns.
        """
        self._stop_event.set()
        with self._channel_lock:
            channel = self._channel
        if channel is not None:
            channel.close()

        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("I/O thread did not exit within %.1fs", timeout)
        self._set_state(ConnectionState.DISCONNECTED)

    # --- I/O thread ---

    def _run(self) -> None:
        try:
            self._run_sessions()
        finally:
            with self._run_lock:
                if self._thread is threading.current_thread():
                    self._active = False

    def _run_sessions(self) -> None:
        delay = self._retry_delay
        while not self._stop_event.is_set():
            self._set_state(ConnectionState.CONNECTING)
            try:
                channel = self._opener(self._endpoint)
            except OSError as exc:
                logger.debug(
                    "Connect to %s failed: %s — retrying in %.1fs",
                    self._endpoint,
                    exc,
                    delay,
                )
                if self._wait_retry(delay):
                    break
                delay = min(delay * self._backoff, self._max_retry_delay)
                continue

            delay = self._retry_delay
            with self._channel_lock:
                if self._stop_event.is_set():
                    channel.close()
                    break
                self._channel = channel

            logger.info("Connected to daemon at %s", self._endpoint)
            with self._run_lock:
                # A new session satisfies any pending restart request
                self._restart_requested = False
            self._transition(ConnectionState.CONNECTED, Lifecycle.CONNECTED)
            try:
                outcome = self._pump(channel)
            finally:
                with self._channel_lock:
                    self._channel = None
                channel.close()

            if outcome is _Outcome.STOPPED:
                break
            self._transition(ConnectionState.DISCONNECTED, Lifecycle.DISCONNECTED)

            if outcome is _Outcome.END:
                logger.info("Daemon closed the channel at %s", self._endpoint)
                if not self._retry_on_peer_close:
                    if self._finish_run():
                        logger.debug("Not reconnecting after graceful close")
                        return
                    continue

            self._set_state(ConnectionState.CONNECTING)
            if self._wait_retry(delay):
                break

    def _finish_run(self) -> bool:
        """End the run unless start() asked for another session meanwhile."""
        with self._run_lock:
            if self._restart_requested:
                self._restart_requested = False
                return False
            self._active = False
            return True

    def _pump(self, channel: Channel) -> _Outcome:
        """Read until the channel ends, fails, or stop() is requested."""
        framer = LineFramer(max_pending=self._max_line_bytes)
        while not self._stop_event.is_set():
            try:
                chunk = channel.read(self._read_size)
            except OSError as exc:
                if self._stop_event.is_set():
                    return _Outcome.STOPPED
                logger.warning("Transport error on %s: %s", self._endpoint, exc)
                return _Outcome.ERROR

            if self._stop_event.is_set():
                return _Outcome.STOPPED
            if chunk is None:
                continue
            if not chunk:
                self._dispatch_frames(framer.flush())
                return _Outcome.END
            self._dispatch_frames(framer.feed(chunk))
        return _Outcome.STOPPED

    def _dispatch_frames(self, frames: Iterable[bytes]) -> None:
        for frame in frames:
            text = decode_frame(frame)
            if not text.strip():
                continue
            self._emit(Signal.data(classify(text)))

    def _wait_retry(self, delay: float) -> bool:
        """Sleep *delay* seconds; returns True if stop() interrupted the wait."""
        self._retries += 1
        return self._stop_event.wait(delay)

    # --- Dispatch ---

    def _set_state(self, state: ConnectionState) -> None:
        with self._dispatch_lock:
            self._state = state

    def _transition(self, state: ConnectionState, lifecycle: Lifecycle) -> None:
        with self._dispatch_lock:
            self._state = state
            self._emit(Signal(lifecycle=lifecycle))

    def _emit(self, signal: Signal) -> None:
        with self._dispatch_lock:
            if self._stop_event.is_set():
                return
            for listener in list(self._listeners):
                self._deliver(listener, signal)

    @staticmethod
    def _deliver(listener: Listener, signal: Signal) -> None:
        try:
            listener(signal)
        except Exception:
            logger.exception("Listener %r failed handling %r", listener, signal.text)

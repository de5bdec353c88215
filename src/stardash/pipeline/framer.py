"""Line framer — splits the daemon's byte stream into newline-terminated frames."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

_TERMINATOR = b"\n"


class LineFramer:
    """Accumulates raw chunks and yields complete lines in arrival order.

    Chunks carry no alignment guarantee; any trailing bytes without a
    terminator stay pending until a later feed() completes them.

    ``max_pending`` bounds the unterminated buffer. When exceeded, the
    whole line is discarded (counted in ``dropped``): the pending bytes and
    everything up to and including the next terminator. ``None`` keeps the
    buffer unbounded.
    """

    def __init__(self, max_pending: int | None = None) -> None:
        self._pending = bytearray()
        self._max_pending = max_pending
        self._discarding = False
        self.dropped = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    def feed(self, chunk: bytes) -> list[bytes]:
        """Append *chunk* and return every frame it completes (terminator removed)."""
        if not chunk:
            return []
        if self._discarding:
            end = chunk.find(_TERMINATOR)
            if end < 0:
                return []
            # Tail of the overflowed line
            chunk = chunk[end + 1 :]
            self._discarding = False
        self._pending += chunk

        frames: list[bytes] = []
        start = 0
        while True:
            end = self._pending.find(_TERMINATOR, start)
            if end < 0:
                break
            frames.append(bytes(self._pending[start:end]))
            start = end + 1
        del self._pending[:start]

        if self._max_pending is not None and len(self._pending) > self._max_pending:
            logger.warning(
                "Discarding %d unterminated bytes (limit %d)",
                len(self._pending),
                self._max_pending,
            )
            self._pending.clear()
            self._discarding = True
            self.dropped += 1

        return frames

    def flush(self) -> list[bytes]:
        """Return the unterminated remainder as a final frame, if any."""
        self._discarding = False
        if not self._pending:
            return []
        frame = bytes(self._pending)
        self._pending.clear()
        return [frame]


def decode_frame(frame: bytes) -> str:
    """Decode a frame as UTF-8. Invalid bytes become U+FFFD; never raises."""
    text = frame.decode("utf-8", errors="replace")
    if text.endswith("\r"):
        text = text[:-1]
    return text

"""Channel protocol — all local IPC transports must satisfy this."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Channel(Protocol):
    """An open, read-only connection to the daemon."""

    def read(self, size: int) -> bytes | None:
        """Return up to *size* bytes.

        ``None`` means nothing arrived yet (poll again), ``b""`` means the
        daemon closed its side. Transport failures raise OSError.
        """
        ...

    def close(self) -> None:
        """Release the underlying handle. Safe to call more than once."""
        ...

"""Pipeline data models — endpoints, connection state, events, and signals."""

from __future__ import annotations

import enum
import os
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path

_PIPE_NAME = "star_daemon"


class ConnectionState(enum.Enum):
    """Lifecycle state of the daemon channel."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class Severity(enum.Enum):
    """Severity tag derived from the daemon's message markers."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class ThreatLevel(enum.Enum):
    """Dashboard threat indicator. Raised by CRITICAL events only."""

    LOW = "low"
    HIGH = "high"


class Lifecycle(enum.Enum):
    """Control-plane signals; values are the strings consumers receive."""

    CONNECTED = "System Connected"
    DISCONNECTED = "Disconnected"


@dataclass(frozen=True)
class ChannelEndpoint:
    """Address of the daemon's local channel (named pipe or Unix socket path)."""

    address: str

    @classmethod
    def default(cls) -> ChannelEndpoint:
        if sys.platform == "win32":
            return cls(rf"\\.\pipe\{_PIPE_NAME}")
        runtime_dir = os.environ.get("XDG_RUNTIME_DIR")
        base = Path(runtime_dir) if runtime_dir else Path("/tmp")
        return cls(str(base / f"{_PIPE_NAME}.sock"))

    @property
    def is_named_pipe(self) -> bool:
        return self.address.startswith("\\\\.\\pipe\\")

    def __str__(self) -> str:
        return self.address


@dataclass(frozen=True)
class TelemetryEvent:
    """A single classified line from the daemon."""

    text: str
    severity: Severity = Severity.INFO
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class Signal:
    """One item of the manager's output stream: lifecycle or data, never both."""

    lifecycle: Lifecycle | None = None
    event: TelemetryEvent | None = None

    def __post_init__(self) -> None:
        if (self.lifecycle is None) == (self.event is None):
            raise ValueError("Signal carries exactly one of lifecycle or event")

    @classmethod
    def data(cls, event: TelemetryEvent) -> Signal:
        return cls(event=event)

    @classmethod
    def for_state(cls, state: ConnectionState) -> Signal:
        """Synthetic lifecycle signal describing *state*."""
        if state == ConnectionState.CONNECTED:
            return cls(lifecycle=Lifecycle.CONNECTED)
        return cls(lifecycle=Lifecycle.DISCONNECTED)

    @property
    def is_lifecycle(self) -> bool:
        return self.lifecycle is not None

    @property
    def text(self) -> str:
        """The string a display consumer receives for this signal."""
        if self.event is not None:
            return self.event.text
        if self.lifecycle is not None:
            return self.lifecycle.value
        return ""

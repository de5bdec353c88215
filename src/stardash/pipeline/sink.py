"""Telemetry sink — bounded, thread-safe event history for display consumers."""

from __future__ import annotations

import threading
from collections import Counter, deque
from collections.abc import Callable

from stardash.pipeline.models import (
    ConnectionState,
    Severity,
    Signal,
    TelemetryEvent,
    ThreatLevel,
)

DEFAULT_HISTORY_SIZE = 100


class TelemetrySink:
    """Ordered, size-capped log of classified events.

    The I/O thread appends (via ``__call__`` or ``append``); any thread may
    read through ``snapshot()``. Both are serialized on one lock, so readers
    never see a half-applied append/evict.
    """

    def __init__(
        self,
        state_provider: Callable[[], ConnectionState],
        history_size: int = DEFAULT_HISTORY_SIZE,
    ) -> None:
        if history_size < 1:
            raise ValueError("history_size must be at least 1")
        self._state_provider = state_provider
        self._history: deque[TelemetryEvent] = deque(maxlen=history_size)
        self._threat_level = ThreatLevel.LOW
        self._lock = threading.Lock()

    def __call__(self, signal: Signal) -> None:
        """Listener entry point: record data signals, ignore lifecycle ones."""
        if signal.event is not None:
            self.append(signal.event)

    def append(self, event: TelemetryEvent) -> None:
        with self._lock:
            self._history.append(event)
            if event.severity == Severity.CRITICAL:
                self._threat_level = ThreatLevel.HIGH

    def snapshot(self) -> list[TelemetryEvent]:
        """Return a copy of the history, oldest first."""
        with self._lock:
            return list(self._history)

    def latest_state(self) -> ConnectionState:
        return self._state_provider()

    @property
    def history_size(self) -> int:
        return self._history.maxlen or DEFAULT_HISTORY_SIZE

    @property
    def event_count(self) -> int:
        with self._lock:
            return len(self._history)

    @property
    def threat_level(self) -> ThreatLevel:
        return self._threat_level

    def reset_threat_level(self) -> None:
        """Lower the threat indicator; only the display layer calls this."""
        with self._lock:
            self._threat_level = ThreatLevel.LOW

    def counts_by_severity(self) -> dict[Severity, int]:
        with self._lock:
            counts = Counter(event.severity for event in self._history)
        return {severity: counts.get(severity, 0) for severity in Severity}

"""Event classifier — maps daemon lines to severities by literal marker."""

from __future__ import annotations

import time

from stardash.pipeline.models import Lifecycle, Severity, TelemetryEvent

# Literal markers of the daemon protocol. Matched case-sensitively, as substrings.
ALERT_MARKER = "[ALERT]"
SUSPICIOUS_MARKER = "Suspicious"

_STATUS_MESSAGES = frozenset(item.value for item in Lifecycle)


def severity_of(text: str) -> Severity:
    """Return the severity a line of daemon text maps to."""
    if ALERT_MARKER in text:
        return Severity.CRITICAL
    if SUSPICIOUS_MARKER in text:
        return Severity.WARNING
    return Severity.INFO


def classify(text: str, timestamp: float | None = None) -> TelemetryEvent:
    """Build a TelemetryEvent for *text*, stamped at capture time."""
    return TelemetryEvent(
        text=text,
        severity=severity_of(text),
        timestamp=time.time() if timestamp is None else timestamp,
    )


def is_status_message(text: str) -> bool:
    """Whether *text* is one of the lifecycle strings rather than telemetry."""
    return text in _STATUS_MESSAGES

"""Telemetry hub — the owned context tying manager, sink, and handshake together."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from stardash.pipeline.handshake import StatusHandshake
from stardash.pipeline.manager import ConnectionManager, Listener, Opener
from stardash.pipeline.models import (
    ChannelEndpoint,
    ConnectionState,
    TelemetryEvent,
    ThreatLevel,
)
from stardash.pipeline.sink import TelemetrySink

if TYPE_CHECKING:
    from stardash.config import StarDashConfig

logger = logging.getLogger(__name__)


class TelemetryHub:
    """One ingestion pipeline: a connection manager feeding a bounded sink.

    The sink is subscribed before any consumer, so a consumer reading
    ``snapshot()`` from inside its callback already sees the event it was
    handed.
    """

    def __init__(
        self,
        manager: ConnectionManager,
        history_size: int = 100,
    ) -> None:
        self.manager = manager
        self.sink = TelemetrySink(lambda: manager.state, history_size=history_size)
        self.handshake = StatusHandshake(manager)
        manager.subscribe(self.sink)

    @classmethod
    def from_config(
        cls,
        config: StarDashConfig,
        opener: Opener | None = None,
    ) -> TelemetryHub:
        manager = ConnectionManager(
            ChannelEndpoint(config.endpoint),
            retry_delay=config.retry_delay,
            backoff=config.backoff,
            max_retry_delay=config.max_retry_delay,
            retry_on_peer_close=config.retry_on_peer_close,
            read_size=config.read_size,
            max_line_bytes=config.max_line_bytes,
            connect_timeout=config.connect_timeout,
            opener=opener,
        )
        return cls(manager, history_size=config.history_size)

    def __enter__(self) -> TelemetryHub:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def start(self) -> None:
        logger.info("Starting telemetry pipeline for %s", self.manager.endpoint)
        self.manager.start()

    def stop(self) -> None:
        self.manager.stop()

    def attach(self, consumer: Listener) -> Callable[[], None]:
        """Subscribe *consumer*; it immediately receives the current status."""
        return self.handshake.attach(consumer)

    def request_status(self, consumer: Listener) -> None:
        self.handshake.request_status(consumer)

    def snapshot(self) -> list[TelemetryEvent]:
        return self.sink.snapshot()

    @property
    def state(self) -> ConnectionState:
        return self.manager.state

    @property
    def threat_level(self) -> ThreatLevel:
        return self.sink.threat_level

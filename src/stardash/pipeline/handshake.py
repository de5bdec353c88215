"""Status handshake — lets a newly attached consumer learn the connection state."""

from __future__ import annotations

import logging
from collections.abc import Callable

from stardash.pipeline.manager import ConnectionManager, Listener

logger = logging.getLogger(__name__)


class StatusHandshake:
    """Answers status requests with a synthetic lifecycle signal.

    A consumer that attaches after ``Connected`` already fired would
    otherwise wait for the next real transition. ``attach`` subscribes and
    announces the current state under the manager's dispatch lock, so no
    real signal can slip in between.
    """

    def __init__(self, manager: ConnectionManager) -> None:
        self._manager = manager

    def attach(self, consumer: Listener) -> Callable[[], None]:
        logger.debug("Attaching consumer %r (state=%s)", consumer, self._manager.state.value)
        return self._manager.subscribe(consumer, announce=True)

    def request_status(self, consumer: Listener) -> None:
        self._manager.announce(consumer)

"""CLI command: stardash status — check whether the daemon is reachable."""

from __future__ import annotations

import sys
import threading

import click
from rich.console import Console
from rich.markup import escape

from stardash.pipeline.hub import TelemetryHub
from stardash.pipeline.models import Lifecycle, Signal

console = Console(stderr=True)


@click.command()
@click.option(
    "--timeout",
    "-t",
    type=float,
    default=3.0,
    show_default=True,
    help="Seconds to wait for a connection.",
)
@click.pass_context
def status(ctx: click.Context, timeout: float) -> None:
    """Report whether the daemon channel accepts a connection."""
    config = ctx.obj["config"]
    hub = TelemetryHub.from_config(config)

    connected = threading.Event()

    def on_signal(item: Signal) -> None:
        if item.lifecycle is Lifecycle.CONNECTED:
            connected.set()

    hub.attach(on_signal)
    replies: list[Signal] = []
    hub.start()
    try:
        connected.wait(timeout)
        hub.request_status(replies.append)
    finally:
        hub.stop()

    reply = replies[0]
    color = "green" if reply.lifecycle is Lifecycle.CONNECTED else "red"
    console.print(f"{escape(config.endpoint)}: [{color}]{reply.text}[/{color}]")
    sys.exit(0 if reply.lifecycle is Lifecycle.CONNECTED else 1)

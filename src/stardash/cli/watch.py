"""CLI command: stardash watch — stream classified daemon telemetry."""

from __future__ import annotations

import signal
import sys
import threading
from datetime import datetime

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from stardash.pipeline.classifier import is_status_message
from stardash.pipeline.hub import TelemetryHub
from stardash.pipeline.models import Lifecycle, Severity, Signal, ThreatLevel

console = Console(stderr=True)

_SEVERITY_STYLE = {
    Severity.INFO: "",
    Severity.WARNING: "yellow",
    Severity.CRITICAL: "bold red",
}


def format_signal(item: Signal) -> str:
    """Render one signal as a line of Rich markup."""
    if item.lifecycle is Lifecycle.CONNECTED:
        return f"[green]● {item.text}[/green]"
    if item.lifecycle is Lifecycle.DISCONNECTED:
        return f"[red]○ {item.text}[/red]"

    event = item.event
    if event is None:
        return ""
    stamp = datetime.fromtimestamp(event.timestamp).strftime("%H:%M:%S")
    text = escape(event.text)
    # Daemon text that reads like a lifecycle line is still data
    if is_status_message(event.text):
        text = f"[italic]{text}[/italic] [dim](daemon)[/dim]"
    style = _SEVERITY_STYLE[event.severity]
    if style:
        text = f"[{style}]{text}[/{style}]"
    return f"  [dim][{stamp}][/dim] {text}"


@click.command()
@click.option(
    "--retry-on-close",
    is_flag=True,
    help="Reconnect after the daemon closes the channel (default: stay down).",
)
@click.pass_context
def watch(ctx: click.Context, retry_on_close: bool) -> None:
    """Stream live telemetry from the daemon until Ctrl+C."""
    config = ctx.obj["config"]
    if retry_on_close:
        config.retry_on_peer_close = True

    hub = TelemetryHub.from_config(config)

    console.print(f"[bold]stardash[/bold] watching [cyan]{escape(config.endpoint)}[/cyan]")
    console.print(
        f"  Retry: {config.retry_delay:.1f}s, History: {config.history_size}"
    )
    console.print("  Press Ctrl+C to stop.\n")

    def on_signal(item: Signal) -> None:
        console.print(format_signal(item))

    done = threading.Event()

    def _signal_handler(signum: int, frame: object) -> None:
        console.print("\n[dim]Stopping...[/dim]")
        done.set()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    hub.attach(on_signal)
    hub.start()
    try:
        while not done.wait(timeout=0.5):
            pass
    except KeyboardInterrupt:
        pass
    finally:
        hub.stop()

    _print_summary(hub)


def _print_summary(hub: TelemetryHub) -> None:
    console.print("\n[bold]Session Summary[/bold]")
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="dim")
    table.add_column()

    counts = hub.sink.counts_by_severity()
    table.add_row("Endpoint", escape(str(hub.manager.endpoint)))
    table.add_row("Events kept", str(hub.sink.event_count))
    for severity in Severity:
        table.add_row(severity.value.capitalize(), str(counts[severity]))
    table.add_row("Reconnect waits", str(hub.manager.retries))
    table.add_row("Threat level", hub.threat_level.value.upper())
    console.print(table)

    if hub.threat_level == ThreatLevel.HIGH:
        console.print("\n[red]⚠ Critical alerts were reported[/red]")
        sys.exit(1)

"""CLI entry point — Click group with global options."""

from __future__ import annotations

import logging

import click

from stardash import __version__
from stardash.config import ConfigError, StarDashConfig


@click.group()
@click.version_option(version=__version__, prog_name="stardash")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a YAML config file.",
)
@click.option(
    "--endpoint",
    "-e",
    help="Daemon channel address (named pipe or Unix socket path).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def main(
    ctx: click.Context,
    config_path: str | None,
    endpoint: str | None,
    verbose: bool,
) -> None:
    """stardash — live S.T.A.R. daemon telemetry in your terminal."""
    try:
        config = StarDashConfig.load(config_path)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    if endpoint:
        config.endpoint = endpoint
    config.verbose = verbose

    ctx.ensure_object(dict)
    ctx.obj["config"] = config

    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _register_commands() -> None:
    from stardash.cli.status import status  # noqa: F811
    from stardash.cli.watch import watch  # noqa: F811

    main.add_command(watch)
    main.add_command(status)


_register_commands()

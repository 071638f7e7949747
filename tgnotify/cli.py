"""Click entry point: read settings from flags or environment and serve."""

from __future__ import annotations

import logging

import click

from tgnotify.models import RelaySettings
from tgnotify.relay.queue import DEFAULT_CAPACITY
from tgnotify.relay.routing import RoutingTable, RuleParseError, parse_rules
from tgnotify.relay.shutdown import ServerError, ShutdownCoordinator
from tgnotify.relay.telegram import DEFAULT_API_BASE


def parse_listen(value: str) -> tuple[str, int]:
    """Split a ``[host]:port`` address; an empty host means all interfaces."""
    host, sep, port = value.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid listen address {value!r}, expected [host]:port")
    host = host.strip("[]") or "0.0.0.0"
    port_num = int(port)
    if port_num > 65535:
        raise ValueError(f"invalid port {port_num} in listen address {value!r}")
    return host, port_num


def _listen_callback(ctx: click.Context, param: click.Parameter, value: str) -> tuple[str, int]:
    try:
        return parse_listen(value)
    except ValueError as e:
        raise click.BadParameter(str(e), ctx=ctx, param=param) from e


def _rule_callback(ctx: click.Context, param: click.Parameter, value: str) -> RoutingTable:
    try:
        return parse_rules(value)
    except RuleParseError as e:
        raise click.BadParameter(str(e), ctx=ctx, param=param) from e


@click.command()
@click.option(
    "-l", "--listen", envvar="LISTEN", default=":8000", show_default=True,
    callback=_listen_callback, help="[address]:port for the web server to listen to.",
)
@click.option("-t", "--token", envvar="TOKEN", default="", help="Telegram bot token.")
@click.option(
    "-m", "--mode", envvar="MODE", default="text", show_default=True,
    help="Default parse mode of telegram messages (text, html, markdown).",
)
@click.option(
    "-r", "--rule", "routing", envvar="RULE", default="", callback=_rule_callback,
    help="Forwarding rules, format [{from:}{id,...};]{id,...}.",
)
@click.option(
    "--api-base", envvar="TELEGRAM_API_BASE", default=DEFAULT_API_BASE, show_default=True,
    help="Base URL of the Telegram Bot API.",
)
@click.option(
    "--queue-size", envvar="QUEUE_SIZE", default=DEFAULT_CAPACITY, show_default=True,
    type=click.IntRange(min=1), help="Maximum number of messages waiting for delivery.",
)
@click.option(
    "--timeout", envvar="SEND_TIMEOUT", default=None, type=click.FloatRange(min=0),
    help="Bot API request timeout in seconds (default: no timeout).",
)
@click.option(
    "--log-level", envvar="LOG_LEVEL", default="info", show_default=True,
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
)
def cli(
    listen: tuple[str, int],
    token: str,
    mode: str,
    routing: RoutingTable,
    api_base: str,
    queue_size: int,
    timeout: float | None,
    log_level: str,
) -> None:
    """Relay text posted to /notify to Telegram chats."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host, port = listen
    settings = RelaySettings(
        host=host,
        port=port,
        token=token,
        default_mode=mode,
        api_base=api_base,
        queue_capacity=queue_size,
        send_timeout=timeout,
    )
    if not routing.resolve(""):
        logging.getLogger(__name__).info(
            "No default route configured; unknown senders are ignored",
        )
    try:
        ShutdownCoordinator(settings, routing).run()
    except ServerError as e:
        raise click.ClickException(str(e)) from e


if __name__ == "__main__":
    cli()

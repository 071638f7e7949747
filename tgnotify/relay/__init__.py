"""Relay core: routing, formatting, queueing and delivery.

The shutdown coordinator lives in :mod:`tgnotify.relay.shutdown` and is not
re-exported here since it pulls in the HTTP app.
"""

from tgnotify.relay.dispatcher import Dispatcher, DispatcherState
from tgnotify.relay.formatter import format_message, resolve_mode
from tgnotify.relay.queue import (
    DeliveryQueue,
    QueueClosedError,
    QueueError,
    QueueFullError,
)
from tgnotify.relay.routing import (
    RoutingTable,
    RuleParseError,
    append_unique,
    parse_rules,
)
from tgnotify.relay.telegram import DeliveryError, TelegramSender

__all__ = [
    # Exceptions
    "DeliveryError",
    "QueueClosedError",
    "QueueError",
    "QueueFullError",
    "RuleParseError",
    # Components
    "DeliveryQueue",
    "Dispatcher",
    "DispatcherState",
    "RoutingTable",
    "TelegramSender",
    # Functions
    "append_unique",
    "format_message",
    "parse_rules",
    "resolve_mode",
]

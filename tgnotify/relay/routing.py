"""Static sender-to-chat routing table and its rule-string parser.

Rule grammar::

    [{sender}:]{id,id,...}[;[{sender}:]{id,...}...]

A rule without a sender feeds the default (empty-key) entry, which is used
for any sender that has no entry of its own.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping, Sequence

DEFAULT_SENDER = ""

_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class RuleParseError(ValueError):
    """Raised when a routing rule string cannot be parsed."""


def append_unique(existing: Sequence[int], *ids: int) -> tuple[int, ...]:
    """Append ``ids`` to ``existing``, skipping ids already present.

    First-seen order is kept.
    """
    result = list(existing)
    for chat_id in ids:
        if chat_id not in result:
            result.append(chat_id)
    return tuple(result)


class RoutingTable(Mapping[str, tuple[int, ...]]):
    """Immutable mapping of sender id to an ordered set of chat ids."""

    def __init__(self, entries: Mapping[str, Iterable[int]] | None = None) -> None:
        self._entries: dict[str, tuple[int, ...]] = {}
        for sender, ids in (entries or {}).items():
            self._entries[sender] = append_unique(
                self._entries.get(sender, ()), *ids,
            )

    def __getitem__(self, sender: str) -> tuple[int, ...]:
        return self._entries[sender]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"RoutingTable({self._entries!r})"

    def resolve(self, sender: str) -> tuple[int, ...]:
        """Return the chat ids for ``sender``, falling back to the default entry.

        An explicit entry wins even when it is empty.
        """
        if sender in self._entries:
            return self._entries[sender]
        return self._entries.get(DEFAULT_SENDER, ())


def parse_ids(text: str) -> tuple[int, ...]:
    """Parse a comma separated id list; blank items are skipped."""
    ids: tuple[int, ...] = ()
    for item in text.split(","):
        item = item.strip()
        if not item:
            continue
        if not _ID_PATTERN.fullmatch(item):
            raise RuleParseError(f"invalid chat id {item!r}")
        chat_id = int(item)
        if not _INT64_MIN <= chat_id <= _INT64_MAX:
            raise RuleParseError(f"chat id {item!r} out of range")
        ids = append_unique(ids, chat_id)
    return ids


def parse_rule(rule: str) -> tuple[str, tuple[int, ...]]:
    """Parse one ``[sender:]ids`` rule into ``(sender, ids)``."""
    parts = rule.split(":")
    if len(parts) == 1:
        return DEFAULT_SENDER, parse_ids(parts[0])
    if len(parts) == 2:
        return parts[0].strip(), parse_ids(parts[1])
    raise RuleParseError(f"invalid rule {rule!r}: too many ':' separators")


def parse_rules(raw: str) -> RoutingTable:
    """Build a :class:`RoutingTable` from a full ``;`` separated rule string.

    Rules naming the same sender are merged with duplicates removed.
    """
    merged: dict[str, tuple[int, ...]] = {}
    for rule in raw.split(";"):
        sender, ids = parse_rule(rule)
        merged[sender] = append_unique(merged.get(sender, ()), *ids)
    return RoutingTable(merged)

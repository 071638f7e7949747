"""Bounded, closeable FIFO queue between request handlers and the dispatcher.

Producers never wait: :meth:`DeliveryQueue.put_nowait` either inserts
immediately or raises. The single consumer awaits :meth:`DeliveryQueue.get`
(or iterates the queue) until it has been closed and drained.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

from tgnotify.models import OutboundMessage

DEFAULT_CAPACITY = 100


class QueueError(Exception):
    """Base class for enqueue failures."""


class QueueFullError(QueueError):
    """Raised when the queue already holds ``capacity`` messages."""


class QueueClosedError(QueueError):
    """Raised when enqueueing after :meth:`DeliveryQueue.close`."""


class DeliveryQueue:
    """Fixed-capacity FIFO of :class:`OutboundMessage`.

    The underlying ``asyncio.Queue`` is unbounded so the ``None`` close
    marker can always be inserted; capacity is enforced in
    :meth:`put_nowait`. The check and insert run without yielding to the
    event loop, so concurrent producers cannot overshoot the bound.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._items: asyncio.Queue[OutboundMessage | None] = asyncio.Queue()
        self._pending = 0
        self._closed = False

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        """Number of messages waiting to be dequeued."""
        return self._pending

    def full(self) -> bool:
        return self._pending >= self._capacity

    def put_nowait(self, message: OutboundMessage) -> None:
        if self._closed:
            raise QueueClosedError("delivery queue is closed")
        if self.full():
            raise QueueFullError(f"delivery queue is full ({self._capacity})")
        self._items.put_nowait(message)
        self._pending += 1

    async def get(self) -> OutboundMessage | None:
        """Return the next message, or ``None`` once closed and drained."""
        item = await self._items.get()
        if item is None:
            # Leave the marker in place so later calls also see the end.
            self._items.put_nowait(None)
            return None
        self._pending -= 1
        return item

    def close(self) -> None:
        """Stop accepting messages. Pending messages remain available."""
        if self._closed:
            return
        self._closed = True
        self._items.put_nowait(None)

    def __aiter__(self) -> AsyncIterator[OutboundMessage]:
        return self._drain()

    async def _drain(self) -> AsyncIterator[OutboundMessage]:
        while True:
            message = await self.get()
            if message is None:
                return
            yield message

"""Single worker that drains the delivery queue into the Bot API."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from tgnotify.relay.queue import DeliveryQueue
from tgnotify.relay.telegram import Deliver, DeliveryError

logger = logging.getLogger(__name__)


class DispatcherState(str, Enum):
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


class Dispatcher:
    """Dequeues messages in FIFO order and delivers them one at a time.

    Delivery failures are logged and dropped; the loop only ends once the
    queue is closed and empty. Completion is published through an
    ``asyncio.Event`` so :meth:`wait` is the single handoff point.
    """

    def __init__(self, queue: DeliveryQueue, deliver: Deliver) -> None:
        self._queue = queue
        self._deliver = deliver
        self._task: asyncio.Task[None] | None = None
        self._stopped = asyncio.Event()
        self.delivered = 0
        self.failed = 0

    @property
    def state(self) -> DispatcherState:
        if self._stopped.is_set():
            return DispatcherState.STOPPED
        if self._queue.closed:
            return DispatcherState.DRAINING
        return DispatcherState.RUNNING

    def start(self) -> asyncio.Task[None]:
        if self._task is None:
            self._task = asyncio.create_task(self.run(), name="tgnotify-dispatcher")
        return self._task

    async def wait(self) -> None:
        """Block until the queue has been closed and fully drained."""
        await self._stopped.wait()

    async def run(self) -> None:
        logger.info("Dispatcher started")
        try:
            async for message in self._queue:
                try:
                    await self._deliver(message)
                except DeliveryError as e:
                    self.failed += 1
                    logger.warning("Dropping message: %s", e)
                except Exception:  # noqa: BLE001
                    self.failed += 1
                    logger.exception(
                        "Unexpected error delivering to chat %s", message.destination_id,
                    )
                else:
                    self.delivered += 1
        finally:
            self._stopped.set()
            logger.info(
                "Dispatcher stopped (delivered=%d, failed=%d)",
                self.delivered,
                self.failed,
            )

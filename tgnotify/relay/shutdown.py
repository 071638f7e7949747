"""Process lifecycle: serve HTTP, then drain the delivery queue on shutdown.

Shutdown order on SIGINT/SIGTERM:

1. uvicorn stops accepting connections and lets in-flight requests finish.
2. The app lifespan exits, closing the delivery queue.
3. The lifespan waits until the dispatcher has drained every pending message.
4. :meth:`ShutdownCoordinator.serve` returns, or raises :class:`ServerError`
   if the server itself failed.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import threading
from collections.abc import AsyncIterator, Iterator

import uvicorn
from fastapi import FastAPI

from tgnotify.models import RelaySettings
from tgnotify.proxy.app import create_app
from tgnotify.relay.dispatcher import Dispatcher
from tgnotify.relay.queue import DeliveryQueue
from tgnotify.relay.routing import RoutingTable
from tgnotify.relay.telegram import Deliver, TelegramSender

logger = logging.getLogger(__name__)

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ServerError(Exception):
    """The HTTP server failed for a reason other than a requested shutdown."""


class _RelayServer(uvicorn.Server):
    """uvicorn server whose signal subscription is owned by the coordinator."""

    def __init__(self, config: uvicorn.Config, coordinator: ShutdownCoordinator) -> None:
        super().__init__(config)
        self._coordinator = coordinator

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        if threading.current_thread() is not threading.main_thread():
            # Signals can only be subscribed to from the main thread
            yield
            return
        loop = asyncio.get_running_loop()
        for sig in HANDLED_SIGNALS:
            loop.add_signal_handler(sig, self._coordinator.request_shutdown, sig)
        try:
            yield
        finally:
            for sig in HANDLED_SIGNALS:
                loop.remove_signal_handler(sig)


class ShutdownCoordinator:
    """Wires queue, dispatcher and HTTP app together and owns their lifecycle."""

    def __init__(
        self,
        settings: RelaySettings,
        table: RoutingTable,
        deliver: Deliver | None = None,
    ) -> None:
        self.settings = settings
        self.queue = DeliveryQueue(settings.queue_capacity)
        if deliver is None:
            sender = TelegramSender(
                settings.token, settings.api_base, timeout=settings.send_timeout,
            )
            deliver = sender.deliver
        self.dispatcher = Dispatcher(self.queue, deliver)
        self.app = create_app(
            table, self.queue, settings.default_mode, lifespan=self.lifespan,
        )
        self._server: _RelayServer | None = None

    @contextlib.asynccontextmanager
    async def lifespan(self, app: FastAPI) -> AsyncIterator[None]:
        self.dispatcher.start()
        logger.info("Relay starting on %s:%d", self.settings.host, self.settings.port)
        try:
            yield
        finally:
            await self.shutdown()

    def request_shutdown(self, sig: signal.Signals | None = None) -> None:
        """Ask the server to stop accepting connections. Later calls are no-ops."""
        server = self._server
        if server is None or server.should_exit:
            return
        logger.info(
            "Received %s, shutting down", sig.name if sig is not None else "shutdown request",
        )
        server.should_exit = True

    async def shutdown(self) -> None:
        """Close the queue and wait for every pending message to be attempted."""
        pending = self.queue.qsize()
        self.queue.close()
        if pending:
            logger.info("Draining %d pending message(s)", pending)
        # Start the dispatcher if the server never did, so the drain completes.
        self.dispatcher.start()
        await self.dispatcher.wait()
        logger.info("Stop server")

    async def serve(self) -> None:
        config = uvicorn.Config(
            self.app,
            host=self.settings.host,
            port=self.settings.port,
            lifespan="on",
            log_config=None,
        )
        self._server = _RelayServer(config, self)
        try:
            await self._server.serve()
        except SystemExit as e:
            # uvicorn exits the process when it cannot bind
            await self.shutdown()
            raise ServerError(
                f"could not listen on {self.settings.host}:{self.settings.port}",
            ) from e
        if not self._server.started:
            await self.shutdown()
            raise ServerError("server failed to start")

    def run(self) -> None:
        asyncio.run(self.serve())

"""FastAPI application exposing the ``/notify`` ingestion endpoint."""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.requests import ClientDisconnect

from tgnotify.models import OutboundMessage
from tgnotify.relay.formatter import format_message
from tgnotify.relay.queue import DeliveryQueue, QueueClosedError, QueueError
from tgnotify.relay.routing import RoutingTable

logger = logging.getLogger(__name__)

Lifespan = Callable[[FastAPI], AbstractAsyncContextManager[None]]


def create_app(
    table: RoutingTable,
    queue: DeliveryQueue,
    default_mode: str = "",
    lifespan: Lifespan | None = None,
) -> FastAPI:
    """Create the relay app.

    The app only produces into ``queue``; draining it is the dispatcher's
    job, wired in through ``lifespan``.
    """
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None, lifespan=lifespan)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.api_route("/notify", methods=["GET", "POST"])
    async def notify(request: Request) -> Response:
        params = request.query_params
        sender = params.get("from", "").strip()
        # Silent unless explicitly asked for sound
        silent = params.get("sound", "").strip() != "on"

        destination_ids = table.resolve(sender)
        if not destination_ids:
            return Response()

        try:
            body = await request.body()
        except ClientDisconnect:
            logger.info("Client disconnected while sending body (from=%r)", sender)
            return JSONResponse({"error": "can't read body"}, status_code=400)
        if not body:
            return Response()

        text, mode = format_message(sender, body, params.get("mode", ""), default_mode)

        for destination_id in destination_ids:
            message = OutboundMessage(
                destination_id=destination_id,
                text=text,
                render_mode=mode,
                silent=silent,
            )
            try:
                queue.put_nowait(message)
            except QueueError as e:
                reason = "closed" if isinstance(e, QueueClosedError) else "full"
                logger.warning(
                    "Rejecting notify from %r: queue %s, chat %s not enqueued",
                    sender,
                    reason,
                    destination_id,
                )
                return JSONResponse({"error": "max capacity reached"}, status_code=503)

        logger.debug(
            "Enqueued %d message(s) from %r (queue depth %d)",
            len(destination_ids),
            sender,
            queue.qsize(),
        )
        return Response()

    return app


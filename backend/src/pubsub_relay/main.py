"""
Pub/Sub relay - FastAPI application.

Serves a single WebSocket endpoint (default /graphql) speaking the
graphql-transport-ws message types, plus a plain-text health response on
every other path. Sample generators publish demo events in the background.
"""
import asyncio
import json
import logging
import random
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, Optional

import uvicorn
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from .config import RelaySettings, settings as default_settings
from .models import EventChannels, IdCounter, RelayError, TopicRegistry, UnknownOperationError
from .schemas import ClientMessage, EventPayload, SubscribePayload
from .services import CommandHandlers, ConnectionSession, build_sample_generators, command_fields
from .utilities import (
    CLOSE_NORMAL,
    CLOSE_UNAUTHORIZED,
    GRAPHQL_TRANSPORT_WS,
    make_complete,
    make_connection_ack,
    make_error,
    make_next,
    make_pong,
)

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if default_settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


class Relay:
    """Owns the registry, channels, id counter, commands and generators of one app."""

    def __init__(self, settings: RelaySettings, rng: Optional[random.Random] = None):
        self.settings = settings
        self.registry = TopicRegistry()
        self.channels = EventChannels(self.registry)
        self.counter = IdCounter()
        self.commands = CommandHandlers(self.channels.message_added, self.counter)
        self.generators = build_sample_generators(self.channels, self.counter, settings, rng)
        self.sessions: Dict[str, ConnectionSession] = {}
        self.started_at = datetime.now(timezone.utc)

    async def execute(self, session: ConnectionSession, frame: ClientMessage, send) -> None:
        """Route one subscribe frame to a subscription, a query or a mutation."""
        op_id = frame.id
        try:
            request = SubscribePayload.model_validate(frame.payload or {})
        except ValidationError:
            await send(make_error(op_id, "BAD_REQUEST", "payload.operation required"))
            return

        field = request.operation
        try:
            channel = self.channels.by_field().get(field)
            if channel is not None:
                await session.subscribe(op_id, field, channel)
                return
            handler = command_fields(self.commands).get(field)
            if handler is None:
                raise UnknownOperationError(f"Unknown operation: {field}")
            result = await handler(**request.variables)
        except RelayError as e:
            await send(make_error(op_id, e.code, str(e)))
            return

        data = result.to_wire() if isinstance(result, EventPayload) else result
        await send(make_next(op_id, field, data))
        await send(make_complete(op_id))

    async def shutdown(self) -> None:
        for session in list(self.sessions.values()):
            await session.close()
        self.sessions.clear()
        await self.generators.stop_all()


def create_app(settings: Optional[RelaySettings] = None, rng: Optional[random.Random] = None) -> FastAPI:
    settings = settings or default_settings
    relay = Relay(settings, rng)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        if settings.sample_generators_enabled:
            relay.generators.start_all()
        logger.info(f"Server is running on http://localhost:{settings.port}")
        logger.info(f"WebSocket endpoint ws://localhost:{settings.port}{settings.ws_path}")
        yield
        logger.info("Shutting down relay")
        await relay.shutdown()
        logger.info("Relay shutdown complete")

    app = FastAPI(title="Pub/Sub Relay", lifespan=lifespan)
    app.state.relay = relay

    # -------------- WebSocket handling --------------
    @app.websocket(settings.ws_path)
    async def websocket_endpoint(ws: WebSocket):
        offered = ws.scope.get("subprotocols") or []
        await ws.accept(subprotocol=GRAPHQL_TRANSPORT_WS if GRAPHQL_TRANSPORT_WS in offered else None)

        # forwarders and the receive loop share the socket
        send_lock = asyncio.Lock()

        async def send(frame: Dict[str, Any]) -> None:
            async with send_lock:
                await ws.send_text(json.dumps(frame))

        session = ConnectionSession(send)
        relay.sessions[session.session_id] = session
        logger.info(f"Client connected ({session.session_id})")
        initialized = False
        close_code = CLOSE_NORMAL
        try:
            while True:
                data = await ws.receive_text()
                try:
                    frame = ClientMessage.model_validate_json(data)
                except ValidationError:
                    await send(make_error(None, "BAD_REQUEST", "invalid message"))
                    continue

                if frame.type == "connection_init":
                    initialized = True
                    await send(make_connection_ack())
                    continue
                if frame.type == "ping":
                    await send(make_pong())
                    continue
                if frame.type == "pong":
                    continue

                if not initialized:
                    close_code = CLOSE_UNAUTHORIZED
                    await ws.close(code=CLOSE_UNAUTHORIZED, reason="Unauthorized")
                    break

                if frame.type in ("subscribe", "complete") and not frame.id:
                    await send(make_error(None, "BAD_REQUEST", "id required"))
                    continue
                if frame.type == "subscribe":
                    await relay.execute(session, frame, send)
                    continue
                if frame.type == "complete":
                    await session.stop(frame.id)
                    continue

                # unknown type
                await send(make_error(frame.id, "BAD_REQUEST", f"unknown type: {frame.type}"))
        except WebSocketDisconnect as e:
            close_code = e.code
        except Exception:
            logger.exception(f"Unexpected error on session {session.session_id}")
            try:
                await send(make_error(None, "INTERNAL", "server error"))
            except Exception:
                pass
        finally:
            await session.close()
            relay.sessions.pop(session.session_id, None)
            logger.info(f"Client disconnected ({session.session_id}) code={close_code}")

    # -------------- REST endpoints --------------

    @app.get("/health")
    async def rest_health():
        now = datetime.now(timezone.utc)
        uptime_sec = int((now - relay.started_at).total_seconds())
        stats = await relay.registry.stats()
        return {
            "uptime_sec": uptime_sec,
            "topics": len(stats),
            "subscribers": sum(t["subscribers"] for t in stats.values()),
            "sessions": len(relay.sessions),
        }

    @app.get("/stats")
    async def rest_stats():
        return {"topics": await relay.registry.stats()}

    @app.api_route("/{path:path}", methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"])
    async def plain_health(path: str):
        return PlainTextResponse(settings.health_text)

    return app


app = create_app()


def run() -> None:
    uvicorn.run(
        app,
        host=default_settings.host,
        port=default_settings.port,
        log_level="debug" if default_settings.debug else "info",
    )


if __name__ == "__main__":
    run()

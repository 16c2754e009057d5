"""
Socket.IO relay server.

Transport events:
  connect        read `userId` from the handshake query, register presence
  send_message   hand off to MessageRelay
  disconnect     drop presence (only if this socket still owns it)

Handlers run with `async_handlers=False`: each socket's events are processed
to completion in arrival order, while different sockets interleave.
"""

import logging
from typing import Any, Optional
from urllib.parse import parse_qs

import socketio
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from ayinet_relay.config import Settings
from ayinet_relay.models.events import C2SEvent
from ayinet_relay.presence import PresenceRegistry
from ayinet_relay.relay import MessageRelay
from ayinet_relay.session import ConnectionSession
from ayinet_relay.store import InMemoryMessageStore, MessageStore, PostgresMessageStore

logger = logging.getLogger(__name__)

USER_ID_QUERY_PARAM = "userId"


def user_id_from_environ(environ: dict[str, Any]) -> Optional[str]:
    query = parse_qs(environ.get("QUERY_STRING", ""))
    values = query.get(USER_ID_QUERY_PARAM) or []
    user_id = values[0].strip() if values else ""
    return user_id or None


def build_store(settings: Settings) -> MessageStore:
    if settings.in_memory:
        return InMemoryMessageStore()
    return PostgresMessageStore(
        settings.require_database(),
        ssl=settings.database_ssl,
        init_schema=settings.init_schema,
    )


class RelayServer:
    def __init__(
        self,
        settings: Settings,
        store: Optional[MessageStore] = None,
        registry: Optional[PresenceRegistry] = None,
    ):
        self.settings = settings
        self.store = store if store is not None else build_store(settings)
        self.registry = registry if registry is not None else PresenceRegistry()
        self.sio = socketio.AsyncServer(
            async_mode="asgi",
            cors_allowed_origins=settings.cors_origins(),
            async_handlers=False,
        )
        self.relay = MessageRelay(
            self.store,
            self.registry,
            self._emit,
            notify_failures=settings.notify_failures,
        )
        self._sessions: dict[str, ConnectionSession] = {}

        self.sio.on("connect", self.handle_connect)
        self.sio.on(C2SEvent.SEND_MESSAGE, self.handle_send_message)
        self.sio.on("disconnect", self.handle_disconnect)

    def session(self, sid: str) -> Optional[ConnectionSession]:
        return self._sessions.get(sid)

    async def _emit(self, event: str, data: Any, to: str) -> None:
        await self.sio.emit(event, data, to=to)

    async def handle_connect(self, sid: str, environ: dict[str, Any], auth: Any = None) -> None:
        session = ConnectionSession(sid, user_id_from_environ(environ))
        self._sessions[sid] = session
        session.open(self.registry)

    async def handle_send_message(self, sid: str, data: Any = None) -> None:
        await self.relay.relay(sid, data)

    async def handle_disconnect(self, sid: str, reason: Any = None) -> None:
        session = self._sessions.pop(sid, None)
        if session is not None:
            session.close(self.registry)

    async def startup(self) -> None:
        await self.store.open()
        logger.info("Ayinet relay ready")

    async def shutdown(self) -> None:
        for session in list(self._sessions.values()):
            session.close(self.registry)
        self._sessions.clear()
        self.registry.clear()
        await self.store.close()
        logger.info("Ayinet relay stopped")

    async def health(self, request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "online": len(self.registry)})

    def http_app(self) -> Starlette:
        """Plain HTTP routes served next to Socket.IO."""
        return Starlette(routes=[Route("/health", self.health, methods=["GET"])])

    def asgi_app(self) -> socketio.ASGIApp:
        return socketio.ASGIApp(
            self.sio,
            other_asgi_app=self.http_app(),
            on_startup=self.startup,
            on_shutdown=self.shutdown,
        )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[MessageStore] = None,
    registry: Optional[PresenceRegistry] = None,
) -> socketio.ASGIApp:
    return RelayServer(settings or Settings(), store=store, registry=registry).asgi_app()

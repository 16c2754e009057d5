"""
Socket.IO connection manager for relay clients.

Connects with `?userId=<id>` so the server can register presence, and
dispatches `receive_message` events to registered handlers.
"""

import asyncio
import logging
from typing import Any, Callable, Optional
from urllib.parse import urlencode

import socketio

from ayinet_relay.models.events import C2SEvent, S2CEvent
from ayinet_relay.transport.envelope import build_send_message

logger = logging.getLogger(__name__)


class SocketIOManager:
    def __init__(
        self,
        base_url: str,
        user_id: str,
        transports: Optional[list[str]] = None,
        connect_timeout: float = 15.0,
    ):
        self._base_url = base_url.rstrip("/")
        self._user_id = user_id
        self._transports = transports or ["websocket"]
        self._connect_timeout = connect_timeout
        self._sio: Optional[socketio.AsyncClient] = None
        self._event_handlers: list[Callable[[str, dict[str, Any]], None]] = []

    @property
    def connected(self) -> bool:
        return self._sio is not None and self._sio.connected

    @property
    def user_id(self) -> str:
        return self._user_id

    def add_event_handler(self, handler: Callable[[str, dict[str, Any]], None]) -> Callable[[], None]:
        """Add an event handler. Returns a cleanup function."""
        self._event_handlers.append(handler)
        def remove() -> None:
            try:
                self._event_handlers.remove(handler)
            except ValueError:
                pass
        return remove

    def _dispatch(self, event: str, data: Any) -> None:
        if not isinstance(data, dict):
            return
        for handler in list(self._event_handlers):
            handler(event, data)

    async def connect(self) -> None:
        if self._sio and self._sio.connected:
            return

        self._sio = socketio.AsyncClient()

        @self._sio.on(S2CEvent.RECEIVE_MESSAGE)
        async def on_receive(data: Any) -> None:
            self._dispatch(S2CEvent.RECEIVE_MESSAGE, data)

        @self._sio.on(S2CEvent.MESSAGE_ERROR)
        async def on_error(data: Any) -> None:
            self._dispatch(S2CEvent.MESSAGE_ERROR, data)

        url = f"{self._base_url}?{urlencode({'userId': self._user_id})}"
        await self._sio.connect(
            url,
            transports=self._transports,
            wait_timeout=self._connect_timeout,
        )

    def emit(self, receiver_id: str, text: str, media_url: Optional[str] = None) -> None:
        """Fire-and-forget `send_message`.

        Schedules the async emit on the running event loop. Errors are logged.
        """
        if not self._sio or not self._sio.connected:
            raise RuntimeError("Socket.IO not connected")
        payload = build_send_message(self._user_id, receiver_id, text, media_url)

        async def _do_emit() -> None:
            try:
                await self._sio.emit(C2SEvent.SEND_MESSAGE, payload)  # type: ignore[union-attr]
            except Exception as e:
                logger.error("Emit failed for %s: %s", C2SEvent.SEND_MESSAGE, e)

        asyncio.get_running_loop().create_task(_do_emit())

    async def emit_and_wait(
        self,
        receiver_id: str,
        text: str,
        media_url: Optional[str] = None,
        timeout: float = 10.0,
    ) -> dict[str, Any]:
        """Send a message and wait for the server's confirmation echo.

        The echo carries no request id, so it is matched on sender, receiver
        and text. A `message_error` (when the server reports failures) ends
        the wait early.
        """
        if not self._sio or not self._sio.connected:
            raise RuntimeError("Socket.IO not connected")
        payload = build_send_message(self._user_id, receiver_id, text, media_url)

        result_event = asyncio.Event()
        result_data: dict[str, Any] = {}

        def response_handler(evt: str, raw: dict[str, Any]) -> None:
            if result_event.is_set():
                return
            if evt == S2CEvent.MESSAGE_ERROR:
                result_data.update(error=raw)
                result_event.set()
            elif (
                evt == S2CEvent.RECEIVE_MESSAGE
                and raw.get("sender_id") == self._user_id
                and raw.get("receiver_id") == receiver_id
                and raw.get("text") == text
            ):
                result_data.update(raw)
                result_event.set()

        remove_handler = self.add_event_handler(response_handler)
        try:
            await self._sio.emit(C2SEvent.SEND_MESSAGE, payload)
            await asyncio.wait_for(result_event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            raise TimeoutError(f"Timeout waiting for {S2CEvent.RECEIVE_MESSAGE} confirmation")
        finally:
            remove_handler()

        return result_data

    async def disconnect(self) -> None:
        if self._sio:
            await self._sio.disconnect()
            self._sio = None

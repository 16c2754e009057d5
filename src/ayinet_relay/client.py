"""
AsyncChatClient — connect as a user, send messages, stream incoming ones.
"""

import asyncio
from typing import Any, AsyncGenerator, Optional

from ayinet_relay.errors import AyinetError, ConnectionError
from ayinet_relay.models.events import S2CEvent
from ayinet_relay.models.message import OutboundMessage
from ayinet_relay.transport.envelope import parse_message
from ayinet_relay.transport.http import DEFAULT_BASE_URL, HttpClient
from ayinet_relay.transport.socketio import SocketIOManager


class AsyncChatClient:
    def __init__(
        self,
        user_id: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        transports: Optional[list[str]] = None,
        connect_timeout: float = 15.0,
    ):
        self._user_id = user_id
        self._base_url = base_url
        self._transports = transports
        self._connect_timeout = connect_timeout
        self.http = HttpClient(base_url=base_url)
        self._sio: Optional[SocketIOManager] = None

    @property
    def connected(self) -> bool:
        return self._sio is not None and self._sio.connected

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    async def connect(self, user_id: Optional[str] = None) -> None:
        uid = user_id or self._user_id
        if not uid:
            raise ConnectionError("user_id required to connect.")
        self._user_id = uid
        self._sio = SocketIOManager(
            base_url=self._base_url,
            user_id=uid,
            transports=self._transports,
            connect_timeout=self._connect_timeout,
        )
        try:
            await self._sio.connect()
        except Exception as e:
            self._sio = None
            raise ConnectionError(f"Could not connect to {self._base_url}: {e}") from e

    async def disconnect(self) -> None:
        if self._sio:
            await self._sio.disconnect()
            self._sio = None

    async def close(self) -> None:
        await self.disconnect()
        await self.http.close()

    def send_message(self, receiver_id: str, text: str, *, media_url: Optional[str] = None) -> None:
        """Send without waiting for the confirmation echo (fire-and-forget)."""
        self._ensure_connected()
        self._sio.emit(receiver_id, text, media_url)  # type: ignore[union-attr]

    async def send_and_wait(
        self, receiver_id: str, text: str, *, media_url: Optional[str] = None, timeout: float = 10.0,
    ) -> OutboundMessage:
        """Send and return the stored message as echoed back by the server."""
        self._ensure_connected()
        result = await self._sio.emit_and_wait(  # type: ignore[union-attr]
            receiver_id, text, media_url, timeout=timeout,
        )
        if "error" in result:
            err = result["error"]
            raise AyinetError(err.get("code", "message_error"), err.get("message", "Message failed"))
        message = parse_message(result)
        if message is None:
            raise AyinetError("protocol_error", f"Malformed {S2CEvent.RECEIVE_MESSAGE} payload")
        return message

    async def messages(self) -> AsyncGenerator[OutboundMessage, None]:
        """Yield every incoming `receive_message` until disconnected.

        Includes the confirmation echoes of this client's own sends.
        """
        self._ensure_connected()
        queue: asyncio.Queue[OutboundMessage] = asyncio.Queue()

        def _handler(event_type: str, raw: dict[str, Any]) -> None:
            if event_type != S2CEvent.RECEIVE_MESSAGE:
                return
            message = parse_message(raw)
            if message is not None:
                queue.put_nowait(message)

        remove = self._sio.add_event_handler(_handler)  # type: ignore[union-attr]
        try:
            while self.connected:
                try:
                    yield await asyncio.wait_for(queue.get(), timeout=5.0)
                except asyncio.TimeoutError:
                    continue
        finally:
            remove()

    async def health(self) -> dict[str, Any]:
        return await self.http.health()

    def _ensure_connected(self) -> None:
        if not self._sio or not self._sio.connected:
            raise ConnectionError("Not connected. Call connect() first.")

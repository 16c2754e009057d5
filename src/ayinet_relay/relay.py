"""
Message relay — persist a chat message, then fan it out.

Order per `send_message`:
1. validate the payload
2. insert the record (durability boundary)
3. push `receive_message` to the receiver's live socket, if any
4. echo the same payload to the sender's socket

Nothing here raises into the transport: validation, persistence and delivery
failures are logged and end the invocation.
"""

import logging
from typing import Any, Awaitable, Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from ayinet_relay.errors import AyinetError, PersistenceError, ValidationError
from ayinet_relay.models.events import S2CEvent
from ayinet_relay.models.message import STATUS_SENT, OutboundMessage, SendMessageRequest
from ayinet_relay.presence import PresenceRegistry
from ayinet_relay.store import MessageStore

logger = logging.getLogger(__name__)

# Same call shape as socketio.AsyncServer.emit(event, data, to=sid)
Emitter = Callable[..., Awaitable[Any]]


def parse_send_message(data: Any) -> SendMessageRequest:
    if not isinstance(data, dict):
        raise ValidationError("send_message payload must be an object")
    try:
        return SendMessageRequest.model_validate(data)
    except PydanticValidationError as e:
        fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise ValidationError(f"Invalid send_message payload: {', '.join(fields)}", details={"fields": fields})


class MessageRelay:
    def __init__(
        self,
        store: MessageStore,
        registry: PresenceRegistry,
        emit: Emitter,
        notify_failures: bool = False,
    ):
        self._store = store
        self._registry = registry
        self._emit = emit
        self._notify_failures = notify_failures

    async def relay(self, sender_sid: str, data: Any) -> Optional[OutboundMessage]:
        """Handle one `send_message` event. Returns the delivered payload, or None on failure."""
        try:
            request = parse_send_message(data)
        except ValidationError as e:
            logger.warning("Rejected message from socket %s: %s", sender_sid, e)
            await self._report(sender_sid, e)
            return None

        try:
            record = await self._store.insert_message(
                request.message.sender_id,
                request.receiver_id,
                request.message.text,
                request.message.media_url,
                status=STATUS_SENT,
            )
        except Exception as e:
            logger.exception("Message save/send failed")
            error = e if isinstance(e, PersistenceError) else PersistenceError(f"Message insert failed: {e}")
            await self._report(sender_sid, error)
            return None

        outbound = OutboundMessage.from_record(record)
        payload = outbound.model_dump(mode="json")

        receiver_sid = self._registry.lookup(request.receiver_id)
        if receiver_sid:
            await self._deliver(receiver_sid, payload, record.id)
        else:
            logger.debug("Receiver %s offline; message %s stored only", request.receiver_id, record.id)

        await self._deliver(sender_sid, payload, record.id)
        return outbound

    async def _deliver(self, sid: str, payload: dict[str, Any], message_id: str) -> None:
        try:
            await self._emit(S2CEvent.RECEIVE_MESSAGE, payload, to=sid)
        except Exception as e:
            logger.warning("Delivery of message %s to socket %s failed: %s", message_id, sid, e)

    async def _report(self, sender_sid: str, error: AyinetError) -> None:
        if not self._notify_failures:
            return
        try:
            await self._emit(S2CEvent.MESSAGE_ERROR, {"code": error.code, "message": str(error)}, to=sender_sid)
        except Exception as e:
            logger.warning("Could not report %s to socket %s: %s", error.code, sender_sid, e)

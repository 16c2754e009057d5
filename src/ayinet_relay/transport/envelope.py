"""
Building `send_message` payloads and parsing `receive_message` payloads.
"""

from typing import Any, Optional

from ayinet_relay.models.message import InboundMessage, OutboundMessage, SendMessageRequest


def build_send_message(
    sender_id: str,
    receiver_id: str,
    text: str,
    media_url: Optional[str] = None,
) -> dict[str, Any]:
    """Build a `send_message` payload as a dict ready for Socket.IO emit."""
    request = SendMessageRequest(
        message=InboundMessage(sender_id=sender_id, text=text, media_url=media_url),
        receiver_id=receiver_id,
    )
    return request.model_dump(by_alias=True, exclude_none=True)


def parse_message(raw: Any) -> Optional[OutboundMessage]:
    """Parse a `receive_message` payload. Returns None if invalid."""
    if not isinstance(raw, dict):
        return None
    try:
        return OutboundMessage.model_validate(raw)
    except ValueError:
        return None

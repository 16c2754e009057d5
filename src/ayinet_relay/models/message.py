"""
Chat message models — stored record, inbound request and outbound payload.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MESSAGE_TYPE_TEXT = "text"
STATUS_SENT = "sent"


class MessageRecord(BaseModel):
    """A row of the `messages` table."""

    id: str
    sender_id: Optional[str] = None
    receiver_id: Optional[str] = None
    content: Optional[str] = None
    media_url: Optional[str] = None
    is_read: bool = False
    status: str = STATUS_SENT
    created_at: datetime


class OutboundMessage(MessageRecord):
    """Wire shape of `receive_message`: the record plus client-facing aliases."""

    text: Optional[str] = None
    timestamp: int
    type: str = MESSAGE_TYPE_TEXT

    @classmethod
    def from_record(cls, record: MessageRecord) -> "OutboundMessage":
        return cls(
            **record.model_dump(),
            text=record.content,
            timestamp=int(record.created_at.timestamp() * 1000),
        )


class InboundMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sender_id: str = Field(alias="senderId", min_length=1)
    text: str
    media_url: Optional[str] = Field(default=None, alias="mediaUrl")

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("text must not be empty")
        return v


class SendMessageRequest(BaseModel):
    """Payload of the inbound `send_message` event."""

    model_config = ConfigDict(populate_by_name=True)

    message: InboundMessage
    receiver_id: str = Field(alias="receiverId", min_length=1)

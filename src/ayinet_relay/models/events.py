"""
Socket.IO event names used by the relay.
"""


class C2SEvent:
    """Client → server events."""

    SEND_MESSAGE = "send_message"


class S2CEvent:
    """Server → client events."""

    RECEIVE_MESSAGE = "receive_message"
    MESSAGE_ERROR = "message_error"

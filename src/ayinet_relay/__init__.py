"""
ayinet-relay — real-time presence and direct-message relay for Ayinet.

Socket.IO server (presence registry, message relay, PostgreSQL persistence)
plus a small async client.
"""

from ayinet_relay.client import AsyncChatClient
from ayinet_relay.config import Settings
from ayinet_relay.errors import AyinetError, ValidationError, PersistenceError, ConfigError, ConnectionError
from ayinet_relay.models.events import C2SEvent, S2CEvent
from ayinet_relay.models.message import MessageRecord, OutboundMessage
from ayinet_relay.presence import PresenceRegistry
from ayinet_relay.relay import MessageRelay
from ayinet_relay.server import RelayServer, create_app
from ayinet_relay.session import ConnectionSession, SessionState
from ayinet_relay.store import InMemoryMessageStore, MessageStore, PostgresMessageStore

__version__ = "0.1.0"
__all__ = [
    "AsyncChatClient",
    "Settings",
    "AyinetError",
    "ValidationError",
    "PersistenceError",
    "ConfigError",
    "ConnectionError",
    "C2SEvent",
    "S2CEvent",
    "MessageRecord",
    "OutboundMessage",
    "PresenceRegistry",
    "MessageRelay",
    "RelayServer",
    "create_app",
    "ConnectionSession",
    "SessionState",
    "InMemoryMessageStore",
    "MessageStore",
    "PostgresMessageStore",
]

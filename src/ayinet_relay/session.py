"""
Connection session lifecycle: Connecting → Active → Closed.
"""

import logging
from typing import Optional

from ayinet_relay.presence import PresenceRegistry

logger = logging.getLogger(__name__)


class SessionState:
    CONNECTING = "connecting"
    ACTIVE = "active"
    CLOSED = "closed"


class ConnectionSession:
    __slots__ = ("sid", "user_id", "state", "_registered")

    def __init__(self, sid: str, user_id: Optional[str] = None):
        self.sid = sid
        self.user_id = user_id or None
        self.state = SessionState.CONNECTING
        self._registered = False

    @property
    def registered(self) -> bool:
        return self._registered

    def open(self, registry: PresenceRegistry) -> None:
        """Register the claimed user id (if any) and become active.

        Sessions without a user id stay usable for sending but are never
        reachable for live delivery.
        """
        if self.state != SessionState.CONNECTING:
            return
        if self.user_id:
            replaced = registry.register(self.user_id, self.sid)
            self._registered = True
            if replaced:
                logger.info("User %s moved from socket %s to %s", self.user_id, replaced, self.sid)
            logger.info("User %s connected with socket %s", self.user_id, self.sid)
        else:
            logger.debug("Anonymous socket %s connected", self.sid)
        self.state = SessionState.ACTIVE

    def close(self, registry: PresenceRegistry) -> None:
        """Tear down; removes the presence entry only if this session still owns it."""
        if self.state == SessionState.CLOSED:
            return
        self.state = SessionState.CLOSED
        if not self._registered:
            return
        self._registered = False
        if registry.unregister(self.user_id, self.sid):  # type: ignore[arg-type]
            logger.info("User %s disconnected.", self.user_id)
        else:
            logger.info("Stale socket %s for user %s closed; newer connection kept", self.sid, self.user_id)

    def __repr__(self) -> str:
        return f"ConnectionSession(sid={self.sid!r}, user_id={self.user_id!r}, state={self.state!r})"

"""
Presence registry — which user is reachable through which Socket.IO session.

One entry per user id; the most recent connection wins. Removal is
compare-and-remove on the session id so a late disconnect of a superseded
connection cannot erase the entry of the newer one.
"""

import threading
from typing import Optional


class PresenceRegistry:
    def __init__(self) -> None:
        self._entries: dict[str, str] = {}
        self._lock = threading.Lock()

    def register(self, user_id: str, sid: str) -> Optional[str]:
        """Map `user_id` to `sid`. Returns the handle it replaced, if any."""
        with self._lock:
            previous = self._entries.get(user_id)
            self._entries[user_id] = sid
        return previous if previous != sid else None

    def lookup(self, user_id: str) -> Optional[str]:
        with self._lock:
            return self._entries.get(user_id)

    def unregister(self, user_id: str, sid: str) -> bool:
        """Remove the entry only if it still points at `sid`."""
        with self._lock:
            if self._entries.get(user_id) != sid:
                return False
            del self._entries[user_id]
            return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, user_id: object) -> bool:
        with self._lock:
            return user_id in self._entries

"""Shared fixtures: an in-memory store, a fresh registry and a recording emitter."""

from typing import Any

import pytest

from ayinet_relay.presence import PresenceRegistry
from ayinet_relay.store import InMemoryMessageStore


class RecordingEmitter:
    """Stands in for socketio.AsyncServer.emit; records (event, data, to)."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any, str]] = []
        self.fail_for: set[str] = set()

    async def __call__(self, event: str, data: Any, to: str) -> None:
        if to in self.fail_for:
            raise RuntimeError(f"socket {to} is gone")
        self.calls.append((event, data, to))

    def to(self, sid: str) -> list[tuple[str, Any]]:
        return [(event, data) for event, data, target in self.calls if target == sid]


@pytest.fixture
def store() -> InMemoryMessageStore:
    return InMemoryMessageStore()


@pytest.fixture
def registry() -> PresenceRegistry:
    return PresenceRegistry()


@pytest.fixture
def emitter() -> RecordingEmitter:
    return RecordingEmitter()

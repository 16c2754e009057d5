"""
Live tests — a real uvicorn server with real Socket.IO clients, and the
PostgreSQL store against a real database.

Requires environment variables:
  AYINET_INTEGRATION    — enable this module
  AYINET_DATABASE_URL   — (optional) PostgreSQL DSN for the store tests; the
                          messages table must be the one created by
                          PostgresMessageStore (no foreign keys to users)

Run: AYINET_INTEGRATION=1 pytest tests/integration/ -v
"""

import asyncio
import os
import uuid

import pytest
import pytest_asyncio
import uvicorn

from ayinet_relay import AsyncChatClient, InMemoryMessageStore, PostgresMessageStore, Settings
from ayinet_relay.errors import PersistenceError
from ayinet_relay.server import RelayServer

SKIP = not os.environ.get("AYINET_INTEGRATION")
DATABASE_URL = os.environ.get("AYINET_DATABASE_URL", "")
PORT = int(os.environ.get("AYINET_TEST_PORT", "5055"))
BASE_URL = f"http://127.0.0.1:{PORT}"

pytestmark = pytest.mark.skipif(SKIP, reason="AYINET_INTEGRATION not set")


@pytest_asyncio.fixture
async def live_server():
    store = InMemoryMessageStore()
    relay = RelayServer(Settings(in_memory=True), store=store)
    server = uvicorn.Server(uvicorn.Config(relay.asgi_app(), host="127.0.0.1", port=PORT, log_level="warning"))
    task = asyncio.create_task(server.serve())
    while not server.started:
        await asyncio.sleep(0.05)
    yield relay, store
    server.should_exit = True
    await task


class TestLiveRelay:
    @pytest.mark.asyncio
    async def test_online_delivery_and_echo(self, live_server):
        relay, store = live_server
        alice = AsyncChatClient(user_id="alice", base_url=BASE_URL)
        bob = AsyncChatClient(user_id="bob", base_url=BASE_URL)
        await alice.connect()
        await bob.connect()

        inbox: list = []

        async def collect():
            async for msg in bob.messages():
                inbox.append(msg)
                return

        listener = asyncio.create_task(collect())
        await asyncio.sleep(0.1)

        echoed = await alice.send_and_wait("bob", "hi")
        await asyncio.wait_for(listener, timeout=5.0)

        assert echoed.id == store.records[0].id
        assert inbox[0].id == echoed.id
        assert inbox[0].text == "hi"
        assert (await alice.health())["online"] == 2

        await alice.close()
        await bob.close()

    @pytest.mark.asyncio
    async def test_offline_receiver_still_confirms(self, live_server):
        relay, store = live_server
        alice = AsyncChatClient(user_id="alice", base_url=BASE_URL)
        await alice.connect()

        echoed = await alice.send_and_wait("carol", "are you there?")

        assert echoed.receiver_id == "carol"
        assert len(store.records) == 1
        assert relay.registry.lookup("carol") is None
        await alice.close()


@pytest.mark.skipif(not DATABASE_URL, reason="AYINET_DATABASE_URL not set")
class TestPostgresStore:
    @pytest.mark.asyncio
    async def test_insert_returns_stored_row(self):
        store = PostgresMessageStore(DATABASE_URL, ssl=os.environ.get("AYINET_DATABASE_SSL", "disable"))
        await store.open()
        try:
            sender, receiver = str(uuid.uuid4()), str(uuid.uuid4())
            record = await store.insert_message(sender, receiver, "hello")
            assert record.id
            assert record.sender_id == sender
            assert record.status == "sent"
            assert record.is_read is False
            assert record.created_at is not None
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_invalid_identifier_is_persistence_error(self):
        store = PostgresMessageStore(DATABASE_URL, ssl=os.environ.get("AYINET_DATABASE_SSL", "disable"))
        await store.open()
        try:
            with pytest.raises(PersistenceError):
                await store.insert_message("not-a-uuid", str(uuid.uuid4()), "hello")
        finally:
            await store.close()

"""PostgresMessageStore against a stand-in asyncpg pool."""

import uuid
from datetime import datetime, timezone

import asyncpg
import asyncpg.exceptions._base
import pytest

from ayinet_relay.errors import PersistenceError
from ayinet_relay.store import INSERT_MESSAGE, MESSAGES_SCHEMA, PostgresMessageStore

MESSAGE_ID = uuid.UUID("8d6f3c52-0f4e-4a43-9b57-6b1a4cf0a001")
SENDER_ID = uuid.UUID("11111111-1111-4111-8111-111111111111")
RECEIVER_ID = uuid.UUID("22222222-2222-4222-8222-222222222222")
CREATED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def stored_row(**overrides):
    row = {
        "id": MESSAGE_ID,
        "sender_id": SENDER_ID,
        "receiver_id": RECEIVER_ID,
        "content": "bonjou",
        "media_url": None,
        "is_read": False,
        "status": "sent",
        "created_at": CREATED_AT,
    }
    row.update(overrides)
    return row


class FakeConnection:
    def __init__(self, error=None):
        self.error = error
        self.executed: list[str] = []

    async def execute(self, query):
        if self.error is not None:
            raise self.error
        self.executed.append(query)


class FakeAcquire:
    def __init__(self, conn):
        self._conn = conn

    async def __aenter__(self):
        return self._conn

    async def __aexit__(self, *exc):
        return False


class FakePool:
    def __init__(self, row=None, error=None, schema_error=None):
        self.row = row
        self.error = error
        self.conn = FakeConnection(schema_error)
        self.calls: list[tuple] = []
        self.closed = False

    async def fetchrow(self, query, *args):
        self.calls.append((query, args))
        if self.error is not None:
            raise self.error
        return self.row

    def acquire(self):
        return FakeAcquire(self.conn)

    async def close(self):
        self.closed = True


@pytest.fixture
def use_pool(monkeypatch):
    """Make asyncpg.create_pool hand out the given fake pool."""
    created: dict = {}

    def install(pool):
        async def create_pool(**kwargs):
            created.update(kwargs)
            return pool
        monkeypatch.setattr(asyncpg, "create_pool", create_pool)
        return created

    return install


class TestOpenAndClose:
    @pytest.mark.asyncio
    async def test_open_creates_pool_and_schema(self, use_pool):
        pool = FakePool()
        created = use_pool(pool)
        store = PostgresMessageStore("postgres://db/ayinet", ssl="require")

        await store.open()

        assert created["dsn"] == "postgres://db/ayinet"
        assert created["ssl"] == "require"
        assert pool.conn.executed == [MESSAGES_SCHEMA]

        await store.close()
        assert pool.closed

    @pytest.mark.asyncio
    async def test_open_without_schema_bootstrap(self, use_pool):
        pool = FakePool()
        use_pool(pool)
        store = PostgresMessageStore("postgres://db/ayinet", init_schema=False)

        await store.open()

        assert pool.conn.executed == []

    @pytest.mark.asyncio
    async def test_schema_failure_is_logged_not_raised(self, use_pool, caplog):
        pool = FakePool(schema_error=asyncpg.InsufficientPrivilegeError("permission denied for schema public"))
        use_pool(pool)
        store = PostgresMessageStore("postgres://db/ayinet")

        await store.open()

        assert "Database setup error" in caplog.text

    @pytest.mark.asyncio
    async def test_insert_before_open_fails(self):
        store = PostgresMessageStore("postgres://db/ayinet")
        with pytest.raises(PersistenceError):
            await store.insert_message("a", "b", "hi")


class TestInsertMessage:
    @pytest.mark.asyncio
    async def test_returns_record_with_string_ids(self, use_pool):
        pool = FakePool(row=stored_row())
        use_pool(pool)
        store = PostgresMessageStore("postgres://db/ayinet", init_schema=False)
        await store.open()

        record = await store.insert_message(str(SENDER_ID), str(RECEIVER_ID), "bonjou", "https://cdn.example/a.png")

        assert record.id == str(MESSAGE_ID)
        assert record.sender_id == str(SENDER_ID)
        assert record.receiver_id == str(RECEIVER_ID)
        assert record.content == "bonjou"
        assert record.status == "sent"
        assert record.created_at == CREATED_AT

        query, args = pool.calls[0]
        assert query == INSERT_MESSAGE
        assert args == (str(SENDER_ID), str(RECEIVER_ID), "bonjou", "https://cdn.example/a.png", "sent")

    @pytest.mark.parametrize("error", [
        asyncpg.ForeignKeyViolationError("insert or update on table \"messages\" violates foreign key constraint"),
        asyncpg.exceptions._base.DataError("invalid input for query argument $1: 'not-a-uuid'"),
        asyncpg.InterfaceError("pool is closing"),
        OSError("connection refused"),
    ])
    @pytest.mark.asyncio
    async def test_store_errors_become_persistence_errors(self, use_pool, error):
        use_pool(FakePool(error=error))
        store = PostgresMessageStore("postgres://db/ayinet", init_schema=False)
        await store.open()

        with pytest.raises(PersistenceError) as exc:
            await store.insert_message(str(SENDER_ID), str(RECEIVER_ID), "bonjou")

        assert exc.value.code == "persistence_error"
        assert exc.value.__cause__ is error

    @pytest.mark.asyncio
    async def test_missing_row_is_persistence_error(self, use_pool):
        use_pool(FakePool(row=None))
        store = PostgresMessageStore("postgres://db/ayinet", init_schema=False)
        await store.open()

        with pytest.raises(PersistenceError):
            await store.insert_message(str(SENDER_ID), str(RECEIVER_ID), "bonjou")

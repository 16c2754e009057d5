"""
Message persistence — the only state that outlives a connection.

`PostgresMessageStore` runs a single INSERT ... RETURNING per message with no
surrounding transaction. `InMemoryMessageStore` backs `ayinet serve --in-memory`
and the test suite.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

import asyncpg

from ayinet_relay.errors import PersistenceError
from ayinet_relay.models.message import STATUS_SENT, MessageRecord

logger = logging.getLogger(__name__)

MESSAGES_SCHEMA = """
CREATE EXTENSION IF NOT EXISTS "pgcrypto";

CREATE TABLE IF NOT EXISTS messages (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    sender_id UUID,
    receiver_id UUID,
    content TEXT,
    media_url TEXT,
    is_read BOOLEAN DEFAULT FALSE,
    status VARCHAR(20) DEFAULT 'sent',
    created_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP
);
"""

INSERT_MESSAGE = (
    "INSERT INTO messages (sender_id, receiver_id, content, media_url, status) "
    "VALUES ($1, $2, $3, $4, $5) RETURNING *"
)

STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


class MessageStore(Protocol):
    async def insert_message(
        self,
        sender_id: str,
        receiver_id: str,
        text: str,
        media_url: Optional[str] = None,
        status: str = STATUS_SENT,
    ) -> MessageRecord:
        ...

    async def open(self) -> None:
        ...

    async def close(self) -> None:
        ...


def _row_to_record(row: Any) -> MessageRecord:
    data = {k: str(v) if isinstance(v, uuid.UUID) else v for k, v in dict(row).items()}
    return MessageRecord.model_validate(data)


class PostgresMessageStore:
    def __init__(
        self,
        dsn: str,
        ssl: Optional[str] = "require",
        init_schema: bool = True,
        min_size: int = 1,
        max_size: int = 10,
        command_timeout: Optional[float] = None,
    ):
        self._dsn = dsn
        self._ssl = ssl
        self._init_schema = init_schema
        self._min_size = min_size
        self._max_size = max_size
        self._command_timeout = command_timeout
        self._pool: Optional[asyncpg.Pool] = None

    async def open(self) -> None:
        if self._pool is None:
            self._pool = await asyncpg.create_pool(
                dsn=self._dsn,
                ssl=self._ssl,
                min_size=self._min_size,
                max_size=self._max_size,
                command_timeout=self._command_timeout,
            )
        if self._init_schema:
            await self.ensure_schema()

    async def ensure_schema(self) -> None:
        """Create the messages table if missing. Failures are logged, not raised."""
        pool = self._require_pool()
        try:
            async with pool.acquire() as conn:
                await conn.execute(MESSAGES_SCHEMA)
            logger.info("Messages table checked/created")
        except STORE_ERRORS:
            logger.exception("Database setup error")

    async def insert_message(
        self,
        sender_id: str,
        receiver_id: str,
        text: str,
        media_url: Optional[str] = None,
        status: str = STATUS_SENT,
    ) -> MessageRecord:
        pool = self._require_pool()
        try:
            row = await pool.fetchrow(INSERT_MESSAGE, sender_id, receiver_id, text, media_url, status)
        except STORE_ERRORS as e:
            raise PersistenceError(f"Message insert failed: {e}") from e
        if row is None:
            raise PersistenceError("Message insert returned no row")
        return _row_to_record(row)

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    def _require_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise PersistenceError("Message store is not open")
        return self._pool


class InMemoryMessageStore:
    """Process-local store with the same contract as the Postgres one."""

    def __init__(self) -> None:
        self.records: list[MessageRecord] = []
        self.fail_with: Optional[Exception] = None

    async def open(self) -> None:
        pass

    async def insert_message(
        self,
        sender_id: str,
        receiver_id: str,
        text: str,
        media_url: Optional[str] = None,
        status: str = STATUS_SENT,
    ) -> MessageRecord:
        if self.fail_with is not None:
            raise PersistenceError(f"Message insert failed: {self.fail_with}") from self.fail_with
        record = MessageRecord(
            id=str(uuid.uuid4()),
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=text,
            media_url=media_url,
            status=status,
            created_at=datetime.now(timezone.utc),
        )
        self.records.append(record)
        return record

    async def close(self) -> None:
        pass

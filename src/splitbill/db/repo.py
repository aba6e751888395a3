from __future__ import annotations

import json
from typing import Any

import asyncpg

from splitbill.db.models import BillCollection
from splitbill.logging import get_logger, sql_logger


class Database:
    def __init__(self, dsn: str) -> None:
        self._dsn = dsn
        self._pool: asyncpg.Pool | None = None
        self._log = get_logger(__name__)

    async def connect(self) -> None:
        if self._pool is None:
            # asyncpg wants a plain postgresql:// scheme, without "+asyncpg"
            dsn = self._dsn.replace("+asyncpg", "")
            self._pool = await asyncpg.create_pool(dsn)
            self._log.info("db.pool.created")

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            self._log.info("db.pool.closed")

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.fetchrow", query=query, args=args)
        return await self._pool.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.fetchval", query=query, args=args)
        return await self._pool.fetchval(query, *args)

    async def execute(self, query: str, *args: Any) -> str:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.execute", query=query)
        return await self._pool.execute(query, *args)

    async def _ensure_pool(self) -> None:
        if self._pool is None:
            await self.connect()


class SnapshotRepository:
    """Loads and saves the whole bill collection as one JSON document."""

    def __init__(self, db: Database, storage_key: str) -> None:
        self.db = db
        self.storage_key = storage_key
        self._log = get_logger(__name__)

    async def load_snapshot(self) -> BillCollection:
        row = await self.db.fetchrow(
            "SELECT payload FROM bill_snapshots WHERE storage_key = $1",
            self.storage_key,
        )
        if row is None:
            return BillCollection()
        payload = row["payload"]
        if isinstance(payload, (str, bytes)):
            payload = json.loads(payload)
        collection = BillCollection.from_record(payload)
        self._log.info("snapshot.loaded", storage_key=self.storage_key, bills=len(collection.bills))
        return collection

    async def save_snapshot(self, collection: BillCollection) -> None:
        await self.db.execute(
            """
            INSERT INTO bill_snapshots (storage_key, payload, updated_at)
            VALUES ($1, $2::jsonb, now())
            ON CONFLICT (storage_key) DO UPDATE
                SET payload = EXCLUDED.payload,
                    updated_at = EXCLUDED.updated_at
            """,
            self.storage_key,
            json.dumps(collection.to_record()),
        )
        self._log.info("snapshot.saved", storage_key=self.storage_key, bills=len(collection.bills))

    async def delete_snapshot(self) -> None:
        await self.db.execute("DELETE FROM bill_snapshots WHERE storage_key = $1", self.storage_key)

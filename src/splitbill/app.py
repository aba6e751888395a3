from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from splitbill.config import Settings, get_settings
from splitbill.db.repo import Database, SnapshotRepository
from splitbill.logging import configure_logging, get_logger
from splitbill.state import BillStore


async def open_store(repo: SnapshotRepository, settings: Optional[Settings] = None) -> BillStore:
    collection = await repo.load_snapshot()
    store = BillStore(settings=settings or get_settings())
    store.load(collection)
    get_logger(__name__).info("store.open", bills=len(store.bills), active_bill_id=store.active_bill_id)
    return store


async def save_store(store: BillStore, repo: SnapshotRepository) -> None:
    await repo.save_snapshot(store.snapshot())


@asynccontextmanager
async def session(settings: Optional[Settings] = None) -> AsyncIterator[BillStore]:
    """Configure logging, load the stored bills and save them back on a clean exit."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    if not settings.database_url:
        raise RuntimeError("DATABASE_URL is not set")

    db = Database(settings.database_url)
    await db.connect()
    repo = SnapshotRepository(db, settings.storage_key)
    log = get_logger(__name__)
    log.info("session.start", storage_key=settings.storage_key)
    try:
        store = await open_store(repo, settings)
        yield store
        await save_store(store, repo)
    finally:
        await db.close()
        log.info("session.stop")


async def main() -> None:
    async with session() as store:
        removed = store.cleanup_empty_bills()
        stats = store.stats()
        get_logger(__name__).info("bills.cleanup", removed=removed, count=stats.count, total=stats.total)


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()

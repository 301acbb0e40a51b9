import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from app.analytics.db import init_db, purge_old_records
from app.core.db import close_connection, get_connection

logger = logging.getLogger(__name__)

PURGE_INTERVAL_S = 3600


def _purge_once() -> None:
    try:
        deleted = purge_old_records()
    except Exception as exc:  # pragma: no cover - retried on the next tick
        logger.warning("analytics_retention_purge_failed: %s", exc)
        return
    if any(deleted.values()):
        logger.info("analytics_retention_purge deleted=%s", deleted)


async def _purge_until(stop_event: asyncio.Event) -> None:
    while True:
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=PURGE_INTERVAL_S)
            return
        except asyncio.TimeoutError:
            await asyncio.to_thread(_purge_once)


@asynccontextmanager
async def lifespan(app):
    get_connection()
    init_db()
    _purge_once()
    logger.info("startup_complete app=%s", app.title)

    stop_event = asyncio.Event()
    purge_task = asyncio.create_task(_purge_until(stop_event))
    try:
        yield
    finally:
        stop_event.set()
        with contextlib.suppress(asyncio.CancelledError):
            await purge_task
        close_connection()

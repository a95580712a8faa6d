"""Background job tasks"""

import asyncio
import structlog

from app.jobs.celery_app import celery_app

logger = structlog.get_logger()


def run_async(coro):
    """Helper to run async functions in sync context"""
    return asyncio.run(coro)


async def _reconcile(session_factory=None):
    from app.services.table_availability import reconcile_table_availability

    if session_factory is not None:
        async with session_factory() as db:
            corrections = await reconcile_table_availability(db)
    else:
        from app.database import SessionLocal, engine

        try:
            async with SessionLocal() as db:
                corrections = await reconcile_table_availability(db)
        finally:
            # Pooled connections are bound to this task's event loop
            await engine.dispose()

    return [
        {"table_id": str(table_id), "is_available": is_available}
        for table_id, is_available in corrections
    ]


@celery_app.task(name="reconcile_table_availability")
def reconcile_table_availability():
    """Rebuild restaurant table availability flags from reservations"""
    logger.info("Reconciling table availability")
    corrections = run_async(_reconcile())
    logger.info("Table availability reconciliation finished", corrections=len(corrections))
    return corrections

"""Monthly purchase compliance tasks"""

from celery.utils.log import get_task_logger
from datetime import date
from typing import List, Optional
import asyncio

from ecommerce_api.core.celery_app import celery_app
from ecommerce_api.core.database import engine, get_db_context
from ecommerce_api.services.monthly_tracking import MonthlyTrackingService

logger = get_task_logger(__name__)

async def _deactivate(today: Optional[date] = None) -> List[int]:
    try:
        async with get_db_context() as db:
            return await MonthlyTrackingService(db).deactivate_inactive_affiliates(today)
    finally:
        # Pooled connections are bound to this task's event loop
        await engine.dispose()

@celery_app.task(name="monthly_tracking.deactivate_inactive_affiliates")
def deactivate_inactive_affiliates(today: Optional[str] = None):
    """Deactivate affiliates that missed the previous month's minimum purchase"""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        run_date = date.fromisoformat(today) if today else None
        deactivated = loop.run_until_complete(_deactivate(run_date))

        logger.info(f"Monthly sweep deactivated {len(deactivated)} affiliates")
        return {"deactivated": deactivated, "count": len(deactivated)}

    except Exception as e:
        logger.error(f"Error running monthly deactivation: {str(e)}")
        raise
    finally:
        loop.close()

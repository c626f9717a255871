from datetime import timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from fabquote.core.config import ORPHAN_SWEEP_MIN_AGE_MINUTES
from fabquote.core.db import AsyncSessionLocal
from fabquote.services.storage.object_store import get_object_store
from fabquote.services.storage.orphan_sweep_service import sweep_orphaned_objects

scheduler = AsyncIOScheduler()


@scheduler.scheduled_job("cron", hour=0, minute=15)  # daily at 00:15
async def orphan_sweep_job():
    async with AsyncSessionLocal() as db:
        await sweep_orphaned_objects(
            db,
            get_object_store(),
            min_age=timedelta(minutes=ORPHAN_SWEEP_MIN_AGE_MINUTES),
        )

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fabquote.models.quotes.quotation_models import Quotation
from fabquote.models.support.contact_models import ContactSubmission
from fabquote.services.storage.object_store import ObjectStore, ObjectStoreError

logger = logging.getLogger(__name__)


async def _referenced_paths(db: AsyncSession) -> set[str]:
    quotation_paths = await db.scalars(
        select(Quotation.file_path).where(Quotation.file_path.isnot(None))
    )
    contact_paths = await db.scalars(
        select(ContactSubmission.file_path).where(ContactSubmission.file_path.isnot(None))
    )
    return set(quotation_paths) | set(contact_paths)


async def sweep_orphaned_objects(
    db: AsyncSession,
    store: ObjectStore,
    *,
    min_age: timedelta,
    now: datetime | None = None,
) -> int:
    """
    Delete stored files no quotation or contact submission points at.

    Objects younger than `min_age` are left alone: a customer may have
    uploaded a file and not yet submitted the quotation that references it.
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - min_age

    try:
        objects = await store.list()
    except ObjectStoreError as e:
        logger.error("Orphan sweep could not list objects", extra={"error": str(e)})
        return 0

    referenced = await _referenced_paths(db)

    removed = 0
    for obj in objects:
        if obj.path in referenced:
            continue
        if obj.updated_at is None or obj.updated_at > cutoff:
            continue
        try:
            await store.delete(obj.path)
        except ObjectStoreError as e:
            logger.warning("Orphan delete failed", extra={"file_path": obj.path, "error": str(e)})
            continue
        removed += 1

    logger.info("Orphan sweep finished", extra={"removed": removed, "scanned": len(objects)})
    return removed

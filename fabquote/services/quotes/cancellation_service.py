"""
Customer cancellation of an unpaid quotation.

The uploaded file goes first, then the row. A failed file deletion leaves an
orphaned object (picked up by the orphan sweep) and never blocks removal of
the row, so no quotation survives pointing at a missing file.
"""
import logging

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fabquote.core.exceptions import DependencyError, InvalidStateError, NotFoundError
from fabquote.core.identity import Principal
from fabquote.constants.error_codes import ErrorCode
from fabquote.constants.activity_codes import ActivityCode
from fabquote.models.quotes.quotation_models import Quotation
from fabquote.services.quotes.quotation_queries import get_quotation_row, get_scoped_quotation
from fabquote.services.quotes.quotation_transitions import CANCELLABLE, is_cancellable
from fabquote.services.storage.object_store import ObjectStore, ObjectStoreError
from fabquote.utils.activity_helpers import emit_activity

logger = logging.getLogger(__name__)


async def cancel_quotation(
    db: AsyncSession,
    store: ObjectStore,
    principal: Principal,
    quotation_id: str,
) -> None:
    # row lock keeps a concurrent update/payment out until the delete commits
    q = await get_scoped_quotation(
        db,
        principal,
        quotation_id,
        for_update=True,
        owner_only=True,
    )

    if not is_cancellable(q.status):
        # rollback expires q, so the message is built first
        error = InvalidStateError(
            f"Quotation is {q.status.value} and can no longer be cancelled",
            ErrorCode.QUOTATION_INVALID_STATE,
        )
        await db.rollback()
        raise error

    # ---- step 1: object ----
    if q.file_path:
        try:
            await store.delete(q.file_path)
        except ObjectStoreError as e:
            logger.warning(
                "Could not delete file from storage, deleting quotation anyway",
                extra={"quotation_id": quotation_id, "file_path": q.file_path, "error": str(e)},
            )

    # ---- step 2: row ----
    try:
        result = await db.execute(
            delete(Quotation)
            .where(
                Quotation.id == quotation_id,
                Quotation.status.in_(sorted(CANCELLABLE)),
            )
            .returning(Quotation.id)
            .execution_options(synchronize_session=False)
        )
        deleted_id = result.scalar_one_or_none()

        if not deleted_id:
            await db.rollback()
            current = await get_quotation_row(db, quotation_id)
            if not current:
                raise NotFoundError("Quotation not found", ErrorCode.QUOTATION_NOT_FOUND)
            raise InvalidStateError(
                f"Quotation is {current.status.value} and can no longer be cancelled",
                ErrorCode.QUOTATION_INVALID_STATE,
            )

        await emit_activity(
            db,
            principal=principal,
            quotation_id=quotation_id,
            code=ActivityCode.CANCEL_QUOTATION,
        )

        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Quotation delete failed", extra={"quotation_id": quotation_id})
        raise DependencyError("Failed to cancel quotation. Please try again.")

    logger.info(
        "Quotation cancelled",
        extra={"quotation_id": quotation_id, "user_id": principal.user_id},
    )

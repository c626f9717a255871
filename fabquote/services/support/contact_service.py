import logging

from sqlalchemy import select, func, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fabquote.core.exceptions import AuthorizationError, DependencyError
from fabquote.core.identity import Principal
from fabquote.models.support.contact_models import ContactSubmission
from fabquote.schemas.support.contact_schemas import ContactCreate, ContactOut, ContactListData

logger = logging.getLogger(__name__)


async def create_contact_submission(
    db: AsyncSession,
    payload: ContactCreate,
) -> ContactOut:
    submission = ContactSubmission(**payload.model_dump())

    try:
        db.add(submission)
        await db.flush()
        result = ContactOut.model_validate(submission)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Contact submission insert failed")
        raise DependencyError("Failed to send message. Please try again.")

    logger.info("Contact submission received", extra={"contact_id": result.id})
    return result


async def list_contact_submissions(
    db: AsyncSession,
    principal: Principal,
    *,
    page: int = 1,
    page_size: int = 20,
) -> ContactListData:
    if not principal.is_staff:
        raise AuthorizationError()

    total = await db.scalar(select(func.count(ContactSubmission.id)))

    result = await db.execute(
        select(ContactSubmission)
        .order_by(desc(ContactSubmission.created_at), desc(ContactSubmission.id))
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    return ContactListData(
        total=total or 0,
        items=[ContactOut.model_validate(c) for c in result.scalars().all()],
    )

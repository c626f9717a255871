# fabquote/services/support/activity_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc, asc

from fabquote.models.support.activity_models import QuotationActivity
from fabquote.schemas.support.activity_schemas import (
    QuotationActivityOut,
    QuotationActivityFilters,
    QuotationActivityListData,
)


async def list_quotation_activities(
    *,
    db: AsyncSession,
    filters: QuotationActivityFilters,
) -> QuotationActivityListData:
    # -------------------------
    # Base queries
    # -------------------------
    query = select(QuotationActivity)
    count_query = select(func.count(QuotationActivity.id))

    # -------------------------
    # Filters
    # -------------------------
    if filters.quotation_id:
        query = query.where(QuotationActivity.quotation_id == filters.quotation_id)
        count_query = count_query.where(QuotationActivity.quotation_id == filters.quotation_id)

    if filters.actor_id:
        query = query.where(QuotationActivity.actor_id == filters.actor_id)
        count_query = count_query.where(QuotationActivity.actor_id == filters.actor_id)

    # -------------------------
    # Sorting + pagination
    # -------------------------
    order_fn = desc if filters.sort_order == "desc" else asc
    query = (
        query.order_by(order_fn(QuotationActivity.created_at), order_fn(QuotationActivity.id))
        .offset((filters.page - 1) * filters.page_size)
        .limit(filters.page_size)
    )

    total = await db.scalar(count_query)
    result = await db.execute(query)

    return QuotationActivityListData(
        total=total or 0,
        items=[QuotationActivityOut.model_validate(a) for a in result.scalars().all()],
    )

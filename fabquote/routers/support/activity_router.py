import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fabquote.core.db import get_db
from fabquote.schemas.support.activity_schemas import (
    QuotationActivityFilters,
    QuotationActivityListData,
)
from fabquote.services.support.activity_service import list_quotation_activities
from fabquote.utils.check_roles import require_staff
from fabquote.utils.response import success_response, APIResponse

router = APIRouter(prefix="/activities", tags=["Quotation Activity"])
logger = logging.getLogger(__name__)


@router.get("", response_model=APIResponse[QuotationActivityListData])
async def list_quotation_activities_api(
    filters: QuotationActivityFilters = Depends(),
    db: AsyncSession = Depends(get_db),
    staff=Depends(require_staff),
):
    logger.info(
        "List quotation activities requested",
        extra=filters.model_dump(exclude_none=True),
    )

    result = await list_quotation_activities(db=db, filters=filters)

    return success_response(
        "Quotation activities fetched successfully",
        result,
    )

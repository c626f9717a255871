from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fabquote.core.db import get_db
from fabquote.core.identity import Principal
from fabquote.utils.check_roles import require_staff
from fabquote.utils.get_user import get_current_principal
from fabquote.utils.response import success_response, APIResponse

from fabquote.schemas.quotes.quotation_schemas import (
    QuotationCreate,
    QuotationUpdate,
    QuotationOut,
    QuotationListData,
    CustomerQuotationsData,
    FileUrlOut,
    StatusMessageOut,
)

from fabquote.services.quotes.quotation_service import (
    submit_quotation,
    get_quotation,
    list_quotations,
    list_customer_quotations,
    update_quote,
)
from fabquote.services.quotes.cancellation_service import cancel_quotation
from fabquote.services.quotes.notification_service import build_status_message
from fabquote.services.storage.file_service import get_download_url
from fabquote.services.storage.object_store import ObjectStore, get_object_store

router = APIRouter(
    prefix="/quotations",
    tags=["Quotations"],
)


@router.post(
    "",
    response_model=APIResponse[QuotationOut],
)
async def submit_quotation_api(
    payload: QuotationCreate,
    db: AsyncSession = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
    principal: Principal = Depends(get_current_principal),
):
    quotation = await submit_quotation(db, store, principal, payload)
    return success_response(
        "Quotation submitted successfully",
        quotation,
    )


@router.get(
    "/mine",
    response_model=APIResponse[CustomerQuotationsData],
)
async def list_my_quotations_api(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    data = await list_customer_quotations(db, principal)
    return success_response(
        "Quotations retrieved successfully",
        data,
    )


@router.get(
    "",
    response_model=APIResponse[QuotationListData],
)
async def list_quotations_api(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    status: str | None = Query(None, description="Filter by status (e.g. Quoted)"),
    type: str | None = Query(None, description="Filter by type (PCB, Assembly)"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    sort_by: str = Query("created_at"),
    order: str = Query("desc"),
):
    data = await list_quotations(
        db,
        principal,
        status=status,
        quotation_type=type,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        order=order,
    )
    return success_response(
        "Quotations retrieved successfully",
        data,
    )


@router.get(
    "/{quotation_id}",
    response_model=APIResponse[QuotationOut],
)
async def get_quotation_api(
    quotation_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    quotation = await get_quotation(db, principal, quotation_id)
    return success_response(
        "Quotation retrieved successfully",
        quotation,
    )


@router.patch(
    "/{quotation_id}",
    response_model=APIResponse[QuotationOut],
)
async def update_quote_api(
    quotation_id: str,
    payload: QuotationUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_staff),
):
    quotation = await update_quote(db, principal, quotation_id, payload)
    return success_response(
        "Quotation updated successfully",
        quotation,
    )


@router.delete(
    "/{quotation_id}",
    response_model=APIResponse[dict],
)
async def cancel_quotation_api(
    quotation_id: str,
    db: AsyncSession = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
    principal: Principal = Depends(get_current_principal),
):
    await cancel_quotation(db, store, principal, quotation_id)
    return success_response("Quotation cancelled successfully")


@router.get(
    "/{quotation_id}/file-url",
    response_model=APIResponse[FileUrlOut],
)
async def quotation_file_url_api(
    quotation_id: str,
    db: AsyncSession = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
    principal: Principal = Depends(get_current_principal),
):
    data = await get_download_url(db, store, principal, quotation_id)
    return success_response("Download link created", data)


@router.get(
    "/{quotation_id}/notify",
    response_model=APIResponse[StatusMessageOut],
)
async def quotation_status_message_api(
    quotation_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_staff),
):
    data = await build_status_message(db, principal, quotation_id)
    return success_response("Status message prepared", data)

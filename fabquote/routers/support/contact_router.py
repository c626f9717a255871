from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fabquote.core.db import get_db
from fabquote.core.identity import Principal
from fabquote.utils.check_roles import require_staff
from fabquote.utils.response import success_response, APIResponse
from fabquote.schemas.support.contact_schemas import ContactCreate, ContactOut, ContactListData
from fabquote.services.support.contact_service import (
    create_contact_submission,
    list_contact_submissions,
)

router = APIRouter(prefix="/contact", tags=["Contact"])


@router.post("", response_model=APIResponse[ContactOut])
async def create_contact_api(
    payload: ContactCreate,
    db: AsyncSession = Depends(get_db),
):
    submission = await create_contact_submission(db, payload)
    return success_response("Message sent successfully", submission)


@router.get("", response_model=APIResponse[ContactListData])
async def list_contact_api(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_staff),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    data = await list_contact_submissions(db, principal, page=page, page_size=page_size)
    return success_response("Contact submissions retrieved successfully", data)

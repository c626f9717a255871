from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fabquote.core.db import get_db
from fabquote.core.identity import Principal
from fabquote.utils.get_user import get_current_principal
from fabquote.utils.response import success_response, APIResponse
from fabquote.schemas.accounts.profile_schemas import ProfileOut, ProfileUpdate
from fabquote.services.accounts.profile_service import get_profile, update_profile

router = APIRouter(prefix="/profiles", tags=["Profiles"])


@router.get("/me", response_model=APIResponse[ProfileOut])
async def get_my_profile_api(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    profile = await get_profile(db, principal)
    return success_response("Profile retrieved successfully", profile)


@router.patch("/me", response_model=APIResponse[ProfileOut])
async def update_my_profile_api(
    payload: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    profile = await update_profile(db, principal, payload)
    return success_response("Profile updated successfully", profile)

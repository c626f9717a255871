import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fabquote.core.exceptions import DependencyError, NotFoundError
from fabquote.core.identity import Principal
from fabquote.constants.error_codes import ErrorCode
from fabquote.models.accounts.profile_models import Profile
from fabquote.models.enums.profile_status import ProfileStatus
from fabquote.schemas.accounts.profile_schemas import ProfileOut, ProfileUpdate

logger = logging.getLogger(__name__)


async def sync_profile(db: AsyncSession, principal: Principal) -> None:
    """
    Runs on every authenticated request.

    Creates the caller's profile on first sight and flips it to verified the
    first time the identity provider reports a confirmed email.
    """
    try:
        profile = await db.get(Profile, principal.user_id)

        if profile is None:
            db.add(
                Profile(
                    id=principal.user_id,
                    email=principal.email,
                    full_name=principal.display_name if principal.display_name != principal.email else None,
                    status=ProfileStatus.verified if principal.email_confirmed else ProfileStatus.unverified,
                )
            )
            try:
                await db.commit()
                logger.info("Profile created", extra={"user_id": principal.user_id})
            except IntegrityError:
                # a parallel request created it first
                await db.rollback()
            return

        if principal.email_confirmed and profile.status == ProfileStatus.unverified:
            await db.execute(
                update(Profile)
                .where(
                    Profile.id == principal.user_id,
                    Profile.status == ProfileStatus.unverified,
                )
                .values(status=ProfileStatus.verified)
                .execution_options(synchronize_session=False)
            )
            await db.commit()
            logger.info("Profile verified", extra={"user_id": principal.user_id})
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Profile sync failed", extra={"user_id": principal.user_id})
        raise DependencyError("Account storage is unavailable. Please try again.")


async def get_profile(db: AsyncSession, principal: Principal) -> ProfileOut:
    profile = await db.get(Profile, principal.user_id, populate_existing=True)
    if not profile:
        raise NotFoundError("Profile not found", ErrorCode.PROFILE_NOT_FOUND)
    return ProfileOut.model_validate(profile)


async def update_profile(
    db: AsyncSession,
    principal: Principal,
    payload: ProfileUpdate,
) -> ProfileOut:
    profile = await db.get(Profile, principal.user_id)
    if not profile:
        raise NotFoundError("Profile not found", ErrorCode.PROFILE_NOT_FOUND)

    updates = payload.model_dump(exclude_unset=True)
    if not updates:
        return ProfileOut.model_validate(profile)

    for field, value in updates.items():
        setattr(profile, field, value)

    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Profile update failed", extra={"user_id": principal.user_id})
        raise DependencyError("Failed to update profile. Please try again.")

    await db.refresh(profile)
    return ProfileOut.model_validate(profile)

import logging

from fastapi import Depends, HTTPException, Header, status, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fabquote.core.config import STAFF_EMAIL
from fabquote.core.db import get_db
from fabquote.core.identity import Principal, Role
from fabquote.core.security import decode_access_token
from fabquote.services.accounts.profile_service import sync_profile

logger = logging.getLogger("auth.guard")


def principal_from_claims(payload: dict) -> Principal:
    """
    Map identity-provider token claims to a Principal.

    The staff role is granted here and only here: the configured operator
    email, and only once the provider has confirmed it.
    """
    metadata = payload.get("user_metadata") or {}
    email = (payload.get("email") or "").strip().lower() or None

    email_confirmed = bool(
        payload.get("email_confirmed_at")
        or payload.get("email_verified")
        or metadata.get("email_verified")
    )

    role = Role.customer
    if email and email_confirmed and email == STAFF_EMAIL:
        role = Role.staff

    return Principal(
        user_id=payload["sub"],
        role=role,
        email=email,
        display_name=metadata.get("full_name") or email,
        email_confirmed=email_confirmed,
    )


async def get_current_principal(
    request: Request,
    authorization: str = Header(...),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    if not authorization.startswith("Bearer "):
        logger.warning("Missing bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header",
        )

    token = authorization.split("Bearer ")[1].strip()
    payload = decode_access_token(token)

    principal = principal_from_claims(payload)

    await sync_profile(db, principal)

    request.state.principal = principal
    return principal

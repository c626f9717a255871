# fabquote/core/security.py

from datetime import datetime, timedelta, timezone

from jose import jwt, JWTError, ExpiredSignatureError
from fastapi import HTTPException, status

from fabquote.core.config import (
    IDP_JWT_SECRET,
    IDP_JWT_ALGORITHM,
    IDP_JWT_AUDIENCE,
    SIGNED_URL_SECRET,
)

DOWNLOAD_TOKEN_ALGORITHM = "HS256"

# =====================================================
# IDENTITY PROVIDER ACCESS TOKEN
# =====================================================
def decode_access_token(token: str) -> dict:
    try:
        payload = jwt.decode(
            token,
            IDP_JWT_SECRET,
            algorithms=[IDP_JWT_ALGORITHM],
            audience=IDP_JWT_AUDIENCE,
        )
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired",
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has no subject",
        )

    return payload

# =====================================================
# SIGNED DOWNLOAD LINKS (local object store)
# =====================================================
def create_download_token(path: str, ttl_seconds: int) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "path": path,
        "type": "download",
        "iat": now,
        "exp": now + timedelta(seconds=ttl_seconds),
    }
    return jwt.encode(payload, SIGNED_URL_SECRET, algorithm=DOWNLOAD_TOKEN_ALGORITHM)


def decode_download_token(token: str) -> str | None:
    """Return the object path a download token grants, or None if it is invalid or expired."""
    try:
        payload = jwt.decode(
            token,
            SIGNED_URL_SECRET,
            algorithms=[DOWNLOAD_TOKEN_ALGORITHM],
        )
    except JWTError:
        return None

    if payload.get("type") != "download":
        return None

    return payload.get("path")

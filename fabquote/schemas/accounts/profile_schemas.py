import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from fabquote.models.enums.profile_status import ProfileStatus

_PHONE_STRIP = re.compile(r"[\s\-()]")
_PHONE_RE = re.compile(r"^\+?\d{8,15}$")


def normalize_phone(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = _PHONE_STRIP.sub("", value)
    if not cleaned:
        return None
    if not _PHONE_RE.match(cleaned):
        raise ValueError("Please enter a valid phone number")
    return cleaned


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("full_name")
    @classmethod
    def _strip_name(cls, v):
        return v.strip() if v is not None else v

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, v):
        return normalize_phone(v)


class ProfileOut(BaseModel):
    id: str
    email: Optional[str]
    full_name: Optional[str]
    phone: Optional[str]
    status: ProfileStatus
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}

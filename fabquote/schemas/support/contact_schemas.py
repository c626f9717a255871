from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from fabquote.schemas.accounts.profile_schemas import normalize_phone


class ContactCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = None
    service_type: Optional[str] = Field(None, max_length=100)
    message: Optional[str] = Field(None, max_length=5000)
    file_path: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, v):
        return normalize_phone(v)


class ContactOut(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str]
    service_type: Optional[str]
    message: Optional[str]
    file_path: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class ContactListData(BaseModel):
    total: int
    items: List[ContactOut]

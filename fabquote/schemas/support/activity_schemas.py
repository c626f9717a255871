from datetime import datetime
from typing import List, Optional, Literal

from pydantic import BaseModel, Field


class QuotationActivityFilters(BaseModel):
    quotation_id: Optional[str] = None
    actor_id: Optional[str] = None
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1, le=100)
    sort_order: Literal["asc", "desc"] = "desc"


class QuotationActivityOut(BaseModel):
    id: int
    quotation_id: Optional[str]
    actor_id: Optional[str]
    actor_role: str
    message: str
    created_at: datetime

    model_config = {"from_attributes": True}


class QuotationActivityListData(BaseModel):
    total: int
    items: List[QuotationActivityOut]

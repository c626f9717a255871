from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Optional
from decimal import Decimal
from datetime import datetime

from fabquote.models.enums.currency import Currency
from fabquote.models.enums.quotation_status import QuotationStatus
from fabquote.models.enums.quotation_type import QuotationType

# Config keys only staff may write
STAFF_ONLY_CONFIG_KEYS = frozenset({"total", "currency"})

# =====================================================
# PER-TYPE CUSTOMER CONFIG
# =====================================================

class PcbConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    layers: int = Field(2, ge=1, le=64)
    width: str
    height: str
    quantity: int = Field(5, ge=1)

    @field_validator("width", "height", mode="before")
    @classmethod
    def _dimension(cls, v):
        if isinstance(v, (int, float, Decimal)) and not isinstance(v, bool):
            v = str(v)
        if not isinstance(v, str) or not v.strip():
            raise ValueError("dimension is required")
        return v.strip()


class AssemblyConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    quantity: int = Field(5, ge=1)


CONFIG_SCHEMAS = {
    QuotationType.pcb: PcbConfig,
    QuotationType.assembly: AssemblyConfig,
}


# =====================================================
# QUOTATION CREATE / UPDATE
# =====================================================

class QuotationCreate(BaseModel):
    # validated by the service so unknown types surface as engine errors
    type: str
    config: Dict[str, Any]
    file_path: Optional[str] = None
    additional_message: Optional[str] = Field(None, max_length=5000)


class QuotationUpdate(BaseModel):
    status: Optional[str] = None
    total: Optional[Decimal] = Field(None, gt=0, max_digits=14, decimal_places=2)
    currency: Optional[str] = None


# =====================================================
# QUOTATION RESPONSES
# =====================================================

class QuotationOut(BaseModel):
    id: str
    user_id: str
    user_name: Optional[str]
    type: QuotationType
    status: QuotationStatus

    config: Dict[str, Any]
    total: Optional[Decimal]
    currency: Optional[Currency]

    additional_message: Optional[str]
    file_path: Optional[str]
    payment_reference: Optional[str]

    version: int

    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class QuotationListData(BaseModel):
    total: int
    items: List[QuotationOut]


class CustomerQuotationsData(BaseModel):
    """A customer's quotations split the way the profile page shows them."""

    active: List[QuotationOut]
    past_orders: List[QuotationOut]


class FileUrlOut(BaseModel):
    url: str
    expires_in: int


class StatusMessageOut(BaseModel):
    message: str
    whatsapp_url: str

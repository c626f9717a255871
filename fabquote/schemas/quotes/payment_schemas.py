from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Dict, Optional


class PaymentConfirm(BaseModel):
    payment_reference: str = Field(..., min_length=1, max_length=255)


class CheckoutPrefill(BaseModel):
    name: str = ""
    email: str = ""
    contact: str = ""


class CheckoutOut(BaseModel):
    key: Optional[str]
    amount: int  # minor units (paise / cents)
    display_amount: Decimal
    currency: str
    name: str
    description: str
    order_reference: str
    prefill: CheckoutPrefill
    notes: Dict[str, str]

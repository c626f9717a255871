from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fabquote.core.db import get_db
from fabquote.core.identity import Principal
from fabquote.utils.get_user import get_current_principal
from fabquote.utils.response import success_response, APIResponse

from fabquote.schemas.quotes.payment_schemas import CheckoutOut, PaymentConfirm
from fabquote.schemas.quotes.quotation_schemas import QuotationOut
from fabquote.services.payments.payment_gateway import PaymentVerifier, get_payment_verifier
from fabquote.services.quotes.settlement_service import build_checkout, confirm_payment

router = APIRouter(
    prefix="/payments",
    tags=["Payments"],
)


# =====================================================
# CHECKOUT OPTIONS
# =====================================================
@router.post(
    "/{quotation_id}/checkout",
    response_model=APIResponse[CheckoutOut],
)
async def checkout_api(
    quotation_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    data = await build_checkout(db, principal, quotation_id)
    return success_response("Checkout prepared", data)


# =====================================================
# CONFIRM PAYMENT
# =====================================================
@router.post(
    "/{quotation_id}/confirm",
    response_model=APIResponse[QuotationOut],
)
async def confirm_payment_api(
    quotation_id: str,
    payload: PaymentConfirm,
    db: AsyncSession = Depends(get_db),
    verifier: PaymentVerifier = Depends(get_payment_verifier),
    principal: Principal = Depends(get_current_principal),
):
    quotation = await confirm_payment(
        db,
        verifier,
        principal,
        quotation_id,
        payload.payment_reference,
    )
    return success_response(
        f"Payment successful! Payment ID: {quotation.payment_reference}",
        quotation,
    )

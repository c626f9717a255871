"""
Settlement: recording a gateway payment against a Quoted quotation.

A payment reference reaching this module belongs to money the customer has
already paid. Every failure after that point carries the reference in the
error details so the order can be reconciled by hand.
"""
import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fabquote.core import config
from fabquote.core.exceptions import (
    ConflictError,
    DependencyError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from fabquote.core.identity import Principal
from fabquote.constants.error_codes import ErrorCode
from fabquote.constants.activity_codes import ActivityCode
from fabquote.models.accounts.profile_models import Profile
from fabquote.models.enums.quotation_status import QuotationStatus
from fabquote.models.quotes.quotation_models import Quotation
from fabquote.schemas.quotes.payment_schemas import CheckoutOut, CheckoutPrefill
from fabquote.schemas.quotes.quotation_schemas import QuotationOut
from fabquote.services.payments.payment_gateway import (
    PaymentGatewayError,
    PaymentVerificationError,
    PaymentVerifier,
    to_minor_units,
)
from fabquote.services.quotes.quotation_queries import (
    get_quotation_row,
    get_scoped_quotation,
    map_quotation,
    price_of,
)
from fabquote.services.quotes.quotation_transitions import is_settleable, is_settled
from fabquote.utils.activity_helpers import emit_activity, short_id

logger = logging.getLogger(__name__)


# =====================================================
# CHECKOUT OPTIONS
# =====================================================
async def build_checkout(
    db: AsyncSession,
    principal: Principal,
    quotation_id: str,
) -> CheckoutOut:
    q = await get_scoped_quotation(db, principal, quotation_id, owner_only=True)

    if not is_settleable(q.status):
        raise InvalidStateError(f"Quotation is {q.status.value} and cannot be paid")

    total, currency = price_of(q.config)
    if total is None or currency is None:
        raise InvalidStateError(
            "Quotation has no price yet",
            ErrorCode.QUOTATION_PRICE_MISSING,
        )

    profile = await db.get(Profile, principal.user_id)

    return CheckoutOut(
        key=config.RAZORPAY_KEY_ID or None,
        amount=to_minor_units(total),
        display_amount=total,
        currency=currency.value,
        name=config.MERCHANT_NAME,
        description=f"Payment for Quote {short_id(q.id)}",
        order_reference=q.id,
        prefill=CheckoutPrefill(
            name=(profile.full_name if profile else None) or "",
            email=principal.email or "",
            contact=(profile.phone if profile else None) or "",
        ),
        notes={"quotation_id": q.id, "user_id": principal.user_id},
    )


# =====================================================
# CONFIRM PAYMENT
# =====================================================
async def confirm_payment(
    db: AsyncSession,
    verifier: PaymentVerifier,
    principal: Principal,
    quotation_id: str,
    payment_reference: str,
) -> QuotationOut:
    payment_reference = (payment_reference or "").strip()
    if not payment_reference:
        raise ValidationError("payment_reference is required")

    details = {"payment_reference": payment_reference, "quotation_id": quotation_id}

    try:
        q = await get_scoped_quotation(db, principal, quotation_id, owner_only=True)
    except NotFoundError:
        raise NotFoundError("Quotation not found", ErrorCode.QUOTATION_NOT_FOUND, details)
    except SQLAlchemyError:
        logger.exception("Quotation lookup failed during settlement", extra=details)
        raise DependencyError(
            _support_message(payment_reference),
            ErrorCode.PAYMENT_RECORD_FAILED,
            details,
        )

    if is_settled(q.status):
        if q.payment_reference == payment_reference:
            # retry of a confirmation that already landed
            return map_quotation(q)
        raise ConflictError(
            "Quotation is already settled with a different payment",
            ErrorCode.PAYMENT_CONFLICT,
            details,
        )

    if not is_settleable(q.status):
        raise InvalidStateError(
            f"Quotation is {q.status.value} and cannot be paid",
            ErrorCode.QUOTATION_INVALID_STATE,
            details,
        )

    total, currency = price_of(q.config)
    if total is None or currency is None:
        raise InvalidStateError("Quotation has no price", ErrorCode.QUOTATION_PRICE_MISSING, details)

    try:
        await verifier.verify(payment_reference, to_minor_units(total), currency.value)
    except PaymentVerificationError as e:
        logger.warning("Payment verification rejected", extra={**details, "reason": str(e)})
        raise ValidationError(
            f"Payment could not be verified: {e}",
            ErrorCode.PAYMENT_NOT_VERIFIED,
            details,
        )
    except PaymentGatewayError as e:
        logger.error("Payment gateway unavailable", extra={**details, "error": str(e)})
        raise DependencyError(
            "Payment gateway is unavailable. Retry confirmation shortly.",
            ErrorCode.PAYMENT_GATEWAY_UNAVAILABLE,
            details,
        )

    try:
        result = await db.execute(
            update(Quotation)
            .where(
                Quotation.id == quotation_id,
                Quotation.status == QuotationStatus.quoted,
                Quotation.payment_reference.is_(None),
            )
            .values(
                status=QuotationStatus.paid,
                payment_reference=payment_reference,
                version=Quotation.version + 1,
            )
            .returning(Quotation.id)
            .execution_options(synchronize_session=False)
        )
        paid_id = result.scalar_one_or_none()

        if not paid_id:
            await db.rollback()
            return await _resolve_lost_race(db, quotation_id, payment_reference, details)

        await emit_activity(
            db,
            principal=principal,
            quotation_id=quotation_id,
            code=ActivityCode.CONFIRM_PAYMENT,
            payment_reference=payment_reference,
        )

        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.error("Payment reference already recorded on another quotation", extra=details)
        raise ConflictError(
            "This payment is already recorded against another quotation",
            ErrorCode.PAYMENT_CONFLICT,
            details,
        )
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Payment taken but quotation not marked paid", extra=details)
        raise DependencyError(
            _support_message(payment_reference),
            ErrorCode.PAYMENT_RECORD_FAILED,
            details,
        )

    logger.info("Quotation paid", extra=details)

    q = await get_quotation_row(db, quotation_id)
    if not q:
        logger.error("Paid quotation missing after commit", extra=details)
        raise NotFoundError("Quotation not found", ErrorCode.QUOTATION_NOT_FOUND, details)
    return map_quotation(q)


async def _resolve_lost_race(
    db: AsyncSession,
    quotation_id: str,
    payment_reference: str,
    details: dict,
) -> QuotationOut:
    """The guarded write matched nothing; report what happened to the row meanwhile."""
    q = await get_quotation_row(db, quotation_id)

    if not q:
        logger.error("Quotation deleted while payment was confirmed", extra=details)
        raise NotFoundError("Quotation not found", ErrorCode.QUOTATION_NOT_FOUND, details)

    if is_settled(q.status) and q.payment_reference == payment_reference:
        return map_quotation(q)

    if is_settled(q.status):
        raise ConflictError(
            "Quotation is already settled with a different payment",
            ErrorCode.PAYMENT_CONFLICT,
            details,
        )

    raise InvalidStateError(
        f"Quotation is {q.status.value} and cannot be paid",
        ErrorCode.QUOTATION_INVALID_STATE,
        details,
    )


def _support_message(payment_reference: str) -> str:
    return (
        "Payment successful, but failed to update order status. "
        f"Please contact support with Payment ID: {payment_reference}"
    )

import re
from urllib.parse import quote

from sqlalchemy.ext.asyncio import AsyncSession

from fabquote.core.config import PUBLIC_BASE_URL
from fabquote.core.exceptions import AuthorizationError, ValidationError
from fabquote.core.identity import Principal
from fabquote.constants.error_codes import ErrorCode
from fabquote.models.accounts.profile_models import Profile
from fabquote.models.enums.currency import CURRENCY_SYMBOLS, Currency
from fabquote.models.enums.quotation_status import QuotationStatus
from fabquote.schemas.quotes.quotation_schemas import StatusMessageOut
from fabquote.services.quotes.quotation_queries import get_scoped_quotation, price_of
from fabquote.utils.activity_helpers import short_id


def compose_status_message(q, customer_name: str | None) -> str:
    name = customer_name or q.user_name or "Customer"
    ref = short_id(q.id)
    orders_link = f"{PUBLIC_BASE_URL}/profile"

    if q.status == QuotationStatus.quoted:
        total, currency = price_of(q.config)
        symbol = CURRENCY_SYMBOLS.get(currency or Currency.INR)
        amount = total if total is not None else "N/A"
        return (
            f"Hello {name},\n\nYour quotation {ref} is ready. "
            f"The total amount is {symbol}{amount}.\n\n"
            f"You can view and pay for your order here:\n{orders_link}"
        )

    if q.status == QuotationStatus.shipped:
        return (
            f"Hello {name},\n\nGreat news! Your order {ref} has been shipped. "
            "You can track its status on your profile page."
        )

    return (
        f"Hello {name},\n\nThis is an update regarding your quotation {ref}. "
        f"The current status is: {q.status.value}.\n\n"
        f"You can view more details here:\n{orders_link}"
    )


async def build_status_message(
    db: AsyncSession,
    principal: Principal,
    quotation_id: str,
) -> StatusMessageOut:
    if not principal.is_staff:
        raise AuthorizationError()

    q = await get_scoped_quotation(db, principal, quotation_id)
    profile = await db.get(Profile, q.user_id)

    phone = re.sub(r"[^0-9]", "", (profile.phone if profile else None) or "")
    if not phone:
        raise ValidationError(
            "User phone number is not available for this quotation.",
            ErrorCode.PROFILE_PHONE_MISSING,
        )

    message = compose_status_message(q, profile.full_name)
    return StatusMessageOut(
        message=message,
        whatsapp_url=f"https://wa.me/{phone}?text={quote(message, safe='')}",
    )

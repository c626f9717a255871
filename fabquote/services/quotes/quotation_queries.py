from decimal import Decimal, InvalidOperation
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fabquote.constants.error_codes import ErrorCode
from fabquote.core.exceptions import AuthorizationError, NotFoundError
from fabquote.core.identity import Principal
from fabquote.models.enums.currency import Currency
from fabquote.models.quotes.quotation_models import Quotation
from fabquote.schemas.quotes.quotation_schemas import QuotationOut

logger = logging.getLogger(__name__)


async def get_quotation_row(
    db: AsyncSession,
    quotation_id: str,
    *,
    for_update: bool = False,
) -> Quotation | None:
    stmt = (
        select(Quotation)
        .where(Quotation.id == quotation_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        stmt = stmt.with_for_update()

    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_scoped_quotation(
    db: AsyncSession,
    principal: Principal,
    quotation_id: str,
    *,
    for_update: bool = False,
    owner_only: bool = False,
) -> Quotation:
    """
    Load a quotation the caller may act on.

    Staff see every row unless `owner_only` (customer paths such as paying
    or cancelling). Anyone else must own the row.
    """
    q = await get_quotation_row(db, quotation_id, for_update=for_update)
    if not q:
        raise NotFoundError("Quotation not found", ErrorCode.QUOTATION_NOT_FOUND)

    if principal.is_staff and not owner_only:
        return q

    if not principal.owns(q.user_id):
        logger.warning(
            "Blocked access to quotation",
            extra={"user_id": principal.user_id, "quotation_id": quotation_id},
        )
        raise AuthorizationError()

    return q


def price_of(config: dict | None) -> tuple[Decimal | None, Currency | None]:
    config = config or {}

    total = None
    raw_total = config.get("total")
    if raw_total not in (None, ""):
        try:
            total = Decimal(str(raw_total))
        except InvalidOperation:
            logger.warning("Unparseable total on quotation config", extra={"total": raw_total})

    currency = None
    raw_currency = config.get("currency")
    if raw_currency in {c.value for c in Currency}:
        currency = Currency(raw_currency)

    return total, currency


def map_quotation(q: Quotation) -> QuotationOut:
    total, currency = price_of(q.config)
    return QuotationOut(
        id=q.id,
        user_id=q.user_id,
        user_name=q.user_name,
        type=q.type,
        status=q.status,
        config=dict(q.config or {}),
        total=total,
        currency=currency,
        additional_message=q.additional_message,
        file_path=q.file_path,
        payment_reference=q.payment_reference,
        version=q.version,
        created_at=q.created_at,
        updated_at=q.updated_at,
    )

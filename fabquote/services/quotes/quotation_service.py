from decimal import Decimal
import logging
import posixpath

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, update, func, asc, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fabquote.models.quotes.quotation_models import Quotation
from fabquote.models.enums.quotation_status import QuotationStatus

from fabquote.schemas.quotes.quotation_schemas import (
    CONFIG_SCHEMAS,
    STAFF_ONLY_CONFIG_KEYS,
    QuotationCreate,
    QuotationUpdate,
    QuotationOut,
    QuotationListData,
    CustomerQuotationsData,
)

from fabquote.core.exceptions import (
    AuthorizationError,
    ConflictError,
    DependencyError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from fabquote.core.identity import Principal
from fabquote.constants.error_codes import ErrorCode
from fabquote.constants.activity_codes import ActivityCode
from fabquote.utils.activity_helpers import emit_activity
from fabquote.services.quotes.quotation_queries import (
    get_quotation_row,
    get_scoped_quotation,
    map_quotation,
)
from fabquote.services.quotes.quotation_transitions import (
    OPEN_STATUSES,
    PRICE_EDITABLE,
    check_staff_transition,
    parse_currency,
    parse_status,
    parse_type,
)
from fabquote.services.storage.object_store import ObjectStore, ObjectStoreError

logger = logging.getLogger(__name__)


def _validate_config(quotation_type, config: dict) -> dict:
    schema = CONFIG_SCHEMAS[quotation_type]
    try:
        validated = schema.model_validate(config)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Invalid {quotation_type.value} configuration",
            ErrorCode.QUOTATION_INVALID_CONFIG,
            {"errors": e.errors(include_url=False, include_context=False)},
        )
    return validated.model_dump(mode="json")


def _check_namespace(principal: Principal, file_path: str) -> None:
    normalized = posixpath.normpath(file_path)
    if (
        normalized != file_path
        or file_path.startswith("/")
        or "\\" in file_path
        or not file_path.startswith(f"{principal.user_id}/")
    ):
        raise ValidationError(
            "Uploaded file reference is not valid for this account",
            ErrorCode.FILE_NOT_FOUND,
        )


async def _ensure_uploaded(store: ObjectStore, file_path: str) -> None:
    try:
        found = await store.exists(file_path)
    except ObjectStoreError as e:
        logger.error("Object store lookup failed", extra={"file_path": file_path, "error": str(e)})
        raise DependencyError(
            "File storage is unavailable. Please try again.",
            ErrorCode.OBJECT_STORE_UNAVAILABLE,
        )

    if not found:
        raise ValidationError(
            "Uploaded file not found. Please upload the design file again.",
            ErrorCode.FILE_NOT_FOUND,
        )


# =====================================================
# SUBMIT
# =====================================================
async def submit_quotation(
    db: AsyncSession,
    store: ObjectStore,
    principal: Principal,
    payload: QuotationCreate,
) -> QuotationOut:
    quotation_type = parse_type(payload.type)

    if STAFF_ONLY_CONFIG_KEYS & set(payload.config):
        raise AuthorizationError("Pricing fields are set by staff only")

    config = _validate_config(quotation_type, payload.config)

    if not payload.file_path:
        raise ValidationError(
            "A design file is required to request a quotation",
            ErrorCode.QUOTATION_FILE_MISSING,
        )

    _check_namespace(principal, payload.file_path)
    await _ensure_uploaded(store, payload.file_path)

    q = Quotation(
        user_id=principal.user_id,
        user_name=principal.display_name or principal.email,
        type=quotation_type,
        status=QuotationStatus.pending_review,
        config=config,
        additional_message=payload.additional_message,
        file_path=payload.file_path,
        version=1,
    )

    try:
        db.add(q)
        await db.flush()

        await emit_activity(
            db,
            principal=principal,
            quotation_id=q.id,
            code=ActivityCode.SUBMIT_QUOTATION,
            quotation_type=quotation_type.value,
        )

        result = map_quotation(q)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Quotation insert failed", extra={"user_id": principal.user_id})
        raise DependencyError("Failed to submit quotation. Please try again.")

    logger.info(
        "Quotation submitted",
        extra={"quotation_id": result.id, "type": quotation_type.value, "user_id": principal.user_id},
    )
    return result


# =====================================================
# READ
# =====================================================
async def get_quotation(
    db: AsyncSession,
    principal: Principal,
    quotation_id: str,
) -> QuotationOut:
    q = await get_scoped_quotation(db, principal, quotation_id)
    return map_quotation(q)


async def list_quotations(
    db: AsyncSession,
    principal: Principal,
    *,
    status: str | None = None,
    quotation_type: str | None = None,
    page: int = 1,
    page_size: int = 20,
    sort_by: str = "created_at",
    order: str = "desc",
) -> QuotationListData:
    base_query = select(Quotation)

    # customers only ever query their own rows
    if not principal.is_staff:
        base_query = base_query.where(Quotation.user_id == principal.user_id)

    if status:
        base_query = base_query.where(Quotation.status == parse_status(status))

    if quotation_type:
        base_query = base_query.where(Quotation.type == parse_type(quotation_type))

    total = await db.scalar(
        select(func.count()).select_from(base_query.subquery())
    )

    sort_map = {
        "created_at": Quotation.created_at,
        "updated_at": Quotation.updated_at,
        "status": Quotation.status,
    }
    sort_col = sort_map.get(sort_by, Quotation.created_at)

    result = await db.execute(
        base_query
        .order_by(asc(sort_col) if order == "asc" else desc(sort_col), Quotation.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    return QuotationListData(
        total=total or 0,
        items=[map_quotation(q) for q in result.scalars().all()],
    )


async def list_customer_quotations(
    db: AsyncSession,
    principal: Principal,
) -> CustomerQuotationsData:
    result = await db.execute(
        select(Quotation)
        .where(Quotation.user_id == principal.user_id)
        .order_by(desc(Quotation.created_at), Quotation.id)
    )
    rows = [map_quotation(q) for q in result.scalars().all()]

    return CustomerQuotationsData(
        active=[q for q in rows if q.status in OPEN_STATUSES],
        past_orders=[q for q in rows if q.status not in OPEN_STATUSES],
    )


# =====================================================
# STAFF UPDATE (price + status)
# =====================================================
async def update_quote(
    db: AsyncSession,
    principal: Principal,
    quotation_id: str,
    payload: QuotationUpdate,
) -> QuotationOut:
    if not principal.is_staff:
        raise AuthorizationError("Only staff can price or progress quotations")

    q = await get_quotation_row(db, quotation_id, for_update=True)
    if not q:
        raise NotFoundError("Quotation not found", ErrorCode.QUOTATION_NOT_FOUND)

    current = q.status
    target = parse_status(payload.status) if payload.status is not None else current
    currency = parse_currency(payload.currency) if payload.currency is not None else None

    changes: list[str] = []
    config = dict(q.config or {})

    if payload.total is not None or currency is not None:
        if current not in PRICE_EDITABLE:
            raise InvalidStateError(
                f"Price cannot change once a quotation is {current.value}",
                ErrorCode.QUOTATION_INVALID_STATE,
            )

        if payload.total is not None:
            new_total = str(Decimal(payload.total))
            if config.get("total") != new_total:
                config["total"] = new_total
                changes.append(f"total: {new_total}")

        if currency is not None and config.get("currency") != currency.value:
            config["currency"] = currency.value
            changes.append(f"currency: {currency.value}")

    priced = bool(config.get("total")) and bool(config.get("currency"))
    check_staff_transition(current, target, priced=priced)

    if target != current:
        changes.append(f"status: {current.value} -> {target.value}")

    if not changes:
        return map_quotation(q)

    try:
        # status and price commit together, guarded on the version we validated against
        result = await db.execute(
            update(Quotation)
            .where(
                Quotation.id == quotation_id,
                Quotation.version == q.version,
            )
            .values(
                status=target,
                config=config,
                version=Quotation.version + 1,
            )
            .returning(Quotation.id)
            .execution_options(synchronize_session=False)
        )
        updated_id = result.scalar_one_or_none()

        if not updated_id:
            await db.rollback()
            if not await get_quotation_row(db, quotation_id):
                raise NotFoundError("Quotation not found", ErrorCode.QUOTATION_NOT_FOUND)
            raise ConflictError(
                "Quotation was modified by another request. Reload and retry.",
                ErrorCode.QUOTATION_VERSION_CONFLICT,
            )

        await emit_activity(
            db,
            principal=principal,
            quotation_id=quotation_id,
            code=ActivityCode.UPDATE_QUOTATION,
            changes=", ".join(changes),
        )

        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Quotation update failed", extra={"quotation_id": quotation_id})
        raise DependencyError("Failed to update quotation. Please try again.")

    logger.info(
        "Quotation updated",
        extra={"quotation_id": quotation_id, "changes": changes, "staff_id": principal.user_id},
    )

    q = await get_quotation_row(db, quotation_id)
    if not q:
        # cancelled between our commit and this read
        raise NotFoundError("Quotation not found", ErrorCode.QUOTATION_NOT_FOUND)
    return map_quotation(q)

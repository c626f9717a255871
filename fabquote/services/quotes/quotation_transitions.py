"""
Quotation status state machine.

    Pending Review -> Quoted -> Paid -> In Production -> Shipped -> Delivered

Staff price a request (Pending Review -> Quoted) and walk it forward through
fulfilment once paid. Paid is reached only through settlement. Rows in
Pending Review or Quoted may be cancelled (deleted) by their owner.
"""
from fabquote.constants.error_codes import ErrorCode
from fabquote.core.exceptions import InvalidStateError, ValidationError
from fabquote.models.enums.currency import Currency
from fabquote.models.enums.quotation_status import QuotationStatus
from fabquote.models.enums.quotation_type import QuotationType

LIFECYCLE = [
    QuotationStatus.pending_review,
    QuotationStatus.quoted,
    QuotationStatus.paid,
    QuotationStatus.in_production,
    QuotationStatus.shipped,
    QuotationStatus.delivered,
]

TERMINAL = {QuotationStatus.delivered}

CANCELLABLE = {QuotationStatus.pending_review, QuotationStatus.quoted}

# total / currency may change only before the customer pays
PRICE_EDITABLE = {QuotationStatus.pending_review, QuotationStatus.quoted}

FULFILMENT = [
    QuotationStatus.paid,
    QuotationStatus.in_production,
    QuotationStatus.shipped,
    QuotationStatus.delivered,
]

# Quotations still awaiting the customer (profile page "active" list)
OPEN_STATUSES = CANCELLABLE


def parse_status(value) -> QuotationStatus:
    try:
        return QuotationStatus(value)
    except ValueError:
        raise ValidationError(
            f"Unknown status '{value}'",
            ErrorCode.VALIDATION_ERROR,
            {"allowed": [s.value for s in QuotationStatus]},
        )


def parse_type(value) -> QuotationType:
    try:
        return QuotationType(value)
    except ValueError:
        raise ValidationError(
            f"Unknown quotation type '{value}'",
            ErrorCode.QUOTATION_INVALID_TYPE,
            {"allowed": [t.value for t in QuotationType]},
        )


def parse_currency(value) -> Currency:
    try:
        return Currency(value)
    except ValueError:
        raise ValidationError(
            f"Unknown currency '{value}'",
            ErrorCode.VALIDATION_ERROR,
            {"allowed": [c.value for c in Currency]},
        )


def check_staff_transition(
    current: QuotationStatus,
    target: QuotationStatus,
    *,
    priced: bool,
) -> None:
    """Raise unless staff may move a quotation from `current` to `target`."""
    if current in TERMINAL:
        raise InvalidStateError(
            f"Quotation is {current.value} and can no longer change",
            ErrorCode.QUOTATION_INVALID_TRANSITION,
        )

    if target == current:
        return

    if target == QuotationStatus.paid:
        raise InvalidStateError(
            "Quotations become Paid only through payment confirmation",
            ErrorCode.QUOTATION_INVALID_TRANSITION,
        )

    if current == QuotationStatus.pending_review and target == QuotationStatus.quoted:
        if not priced:
            raise ValidationError(
                "total and currency are required to quote",
                ErrorCode.QUOTATION_PRICE_MISSING,
            )
        return

    if current in FULFILMENT and target in FULFILMENT:
        if FULFILMENT.index(target) > FULFILMENT.index(current):
            return

    raise InvalidStateError(
        f"Cannot move quotation from {current.value} to {target.value}",
        ErrorCode.QUOTATION_INVALID_TRANSITION,
        {"from": current.value, "to": target.value},
    )


def is_cancellable(status: QuotationStatus) -> bool:
    return status in CANCELLABLE


def is_settleable(status: QuotationStatus) -> bool:
    return status == QuotationStatus.quoted


def is_settled(status: QuotationStatus) -> bool:
    return status in FULFILMENT

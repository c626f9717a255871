from decimal import Decimal

import pytest
from sqlalchemy import select

from fabquote.constants.error_codes import ErrorCode
from fabquote.core.exceptions import (
    AuthorizationError,
    DependencyError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from fabquote.models.enums.quotation_status import QuotationStatus
from fabquote.models.quotes.quotation_models import Quotation
from fabquote.models.support.activity_models import QuotationActivity
from fabquote.schemas.quotes.quotation_schemas import QuotationCreate, QuotationUpdate
from fabquote.services.quotes.quotation_service import (
    get_quotation,
    list_customer_quotations,
    list_quotations,
    submit_quotation,
    update_quote,
)

from tests.conftest import PCB_CONFIG, force_state


async def test_submit_creates_pending_review(submit_pcb, customer):
    q = await submit_pcb(customer)

    assert q.status == QuotationStatus.pending_review
    assert q.user_id == customer.user_id
    assert q.user_name == "Asha Rao"
    assert q.config["layers"] == 4
    assert q.config["width"] == "100"
    assert q.total is None
    assert q.payment_reference is None
    assert q.version == 1


async def test_submit_records_activity(db, submit_pcb, customer):
    q = await submit_pcb(customer)

    messages = (await db.scalars(
        select(QuotationActivity.message).where(QuotationActivity.quotation_id == q.id)
    )).all()
    assert len(messages) == 1
    assert "submitted PCB quotation" in messages[0]


async def test_submit_rejects_price_in_config(submit_pcb, customer):
    with pytest.raises(AuthorizationError):
        await submit_pcb(customer, config={**PCB_CONFIG, "total": "1"})


async def test_submit_requires_dimensions(submit_pcb, customer):
    with pytest.raises(ValidationError) as exc:
        await submit_pcb(customer, config={"layers": 2, "quantity": 5})
    assert exc.value.error_code == ErrorCode.QUOTATION_INVALID_CONFIG


async def test_submit_rejects_unknown_type(db, store, customer):
    with pytest.raises(ValidationError):
        await submit_quotation(
            db,
            store,
            customer,
            QuotationCreate(type="Stencil", config={}, file_path=f"{customer.user_id}/1-a.zip"),
        )


async def test_submit_requires_file(db, store, customer):
    with pytest.raises(ValidationError) as exc:
        await submit_quotation(db, store, customer, QuotationCreate(type="PCB", config=PCB_CONFIG))
    assert exc.value.error_code == ErrorCode.QUOTATION_FILE_MISSING


@pytest.mark.parametrize(
    "path",
    [
        "cust-2/1-design.zip",
        "cust-1/../cust-2/1-design.zip",
        "/cust-1/1-design.zip",
    ],
)
async def test_submit_rejects_file_outside_namespace(db, store, customer, path):
    await store.put(path.lstrip("/"), b"x")

    with pytest.raises(ValidationError) as exc:
        await submit_quotation(
            db, store, customer, QuotationCreate(type="PCB", config=PCB_CONFIG, file_path=path)
        )
    assert exc.value.error_code == ErrorCode.FILE_NOT_FOUND


async def test_submit_rejects_missing_upload(db, store, customer):
    with pytest.raises(ValidationError):
        await submit_quotation(
            db,
            store,
            customer,
            QuotationCreate(type="PCB", config=PCB_CONFIG, file_path="cust-1/1-never-uploaded.zip"),
        )

    assert (await db.scalar(select(Quotation.id))) is None


async def test_submit_when_store_unavailable(db, store, customer):
    store.objects["cust-1/1-design.zip"] = b"x"
    store.fail_exists = True

    with pytest.raises(DependencyError):
        await submit_quotation(
            db,
            store,
            customer,
            QuotationCreate(type="PCB", config=PCB_CONFIG, file_path="cust-1/1-design.zip"),
        )


async def test_customer_reads_only_own_rows(db, submit_pcb, customer, other_customer, staff):
    mine = await submit_pcb(customer)
    await submit_pcb(other_customer)

    assert (await get_quotation(db, customer, mine.id)).id == mine.id
    assert (await get_quotation(db, staff, mine.id)).id == mine.id

    with pytest.raises(AuthorizationError):
        await get_quotation(db, other_customer, mine.id)

    with pytest.raises(NotFoundError):
        await get_quotation(db, customer, "missing")

    customer_list = await list_quotations(db, customer)
    assert customer_list.total == 1
    assert [q.id for q in customer_list.items] == [mine.id]

    staff_list = await list_quotations(db, staff)
    assert staff_list.total == 2


async def test_list_filters_by_status(db, submit_pcb, customer, staff):
    first = await submit_pcb(customer)
    await submit_pcb(customer)
    await update_quote(db, staff, first.id, QuotationUpdate(status="Quoted", total=Decimal("10"), currency="INR"))

    quoted = await list_quotations(db, staff, status="Quoted")
    assert [q.id for q in quoted.items] == [first.id]

    with pytest.raises(ValidationError):
        await list_quotations(db, staff, status="Lost")


async def test_customer_view_splits_active_and_past(db, submit_pcb, customer, staff):
    open_q = await submit_pcb(customer)
    paid_q = await submit_pcb(customer)
    await force_state(db, paid_q.id, status=QuotationStatus.in_production, payment_reference="pay_1")

    data = await list_customer_quotations(db, customer)
    assert [q.id for q in data.active] == [open_q.id]
    assert [q.id for q in data.past_orders] == [paid_q.id]


async def test_staff_quotes_with_price(db, submit_pcb, customer, staff):
    q = await submit_pcb(customer)

    updated = await update_quote(
        db, staff, q.id, QuotationUpdate(status="Quoted", total=Decimal("4500"), currency="INR")
    )

    assert updated.status == QuotationStatus.quoted
    assert updated.total == Decimal("4500")
    assert updated.currency.value == "INR"
    assert updated.config["layers"] == 4
    assert updated.version == 2


async def test_quoting_without_price_fails(db, submit_pcb, customer, staff):
    q = await submit_pcb(customer)

    with pytest.raises(ValidationError) as exc:
        await update_quote(db, staff, q.id, QuotationUpdate(status="Quoted"))
    assert exc.value.error_code == ErrorCode.QUOTATION_PRICE_MISSING

    unchanged = await get_quotation(db, staff, q.id)
    assert unchanged.status == QuotationStatus.pending_review
    assert unchanged.version == 1


async def test_price_only_edit_keeps_status(db, submit_pcb, customer, staff):
    q = await submit_pcb(customer)

    updated = await update_quote(db, staff, q.id, QuotationUpdate(total=Decimal("99.50"), currency="USD"))

    assert updated.status == QuotationStatus.pending_review
    assert updated.total == Decimal("99.50")
    assert updated.currency.value == "USD"


async def test_customer_cannot_update(db, submit_pcb, customer):
    q = await submit_pcb(customer)

    with pytest.raises(AuthorizationError):
        await update_quote(db, customer, q.id, QuotationUpdate(status="Quoted", total=Decimal("1"), currency="INR"))

    unchanged = await get_quotation(db, customer, q.id)
    assert unchanged.status == QuotationStatus.pending_review
    assert unchanged.total is None
    assert unchanged.currency is None
    assert unchanged.version == 1


async def test_staff_cannot_mark_paid(db, submit_pcb, customer, staff):
    q = await submit_pcb(customer)
    await update_quote(db, staff, q.id, QuotationUpdate(status="Quoted", total=Decimal("10"), currency="INR"))

    with pytest.raises(InvalidStateError):
        await update_quote(db, staff, q.id, QuotationUpdate(status="Paid"))


async def test_price_frozen_after_payment(db, submit_pcb, customer, staff):
    q = await submit_pcb(customer)
    await force_state(
        db,
        q.id,
        status=QuotationStatus.paid,
        payment_reference="pay_9",
        config={**PCB_CONFIG, "total": "10", "currency": "INR"},
    )

    with pytest.raises(InvalidStateError):
        await update_quote(db, staff, q.id, QuotationUpdate(total=Decimal("20")))

    shipped = await update_quote(db, staff, q.id, QuotationUpdate(status="Shipped"))
    assert shipped.status == QuotationStatus.shipped
    assert shipped.total == Decimal("10")


async def test_noop_update_leaves_version(db, submit_pcb, customer, staff):
    q = await submit_pcb(customer)

    same = await update_quote(db, staff, q.id, QuotationUpdate(status="Pending Review"))
    assert same.version == 1


async def test_update_missing_quotation(db, staff):
    with pytest.raises(NotFoundError):
        await update_quote(db, staff, "missing", QuotationUpdate(status="Quoted"))

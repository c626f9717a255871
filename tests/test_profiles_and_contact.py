from decimal import Decimal
from urllib.parse import unquote

import pytest
from pydantic import ValidationError as PydanticValidationError

from fabquote.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from fabquote.core.identity import Principal, Role
from fabquote.models.accounts.profile_models import Profile
from fabquote.models.enums.profile_status import ProfileStatus
from fabquote.models.enums.quotation_status import QuotationStatus
from fabquote.schemas.accounts.profile_schemas import ProfileUpdate, normalize_phone
from fabquote.schemas.quotes.quotation_schemas import QuotationUpdate
from fabquote.schemas.support.contact_schemas import ContactCreate
from fabquote.services.accounts.profile_service import get_profile, sync_profile, update_profile
from fabquote.services.quotes.notification_service import build_status_message
from fabquote.services.quotes.quotation_service import update_quote
from fabquote.services.support.contact_service import (
    create_contact_submission,
    list_contact_submissions,
)
from fabquote.utils.get_user import principal_from_claims

from tests.conftest import STAFF_EMAIL, force_state


# -------------------------
# identity
# -------------------------
def test_staff_role_requires_confirmed_operator_email():
    staff = principal_from_claims({
        "sub": "u-1",
        "email": STAFF_EMAIL.upper(),
        "email_confirmed_at": "2026-01-01T00:00:00Z",
    })
    assert staff.role == Role.staff

    unconfirmed = principal_from_claims({"sub": "u-1", "email": STAFF_EMAIL})
    assert unconfirmed.role == Role.customer

    other = principal_from_claims({
        "sub": "u-2",
        "email": "someone@example.com",
        "email_confirmed_at": "2026-01-01T00:00:00Z",
    })
    assert other.role == Role.customer


def test_display_name_from_metadata():
    principal = principal_from_claims({
        "sub": "u-3",
        "email": "asha@example.com",
        "user_metadata": {"full_name": "Asha Rao", "email_verified": True},
    })
    assert principal.display_name == "Asha Rao"
    assert principal.email_confirmed


# -------------------------
# profiles
# -------------------------
async def test_profile_created_on_first_request(db, customer):
    await sync_profile(db, customer)
    await sync_profile(db, customer)

    profile = await get_profile(db, customer)
    assert profile.email == "asha@example.com"
    assert profile.full_name == "Asha Rao"
    assert profile.status == ProfileStatus.verified


async def test_profile_verified_once_email_confirmed(db):
    pending = Principal(user_id="u-9", role=Role.customer, email="new@example.com")
    await sync_profile(db, pending)
    assert (await get_profile(db, pending)).status == ProfileStatus.unverified

    confirmed = Principal(user_id="u-9", role=Role.customer, email="new@example.com", email_confirmed=True)
    await sync_profile(db, confirmed)
    assert (await get_profile(db, confirmed)).status == ProfileStatus.verified


async def test_update_profile(db, customer):
    await sync_profile(db, customer)

    profile = await update_profile(db, customer, ProfileUpdate(phone="+91 98000-00000"))

    assert profile.phone == "+919800000000"
    assert profile.full_name == "Asha Rao"


async def test_profile_missing(db, customer):
    with pytest.raises(NotFoundError):
        await get_profile(db, customer)


def test_phone_validation():
    assert normalize_phone("(080) 1234-5678") == "08012345678"
    assert normalize_phone("  ") is None

    with pytest.raises(ValueError):
        normalize_phone("12ab")

    with pytest.raises(PydanticValidationError):
        ProfileUpdate(phone="123")


# -------------------------
# contact
# -------------------------
async def test_contact_submission(db, staff, customer):
    created = await create_contact_submission(
        db,
        ContactCreate(
            name="Ben",
            email="ben@example.com",
            phone="+1 415 555 0100",
            service_type="PCB Assembly",
            message="Need 200 boards",
        ),
    )
    assert created.id
    assert created.phone == "+14155550100"

    listed = await list_contact_submissions(db, staff)
    assert listed.total == 1
    assert listed.items[0].email == "ben@example.com"

    with pytest.raises(AuthorizationError):
        await list_contact_submissions(db, customer)


def test_contact_requires_valid_email():
    with pytest.raises(PydanticValidationError):
        ContactCreate(name="Ben", email="not-an-email")


# -------------------------
# status message
# -------------------------
async def test_quoted_status_message(db, submit_pcb, customer, staff):
    db.add(Profile(id=customer.user_id, email=customer.email, full_name="Asha Rao", phone="+91 98000 00000"))
    await db.commit()

    q = await submit_pcb(customer)
    await update_quote(db, staff, q.id, QuotationUpdate(status="Quoted", total=Decimal("4500"), currency="INR"))

    out = await build_status_message(db, staff, q.id)

    assert out.message.startswith("Hello Asha Rao,")
    assert f"#{q.id[:8]}" in out.message
    assert "₹4500" in out.message
    assert out.whatsapp_url.startswith("https://wa.me/919800000000?text=")
    assert unquote(out.whatsapp_url.split("text=", 1)[1]) == out.message


async def test_shipped_status_message(db, submit_pcb, customer, staff):
    db.add(Profile(id=customer.user_id, email=customer.email, full_name="Asha Rao", phone="9800000000"))
    await db.commit()

    q = await submit_pcb(customer)
    await force_state(db, q.id, status=QuotationStatus.shipped, payment_reference="pay_1")

    out = await build_status_message(db, staff, q.id)
    assert "has been shipped" in out.message


async def test_status_message_needs_phone_and_staff(db, submit_pcb, customer, staff):
    q = await submit_pcb(customer)

    with pytest.raises(ValidationError):
        await build_status_message(db, staff, q.id)

    with pytest.raises(AuthorizationError):
        await build_status_message(db, customer, q.id)

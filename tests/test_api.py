from decimal import Decimal

import httpx
import pytest

from main import app
from fabquote.core.db import get_db
from fabquote.services.payments.payment_gateway import PassThroughVerifier, get_payment_verifier
from fabquote.services.storage.object_store import LocalObjectStore, get_object_store

from tests.conftest import PCB_CONFIG, STAFF_EMAIL, make_token

CUSTOMER = {"Authorization": f"Bearer {make_token('cust-1', 'asha@example.com', full_name='Asha Rao')}"}
OTHER = {"Authorization": f"Bearer {make_token('cust-2', 'ben@example.com')}"}
STAFF = {"Authorization": f"Bearer {make_token('staff-1', STAFF_EMAIL)}"}


@pytest.fixture()
def object_store(store):
    return store


@pytest.fixture()
async def client(session_factory, object_store):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_object_store] = lambda: object_store
    app.dependency_overrides[get_payment_verifier] = lambda: PassThroughVerifier()

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


async def _upload(client, headers=CUSTOMER, filename="design.zip", qtype="PCB"):
    res = await client.post(
        "/files/designs",
        headers=headers,
        data={"type": qtype},
        files={"file": (filename, b"PK\x03\x04gerbers", "application/zip")},
    )
    assert res.status_code == 200, res.text
    return res.json()["data"]["file_path"]


async def _submit(client, headers=CUSTOMER):
    file_path = await _upload(client, headers)
    res = await client.post(
        "/quotations",
        headers=headers,
        json={
            "type": "PCB",
            "config": PCB_CONFIG,
            "file_path": file_path,
            "additional_message": "Please rush",
        },
    )
    assert res.status_code == 200, res.text
    return res.json()["data"]


async def test_health(client):
    res = await client.get("/")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"
    assert res.headers["X-Request-ID"]

    res = await client.get("/health/ready", headers={"X-Request-ID": "req-42"})
    assert res.status_code == 200
    assert res.headers["X-Request-ID"] == "req-42"


async def test_requires_bearer_token(client):
    res = await client.get("/quotations/mine", headers={"Authorization": "Bearer nope"})
    assert res.status_code == 401
    assert res.json()["error_code"] == "UNAUTHORIZED"

    expired = make_token("cust-1", "asha@example.com", expires_in=-60)
    res = await client.get("/quotations/mine", headers={"Authorization": f"Bearer {expired}"})
    assert res.status_code == 401


async def test_full_lifecycle(client):
    q = await _submit(client)
    assert q["status"] == "Pending Review"
    assert q["file_path"].startswith("cust-1/")
    assert q["user_name"] == "Asha Rao"

    # customers cannot price
    res = await client.patch(
        f"/quotations/{q['id']}",
        headers=CUSTOMER,
        json={"status": "Quoted", "total": 4500, "currency": "INR"},
    )
    assert res.status_code == 403

    res = await client.patch(
        f"/quotations/{q['id']}",
        headers=STAFF,
        json={"status": "Quoted", "total": 4500, "currency": "INR"},
    )
    assert res.status_code == 200, res.text
    quoted = res.json()["data"]
    assert quoted["status"] == "Quoted"
    assert Decimal(quoted["total"]) == 4500
    assert quoted["config"]["layers"] == 4

    res = await client.post(f"/payments/{q['id']}/checkout", headers=CUSTOMER)
    assert res.status_code == 200
    assert res.json()["data"]["amount"] == 450000

    res = await client.post(
        f"/payments/{q['id']}/confirm",
        headers=CUSTOMER,
        json={"payment_reference": "pay_123"},
    )
    assert res.status_code == 200, res.text
    assert res.json()["data"]["status"] == "Paid"
    assert "pay_123" in res.json()["message"]

    # a retried confirmation is accepted
    res = await client.post(
        f"/payments/{q['id']}/confirm",
        headers=CUSTOMER,
        json={"payment_reference": "pay_123"},
    )
    assert res.status_code == 200

    res = await client.patch(f"/quotations/{q['id']}", headers=STAFF, json={"status": "Shipped"})
    assert res.status_code == 200
    assert res.json()["data"]["status"] == "Shipped"

    res = await client.delete(f"/quotations/{q['id']}", headers=CUSTOMER)
    assert res.status_code == 409
    body = res.json()
    assert body["success"] is False
    assert body["error_code"] == "QUOTATION_INVALID_STATE"

    res = await client.get("/quotations/mine", headers=CUSTOMER)
    mine = res.json()["data"]
    assert mine["active"] == []
    assert [p["id"] for p in mine["past_orders"]] == [q["id"]]


async def test_wrong_payment_reference_conflicts(client):
    q = await _submit(client)
    await client.patch(
        f"/quotations/{q['id']}",
        headers=STAFF,
        json={"status": "Quoted", "total": 10, "currency": "USD"},
    )
    await client.post(f"/payments/{q['id']}/confirm", headers=CUSTOMER, json={"payment_reference": "pay_1"})

    res = await client.post(
        f"/payments/{q['id']}/confirm",
        headers=CUSTOMER,
        json={"payment_reference": "pay_2"},
    )
    assert res.status_code == 409
    assert res.json()["error_code"] == "PAYMENT_CONFLICT"
    assert res.json()["details"]["payment_reference"] == "pay_2"


async def test_cancel_pending(client, store):
    q = await _submit(client)

    res = await client.delete(f"/quotations/{q['id']}", headers=OTHER)
    assert res.status_code == 403

    res = await client.delete(f"/quotations/{q['id']}", headers=CUSTOMER)
    assert res.status_code == 200
    assert q["file_path"] not in store.objects

    res = await client.get(f"/quotations/{q['id']}", headers=CUSTOMER)
    assert res.status_code == 404


async def test_staff_listing_and_activity(client):
    await _submit(client)
    await _submit(client, headers=OTHER)

    res = await client.get("/quotations", headers=STAFF, params={"status": "Pending Review"})
    assert res.json()["data"]["total"] == 2

    res = await client.get("/quotations", headers=OTHER)
    assert res.json()["data"]["total"] == 1

    res = await client.get("/activities", headers=STAFF)
    assert res.status_code == 200
    assert res.json()["data"]["total"] == 2

    res = await client.get("/activities", headers=CUSTOMER)
    assert res.status_code == 403


async def test_submit_rejects_foreign_file(client):
    file_path = await _upload(client, headers=OTHER)

    res = await client.post(
        "/quotations",
        headers=CUSTOMER,
        json={"type": "PCB", "config": PCB_CONFIG, "file_path": file_path},
    )
    assert res.status_code == 400
    assert res.json()["error_code"] == "FILE_NOT_FOUND"


async def test_upload_rejects_wrong_format(client):
    res = await client.post(
        "/files/designs",
        headers=CUSTOMER,
        data={"type": "Assembly"},
        files={"file": ("design.zip", b"PK", "application/zip")},
    )
    assert res.status_code == 400
    assert res.json()["error_code"] == "FILE_INVALID_TYPE"


async def test_profile_and_contact(client):
    res = await client.get("/profiles/me", headers=CUSTOMER)
    assert res.status_code == 200
    assert res.json()["data"]["full_name"] == "Asha Rao"

    res = await client.patch("/profiles/me", headers=CUSTOMER, json={"phone": "+91 98000 00000"})
    assert res.json()["data"]["phone"] == "+919800000000"

    res = await client.post("/contact", json={"name": "Ben", "email": "ben@example.com", "message": "Hi"})
    assert res.status_code == 200

    res = await client.get("/contact", headers=STAFF)
    assert res.json()["data"]["total"] == 1

    res = await client.get("/contact", headers=CUSTOMER)
    assert res.status_code == 403


class TestLocalDownloads:
    @pytest.fixture()
    def object_store(self, tmp_path):
        return LocalObjectStore(str(tmp_path), "http://test")

    async def test_signed_download(self, client):
        q = await _submit(client)

        res = await client.get(f"/quotations/{q['id']}/file-url", headers=STAFF)
        assert res.status_code == 200
        url = res.json()["data"]["url"]

        res = await client.get(url)
        assert res.status_code == 200
        assert res.content == b"PK\x03\x04gerbers"

        res = await client.get("/files/download", params={"token": "forged"})
        assert res.status_code == 403
        assert res.json()["error_code"] == "FILE_LINK_INVALID"

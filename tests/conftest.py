import os
import time

# config validates the environment at import time
os.environ.setdefault("APP_ENV", "development")
os.environ.setdefault("DB_TYPE", "sqlite")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("IDP_JWT_SECRET", "test-idp-secret")
os.environ.setdefault("STAFF_EMAIL", "staff@fab.test")
os.environ.setdefault("OBJECT_STORE_BACKEND", "local")
os.environ.setdefault("PUBLIC_BASE_URL", "http://test")

import pytest
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from fabquote.core.db import Base
from fabquote.core.identity import Principal, Role
from fabquote.models.quotes.quotation_models import Quotation
from fabquote.schemas.quotes.quotation_schemas import QuotationCreate
from fabquote.services.quotes.quotation_service import submit_quotation
from fabquote.services.storage.object_store import ObjectStore, ObjectStoreError, StoredObject

STAFF_EMAIL = os.environ["STAFF_EMAIL"]

PCB_CONFIG = {"layers": 4, "width": "100", "height": "80", "quantity": 10}


class FakeObjectStore(ObjectStore):
    """In-memory object store with switchable failures."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.updated: dict[str, object] = {}
        self.deleted: list[str] = []
        self.fail_put = False
        self.fail_exists = False
        self.fail_delete = False

    async def put(self, path, data, content_type="application/octet-stream"):
        if self.fail_put:
            raise ObjectStoreError("put failed")
        self.objects[path] = data

    async def exists(self, path):
        if self.fail_exists:
            raise ObjectStoreError("lookup failed")
        return path in self.objects

    async def signed_url(self, path, ttl_seconds):
        if path not in self.objects:
            raise ObjectStoreError("missing")
        return f"https://files.test/{path}?ttl={ttl_seconds}"

    async def delete(self, path):
        if self.fail_delete:
            raise ObjectStoreError("delete failed")
        self.objects.pop(path, None)
        self.deleted.append(path)

    async def list(self, prefix=""):
        return [
            StoredObject(path=p, size=len(b), updated_at=self.updated.get(p))
            for p, b in self.objects.items()
            if p.startswith(prefix)
        ]


@pytest.fixture()
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture()
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture()
def store():
    return FakeObjectStore()


@pytest.fixture()
def customer():
    return Principal(
        user_id="cust-1",
        role=Role.customer,
        email="asha@example.com",
        display_name="Asha Rao",
        email_confirmed=True,
    )


@pytest.fixture()
def other_customer():
    return Principal(
        user_id="cust-2",
        role=Role.customer,
        email="ben@example.com",
        display_name="Ben",
        email_confirmed=True,
    )


@pytest.fixture()
def staff():
    return Principal(
        user_id="staff-1",
        role=Role.staff,
        email=STAFF_EMAIL,
        display_name="Operator",
        email_confirmed=True,
    )


@pytest.fixture()
def submit_pcb(db, store):
    async def _submit(principal, filename="design.zip", config=None, message="Please rush"):
        path = f"{principal.user_id}/{int(time.time() * 1000)}-{filename}"
        await store.put(path, b"PK\x03\x04gerbers")
        return await submit_quotation(
            db,
            store,
            principal,
            QuotationCreate(
                type="PCB",
                config=dict(config or PCB_CONFIG),
                file_path=path,
                additional_message=message,
            ),
        )

    return _submit


def make_token(sub, email, *, confirmed=True, full_name=None, expires_in=3600):
    now = int(time.time())
    claims = {
        "sub": sub,
        "email": email,
        "aud": "authenticated",
        "role": "authenticated",
        "iat": now,
        "exp": now + expires_in,
        "user_metadata": {"full_name": full_name} if full_name else {},
    }
    if confirmed:
        claims["email_confirmed_at"] = "2026-01-01T00:00:00Z"
    return jwt.encode(claims, os.environ["IDP_JWT_SECRET"], algorithm="HS256")


async def force_state(db, quotation_id, **values):
    """Write columns directly, bypassing the lifecycle rules."""
    await db.execute(
        Quotation.__table__.update().where(Quotation.id == quotation_id).values(**values)
    )
    await db.commit()
    db.expire_all()

from __future__ import annotations

import hashlib
import hmac
import json
import os
import time
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

# settings are read at import time
os.environ.setdefault("DATABASE_URL_ASYNC", "sqlite+aiosqlite:///./commission_engine_dev.db")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from jose import jwt

from commission_engine.core.config import settings
from commission_engine.db.session import Database

# Ensure Base + models are registered before create_all
from commission_engine.db.base import Base
import commission_engine.models  # noqa: F401
from commission_engine.models.affiliate_profile import AffiliateProfile
from commission_engine.models.campaign import Campaign


# ---------------------------------------------------------
# Database config
# ---------------------------------------------------------
@pytest.fixture()
def database_url_async(tmp_path) -> str:
    """
    TEST_DATABASE_URL points the suite at PostgreSQL; otherwise every test
    gets its own SQLite file.
    """
    url = os.getenv("TEST_DATABASE_URL")
    if url:
        return url
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


# ---------------------------------------------------------
# Storage service + schema lifecycle
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def database(database_url_async: str):
    database = Database(database_url_async)
    database.open()

    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield database

    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await database.close()


@pytest.fixture()
def sessionmaker(database):
    return database.session


# ---------------------------------------------------------
# DB session for assertions / setup
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def db(sessionmaker):
    """
    Session for test setup & assertions ONLY.
    """
    async with sessionmaker() as session:
        yield session
        await session.rollback()


# ---------------------------------------------------------
# FastAPI app wired to the test database
# ---------------------------------------------------------
@pytest.fixture()
def app(database):
    from commission_engine.main import create_application

    # ASGITransport skips lifespan; the fixture already opened the database
    return create_application(database=database)


# ---------------------------------------------------------
# HTTP client
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
    ) as ac:
        yield ac


# ---------------------------------------------------------
# Auth (tokens normally minted by the auth service)
# ---------------------------------------------------------
def make_token(sub: str, role: str = "AFFILIATE") -> str:
    payload = {
        "sub": sub,
        "role": role,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=30),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token('admin-1', role='ADMIN')}"}


@pytest.fixture()
def auth_headers():
    def _headers(sub: str, role: str = "AFFILIATE") -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(sub, role=role)}"}

    return _headers


# ---------------------------------------------------------
# Factories
# ---------------------------------------------------------
@pytest.fixture()
def create_affiliate(db):
    async def _create(
        user_id: str | None = None,
        commission_rate: Decimal | str = "0.10",
        commission_tiers=None,
        pending_payouts: Decimal | str = "0.00",
        total_earnings: Decimal | str = "0.00",
    ) -> AffiliateProfile:
        profile = AffiliateProfile(
            user_id=user_id or f"aff_{uuid.uuid4().hex[:8]}",
            commission_rate=Decimal(str(commission_rate)),
            commission_tiers=commission_tiers,
            status="active",
            total_earnings=Decimal(str(total_earnings)),
            pending_payouts=Decimal(str(pending_payouts)),
            total_paid=Decimal("0.00"),
            total_clicks=0,
        )
        db.add(profile)
        await db.commit()
        return profile

    return _create


@pytest.fixture()
def create_campaign(db):
    async def _create(payout_rules, name: str = "Test Campaign") -> Campaign:
        campaign = Campaign(
            name=name,
            url="https://shop.example.com",
            payout_rules=payout_rules,
            status="active",
        )
        db.add(campaign)
        await db.commit()
        return campaign

    return _create


# ---------------------------------------------------------
# Signed Stripe webhook delivery
# ---------------------------------------------------------
def sign_payload(payload: str, secret: str, timestamp: int | None = None) -> str:
    ts = timestamp if timestamp is not None else int(time.time())
    signed = f"{ts}.{payload}".encode("utf-8")
    sig = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={sig}"


@pytest.fixture()
def send_event(client):
    async def _send(event_type: str, obj: dict, event_id: str | None = None):
        event = {
            "id": event_id or f"evt_{uuid.uuid4().hex[:16]}",
            "object": "event",
            "type": event_type,
            "data": {"object": obj},
        }
        payload = json.dumps(event)
        return await client.post(
            "/api/v1/webhooks/stripe",
            content=payload,
            headers={
                "Content-Type": "application/json",
                "Stripe-Signature": sign_payload(payload, settings.STRIPE_WEBHOOK_SECRET),
            },
        )

    return _send

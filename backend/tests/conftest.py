from datetime import datetime, timezone
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from commerce_recon.config import Settings
from commerce_recon.models.base import Base
# Import all models so they register with Base.metadata for create_all
import commerce_recon.models  # noqa: F401
from commerce_recon.platforms.base import PlatformAdapter
from commerce_recon.reconciliation_engine.normalizer import SourceKind

T0 = datetime(2025, 10, 15, 12, 0, tzinfo=timezone.utc)


class FakeAdapter(PlatformAdapter):
    """Serves canned payloads instead of calling the platform API."""

    def __init__(
        self,
        settings: Settings,
        source: SourceKind,
        payloads: list[dict[str, Any]] | None = None,
        configured: bool = True,
    ):
        self.source = source
        super().__init__(settings)
        self.payloads = payloads or []
        self.configured = configured
        self.calls: list[tuple[datetime, datetime]] = []

    def is_configured(self) -> bool:
        return self.configured

    async def _fetch(self, start: datetime, end: datetime) -> list[dict[str, Any]]:
        self.calls.append((start, end))
        return list(self.payloads)


def shopify_order(order_id: str, amount: str, email: str | None, created_at: datetime, **extra) -> dict:
    return {
        "id": int(order_id),
        "order_number": extra.pop("order_number", None),
        "email": email,
        "total_price": amount,
        "currency": "INR",
        "financial_status": "paid",
        "created_at": created_at.isoformat(),
        **extra,
    }


def razorpay_payment(payment_id: str, rupees: str, email: str | None, created_at: datetime, **extra) -> dict:
    return {
        "id": payment_id,
        "entity": "payment",
        "amount": int(float(rupees) * 100),
        "currency": "INR",
        "status": "captured",
        "email": email,
        "created_at": int(created_at.timestamp()),
        **extra,
    }


def easyecom_order(order_id: str, total: str, reference: str | None, order_date: datetime, **extra) -> dict:
    return {
        "order_id": order_id,
        "reference_code": reference,
        "total_amount": total,
        "order_date": order_date.strftime("%Y-%m-%d %H:%M:%S"),
        "queue_status": 1,
        **extra,
    }


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None, scheduler_enabled=False)


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def matching_payloads() -> dict[SourceKind, list[dict]]:
    """One fully corroborated order plus one stray payment."""
    return {
        SourceKind.SHOPIFY: [shopify_order("1001", "1000.00", "a@x.com", T0, order_number="1001")],
        SourceKind.RAZORPAY: [
            razorpay_payment("pay_A", "1000.00", "a@x.com", T0),
            razorpay_payment("pay_STRAY", "250.00", "z@x.com", T0.replace(day=13)),
        ],
        SourceKind.EASYECOM: [easyecom_order("E-1", "1000.00", "1001", T0)],
    }


@pytest.fixture
def fake_adapters(test_settings, matching_payloads) -> list[FakeAdapter]:
    return [
        FakeAdapter(test_settings, source, matching_payloads[source])
        for source in (SourceKind.SHOPIFY, SourceKind.RAZORPAY, SourceKind.EASYECOM)
    ]


@pytest.fixture
async def client(db_session, fake_adapters):
    from commerce_recon.dependencies import get_db, get_platform_adapters
    from commerce_recon.main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_platform_adapters] = lambda: fake_adapters

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()

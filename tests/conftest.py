"""Test configuration: in-memory SQLite, mock payment gateway, local tokens."""
import os

# Settings are read once and cached, so the environment has to be in place
# before anything from foodorder is imported.
os.environ.setdefault("ENV_MODE", "development")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test")
os.environ.setdefault("FRONTEND_URL", "http://frontend.test")
os.environ.setdefault("STRIPE_CURRENCY", "dzd")

from contextlib import asynccontextmanager  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from foodorder.auth import create_access_token  # noqa: E402
from foodorder.database import Base, get_db  # noqa: E402
from foodorder.main import app  # noqa: E402
from foodorder.models import Restaurant, User  # noqa: E402
from foodorder.services.payment import MockPaymentGateway, get_payment_gateway  # noqa: E402


@asynccontextmanager
async def make_session_maker():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield async_sessionmaker(engine, expire_on_commit=False)
    finally:
        await engine.dispose()


@asynccontextmanager
async def make_client(gateway):
    """Yield ``(client, session_maker)`` wired to a fresh database."""
    async with make_session_maker() as session_maker:

        async def _get_db():
            async with session_maker() as session:
                yield session

        app.dependency_overrides[get_db] = _get_db
        app.dependency_overrides[get_payment_gateway] = lambda: gateway
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        try:
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                yield client, session_maker
        finally:
            app.dependency_overrides.clear()


async def seed_user(session_maker, auth0_id="auth0|owner", email=None):
    async with session_maker() as session:
        user = User(auth0_id=auth0_id, email=email or f"{auth0_id.split('|')[-1]}@example.com")
        session.add(user)
        await session.commit()
        return user


async def seed_restaurant(session_maker, owner, **overrides):
    fields = {
        "user_id": owner.id,
        "restaurant_name": "Chez Amine",
        "city": "Algiers",
        "country": "Algeria",
        "delivery_price": 300,
        "estimated_delivery_time": 30,
        "cuisines": ["Italian", "Pizza"],
        "menu_items": [
            {"id": "m1", "name": "Margherita", "price": 500},
            {"id": "m2", "name": "Tiramisu", "price": 250},
        ],
    }
    fields.update(overrides)
    async with session_maker() as session:
        restaurant = Restaurant(**fields)
        session.add(restaurant)
        await session.commit()
        return restaurant


def auth_headers(sub):
    return {"Authorization": f"Bearer {create_access_token(sub)}"}


@pytest.fixture
def gateway():
    return MockPaymentGateway(webhook_secret="whsec_test")

"""Pytest configuration for the access service tests

Provides an in-memory async SQLite database, row factories and an HTTP client
bound to the FastAPI app with the database dependency overridden.
"""

import os

# Settings are read at import time, so the environment must be ready first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("MAIL_USERNAME", "test")
os.environ.setdefault("MAIL_PASSWORD", "test")
os.environ.setdefault("MAIL_FROM", "noreply@example.com")
os.environ.setdefault("MAIL_PORT", "587")
os.environ.setdefault("MAIL_SERVER", "localhost")
os.environ.setdefault("MAIL_STARTTLS", "false")
os.environ.setdefault("MAIL_SSL_TLS", "false")
os.environ.setdefault("MAIL_SUPPRESS_SEND", "true")

import uuid
from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hospitality_hub.database import Base
from hospitality_hub.models import activity, app_subscription, inventory, invitation, organization, user  # noqa: F401
from hospitality_hub.models.organization import Organization, SubscriptionPlan, SubscriptionStatus
from hospitality_hub.models.user import User, UserRole, UserStatus
from hospitality_hub.security import create_access_token
from hospitality_hub.utils.dates import utcnow


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def engine():
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


# ============================================================================
# Row Factories
# ============================================================================

@pytest.fixture
def make_org(db):
    async def _make_org(**overrides):
        fields = dict(
            name="Test Bar",
            slug=f"test-bar-{uuid.uuid4().hex[:6]}",
            subscription_plan=SubscriptionPlan.trial,
            subscription_status=SubscriptionStatus.trial,
            trial_ends_at=utcnow() + timedelta(days=30),
            user_limit=10,
            item_limit=1000,
            storage_area_limit=10,
            is_grandfathered=False,
        )
        fields.update(overrides)
        org = Organization(**fields)
        db.add(org)
        await db.commit()
        await db.refresh(org)
        return org
    return _make_org


@pytest.fixture
def make_user(db):
    async def _make_user(org=None, role=UserRole.staff, **overrides):
        fields = dict(
            auth_id=str(uuid.uuid4()),
            email=f"user-{uuid.uuid4().hex[:8]}@example.com",
            full_name="Test User",
            role=role,
            status=UserStatus.active,
            organization_id=org.id if org is not None else None,
        )
        fields.update(overrides)
        member = User(**fields)
        db.add(member)
        await db.commit()
        await db.refresh(member)
        return member
    return _make_user


# ============================================================================
# Application & Client Fixtures
# ============================================================================

@pytest.fixture
def app(session_factory):
    from hospitality_hub.main import create_app
    from hospitality_hub.api.deps import get_db

    test_app = create_app(run_lifespan=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    test_app.dependency_overrides[get_db] = override_get_db
    return test_app


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    def _auth_headers(member: User) -> dict:
        token = create_access_token(data={"sub": member.email})
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers

"""Shared test fixtures for the CRM selection engine."""

import os

# Force test settings before any imports
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("BACKEND_API_URL", "http://crm-backend.test")

import uuid
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from crm_engine.auth.security import create_access_token
from crm_engine.config import get_settings
from crm_engine.main import app
from crm_engine.schemas.customer import Customer
from crm_engine.schemas.segment import ComparisonOperator, NumericCondition, RuleSet

# Frozen reference time for every time-relative assertion
NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Clear the lru_cache on settings between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ---------------------------------------------------------------------------
# HTTP client fixture (FastAPI app with a mocked CRM backend)
# ---------------------------------------------------------------------------


@pytest.fixture()
def backend() -> AsyncMock:
    """Stand-in for CrmBackendClient; tests set return values per call."""
    mock = AsyncMock()
    mock.list_customers = AsyncMock(return_value=[])
    mock.list_segments = AsyncMock(return_value=[])
    mock.ping = AsyncMock(return_value=True)
    return mock


@pytest_asyncio.fixture()
async def client(backend) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the FastAPI app.

    The CRM backend is mocked so tests run without it.
    """
    app.state.backend_client = backend

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Auth helpers — generate JWT tokens directly (no login endpoint needed)
# ---------------------------------------------------------------------------


def _make_token(role: str, username: str) -> str:
    """Create a valid JWT access token for testing."""
    return create_access_token(
        user_id=str(uuid.uuid4()),
        role=role,
        username=username,
        email=f"{username}@test.example.com",
    )


def _auth_headers(role: str, username: str) -> dict[str, str]:
    """Return Authorization header dict with a valid JWT."""
    token = _make_token(role, username)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture()
async def auth_client(client) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client pre-authenticated as a marketing user."""
    client.headers.update(_auth_headers("marketer", "marketer"))
    yield client
    client.headers.pop("Authorization", None)


# ---------------------------------------------------------------------------
# Model factories
# ---------------------------------------------------------------------------


def make_customer(**overrides) -> Customer:
    """Build a Customer snapshot; keyword overrides use Python field names."""
    data = {
        "id": uuid.uuid4().hex[:24],
        "name": "Test Customer",
        "email": "test@example.com",
        "phone": "+15550000000",
        "total_spend": 0.0,
        "visits": 0,
        "tags": (),
        "created_at": NOW - timedelta(days=365),
        "last_active_at": NOW - timedelta(days=1),
    }
    data.update(overrides)
    return Customer(**data)


def make_customer_payload(**overrides) -> dict:
    """Build a customer record the way the CRM backend serializes it."""
    data = {
        "_id": uuid.uuid4().hex[:24],
        "name": "Test Customer",
        "email": "test@example.com",
        "phone": "+15550000000",
        "totalSpend": 1200,
        "visits": 4,
        "tags": ["vip"],
        "createdAt": (NOW - timedelta(days=30)).isoformat(),
        "lastActiveAt": (NOW - timedelta(days=2)).isoformat(),
    }
    data.update(overrides)
    return data


def make_rules(
    spend_op: str = "gt",
    spend: float = 5000,
    visits_op: str = "lt",
    visits: float = 3,
    inactive_days: int = 90,
) -> RuleSet:
    return RuleSet(
        total_spend=NumericCondition(operator=ComparisonOperator(spend_op), value=spend),
        visits=NumericCondition(operator=ComparisonOperator(visits_op), value=visits),
        inactive_days=inactive_days,
    )


def make_rules_payload(**overrides) -> dict:
    """Serialized rule set as the dashboard posts it."""
    data = {
        "totalSpend": {"operator": "gt", "value": 5000},
        "visits": {"operator": "lt", "value": 3},
        "inactiveDays": 90,
    }
    data.update(overrides)
    return data

"""
Pytest configuration and fixtures for calsync tests.

Provides an in-memory async database session, a scripted fake of the
provider HTTP APIs behind a real TransportClient, and sample records.
"""

import json
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Union
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import calsync.models  # noqa: F401
from calsync.clients.activity import ActivityClient
from calsync.config import Settings
from calsync.integrations.base import Attendee, CanonicalEvent, ProviderTag
from calsync.integrations.transport import TransportClient
from calsync.models.base import Base
from calsync.services.event_store import EventStore


# =============================================================================
# Database
# =============================================================================


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """
    Create a clean async database session for each test.

    Uses an in-memory SQLite database that is torn down after each test.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()

    await engine.dispose()


@pytest.fixture
def store(db_session: AsyncSession) -> EventStore:
    return EventStore(db_session)


@pytest.fixture
def settings() -> Settings:
    """Settings with defaults only (no .env)."""
    return Settings(_env_file=None)


@pytest.fixture
def activity_client() -> AsyncMock:
    """Activity collaborator that records calls and returns an id."""
    client = AsyncMock(spec=ActivityClient)
    client.log_activity.return_value = {"_id": "act-1"}
    return client


# =============================================================================
# Provider HTTP fake
# =============================================================================

RouteResult = Union[tuple[int, Any], Callable[[httpx.Request], httpx.Response]]


class FakeProviderApi:
    """
    Scripted provider API served through httpx.MockTransport.

    Routes are keyed by (method, path suffix). A route value is either a
    (status, json_body) pair or a callable taking the request. Unmatched
    requests get a 404 with a provider-style error body.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], RouteResult] = {}
        self.requests: list[httpx.Request] = []

    def route(self, method: str, path: str, result: RouteResult) -> None:
        self.routes[(method, path)] = result

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for (method, path), result in self.routes.items():
            if request.method == method and request.url.path.endswith(path):
                if callable(result):
                    return result(request)
                status, body = result
                if body is None:
                    return httpx.Response(status)
                return httpx.Response(status, json=body)
        return httpx.Response(404, json={"error": {"code": "ResourceNotFound", "message": "no route"}})

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path.endswith(path)
        ]


def request_json(request: httpx.Request) -> Optional[dict]:
    """Decode the JSON body a fake route received."""
    if not request.content:
        return None
    return json.loads(request.content)


@pytest.fixture
def provider_api() -> FakeProviderApi:
    return FakeProviderApi()


@pytest_asyncio.fixture
async def transport(provider_api: FakeProviderApi) -> TransportClient:
    """TransportClient whose requests are served by provider_api."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(provider_api))
    yield TransportClient(http_client=http_client)
    await http_client.aclose()


# =============================================================================
# Sample data
# =============================================================================


def make_event(
    external_id: str = "evt-1",
    provider: ProviderTag = ProviderTag.GOOGLE,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    **overrides: Any,
) -> CanonicalEvent:
    """Build a canonical event with sensible defaults."""
    start = start or datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)
    end = end or datetime(2026, 3, 2, 11, 0, tzinfo=timezone.utc)
    values = {
        "external_id": external_id,
        "provider": provider,
        "title": "Discovery call",
        "start_time": start,
        "end_time": end,
        "timezone": "UTC",
        "attendees": [Attendee(email="client@example.com", name="Client", status="needsAction")],
        "organizer": "owner@example.com",
        "organizer_name": "Olive Owner",
        "user_id": "owner@example.com",
        "lead_id": "lead-1",
    }
    values.update(overrides)
    return CanonicalEvent(**values)


@pytest.fixture
def sample_event() -> CanonicalEvent:
    return make_event()

import os

# Point settings at throwaway backends before the app is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["REDIS_URL"] = ""
os.environ["RECOMMENDATION_BASE_URL"] = ""
os.environ["SEED_ON_STARTUP"] = "false"
os.environ["SEARCH_INDICATOR_DELAY_SECONDS"] = "0"

import uuid

import httpx
import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.database import Base, get_db
from app.main import app
from app.models.location import Location
from app.models.user import User, UserProfile
from app.routers.auth import create_access_token
from app.services.recommendation_client import RecommendationClient
from app.services.search_results import search_result_store
from app.services.search_service import search_dispatcher


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def clean_search_state():
    search_result_store.clear()
    original_client = search_dispatcher.client
    yield
    search_result_store.clear()
    search_dispatcher.client = original_client


@pytest.fixture
async def client(session_factory):
    async def _override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory):
    """Insert a user and return (user, auth headers)."""

    async def _make(role: str = "traveler", email: str | None = None, with_profile: bool = True):
        async with session_factory() as session:
            user = User(
                id=uuid.uuid4(),
                email=email or f"{role}-{uuid.uuid4().hex[:8]}@travelbuddy.dev",
                password_hash="not-used",
                full_name=f"Test {role.title()}",
                role=role,
            )
            session.add(user)
            await session.flush()
            if with_profile:
                session.add(UserProfile(id=user.id, full_name=user.full_name, role=role))
            await session.commit()
        headers = {"Authorization": f"Bearer {create_access_token(str(user.id))}"}
        return user, headers

    return _make


@pytest.fixture
async def locations(session_factory):
    rows = [
        Location(id="loc-1", name="Hanoi", country="Vietnam", tags=["city"], description="Capital"),
        Location(id="loc-2", name="Ha Long Bay", country="Vietnam", tags=["nature"], description="Bay"),
    ]
    async with session_factory() as session:
        session.add_all(rows)
        await session.commit()
    return rows


def _sample_packages(count: int, prefix: str = "pkg") -> list[dict]:
    return [
        {
            "id": f"{prefix}-{i}",
            "title": f"Package {prefix} {i}",
            "provider_id": None,
            "location_id": "loc-1",
            "price": 500 + i * 100,
            "duration_days": 3 + i,
            "highlights": [f"Highlight {i}"],
            "description": f"Description {i}",
            "image_url": f"https://img.test/{prefix}-{i}.jpg",
        }
        for i in range(count)
    ]


@pytest.fixture
def sample_packages():
    return _sample_packages


@pytest.fixture
def use_recommendations():
    """Route the dispatcher to a MockTransport; returns the list of captured requests."""

    def _use(handler) -> list[httpx.Request]:
        seen: list[httpx.Request] = []

        def _capture(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        search_dispatcher.client = RecommendationClient(
            base_url="http://reco.test",
            api_token="",
            transport=httpx.MockTransport(_capture),
        )
        return seen

    return _use

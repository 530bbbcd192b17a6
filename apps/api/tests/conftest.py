import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from config import settings
from database import Base, get_db
from main import app
from routers.dependencies import get_identity_resolver, get_post_validator
from services.posts import MockPostsClient
from services.users import MockUsersClient


INTERNAL_TOKEN = "test-internal-token-0123456789"
INTERNAL_HEADERS = {"X-Internal-Token": INTERNAL_TOKEN}
VALID_CREDENTIAL = "Bearer valid-credential"


@pytest.fixture(autouse=True)
def configure_settings(monkeypatch):
    """Pin settings that the routers read at request time."""
    monkeypatch.setattr(settings, "INTERNAL_TOKEN", INTERNAL_TOKEN)
    monkeypatch.setattr(settings, "EVENT_STORE_BACKEND", "sql")


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    db_path = tmp_path / "engagement.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield maker

    await engine.dispose()


@pytest_asyncio.fixture
async def engagement_client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_resolver] = lambda: MockUsersClient()
    app.dependency_overrides[get_post_validator] = lambda: MockPostsClient()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client, session_maker

    app.dependency_overrides.clear()

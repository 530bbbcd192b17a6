import pytest

from config import settings, validate_security_settings
from database import async_database_url, engine_options
from routers import dependencies
from services.event_store import InMemoryEventStore, SqlEventStore
from services.posts import MockPostsClient, PostsServiceClient
from services.users import MockUsersClient, UsersServiceClient


@pytest.mark.parametrize("token", ["", "change_me_internal_token", "short-token"])
def test_insecure_internal_token_fails_fast(monkeypatch, token):
    monkeypatch.setattr(settings, "INTERNAL_TOKEN", token)
    with pytest.raises(ValueError):
        validate_security_settings()


def test_strong_internal_token_passes(monkeypatch):
    monkeypatch.setattr(settings, "INTERNAL_TOKEN", "a-strong-internal-token-value")
    validate_security_settings()


def test_database_url_uses_asyncpg_driver():
    assert async_database_url("postgresql://u:p@db:5432/x") == "postgresql+asyncpg://u:p@db:5432/x"
    assert async_database_url("postgres://u:p@db/x") == "postgresql+asyncpg://u:p@db/x"
    assert async_database_url("sqlite+aiosqlite:///tmp.db") == "sqlite+aiosqlite:///tmp.db"


def test_pool_is_bounded_for_server_databases(monkeypatch):
    monkeypatch.setattr(settings, "DB_POOL_SIZE", 5)
    monkeypatch.setattr(settings, "DB_POOL_TIMEOUT_SECONDS", 2.5)

    options = engine_options("postgresql+asyncpg://u:p@db/x")
    assert options["pool_size"] == 5
    assert options["max_overflow"] == 0
    assert options["pool_timeout"] == 2.5
    assert "pool_size" not in engine_options("sqlite+aiosqlite:///tmp.db")


@pytest.mark.asyncio
async def test_upstream_clients_follow_mock_setting(monkeypatch):
    await dependencies.close_upstream_clients()
    monkeypatch.setattr(settings, "USE_MOCK_UPSTREAMS", True)
    assert isinstance(dependencies.get_identity_resolver(), MockUsersClient)
    assert isinstance(dependencies.get_post_validator(), MockPostsClient)
    await dependencies.close_upstream_clients()

    monkeypatch.setattr(settings, "USE_MOCK_UPSTREAMS", False)
    assert isinstance(dependencies.get_identity_resolver(), UsersServiceClient)
    assert isinstance(dependencies.get_post_validator(), PostsServiceClient)
    await dependencies.close_upstream_clients()


@pytest.mark.asyncio
async def test_event_store_backend_selection(monkeypatch):
    monkeypatch.setattr(settings, "EVENT_STORE_BACKEND", "memory")
    memory_store = await dependencies.get_event_store(db=None)
    assert isinstance(memory_store, InMemoryEventStore)
    assert await dependencies.get_event_store(db=None) is memory_store

    monkeypatch.setattr(settings, "EVENT_STORE_BACKEND", "sql")
    assert isinstance(await dependencies.get_event_store(db=None), SqlEventStore)

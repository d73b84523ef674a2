"""Pytest fixtures for testing."""

from collections.abc import AsyncGenerator, Generator
from uuid import UUID

import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient

from bookmark_manager.auth import SessionCookieStorage
from bookmark_manager.db.config import get_config
from bookmark_manager.db.repository import BookmarkRepository
from bookmark_manager.models import AuthUser
from bookmark_manager.web.app import create_app
from bookmark_manager.web.dependencies import get_supabase

from .fakes import FakeBackend, FakeSupabaseClient


@pytest.fixture(autouse=True)
def env(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Configure the app for tests regardless of local .env."""
    monkeypatch.setenv("SUPABASE_URL", "https://project.supabase.test")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")
    monkeypatch.setenv("SITE_URL", "http://test")
    monkeypatch.setenv("SESSION_SECRET", "test-secret")
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL_DIRECT", raising=False)
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def alice(backend: FakeBackend) -> AuthUser:
    user = backend.add_user("alice@example.com", "access-alice", "refresh-alice")
    backend.codes["code-alice"] = "access-alice"
    return AuthUser(id=UUID(user.id), email=user.email)


@pytest.fixture
def bob(backend: FakeBackend) -> AuthUser:
    user = backend.add_user("bob@example.com", "access-bob", "refresh-bob")
    backend.codes["code-bob"] = "access-bob"
    return AuthUser(id=UUID(user.id), email=user.email)


@pytest.fixture
def supabase(backend: FakeBackend) -> FakeSupabaseClient:
    return FakeSupabaseClient(backend, SessionCookieStorage({}))


@pytest.fixture
def repository(supabase: FakeSupabaseClient) -> BookmarkRepository:
    return BookmarkRepository(supabase)  # type: ignore[arg-type]


@pytest.fixture
def app(backend: FakeBackend) -> FastAPI:
    app = create_app()

    async def override_get_supabase(request: Request) -> FakeSupabaseClient:
        return FakeSupabaseClient(backend, SessionCookieStorage(request.session))

    app.dependency_overrides[get_supabase] = override_get_supabase
    return app


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client


async def sign_in(client: AsyncClient, code: str) -> None:
    """Run the OAuth redirect flow against the fake provider."""
    response = await client.get("/auth/login")
    assert response.status_code == 303
    response = await client.get("/auth/callback", params={"code": code, "next": "/dashboard"})
    assert response.status_code == 303
    assert response.headers["location"] == "/dashboard"


@pytest.fixture
async def alice_client(client: AsyncClient, alice: AuthUser) -> AsyncClient:
    await sign_in(client, "code-alice")
    return client

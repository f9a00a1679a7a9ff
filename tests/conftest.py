"""Shared test fixtures for authcore."""

from collections.abc import AsyncIterator, Callable
from functools import partial

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from authcore.core.app import create_app
from authcore.core.settings import AuthSettings
from authcore.db.base import BaseEntity
from authcore.db.engine import get_session
from authcore.db.repo_refresh import RefreshTokenStore
from authcore.federation.client import OIDCClient
from authcore.federation.registry import ClientRegistry
from authcore.federation.types import Provider, ProviderRegistration
from authcore.tokens.service import TokenService
from tests.fakes import (
    ACCESS_SECRET,
    REFRESH_SECRET,
    FakeIdentityProvider,
    MemoryCredentialStore,
    build_registrations,
)


@pytest.fixture(autouse=True)
def _set_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for test settings."""
    monkeypatch.setenv("AUTH_ACCESS_TOKEN_SECRET", ACCESS_SECRET)
    monkeypatch.setenv("AUTH_REFRESH_TOKEN_SECRET", REFRESH_SECRET)
    monkeypatch.setenv("AUTH_LOG_LEVEL", "DEBUG")


@pytest.fixture
def settings() -> AuthSettings:
    return AuthSettings(
        access_token_secret=ACCESS_SECRET,
        refresh_token_secret=REFRESH_SECRET,
    )


@pytest.fixture
async def db_session() -> AsyncIterator[AsyncSession]:
    """Create an in-memory SQLite async session for tests."""
    engine = create_async_engine("sqlite+aiosqlite://", echo=False)

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, _rec) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(BaseEntity.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def service(db_session: AsyncSession, settings: AuthSettings) -> TokenService:
    """Token service over the SQL credential store."""
    return TokenService(RefreshTokenStore(db_session), settings)


@pytest.fixture
def memory_store() -> MemoryCredentialStore:
    return MemoryCredentialStore()


@pytest.fixture
def memory_service(
    memory_store: MemoryCredentialStore, settings: AuthSettings
) -> TokenService:
    return TokenService(memory_store, settings)


@pytest.fixture
def idp() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def registrations() -> Callable[[Provider], ProviderRegistration]:
    return build_registrations()


@pytest.fixture
def registry(
    idp: FakeIdentityProvider,
    registrations: Callable[[Provider], ProviderRegistration],
) -> ClientRegistry:
    """Client registry whose discovery goes to the fake provider."""
    return ClientRegistry(
        registrations,
        builder=partial(OIDCClient.discover, http_factory=idp.http_factory),
    )


@pytest.fixture
async def client(
    db_session: AsyncSession, registry: ClientRegistry
) -> AsyncIterator[AsyncClient]:
    """Create an httpx test client with DB session and registry overrides."""
    app = create_app(registry=registry)

    async def _override_session() -> AsyncIterator[AsyncSession]:
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_session] = _override_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="https://test") as ac:
        yield ac

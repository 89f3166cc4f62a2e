"""Shared fixtures: in-memory database, repository, session store and API client."""

import io
import zipfile
from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import skillstore.models  # noqa: F401
from skillstore.database import Base, get_db
from skillstore.main import app
from skillstore.repositories.skill_repo import SkillRepository
from skillstore.services.session_service import SessionStore


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def repo(db) -> SkillRepository:
    return SkillRepository(db)


@pytest.fixture
def store(db) -> SessionStore:
    return SessionStore(db, ttl=timedelta(minutes=10))


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_zip():
    """Build an in-memory ZIP from ``{path: content}``; a path ending in '/' is a directory."""

    def _make(entries: dict[str, str | bytes]) -> bytes:
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            for path, content in entries.items():
                if path.endswith("/"):
                    zf.writestr(zipfile.ZipInfo(path), b"")
                else:
                    zf.writestr(path, content)
        return buf.getvalue()

    return _make

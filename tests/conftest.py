"""Shared fixtures: one throwaway SQLite database per test, seeded users and services."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./unused.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("ENV", "test")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from app.core.db import get_session
from app.models import Service, UserRole
from tests.factories import make_user


@pytest.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'scheduling.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
def run(session_maker):
    """Run ``fn(session, ...)`` in its own transaction: commit on success, roll back on error.

    Mirrors the request-scoped session dependency so service calls behave as they do behind the API.
    """

    async def _run(fn, *args, **kwargs):
        async with session_maker() as session:
            try:
                result = await fn(session, *args, **kwargs)
                await session.commit()
                return result
            except Exception:
                await session.rollback()
                raise

    return _run


@pytest.fixture
def add(run):
    async def _add(obj):
        async def _insert(session):
            session.add(obj)
            await session.flush()
            await session.refresh(obj)
            return obj

        return await run(_insert)

    return _add


@pytest.fixture
async def customer(add):
    return await add(make_user("alice@example.com", UserRole.CUSTOMER))


@pytest.fixture
async def other_customer(add):
    return await add(make_user("bob@example.com", UserRole.CUSTOMER))


@pytest.fixture
async def admin(add):
    return await add(make_user("admin@example.com", UserRole.ADMIN))


@pytest.fixture
async def employee(add):
    return await add(make_user("mechanic@example.com", UserRole.EMPLOYEE))


@pytest.fixture
async def inactive_employee(add):
    return await add(make_user("retired@example.com", UserRole.EMPLOYEE, active=False))


@pytest.fixture
async def oil_change(add):
    return await add(Service(name="Oil Change", category="Maintenance", max_daily_slots=3))


@pytest.fixture
async def brake_repair(add):
    return await add(Service(name="Brake Repair", category="Repair", max_daily_slots=5))


@pytest.fixture
async def retired_service(add):
    return await add(Service(name="Carburetor Tuning", category="Legacy", max_daily_slots=2, is_active=False))


@pytest.fixture
async def client(session_maker):
    from app.main import app

    async def _override_get_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = _override_get_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()

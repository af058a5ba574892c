"""Shared pytest fixtures: a throwaway SQLite database, services and an API client."""

from datetime import datetime, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel

from app.db.session import create_engine_for_url, create_session_maker
from app.main import create_app
from app.services.click_recorder import ClickRecorder
from app.services.redirect_service import RedirectService


class FakeClock:
    """Manually advanced naive-UTC clock."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    # A file database (not :memory:) so click tasks on their own connections see the same data
    test_engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_maker(engine: AsyncEngine) -> async_sessionmaker:
    return create_session_maker(engine)


@pytest_asyncio.fixture
async def session(session_maker: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as db_session:
        yield db_session


@pytest_asyncio.fixture
async def click_recorder(session_maker: async_sessionmaker, clock: FakeClock) -> AsyncGenerator[ClickRecorder, None]:
    recorder = ClickRecorder(session_maker, clock=clock)
    yield recorder
    await recorder.drain()


@pytest.fixture
def service(session: AsyncSession, click_recorder: ClickRecorder, clock: FakeClock) -> RedirectService:
    return RedirectService(session, click_recorder, clock=clock)


@pytest_asyncio.fixture
async def app(engine: AsyncEngine):
    application = create_app(engine=engine)
    yield application
    await application.state.click_recorder.drain()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

"""Общие фикстуры: in-memory SQLite (aiosqlite), своя схема на каждый тест."""

import itertools
import os

# До импорта config: settings читаются при импорте модуля
os.environ.setdefault("BOT_TOKEN", "123456:TEST-TOKEN")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FILE", "")

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from db import Base, build_session_maker  # noqa: E402
import models  # noqa: E402,F401
from repositories import create_user  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine():
    test_engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_maker(engine):
    return build_session_maker(engine)


@pytest.fixture
async def db(session_maker):
    """Прямая сессия для тестов сервисов и репозиториев."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def make_user(db):
    """Фабрика зарегистрированных пользователей: await make_user("Alice")."""
    counter = itertools.count(1)

    async def _make(first_name: str = "Traveler", **fields):
        n = next(counter)
        fields.setdefault("telegram_id", 10_000 + n)
        fields.setdefault("username", f"{first_name.lower()}_{n}")
        return await create_user(db, first_name=first_name, **fields)

    return _make


@pytest.fixture
async def trio(make_user):
    """A (id=1), B (id=2), C (id=3): в порядке регистрации."""
    alice = await make_user("Alice", age=27, gender="female", about="Горы и поезда")
    bob = await make_user("Bobby", age=31, gender="male")
    carl = await make_user("Carl", age=45, gender="others")
    return alice, bob, carl

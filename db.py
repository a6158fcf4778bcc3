# db.py
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from config import settings


class Base(DeclarativeBase):
    pass


def build_engine(url: str, *, echo: bool = False):
    return create_async_engine(url, echo=echo)


def build_session_maker(bind) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: объекты остаются читаемыми после commit в хендлерах
    return async_sessionmaker(
        bind,
        expire_on_commit=False,
        class_=AsyncSession,
    )


engine = build_engine(settings.database_url)
async_session_maker = build_session_maker(engine)

# init_db.py
import asyncio
import sys

from db import Base, engine


async def init_db(*, create_tables: bool = False) -> None:
    """
    Проверка подключения к базе.

    Схема живёт в Alembic-миграциях (alembic upgrade head).
    create_tables=True: только для локальной разработки на SQLite.
    """
    import models  # noqa: F401  # регистрирует таблицы в Base.metadata

    async with engine.begin() as conn:
        if create_tables:
            await conn.run_sync(Base.metadata.create_all)


if __name__ == "__main__":
    # python -m init_db --create
    asyncio.run(init_db(create_tables="--create" in sys.argv[1:]))

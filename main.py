# main.py
import asyncio
from contextlib import suppress

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.fsm.storage.memory import MemoryStorage

from config import settings
from init_db import init_db
from handlers import (
    start_router,
    profile_router,
    feed_router,
    connection_requests_router,
)
from handlers.errors import setup_error_handlers
from logging_config import setup_logging
from middlewares.auth import AuthMiddleware
from middlewares.db import DbSessionMiddleware
from middlewares.logging_context import LoggingContextMiddleware


def build_dispatcher() -> Dispatcher:
    dp = Dispatcher(storage=MemoryStorage())

    # Порядок важен: контекст логов -> сессия БД -> кто пишет (нужна сессия)
    dp.update.outer_middleware(LoggingContextMiddleware())
    dp.update.outer_middleware(DbSessionMiddleware())
    dp.update.outer_middleware(AuthMiddleware())

    # start первым: /start и /help работают даже посреди анкеты
    dp.include_router(start_router)
    dp.include_router(profile_router)
    dp.include_router(feed_router)
    dp.include_router(connection_requests_router)
    return dp


async def main() -> None:
    logger = setup_logging()
    logger.info("Starting TravelMatch bot in %s environment", settings.env)

    try:
        await init_db(create_tables=settings.env == "dev")
    except Exception:
        logger.exception("Database initialization failed")
        return

    logger.info("Database is initialized")

    bot = Bot(
        token=settings.bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )
    dp = build_dispatcher()
    setup_error_handlers(dp, bot)
    logger.info("Routers, middlewares and error handlers are configured")

    try:
        logger.info("Starting polling")
        await dp.start_polling(bot)
    except asyncio.CancelledError:
        logger.info("Bot polling cancelled, shutting down...")
    finally:
        with suppress(Exception):
            await bot.session.close()
        logger.info("Bot shutdown complete")


if __name__ == "__main__":
    asyncio.run(main())

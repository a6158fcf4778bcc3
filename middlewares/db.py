# middlewares/db.py
from typing import Any, Awaitable, Callable, Dict
import logging

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject, Message, CallbackQuery, Update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from db import async_session_maker

logger = logging.getLogger(__name__)


class DbSessionMiddleware(BaseMiddleware):
    """
    Своя AsyncSession на каждый апдейт: каждая операция идёт
    отдельной единицей работы, общего состояния кроме БД нет.

    Необработанная ошибка хендлера: rollback, пользователю уходит короткое
    сообщение, дальше исключение летит в dp.errors (лог + алерт админу).
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession] | None = None):
        self.session_maker = session_maker or async_session_maker

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        async with self.session_maker() as session:
            data["session"] = session
            try:
                return await handler(event, data)
            except Exception:
                await session.rollback()
                await _notify_user_about_error(event)
                raise


async def _notify_user_about_error(event: TelegramObject) -> None:
    if isinstance(event, Update):
        event = event.callback_query or event.message or event

    try:
        if isinstance(event, CallbackQuery):
            await event.answer("Что-то пошло не так, попробуй ещё раз 🛠", show_alert=True)
        elif isinstance(event, Message):
            await event.answer("Упс, случилась ошибка. Попробуй ещё раз чуть позже.")
    except Exception:
        logger.exception("Failed to send error notification to user")

# middlewares/auth.py
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject, User as TgUser

from services import get_user_by_telegram_id

logger = logging.getLogger(__name__)


class AuthMiddleware(BaseMiddleware):
    """
    Аутентификация = Telegram.

    Кладёт в data["current_user"] строку users (или None, если человек ещё не
    зарегистрирован). Хендлеры берут отсюда actor id и передают его в сервисы
    явным аргументом.

    Должен стоять после DbSessionMiddleware: нужен data["session"].
    """

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        tg_user: TgUser | None = data.get("event_from_user")
        session = data.get("session")

        current_user = None
        if tg_user is not None and session is not None:
            current_user = await get_user_by_telegram_id(session, tg_user.id)
        elif session is None:
            logger.warning("auth_middleware_without_session event=%s", type(event).__name__)

        data["current_user"] = current_user
        return await handler(event, data)

# handlers/errors.py
from __future__ import annotations

import logging

from aiogram import Bot, Dispatcher
from aiogram.types import ErrorEvent

from config import settings
from exceptions import TravelMatchError

logger = logging.getLogger(__name__)


def build_admin_alert(event: ErrorEvent) -> str:
    """Короткое уведомление админу: кто, где, что упало."""
    exception = event.exception
    update = event.update

    user_id = None
    chat_id = None
    if update.callback_query:
        user_id = update.callback_query.from_user.id
        if update.callback_query.message:
            chat_id = update.callback_query.message.chat.id
    elif update.message:
        chat_id = update.message.chat.id
        if update.message.from_user:
            user_id = update.message.from_user.id

    lines = ["🔥 Ошибка в боте."]
    if user_id:
        lines.append(f"Пользователь: {user_id}")
    if chat_id:
        lines.append(f"Чат: {chat_id}")
    lines.append(f"Исключение: {type(exception).__name__}")
    if isinstance(exception, TravelMatchError):
        lines.append(f"Код: {exception.code}")
    return "\n".join(lines)


def setup_error_handlers(dp: Dispatcher, bot: Bot) -> None:
    @dp.errors()
    async def error_handler(event: ErrorEvent) -> None:
        logger.error(
            "Unhandled error while processing update %s",
            event.update.update_id,
            exc_info=event.exception,
        )

        if not settings.admin_chat_id:
            return

        try:
            await bot.send_message(
                chat_id=settings.admin_chat_id,
                text=build_admin_alert(event),
            )
        except Exception:
            logger.debug("Failed to send error notification to admin", exc_info=True)

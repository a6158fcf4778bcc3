# middlewares/logging_context.py
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import Chat, Update, User

from logging_config import bind_log_context, reset_log_context

logger = logging.getLogger(__name__)


class LoggingContextMiddleware(BaseMiddleware):
    """
    На время обработки апдейта прокидывает user_id / chat_id / update_id
    в contextvars, их подхватывают форматеры из logging_config.

    user/chat берём у aiogram (UserContextMiddleware уже отработал).
    """

    async def __call__(
        self,
        handler: Callable[[Update, Dict[str, Any]], Awaitable[Any]],
        event: Update,
        data: Dict[str, Any],
    ) -> Any:
        user: User | None = data.get("event_from_user")
        chat: Chat | None = data.get("event_chat")
        update_id = getattr(event, "update_id", None)

        tokens = bind_log_context(
            user_id=user.id if user else None,
            chat_id=chat.id if chat else None,
            update_id=update_id,
        )
        try:
            return await handler(event, data)
        finally:
            reset_log_context(tokens)

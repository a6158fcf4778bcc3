# handlers/common.py
import logging

from aiogram.exceptions import TelegramBadRequest
from aiogram.types import CallbackQuery, Message
from aiogram.utils.keyboard import ReplyKeyboardBuilder

from constants import MENU_CONNECTIONS, MENU_FEED, MENU_PROFILE, MENU_REQUESTS

logger = logging.getLogger(__name__)


def build_main_menu_keyboard() -> ReplyKeyboardBuilder:
    kb = ReplyKeyboardBuilder()
    kb.button(text=MENU_FEED)
    kb.button(text=MENU_REQUESTS)
    kb.button(text=MENU_CONNECTIONS)
    kb.button(text=MENU_PROFILE)
    kb.adjust(2, 2)
    return kb


def parse_callback_id(data: str | None) -> int | None:
    """'prefix:123' -> 123, всё остальное -> None."""
    if not data or ":" not in data:
        return None
    raw_id = data.rsplit(":", 1)[1]
    try:
        return int(raw_id)
    except ValueError:
        return None


async def answer_not_registered(event: Message | CallbackQuery) -> None:
    text = "Сначала заполни анкету — нажми /start"
    if isinstance(event, CallbackQuery):
        await event.answer(text, show_alert=True)
    else:
        await event.answer(text)


async def append_status_to_message(callback: CallbackQuery, suffix: str) -> None:
    """Дописываем итог к сообщению с кнопками и убираем клавиатуру."""
    message = callback.message
    if message is None:
        return

    base_text = message.html_text if (message.text or message.caption) else ""
    new_text = f"{base_text}\n\n{suffix}" if base_text else suffix

    try:
        if message.text is not None:
            await message.edit_text(new_text, reply_markup=None)
        else:
            await message.edit_caption(caption=new_text, reply_markup=None)
    except TelegramBadRequest:
        logger.debug(
            "message_status_edit_failed user_id=%s",
            callback.from_user.id,
            exc_info=True,
        )

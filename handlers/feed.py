# handlers/feed.py
import logging

from aiogram import Router, F, Bot
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message
from aiogram.utils.keyboard import InlineKeyboardBuilder
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from constants import MENU_FEED, STATUS_LIKE, STATUS_PASS
from exceptions import DuplicateRequest, TravelMatchError
from models import User
from schemas import PublicProfile
from services import get_feed, send_connection_request
from views import format_profile_card
from .common import answer_not_registered

router = Router()
logger = logging.getLogger(__name__)


# ===== вспомогалки =====


def _parse_feed_args(args: str | None) -> tuple[int | None, int | None]:
    """'/feed 2 20' -> (2, 20). Мусор игнорируем: дальше сработают дефолты."""
    page = limit = None
    parts = (args or "").split()
    try:
        if len(parts) >= 1:
            page = int(parts[0])
        if len(parts) >= 2:
            limit = int(parts[1])
    except ValueError:
        logger.info("feed_args_invalid args=%r", args)
    return page, limit


async def _send_feed_card(
    *,
    source_message: Message,
    profile: PublicProfile,
    bot: Bot,
):
    """Карточка кандидата + ❤️ / 👎. Контактов в карточке нет."""
    text = format_profile_card(profile)

    kb = InlineKeyboardBuilder()
    kb.button(text="❤️ Нравится", callback_data=f"feed:{STATUS_LIKE}:{profile.id}")
    kb.button(text="👎 Пропустить", callback_data=f"feed:{STATUS_PASS}:{profile.id}")
    kb.adjust(2)

    if profile.image:
        await bot.send_photo(
            chat_id=source_message.chat.id,
            photo=profile.image,
            caption=text,
            reply_markup=kb.as_markup(),
        )
    else:
        await source_message.answer(text, reply_markup=kb.as_markup())


async def _load_feed_page(
    *,
    state: FSMContext,
    session: AsyncSession,
    user_id: int,
    page: int | None,
    limit: int | None,
) -> list[PublicProfile]:
    feed = await get_feed(
        session,
        user_id=user_id,
        page=page,
        limit=limit or settings.feed_page_size,
    )
    await state.update_data(
        feed_items=[item.model_dump() for item in feed.items],
        feed_index=0,
        feed_page=feed.page,
        feed_limit=feed.limit,
    )
    return feed.items


async def _next_feed_profile(
    *,
    state: FSMContext,
    session: AsyncSession,
    user_id: int,
) -> PublicProfile | None:
    """
    Следующая карточка из кэша в FSM.

    На карточку отвечают только like/pass, поэтому когда страница кончилась,
    тот же номер страницы отдаёт уже новых людей.
    """
    data = await state.get_data()
    items: list[dict] = data.get("feed_items") or []
    index = (data.get("feed_index") or 0) + 1

    if index < len(items):
        await state.update_data(feed_index=index)
        return PublicProfile.model_validate(items[index])

    fresh = await _load_feed_page(
        state=state,
        session=session,
        user_id=user_id,
        page=data.get("feed_page"),
        limit=data.get("feed_limit"),
    )
    return fresh[0] if fresh else None


async def _answer_feed_empty(message: Message):
    await message.answer(
        "Анкеты закончились — ты посмотрел всех.\nЗагляни позже, появятся новые."
    )


# ===== /feed и кнопка меню =====


@router.message(Command("feed"))
@router.message(F.text == MENU_FEED)
async def cmd_feed(
    message: Message,
    state: FSMContext,
    session: AsyncSession,
    bot: Bot,
    current_user: User | None,
    command: CommandObject | None = None,
):
    if current_user is None:
        await answer_not_registered(message)
        return

    page, limit = _parse_feed_args(command.args if command else None)
    logger.info(
        "feed_opened user_id=%s page=%s limit=%s",
        current_user.id,
        page,
        limit,
    )

    items = await _load_feed_page(
        state=state,
        session=session,
        user_id=current_user.id,
        page=page,
        limit=limit,
    )
    if not items:
        await _answer_feed_empty(message)
        return

    await _send_feed_card(source_message=message, profile=items[0], bot=bot)


# ===== ❤️ / 👎 =====


@router.callback_query(F.data.startswith("feed:"))
async def feed_action_callback(
    callback: CallbackQuery,
    state: FSMContext,
    session: AsyncSession,
    bot: Bot,
    current_user: User | None,
):
    if current_user is None:
        await answer_not_registered(callback)
        return

    # после rollback в гонке current_user будет expired
    user_id = current_user.id

    try:
        _, action, raw_id = callback.data.split(":", 2)
        target_id = int(raw_id)
    except ValueError:
        logger.warning(
            "feed_action_invalid_data user_id=%s data=%s",
            user_id,
            callback.data,
        )
        await callback.answer("Что-то пошло не так", show_alert=True)
        return

    try:
        await send_connection_request(
            session,
            actor_id=user_id,
            target_id=target_id,
            action=action,
        )
    except DuplicateRequest as e:
        # с этим человеком уже есть история: просто идём дальше
        await callback.answer(e.message)
    except TravelMatchError as e:
        await callback.answer(e.message, show_alert=True)
        return
    else:
        await callback.answer("❤️ Лайк отправлен" if action == STATUS_LIKE else "👎")

    try:
        await callback.message.delete()
    except TelegramBadRequest:
        logger.debug(
            "feed_card_delete_failed user_id=%s",
            user_id,
            exc_info=True,
        )

    profile = await _next_feed_profile(
        state=state,
        session=session,
        user_id=user_id,
    )
    if profile is None:
        await _answer_feed_empty(callback.message)
        return

    await _send_feed_card(source_message=callback.message, profile=profile, bot=bot)

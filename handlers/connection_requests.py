# handlers/connection_requests.py
import logging

from aiogram import Router, F, Bot
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message
from aiogram.utils.keyboard import InlineKeyboardBuilder
from sqlalchemy.ext.asyncio import AsyncSession

from constants import MENU_CONNECTIONS, MENU_REQUESTS, STATUS_ACCEPT, STATUS_REJECT
from exceptions import TravelMatchError
from models import User
from schemas import PublicProfile
from services import (
    get_connection_contact,
    get_connections,
    get_pending_requests,
    review_connection_request,
)
from views import (
    format_connections_summary,
    format_pending_request,
    format_profile_card,
    html_safe,
)
from .common import answer_not_registered, append_status_to_message, parse_callback_id

router = Router()
logger = logging.getLogger(__name__)

REVIEW_CALLBACKS = {
    "conn_accept": STATUS_ACCEPT,
    "conn_reject": STATUS_REJECT,
}


async def _send_card(
    *,
    message: Message,
    bot: Bot,
    profile: PublicProfile,
    text: str,
    kb: InlineKeyboardBuilder,
):
    if profile.image:
        await bot.send_photo(
            chat_id=message.chat.id,
            photo=profile.image,
            caption=text,
            reply_markup=kb.as_markup(),
        )
    else:
        await message.answer(text, reply_markup=kb.as_markup())


# ===== входящие лайки =====


@router.message(Command("requests"))
@router.message(F.text == MENU_REQUESTS)
async def cmd_requests(
    message: Message,
    session: AsyncSession,
    bot: Bot,
    current_user: User | None,
):
    if current_user is None:
        await answer_not_registered(message)
        return

    pending = await get_pending_requests(session, user_id=current_user.id)
    if not pending:
        await message.answer("Новых лайков пока нет 💤")
        return

    await message.answer(f"Тебя лайкнули: {len(pending)}")
    for item in pending:
        kb = InlineKeyboardBuilder()
        kb.button(text="✅ Принять", callback_data=f"conn_accept:{item.request.id}")
        kb.button(text="❌ Отклонить", callback_data=f"conn_reject:{item.request.id}")
        kb.adjust(2)
        await _send_card(
            message=message,
            bot=bot,
            profile=item.sender,
            text=format_pending_request(item),
            kb=kb,
        )


@router.callback_query(F.data.startswith("conn_accept:") | F.data.startswith("conn_reject:"))
async def conn_review_callback(
    callback: CallbackQuery,
    session: AsyncSession,
    current_user: User | None,
):
    if current_user is None:
        await answer_not_registered(callback)
        return

    prefix = callback.data.split(":", 1)[0]
    decision = REVIEW_CALLBACKS[prefix]
    request_id = parse_callback_id(callback.data)
    if request_id is None:
        await callback.answer("Неверная заявка", show_alert=True)
        return

    try:
        result = await review_connection_request(
            session,
            actor_id=current_user.id,
            request_id=request_id,
            decision=decision,
        )
    except TravelMatchError as e:
        await callback.answer(e.message, show_alert=True)
        return

    if decision == STATUS_REJECT:
        await append_status_to_message(callback, "❌ Заявка отклонена.")
        await callback.answer("Отклонено ❌")
        return

    await append_status_to_message(callback, "✅ Заявка принята.")

    counterpart = result.counterpart
    contact = await get_connection_contact(
        session,
        user_id=current_user.id,
        other_user_id=counterpart.id,
    )
    if contact:
        contact_line = f"Можешь писать: {html_safe(contact)}"
    else:
        contact_line = (
            "У человека нет публичного @username.\n"
            "Твой контакт он увидит в разделе «Мэтчи»."
        )

    await callback.message.answer(
        f"Это мэтч 🎉\n\n{format_profile_card(counterpart)}\n\n{contact_line}"
    )
    await callback.answer("Заявка принята ✅")


# ===== взаимные мэтчи =====


@router.message(Command("connections"))
@router.message(F.text == MENU_CONNECTIONS)
async def cmd_connections(
    message: Message,
    session: AsyncSession,
    bot: Bot,
    current_user: User | None,
):
    if current_user is None:
        await answer_not_registered(message)
        return

    connections = await get_connections(session, user_id=current_user.id)
    await message.answer(format_connections_summary(connections))

    for profile in connections:
        kb = InlineKeyboardBuilder()
        kb.button(text="✉️ Контакт", callback_data=f"conn_contact:{profile.id}")
        await _send_card(
            message=message,
            bot=bot,
            profile=profile,
            text=format_profile_card(profile),
            kb=kb,
        )


@router.callback_query(F.data.startswith("conn_contact:"))
async def conn_contact_callback(
    callback: CallbackQuery,
    session: AsyncSession,
    current_user: User | None,
):
    if current_user is None:
        await answer_not_registered(callback)
        return

    other_user_id = parse_callback_id(callback.data)
    if other_user_id is None:
        await callback.answer("Неверный контакт", show_alert=True)
        return

    try:
        contact = await get_connection_contact(
            session,
            user_id=current_user.id,
            other_user_id=other_user_id,
        )
    except TravelMatchError as e:
        await callback.answer(e.message, show_alert=True)
        return

    await callback.answer(
        contact or "У человека нет @username — он может написать тебе сам 🙂",
        show_alert=True,
    )

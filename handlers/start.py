# handlers/start.py

import logging

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from models import User
from services import sync_username
from .common import build_main_menu_keyboard
from .profile import start_profile_registration

router = Router()
logger = logging.getLogger(__name__)


# ===== /start =====


@router.message(CommandStart())
async def cmd_start(
    message: Message,
    state: FSMContext,
    session: AsyncSession,
    current_user: User | None,
):
    logger.info(
        "cmd_start_called telegram_id=%s registered=%s",
        message.from_user.id,
        current_user is not None,
    )

    if current_user is None:
        # анкеты ещё нет: сразу в регистрацию
        await start_profile_registration(message, state, is_edit=False)
        return

    await sync_username(session, user=current_user, username=message.from_user.username)
    await state.clear()

    kb = build_main_menu_keyboard()
    await message.answer(
        f"Привет, {current_user.first_name}! Ищем попутчиков?",
        reply_markup=kb.as_markup(resize_keyboard=True),
    )


@router.message(Command("help"))
async def cmd_help(message: Message):
    logger.info("cmd_help_called telegram_id=%s", message.from_user.id)
    await message.answer(
        "Основное:\n"
        "/start — главное меню или регистрация\n"
        "/feed [страница] [сколько] — лента анкет\n"
        "/requests — кто тебя лайкнул\n"
        "/connections — взаимные мэтчи и контакты\n"
        "/profile — твой профиль\n"
        "/edit_profile — изменить профиль\n",
    )

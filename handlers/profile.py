# handlers/profile.py
import logging

from aiogram import Router, F, Bot
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State, StatesGroup
from aiogram.types import CallbackQuery, InlineKeyboardMarkup, Message, User as TgUser
from aiogram.utils.keyboard import InlineKeyboardBuilder
from sqlalchemy.ext.asyncio import AsyncSession

from constants import GENDER_OPTIONS, MENU_PROFILE
from exceptions import ProfileValidationError
from models import User
from services import register_user, update_profile_data, validate_profile_fields
from views import format_profile_text
from .common import answer_not_registered, build_main_menu_keyboard

router = Router()
logger = logging.getLogger(__name__)

# «Пропустить» на шаге about: при редактировании оставить старое значение
KEEP_ABOUT = object()

PROFILE_CANCEL_CB = "profile_cancel_edit"


class RegistrationStates(StatesGroup):
    first_name = State()
    last_name = State()
    age = State()
    gender = State()
    photo = State()
    about = State()


# ===== ВСПОМОГАТЕЛЬНОЕ =====


def _step_markup(*buttons: tuple[str, str], is_edit: bool) -> InlineKeyboardMarkup | None:
    kb = InlineKeyboardBuilder()
    for text, data in buttons:
        kb.button(text=text, callback_data=data)
    if is_edit:
        kb.button(text="Отменить редактирование", callback_data=PROFILE_CANCEL_CB)
    if not buttons and not is_edit:
        return None
    kb.adjust(1)
    return kb.as_markup()


async def _is_edit(state: FSMContext) -> bool:
    data = await state.get_data()
    return bool(data.get("is_edit"))


async def start_profile_registration(
    message: Message,
    state: FSMContext,
    *,
    is_edit: bool,
):
    """Общий старт: первичная регистрация (без отмены) и редактирование."""
    await state.clear()
    await state.set_state(RegistrationStates.first_name)
    await state.update_data(is_edit=is_edit)

    markup = _step_markup(("Взять имя из Telegram", "name_from_tg"), is_edit=is_edit)
    await message.answer(
        "Давай заполним анкету.\n\n"
        "Шаг 1 из 6. Как тебя зовут? (от 4 до 40 символов)",
        reply_markup=markup,
    )


async def _save_and_ask_last_name(message: Message, state: FSMContext, raw_name: str):
    try:
        cleaned = validate_profile_fields(first_name=raw_name)
    except ProfileValidationError as e:
        await message.answer(e.message)
        return

    await state.update_data(first_name=cleaned["first_name"])
    await state.set_state(RegistrationStates.last_name)
    markup = _step_markup(("Пропустить", "last_name_skip"), is_edit=await _is_edit(state))
    await message.answer("Шаг 2 из 6. Фамилия?", reply_markup=markup)


async def _ask_age(message: Message, state: FSMContext):
    await state.set_state(RegistrationStates.age)
    markup = _step_markup(is_edit=await _is_edit(state))
    await message.answer(
        "Шаг 3 из 6. Сколько тебе лет? (18+)",
        reply_markup=markup,
    )


async def _ask_photo(message: Message, state: FSMContext):
    await state.set_state(RegistrationStates.photo)
    markup = _step_markup(
        ("Взять фото из Telegram", "photo_from_tg"),
        ("Пропустить", "photo_skip"),
        is_edit=await _is_edit(state),
    )
    await message.answer(
        "Шаг 5 из 6. Пришли фото для анкеты.",
        reply_markup=markup,
    )


async def _ask_about(message: Message, state: FSMContext):
    await state.set_state(RegistrationStates.about)
    buttons = [("Пропустить", "about_skip")]
    is_edit = await _is_edit(state)
    if is_edit:
        buttons.append(("Очистить «О себе»", "about_clear"))
    markup = _step_markup(*buttons, is_edit=is_edit)
    await message.answer(
        "Шаг 6 из 6. Пара слов о себе и о том, куда хочешь поехать (до 300 символов).",
        reply_markup=markup,
    )


def _resolve_about(about, previous: User | None) -> str | None:
    """Пустой текст очищает поле, KEEP_ABOUT оставляет прежнее."""
    if about is KEEP_ABOUT:
        return previous.about if previous else None
    return about


async def _finish_profile(
    message: Message,
    state: FSMContext,
    session: AsyncSession,
    *,
    tg_user: TgUser,
    current_user: User | None,
    about: str | None | object,
):
    data = await state.get_data()
    # при редактировании «Пропустить» оставляет старое фото и описание
    previous = current_user
    fields = {
        "first_name": data.get("first_name"),
        "last_name": data.get("last_name") or "",
        "age": data.get("age"),
        "gender": data.get("gender"),
        "image": data.get("image", previous.image if previous else None),
        "about": _resolve_about(about, previous),
    }

    try:
        if current_user is None:
            user = await register_user(
                session,
                telegram_id=tg_user.id,
                username=tg_user.username,
                **fields,
            )
        else:
            user = await update_profile_data(session, user=current_user, **fields)
    except ProfileValidationError as e:
        await message.answer(e.message)
        return

    await state.clear()
    logger.info(
        "profile_flow_finished user_id=%s is_new=%s",
        user.id,
        current_user is None,
    )

    kb = build_main_menu_keyboard()
    await message.answer(
        "Анкета сохранена ✅\n\n" + format_profile_text(user),
        reply_markup=kb.as_markup(resize_keyboard=True),
    )


# ===== /profile и /edit_profile =====


@router.message(Command("profile"))
@router.message(F.text == MENU_PROFILE)
async def cmd_profile(message: Message, bot: Bot, current_user: User | None):
    if current_user is None:
        await answer_not_registered(message)
        return

    text = format_profile_text(
        current_user,
        fallback_username=message.from_user.username,
    )
    kb = InlineKeyboardBuilder()
    kb.button(text="✏️ Редактировать", callback_data="profile_edit")

    if current_user.image:
        await bot.send_photo(
            chat_id=message.chat.id,
            photo=current_user.image,
            caption=text,
            reply_markup=kb.as_markup(),
        )
    else:
        await message.answer(text, reply_markup=kb.as_markup())


@router.message(Command("edit_profile"))
async def cmd_edit_profile(message: Message, state: FSMContext, current_user: User | None):
    if current_user is None:
        await answer_not_registered(message)
        return
    await start_profile_registration(message, state, is_edit=True)


@router.callback_query(F.data == "profile_edit")
async def profile_edit_callback(
    callback: CallbackQuery,
    state: FSMContext,
    current_user: User | None,
):
    if current_user is None:
        await answer_not_registered(callback)
        return
    await callback.answer()
    await start_profile_registration(callback.message, state, is_edit=True)


@router.callback_query(F.data == PROFILE_CANCEL_CB)
async def profile_cancel_callback(callback: CallbackQuery, state: FSMContext):
    await state.clear()
    await callback.answer("Редактирование отменено")
    await callback.message.answer("Ок, анкета осталась прежней.")


# ===== Шаг 1: имя =====


@router.message(RegistrationStates.first_name, F.text)
async def process_first_name(message: Message, state: FSMContext):
    await _save_and_ask_last_name(message, state, message.text)


@router.callback_query(RegistrationStates.first_name, F.data == "name_from_tg")
async def process_name_from_tg(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    await _save_and_ask_last_name(
        callback.message, state, callback.from_user.first_name or ""
    )


# ===== Шаг 2: фамилия =====


@router.message(RegistrationStates.last_name, F.text)
async def process_last_name(message: Message, state: FSMContext):
    try:
        cleaned = validate_profile_fields(last_name=message.text)
    except ProfileValidationError as e:
        await message.answer(e.message)
        return
    await state.update_data(last_name=cleaned["last_name"])
    await _ask_age(message, state)


@router.callback_query(RegistrationStates.last_name, F.data == "last_name_skip")
async def process_last_name_skip(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    await state.update_data(last_name="")
    await _ask_age(callback.message, state)


# ===== Шаг 3: возраст =====


@router.message(RegistrationStates.age, F.text)
async def process_age(message: Message, state: FSMContext):
    try:
        cleaned = validate_profile_fields(age=message.text.strip())
    except ProfileValidationError as e:
        await message.answer(e.message)
        return

    await state.update_data(age=cleaned["age"])
    await state.set_state(RegistrationStates.gender)

    kb = InlineKeyboardBuilder()
    for label, code in GENDER_OPTIONS:
        kb.button(text=label, callback_data=f"gender:{code}")
    kb.adjust(3)
    await message.answer("Шаг 4 из 6. Пол:", reply_markup=kb.as_markup())


# ===== Шаг 4: пол =====


@router.callback_query(RegistrationStates.gender, F.data.startswith("gender:"))
async def process_gender(callback: CallbackQuery, state: FSMContext):
    _, code = callback.data.split(":", 1)
    try:
        cleaned = validate_profile_fields(gender=code)
    except ProfileValidationError as e:
        await callback.answer(e.message, show_alert=True)
        return

    await callback.answer()
    await state.update_data(gender=cleaned["gender"])
    await _ask_photo(callback.message, state)


# ===== Шаг 5: фото =====


@router.message(RegistrationStates.photo, F.photo)
async def process_photo(message: Message, state: FSMContext):
    await state.update_data(image=message.photo[-1].file_id)
    await _ask_about(message, state)


@router.callback_query(RegistrationStates.photo, F.data == "photo_from_tg")
async def process_photo_from_tg(callback: CallbackQuery, state: FSMContext, bot: Bot):
    photos = await bot.get_user_profile_photos(callback.from_user.id, limit=1)
    if photos.total_count > 0 and photos.photos:
        await state.update_data(image=photos.photos[0][-1].file_id)
        await callback.answer()
    else:
        await callback.answer("В Telegram нет фото, идём дальше")

    await _ask_about(callback.message, state)


@router.callback_query(RegistrationStates.photo, F.data == "photo_skip")
async def process_photo_skip(callback: CallbackQuery, state: FSMContext):
    await callback.answer()
    await _ask_about(callback.message, state)


# ===== Шаг 6: о себе =====


@router.message(RegistrationStates.about, F.text)
async def process_about(
    message: Message,
    state: FSMContext,
    session: AsyncSession,
    current_user: User | None,
):
    try:
        cleaned = validate_profile_fields(about=message.text)
    except ProfileValidationError as e:
        await message.answer(e.message)
        return

    await _finish_profile(
        message,
        state,
        session,
        tg_user=message.from_user,
        current_user=current_user,
        about=cleaned["about"],
    )


@router.callback_query(RegistrationStates.about, F.data == "about_skip")
async def process_about_skip(
    callback: CallbackQuery,
    state: FSMContext,
    session: AsyncSession,
    current_user: User | None,
):
    await callback.answer()
    await _finish_profile(
        callback.message,
        state,
        session,
        tg_user=callback.from_user,
        current_user=current_user,
        about=KEEP_ABOUT,
    )


@router.callback_query(RegistrationStates.about, F.data == "about_clear")
async def process_about_clear(
    callback: CallbackQuery,
    state: FSMContext,
    session: AsyncSession,
    current_user: User | None,
):
    await callback.answer()
    await _finish_profile(
        callback.message,
        state,
        session,
        tg_user=callback.from_user,
        current_user=current_user,
        about=None,
    )

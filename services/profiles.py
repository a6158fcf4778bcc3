# services/profiles.py
import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from constants import (
    ABOUT_MAX_LEN,
    AGE_MAX,
    AGE_MIN,
    EDITABLE_PROFILE_FIELDS,
    FIRST_NAME_MAX_LEN,
    FIRST_NAME_MIN_LEN,
    GENDER_CODES,
    LAST_NAME_MAX_LEN,
)
from exceptions import InvalidProfileUpdate, ProfileValidationError, TargetNotFound
from models import User
from repositories import (
    create_user,
    get_user_by_id,
    get_user_by_telegram_id as repo_get_user_by_telegram_id,
    update_user,
)
from schemas import PublicProfile

logger = logging.getLogger(__name__)


# ===== валидация =====


def validate_profile_fields(**fields: Any) -> dict[str, Any]:
    """
    Проверяет и нормализует поля профиля (trim, lower для gender).
    Проверяются только переданные поля. Возвращает очищенный dict.
    """
    cleaned: dict[str, Any] = {}

    if "first_name" in fields:
        first_name = (fields["first_name"] or "").strip()
        if not FIRST_NAME_MIN_LEN <= len(first_name) <= FIRST_NAME_MAX_LEN:
            raise ProfileValidationError(
                "first_name",
                f"Имя должно быть от {FIRST_NAME_MIN_LEN} до "
                f"{FIRST_NAME_MAX_LEN} символов",
            )
        cleaned["first_name"] = first_name

    if "last_name" in fields:
        last_name = (fields["last_name"] or "").strip()
        if len(last_name) > LAST_NAME_MAX_LEN:
            raise ProfileValidationError(
                "last_name",
                f"Фамилия не длиннее {LAST_NAME_MAX_LEN} символов",
            )
        cleaned["last_name"] = last_name

    if "age" in fields:
        age = fields["age"]
        if age is not None:
            try:
                age = int(age)
            except (TypeError, ValueError):
                raise ProfileValidationError("age", "Возраст — это число") from None
            if not AGE_MIN <= age <= AGE_MAX:
                raise ProfileValidationError(
                    "age",
                    f"Возраст должен быть от {AGE_MIN} до {AGE_MAX}",
                )
        cleaned["age"] = age

    if "gender" in fields:
        gender = fields["gender"]
        if gender is not None:
            gender = str(gender).strip().lower()
            if gender not in GENDER_CODES:
                raise ProfileValidationError(
                    "gender",
                    f"Пол: одно из {', '.join(GENDER_CODES)}",
                )
        cleaned["gender"] = gender

    if "image" in fields:
        cleaned["image"] = fields["image"] or None

    if "about" in fields:
        about = (fields["about"] or "").strip() or None
        if about and len(about) > ABOUT_MAX_LEN:
            raise ProfileValidationError(
                "about",
                f"«О себе» не длиннее {ABOUT_MAX_LEN} символов",
            )
        cleaned["about"] = about

    return cleaned


# ===== чтение =====


async def get_user_by_telegram_id(
    session: AsyncSession,
    telegram_id: int,
) -> User | None:
    user = await repo_get_user_by_telegram_id(session, telegram_id)
    logger.debug(
        "user_fetched telegram_id=%s found=%s",
        telegram_id,
        bool(user),
    )
    return user


async def get_public_profile(
    session: AsyncSession,
    user_id: int,
) -> PublicProfile:
    user = await get_user_by_id(session, user_id)
    if user is None:
        raise TargetNotFound(user_id)
    return PublicProfile.model_validate(user)


# ===== запись =====


async def register_user(
    session: AsyncSession,
    *,
    telegram_id: int,
    username: str | None,
    first_name: str,
    last_name: str = "",
    age: int | None = None,
    gender: str | None = None,
    image: str | None = None,
    about: str | None = None,
) -> User:
    """
    Создаём пользователя только когда анкета заполнена,
    полупустые профили в ленту не попадают.
    """
    cleaned = validate_profile_fields(
        first_name=first_name,
        last_name=last_name,
        age=age,
        gender=gender,
        image=image,
        about=about,
    )
    user = await create_user(
        session,
        telegram_id=telegram_id,
        username=username,
        **cleaned,
    )
    logger.info(
        "user_registered user_id=%s telegram_id=%s username=%s",
        user.id,
        telegram_id,
        username,
    )
    return user


async def update_profile_data(
    session: AsyncSession,
    *,
    user: User,
    **fields: Any,
) -> User:
    """
    Обновление профиля.

    Сначала whitelist: если есть хоть одно поле не из EDITABLE_PROFILE_FIELDS,
    не пишем ничего и кидаем InvalidProfileUpdate.
    """
    forbidden = sorted(name for name in fields if name not in EDITABLE_PROFILE_FIELDS)
    if forbidden:
        logger.info(
            "profile_update_rejected user_id=%s forbidden_fields=%s",
            user.id,
            ",".join(forbidden),
        )
        raise InvalidProfileUpdate(forbidden)

    cleaned = validate_profile_fields(**fields)
    updated = await update_user(session, user=user, fields=cleaned)

    logger.info(
        "profile_updated user_id=%s updated_fields=%s",
        user.id,
        ",".join(cleaned) if cleaned else "-",
    )
    return updated


async def sync_username(
    session: AsyncSession,
    *,
    user: User,
    username: str | None,
) -> User:
    """@username в Telegram может поменяться: держим контакт актуальным."""
    if user.username == username:
        return user
    return await update_user(session, user=user, fields={"username": username})

from datetime import datetime
from typing import Any, Iterable, Sequence

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from constants import STATUS_ACCEPT, STATUS_LIKE
from exceptions import DuplicateRequest
from models import ConnectionRequest, User, pair_key


# ===== ПОЛЬЗОВАТЕЛИ =====


async def get_user_by_id(
    session: AsyncSession,
    user_id: int,
) -> User | None:
    return await session.get(User, user_id)


async def get_user_by_telegram_id(
    session: AsyncSession,
    telegram_id: int,
) -> User | None:
    stmt = select(User).where(User.telegram_id == telegram_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def create_user(
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
    user = User(
        telegram_id=telegram_id,
        username=username,
        first_name=first_name,
        last_name=last_name,
        age=age,
        gender=gender,
        image=image,
        about=about,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def update_user(
    session: AsyncSession,
    *,
    user: User,
    fields: dict[str, Any],
) -> User:
    """Сохраняет уже проверенные поля. Whitelist проверяется в сервисе."""
    for name, value in fields.items():
        setattr(user, name, value)

    await session.commit()
    await session.refresh(user)
    return user


async def list_users_excluding(
    session: AsyncSession,
    *,
    exclude_ids: Iterable[int],
    skip: int,
    limit: int,
) -> Sequence[User]:
    """
    Кандидаты для ленты: все, кого нет в exclude_ids.
    Сортировка по id: порядок создания, пагинация стабильна между вызовами.
    """
    stmt = select(User)

    exclude = list(exclude_ids)
    if exclude:
        stmt = stmt.where(User.id.not_in(exclude))

    stmt = stmt.order_by(User.id).offset(skip).limit(limit)
    result = await session.execute(stmt)
    return result.scalars().all()


# ===== ЗАЯВКИ =====


async def get_request_between(
    session: AsyncSession,
    *,
    user_a: int,
    user_b: int,
) -> ConnectionRequest | None:
    """Запись для неупорядоченной пары, в каком бы направлении её ни создали."""
    low, high = pair_key(user_a, user_b)
    stmt = select(ConnectionRequest).where(
        ConnectionRequest.user_low_id == low,
        ConnectionRequest.user_high_id == high,
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def create_connection_request(
    session: AsyncSession,
    *,
    from_id: int,
    to_id: int,
    status: str,
) -> ConnectionRequest:
    """
    Вставка новой заявки.

    Уникальный индекс на (user_low_id, user_high_id): единственная
    настоящая защита от гонки двух параллельных send для одной пары.
    """
    low, high = pair_key(from_id, to_id)
    req = ConnectionRequest(
        from_user_id=from_id,
        to_user_id=to_id,
        user_low_id=low,
        user_high_id=high,
        status=status,
    )
    session.add(req)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise DuplicateRequest() from exc

    await session.refresh(req)
    return req


async def get_reviewable_request(
    session: AsyncSession,
    *,
    request_id: int,
    recipient_id: int,
) -> ConnectionRequest | None:
    """Один запрос: id + получатель + status=like. Без частичных проверок."""
    stmt = select(ConnectionRequest).where(
        ConnectionRequest.id == request_id,
        ConnectionRequest.to_user_id == recipient_id,
        ConnectionRequest.status == STATUS_LIKE,
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def update_connection_request_status(
    session: AsyncSession,
    *,
    request_id: int,
    expected_status: str,
    new_status: str,
) -> ConnectionRequest | None:
    """
    Compare-and-swap по статусу.
    None: строка не обновилась (статус уже сменил кто-то другой).
    """
    stmt = (
        update(ConnectionRequest)
        .where(
            ConnectionRequest.id == request_id,
            ConnectionRequest.status == expected_status,
        )
        .values(status=new_status, updated_at=datetime.utcnow())
    )
    result = await session.execute(stmt)
    # ничего не записали: просто закрываем транзакцию
    await session.commit()
    if result.rowcount != 1:
        return None

    return await session.get(ConnectionRequest, request_id, populate_existing=True)


async def list_connection_requests_involving(
    session: AsyncSession,
    user_id: int,
) -> Sequence[ConnectionRequest]:
    """Все записи, где пользователь отправитель или получатель, любой статус."""
    stmt = (
        select(ConnectionRequest)
        .where(
            or_(
                ConnectionRequest.from_user_id == user_id,
                ConnectionRequest.to_user_id == user_id,
            )
        )
        .order_by(ConnectionRequest.id)
    )
    result = await session.execute(stmt)
    return result.scalars().all()


async def list_pending_requests_with_senders(
    session: AsyncSession,
    *,
    user_id: int,
) -> list[tuple[ConnectionRequest, User]]:
    stmt = (
        select(ConnectionRequest, User)
        .join(User, User.id == ConnectionRequest.from_user_id)
        .where(
            ConnectionRequest.to_user_id == user_id,
            ConnectionRequest.status == STATUS_LIKE,
        )
        .order_by(ConnectionRequest.created_at, ConnectionRequest.id)
    )
    result = await session.execute(stmt)
    return [(req, sender) for req, sender in result.all()]


async def list_connected_users(
    session: AsyncSession,
    *,
    user_id: int,
) -> Sequence[User]:
    """Вторые участники всех accept-записей пользователя (сам он сюда не попадает)."""
    stmt = (
        select(User)
        .join(
            ConnectionRequest,
            or_(
                and_(
                    ConnectionRequest.from_user_id == user_id,
                    ConnectionRequest.to_user_id == User.id,
                ),
                and_(
                    ConnectionRequest.to_user_id == user_id,
                    ConnectionRequest.from_user_id == User.id,
                ),
            ),
        )
        .where(ConnectionRequest.status == STATUS_ACCEPT)
        .order_by(ConnectionRequest.id)
    )
    result = await session.execute(stmt)
    return result.scalars().all()

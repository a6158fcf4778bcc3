# services/feed.py
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from constants import (
    FEED_DEFAULT_LIMIT,
    FEED_DEFAULT_PAGE,
    FEED_MAX_LIMIT,
    FEED_MAX_PAGE,
)
from repositories import list_connection_requests_involving, list_users_excluding
from schemas import FeedPage, PublicProfile

logger = logging.getLogger(__name__)


def normalize_pagination(page: int | None, limit: int | None) -> tuple[int, int]:
    """
    page < 1 или None -> 1, page > FEED_MAX_PAGE -> FEED_MAX_PAGE (там всегда пусто)
    limit < 1 или None -> дефолт, limit > 50 -> 50
    """
    if not page or page < 1:
        page = FEED_DEFAULT_PAGE
    page = min(page, FEED_MAX_PAGE)

    if not limit or limit < 1:
        limit = FEED_DEFAULT_LIMIT
    limit = min(limit, FEED_MAX_LIMIT)

    return page, limit


async def get_interacted_user_ids(
    session: AsyncSession,
    user_id: int,
) -> set[int]:
    """
    Все, с кем у пользователя уже есть запись любого статуса
    (like / pass / accept / reject), в обе стороны.
    """
    requests = await list_connection_requests_involving(session, user_id)
    return {req.other_user_id(user_id) for req in requests}


async def get_feed(
    session: AsyncSession,
    *,
    user_id: int,
    page: int | None = None,
    limit: int | None = None,
) -> FeedPage:
    """
    Лента:
    - без самого пользователя
    - без всех, с кем уже было взаимодействие
    - в порядке регистрации, страница [offset, offset + limit)
    Общее количество не считаем.
    """
    page, limit = normalize_pagination(page, limit)
    offset = (page - 1) * limit

    excluded = await get_interacted_user_ids(session, user_id)

    users = await list_users_excluding(
        session,
        exclude_ids=excluded | {user_id},
        skip=offset,
        limit=limit,
    )
    items = [PublicProfile.model_validate(u) for u in users]

    logger.info(
        "feed_resolved user_id=%s page=%s limit=%s excluded=%s result_count=%s",
        user_id,
        page,
        limit,
        len(excluded),
        len(items),
    )

    return FeedPage(items=items, page=page, limit=limit, count=len(items))

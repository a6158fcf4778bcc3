# schemas.py
"""Read-only DTO, которые ядро возвращает наружу."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class PublicProfile(BaseModel):
    """Публичная проекция пользователя: без telegram_id и username."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    first_name: str
    last_name: str = ""
    age: int | None = None
    gender: str | None = None
    image: str | None = None
    about: str | None = None


class ConnectionRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    from_user_id: int
    to_user_id: int
    status: str
    created_at: datetime
    updated_at: datetime


class PendingRequest(BaseModel):
    request: ConnectionRequestOut
    sender: PublicProfile


class ReviewResult(BaseModel):
    request: ConnectionRequestOut
    # второй участник (тот, кто ставил лайк)
    counterpart: PublicProfile


class FeedPage(BaseModel):
    items: list[PublicProfile]
    page: int
    limit: int
    # размер этой страницы, НЕ общее число кандидатов
    count: int

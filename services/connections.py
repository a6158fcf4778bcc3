# services/connections.py
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from constants import REVIEW_DECISIONS, SEND_ACTIONS, STATUS_ACCEPT, STATUS_LIKE
from exceptions import (
    ConflictError,
    DuplicateRequest,
    InvalidAction,
    RequestNotFound,
    SelfRequest,
    TargetNotFound,
)
from models import ConnectionRequest
from repositories import (
    create_connection_request,
    get_request_between,
    get_reviewable_request,
    get_user_by_id,
    list_connected_users,
    list_pending_requests_with_senders,
    update_connection_request_status,
)
from schemas import ConnectionRequestOut, PendingRequest, PublicProfile, ReviewResult
from services.authorization import can_review, can_send

logger = logging.getLogger(__name__)


async def send_connection_request(
    session: AsyncSession,
    *,
    actor_id: int,
    target_id: int,
    action: str,
) -> ConnectionRequest:
    """
    like / pass от actor к target.

    Ошибки (по порядку проверок):
      - InvalidAction — action не like/pass
      - SelfRequest — попытка отправить себе
      - TargetNotFound — такого пользователя нет
      - DuplicateRequest — у пары уже есть запись в любом направлении
    """
    if action not in SEND_ACTIONS:
        raise InvalidAction(action, SEND_ACTIONS)

    if not can_send(actor_id, target_id):
        logger.info("connection_request_self actor_id=%s", actor_id)
        raise SelfRequest()

    target = await get_user_by_id(session, target_id)
    if target is None:
        logger.info(
            "connection_request_target_not_found actor_id=%s target_id=%s",
            actor_id,
            target_id,
        )
        raise TargetNotFound(target_id)

    # Быстрый ответ для обычного случая; гонку ловит уникальный индекс пары
    existing = await get_request_between(session, user_a=actor_id, user_b=target_id)
    if existing is not None:
        logger.info(
            "connection_request_duplicate actor_id=%s target_id=%s "
            "existing_id=%s existing_status=%s",
            actor_id,
            target_id,
            existing.id,
            existing.status,
        )
        raise DuplicateRequest()

    try:
        req = await create_connection_request(
            session,
            from_id=actor_id,
            to_id=target_id,
            status=action,
        )
    except DuplicateRequest:
        logger.warning(
            "connection_request_race_duplicate actor_id=%s target_id=%s",
            actor_id,
            target_id,
        )
        raise

    logger.info(
        "connection_request_created request_id=%s from_id=%s to_id=%s status=%s",
        req.id,
        req.from_user_id,
        req.to_user_id,
        req.status,
    )
    return req


async def review_connection_request(
    session: AsyncSession,
    *,
    actor_id: int,
    request_id: int,
    decision: str,
) -> ReviewResult:
    """
    accept / reject входящего лайка.

    RequestNotFound одинаковый для «нет заявки», «не тебе» и «уже обработана».
    ConflictError: параллельный review успел первым.
    """
    if decision not in REVIEW_DECISIONS:
        raise InvalidAction(decision, REVIEW_DECISIONS)

    req = await get_reviewable_request(
        session,
        request_id=request_id,
        recipient_id=actor_id,
    )
    if req is None or not can_review(actor_id, req):
        logger.info(
            "connection_request_review_not_found request_id=%s actor_id=%s",
            request_id,
            actor_id,
        )
        raise RequestNotFound()

    updated = await update_connection_request_status(
        session,
        request_id=request_id,
        expected_status=STATUS_LIKE,
        new_status=decision,
    )
    if updated is None:
        logger.warning(
            "connection_request_review_conflict request_id=%s actor_id=%s decision=%s",
            request_id,
            actor_id,
            decision,
        )
        raise ConflictError()

    sender = await get_user_by_id(session, updated.from_user_id)

    logger.info(
        "connection_request_reviewed request_id=%s from_id=%s to_id=%s status=%s",
        updated.id,
        updated.from_user_id,
        updated.to_user_id,
        updated.status,
    )

    return ReviewResult(
        request=ConnectionRequestOut.model_validate(updated),
        counterpart=PublicProfile.model_validate(sender),
    )


async def get_pending_requests(
    session: AsyncSession,
    *,
    user_id: int,
) -> list[PendingRequest]:
    """Входящие лайки, которые ещё ждут решения."""
    rows = await list_pending_requests_with_senders(session, user_id=user_id)
    pending = [
        PendingRequest(
            request=ConnectionRequestOut.model_validate(req),
            sender=PublicProfile.model_validate(sender),
        )
        for req, sender in rows
    ]
    logger.info(
        "connection_requests_pending_listed user_id=%s count=%s",
        user_id,
        len(pending),
    )
    return pending


async def get_connections(
    session: AsyncSession,
    *,
    user_id: int,
) -> list[PublicProfile]:
    """Взаимные мэтчи: всегда второй участник пары, никогда сам пользователь."""
    users = await list_connected_users(session, user_id=user_id)
    connections = [PublicProfile.model_validate(u) for u in users]
    logger.info(
        "connections_listed user_id=%s count=%s",
        user_id,
        len(connections),
    )
    return connections


async def get_connection_contact(
    session: AsyncSession,
    *,
    user_id: int,
    other_user_id: int,
) -> str | None:
    """
    Telegram-контакт второго участника, только при взаимном мэтче.
    None: мэтч есть, но у человека нет @username.
    """
    req = await get_request_between(session, user_a=user_id, user_b=other_user_id)
    if req is None or req.status != STATUS_ACCEPT or user_id == other_user_id:
        logger.info(
            "connection_contact_denied user_id=%s other_user_id=%s",
            user_id,
            other_user_id,
        )
        raise RequestNotFound()

    other = await get_user_by_id(session, other_user_id)
    username = other.username if other else None

    logger.info(
        "connection_contact_revealed user_id=%s other_user_id=%s has_username=%s",
        user_id,
        other_user_id,
        bool(username),
    )
    return f"@{username}" if username else None

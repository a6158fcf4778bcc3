# views/profiles.py
from typing import Sequence

from constants import GENDER_LABELS
from models import User
from schemas import PendingRequest, PublicProfile
from views.safe import html_safe


def _full_name(first_name: str | None, last_name: str | None) -> str:
    name = " ".join(part for part in (first_name, last_name) if part)
    return html_safe(name)


def _card_lines(profile: PublicProfile | User) -> list[str]:
    gender = profile.gender
    gender_label = html_safe(GENDER_LABELS.get(gender, gender or "—"))

    return [
        f"<b>{_full_name(profile.first_name, profile.last_name)}</b>",
        f"Возраст: {html_safe(profile.age)}",
        f"Пол: {gender_label}",
        f"О себе: {html_safe(profile.about)}",
    ]


def format_profile_text(
    user: User,
    *,
    fallback_username: str | None = None,
) -> str:
    """
    Свой профиль: для /profile, тут можно показывать @username.
    В ленте и заявках не используем.
    """
    username = html_safe(user.username or fallback_username, default="без username")

    lines = ["Твой профиль:", ""]
    lines.extend(_card_lines(user))
    lines.append(f"Telegram: @{username}")
    return "\n".join(lines)


def format_profile_card(profile: PublicProfile) -> str:
    """Публичная карточка: без контактов. Лента, входящие, мэтчи."""
    return "\n".join(_card_lines(profile))


def format_pending_request(pending: PendingRequest) -> str:
    created = pending.request.created_at.strftime("%d.%m.%Y")
    return (
        f"💌 Тебя лайкнули ({created})\n\n"
        f"{format_profile_card(pending.sender)}\n\n"
        "Контакты откроются, если ты примешь заявку."
    )


def format_connections_summary(connections: Sequence[PublicProfile]) -> str:
    if not connections:
        return "Пока нет взаимных мэтчей. Загляни в ленту 🔥"
    return f"Твои мэтчи: {len(connections)}"

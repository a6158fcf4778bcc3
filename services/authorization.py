# services/authorization.py
"""
Кто что может делать с заявками.

Чистые предикаты без состояния: их зовут мутирующие операции
services/connections.py, вызывать можно из любого количества корутин.
"""

from constants import STATUS_LIKE
from models import ConnectionRequest


def can_send(actor_id: int, target_id: int) -> bool:
    # существование target проверяет сервис, не гейт
    return actor_id != target_id


def can_review(actor_id: int, request: ConnectionRequest) -> bool:
    """Решать может только получатель, и только пока заявка в like."""
    return request.to_user_id == actor_id and request.status == STATUS_LIKE

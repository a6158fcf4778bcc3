# services/__init__.py
from .authorization import can_review, can_send
from .connections import (
    send_connection_request,
    review_connection_request,
    get_pending_requests,
    get_connections,
    get_connection_contact,
)
from .feed import get_feed, normalize_pagination
from .profiles import (
    get_user_by_telegram_id,
    get_public_profile,
    register_user,
    update_profile_data,
    validate_profile_fields,
    sync_username,
)

__all__ = [
    "can_review",
    "can_send",
    "send_connection_request",
    "review_connection_request",
    "get_pending_requests",
    "get_connections",
    "get_connection_contact",
    "get_feed",
    "normalize_pagination",
    "get_user_by_telegram_id",
    "get_public_profile",
    "register_user",
    "update_profile_data",
    "validate_profile_fields",
    "sync_username",
]

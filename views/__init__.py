# views/__init__.py
from .profiles import (
    format_profile_text,
    format_profile_card,
    format_pending_request,
    format_connections_summary,
)
from .safe import html_safe


__all__ = [
    "format_profile_text",
    "format_profile_card",
    "format_pending_request",
    "format_connections_summary",
    "html_safe",
]

# views/safe.py
from __future__ import annotations

from html import escape


def html_safe(value, default: str = "—") -> str:
    """
    Всё, что ввёл пользователь, перед ParseMode.HTML:
    None / пустая строка -> default, иначе экранируем.
    """
    if value is None:
        return default

    text = str(value).strip()
    return escape(text, quote=True) if text else default

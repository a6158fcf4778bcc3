# logging_config.py
from __future__ import annotations

import contextvars
import json
import logging
from logging.config import dictConfig
from typing import Any, Dict

from config import settings

# Контекст апдейта: кто, в каком чате, какой update
_CONTEXT_VARS: Dict[str, contextvars.ContextVar[str]] = {
    "user_id": contextvars.ContextVar("user_id", default="-"),
    "chat_id": contextvars.ContextVar("chat_id", default="-"),
    "update_id": contextvars.ContextVar("update_id", default="-"),
}


def bind_log_context(**values: Any) -> dict[str, contextvars.Token]:
    """Выставляет значения контекста, None -> "-". Возвращает токены для reset."""
    tokens = {}
    for name, value in values.items():
        var = _CONTEXT_VARS[name]
        tokens[name] = var.set("-" if value is None else str(value))
    return tokens


def reset_log_context(tokens: dict[str, contextvars.Token]) -> None:
    for name, token in tokens.items():
        _CONTEXT_VARS[name].reset(token)


def current_log_context() -> dict[str, str]:
    return {name: var.get() for name, var in _CONTEXT_VARS.items()}


def _apply_context(record: logging.LogRecord) -> None:
    for name, value in current_log_context().items():
        if not hasattr(record, name):
            setattr(record, name, value)


class ContextFormatter(logging.Formatter):
    """Dev-формат: одна строка, контекст апдейта в префиксе."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        _apply_context(record)
        return super().format(record)


class JsonFormatter(logging.Formatter):
    """Прод: одна JSON-строка на запись."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        _apply_context(record)

        log: Dict[str, Any] = {
            "ts": self.formatTime(record, self.datefmt),
            "env": settings.env,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "user_id": record.user_id,
            "chat_id": record.chat_id,
            "update_id": record.update_id,
            "func": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log, ensure_ascii=False)


def build_logging_config() -> dict:
    """dictConfig для logging: консоль всегда, файл: если задан LOG_FILE."""

    level = settings.log_level.upper()
    formatter_name = "json" if settings.env == "prod" else "console"

    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": formatter_name,
            "level": level,
        },
    }
    if settings.log_file:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "filename": settings.log_file,
            "encoding": "utf-8",
            "formatter": formatter_name,
            "level": level,
        }
    handler_names = list(handlers)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {
                "()": "logging_config.ContextFormatter",
                "format": (
                    "%(asctime)s | %(levelname)-8s | %(name)s | "
                    "u=%(user_id)s c=%(chat_id)s upd=%(update_id)s | %(message)s"
                ),
            },
            "json": {
                "()": "logging_config.JsonFormatter",
            },
        },
        "handlers": handlers,
        "root": {
            "handlers": handler_names,
            "level": level,
        },
        # болтливые сторонние логгеры
        "loggers": {
            "aiogram": {
                "level": "INFO",
                "handlers": handler_names,
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "level": "WARNING",
                "handlers": handler_names,
                "propagate": False,
            },
        },
    }


_CONFIGURED = False


def setup_logging() -> logging.Logger:
    """Идемпотентная инициализация логирования всего приложения."""
    global _CONFIGURED
    if not _CONFIGURED:
        dictConfig(build_logging_config())
        _CONFIGURED = True

    logger = logging.getLogger(__name__)
    logger.debug(
        "Logging initialized (env=%s, level=%s)", settings.env, settings.log_level
    )
    return logger

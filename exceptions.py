# exceptions.py
"""
Типизированные ошибки доменного слоя.

Сервисы бросают их синхронно, хендлеры ловят TravelMatchError
и отвечают пользователю коротким текстом. Ядро ничего не ретраит.
"""


class TravelMatchError(Exception):
    """Базовая ошибка приложения со стабильным машинным кодом."""

    code = "ERROR"
    default_message = "Что-то пошло не так"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ===== Заявки =====


class InvalidAction(TravelMatchError):
    """Статус не подходит для операции (send: like/pass, review: accept/reject)."""

    code = "INVALID_STATUS"
    default_message = "Недопустимое действие"

    def __init__(self, action: str | None = None, allowed: tuple[str, ...] = ()):
        self.action = action
        self.allowed = allowed
        message = None
        if allowed:
            message = f"Недопустимое действие {action!r}, можно: {', '.join(allowed)}"
        super().__init__(message)


class SelfRequest(InvalidAction):
    code = "SELF_REQUEST"
    default_message = "Нельзя отправить заявку самому себе"


class TargetNotFound(TravelMatchError):
    code = "USER_NOT_FOUND"
    default_message = "Пользователь не найден"

    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__()


class DuplicateRequest(TravelMatchError):
    """Для неупорядоченной пары уже есть запись (в любом направлении)."""

    code = "DUPLICATE_REQUEST"
    default_message = "Между вами уже есть заявка"


class RequestNotFound(TravelMatchError):
    """
    Заявки нет, она не тебе, или уже обработана.
    Причины намеренно не различаем, чтобы нельзя было перебирать чужие заявки.
    """

    code = "REQUEST_NOT_FOUND"
    default_message = "Заявка не найдена или уже обработана"


class ConflictError(TravelMatchError):
    """Параллельная запись успела раньше (условный UPDATE не затронул строк)."""

    code = "CONFLICT"
    default_message = "Заявку только что обработали"


# ===== Профиль =====


class ProfileValidationError(TravelMatchError):
    code = "VALIDATION_ERROR"
    default_message = "Некорректные данные профиля"

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class InvalidProfileUpdate(TravelMatchError):
    code = "INVALID_UPDATE"
    default_message = "Эти поля профиля менять нельзя"

    def __init__(self, fields: list[str]):
        self.fields = fields
        super().__init__(f"{self.default_message}: {', '.join(fields)}")

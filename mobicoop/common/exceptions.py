# mobicoop/common/exceptions.py
"""
Доменные исключения.
Пробрасываются из сервисов наружу без перехвата; перевод в HTTP-ответы
выполняет вызывающий слой.
"""

from __future__ import annotations


class MobicoopException(Exception):
    """Базовое исключение приложения."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class AdException(MobicoopException):
    """Нарушение бизнес-правил объявления."""


class UserNotFoundException(MobicoopException):
    """Пользователь (или делегирующий автор) не найден."""


class CommunityNotFoundException(MobicoopException):
    """Сообщество не найдено."""


class EventNotFoundException(MobicoopException):
    """Мероприятие не найдено."""


class ProposalNotFoundException(MobicoopException):
    """Предложение не найдено."""

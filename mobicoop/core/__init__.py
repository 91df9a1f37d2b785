# mobicoop/core/__init__.py
"""
Доменный слой (Core Domain).
Бизнес-логика объявлений; инфраструктура передаётся через конструкторы.
"""

from mobicoop.core.carpool import Ad, AdService, Proposal
from mobicoop.core.communities import Community
from mobicoop.core.events import Event
from mobicoop.core.users import User

__all__ = [
    "Ad",
    "AdService",
    "Proposal",
    "Community",
    "Event",
    "User",
]

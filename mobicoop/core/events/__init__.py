# mobicoop/core/events/__init__.py
"""
Домен мероприятий.
"""

from mobicoop.core.events.models import Event
from mobicoop.core.events.repository import EventRepository

__all__ = [
    "Event",
    "EventRepository",
]

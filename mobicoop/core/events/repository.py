# mobicoop/core/events/repository.py
"""
Репозиторий для чтения мероприятий из БД.
"""

from __future__ import annotations

from typing import Optional

from mobicoop.common.logger import log_error
from mobicoop.core.events.models import Event
from mobicoop.infra.database import DatabaseManager


class EventRepository:
    """Репозиторий мероприятий."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def get_event(self, event_id: int) -> Optional[Event]:
        """Получает мероприятие по ID (None если не найдено)."""
        try:
            row = await self._db.fetchrow(
                "SELECT id, name, from_date, to_date FROM events WHERE id = $1",
                event_id,
            )
        except Exception as e:
            await log_error(f"Ошибка получения мероприятия {event_id}: {e}")
            raise

        if row is None:
            return None
        return Event(**dict(row))

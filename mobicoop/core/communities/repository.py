# mobicoop/core/communities/repository.py
"""
Репозиторий для чтения сообществ из БД.
"""

from __future__ import annotations

from typing import Optional

from mobicoop.common.logger import log_error
from mobicoop.core.communities.models import Community
from mobicoop.infra.database import DatabaseManager


class CommunityRepository:
    """Репозиторий сообществ."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def get_community(self, community_id: int) -> Optional[Community]:
        """
        Получает сообщество по ID.

        Returns:
            Сообщество или None
        """
        try:
            row = await self._db.fetchrow(
                """
                SELECT id, name, description, members_hidden, proposals_hidden
                FROM communities
                WHERE id = $1
                """,
                community_id,
            )
        except Exception as e:
            await log_error(f"Ошибка получения сообщества {community_id}: {e}")
            raise

        if row is None:
            return None
        return Community(**dict(row))

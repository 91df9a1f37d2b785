# mobicoop/core/users/repository.py
"""
Репозиторий для чтения пользователей из БД.
"""

from __future__ import annotations

from typing import Optional

from mobicoop.common.logger import log_error
from mobicoop.core.users.models import User
from mobicoop.infra.database import DatabaseManager


class UserRepository:
    """Репозиторий пользователей."""

    def __init__(self, db: DatabaseManager) -> None:
        """
        Инициализация репозитория.

        Args:
            db: Менеджер базы данных (Dependency Injection)
        """
        self._db = db

    async def get_user(self, user_id: int) -> Optional[User]:
        """
        Получает пользователя по ID.

        Args:
            user_id: ID пользователя

        Returns:
            Пользователь или None
        """
        try:
            row = await self._db.fetchrow(
                """
                SELECT id, given_name, family_name, email, created_at
                FROM users
                WHERE id = $1
                """,
                user_id,
            )
        except Exception as e:
            await log_error(f"Ошибка получения пользователя {user_id}: {e}")
            raise

        if row is None:
            return None
        return User(**dict(row))

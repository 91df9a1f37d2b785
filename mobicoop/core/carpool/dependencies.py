# mobicoop/core/carpool/dependencies.py
"""
Зависимости сервиса объявлений.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from mobicoop.infra.database import DatabaseManager
from mobicoop.infra.event_bus import EventBus
from mobicoop.infra.redis_client import RedisClient

if TYPE_CHECKING:
    from mobicoop.core.carpool.service import AdService


_db: Optional[DatabaseManager] = None
_redis: Optional[RedisClient] = None
_event_bus: Optional[EventBus] = None
_ad_service: Optional["AdService"] = None


async def init_dependencies() -> None:
    """Инициализация всех зависимостей сервиса."""
    global _db, _redis, _event_bus, _ad_service

    from mobicoop.common.constants import TypeMsg
    from mobicoop.common.logger import log_info
    from mobicoop.core.carpool.service import AdService

    _db = DatabaseManager()
    await _db.connect()
    await log_info("PostgreSQL подключён", type_msg=TypeMsg.DEBUG)

    _redis = RedisClient()
    await _redis.connect()
    await log_info("Redis подключён", type_msg=TypeMsg.DEBUG)

    _event_bus = EventBus()
    await _event_bus.connect()
    await log_info("RabbitMQ подключён", type_msg=TypeMsg.DEBUG)

    _ad_service = AdService(_db, _redis, _event_bus)

    await log_info("Ad Service инициализирован", type_msg=TypeMsg.INFO)


async def close_dependencies() -> None:
    """Закрытие всех ресурсов."""
    global _db, _redis, _event_bus, _ad_service

    if _event_bus:
        await _event_bus.disconnect()

    if _redis:
        await _redis.disconnect()

    if _db:
        await _db.disconnect()

    _db = _redis = _event_bus = _ad_service = None


def get_ad_service() -> "AdService":
    if _ad_service is None:
        raise RuntimeError("AdService не инициализирован")
    return _ad_service

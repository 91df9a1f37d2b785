#!/usr/bin/env python3
# main.py
"""
Главная точка входа Mobicoop.
Поднимает инфраструктуру, создаёт объявление из JSON-файла
или читает объявление по ID и печатает результат.
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

from mobicoop.config import settings
from mobicoop.common.constants import TypeMsg
from mobicoop.common.exceptions import MobicoopException
from mobicoop.common.logger import log_error, log_info, setup_logging
from mobicoop.core.carpool.dependencies import close_dependencies, get_ad_service, init_dependencies
from mobicoop.core.carpool.models import Ad
from mobicoop.infra.database import init_schema, get_db


async def create_ad(path: Path) -> None:
    """Создаёт объявление из JSON-файла и печатает его с результатами."""
    ad = Ad.model_validate_json(path.read_text(encoding="utf-8"))
    created = await get_ad_service().create_ad(ad)
    print(created.model_dump_json(indent=2))


async def get_ad(proposal_id: str) -> None:
    """Печатает объявление по ID предложения."""
    ad = await get_ad_service().get_ad(proposal_id)
    print(ad.model_dump_json(indent=2))


async def health() -> None:
    """Печатает состояние подключений."""
    from mobicoop.infra.event_bus import get_event_bus
    from mobicoop.infra.redis_client import get_redis

    print(json.dumps({
        "postgres": await get_db().health_check(),
        "redis": await get_redis().health_check(),
        "rabbitmq": await get_event_bus().health_check(),
    }))


async def main(mode: str, argument: str | None = None) -> int:
    """
    Главная функция запуска.

    Args:
        mode: Режим (create, get, schema, health)
        argument: Путь к JSON объявления или ID предложения

    Returns:
        Код выхода
    """
    setup_logging()

    await log_info(
        f"Mobicoop v{settings.system.VERSION} — запуск в режиме '{mode}'",
        type_msg=TypeMsg.INFO,
    )

    try:
        await init_dependencies()

        if mode == "create":
            await create_ad(Path(argument))
        elif mode == "get":
            await get_ad(argument)
        elif mode == "schema":
            await init_schema(get_db())
        else:
            await health()
        return 0
    except MobicoopException as e:
        await log_error(f"Ошибка обработки объявления: {e.message}")
        print(json.dumps({"error": type(e).__name__, "message": e.message}))
        return 1
    finally:
        await close_dependencies()
        await log_info("Mobicoop остановлен", type_msg=TypeMsg.INFO)


def print_usage() -> None:
    """Выводит справку по использованию."""
    print("""
Mobicoop — ядро объявлений совместных поездок

Использование:
    python main.py create <ad.json>    — создать объявление или поиск
    python main.py get <proposal_id>   — прочитать объявление с результатами
    python main.py schema              — применить migrations/init.sql
    python main.py health              — проверить подключения
    """)


if __name__ == "__main__":
    if len(sys.argv) < 2 or sys.argv[1].lower() in ("--help", "-h"):
        print_usage()
        sys.exit(0)

    mode = sys.argv[1].lower()
    if mode not in ("create", "get", "schema", "health"):
        print(f"Ошибка: неизвестный режим '{mode}'")
        print_usage()
        sys.exit(1)

    if mode in ("create", "get") and len(sys.argv) < 3:
        print(f"Ошибка: режим '{mode}' требует аргумент")
        print_usage()
        sys.exit(1)

    try:
        sys.exit(asyncio.run(main(mode, sys.argv[2] if len(sys.argv) > 2 else None)))
    except KeyboardInterrupt:
        pass

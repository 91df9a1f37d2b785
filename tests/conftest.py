# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import json
import os
from datetime import date, time
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("REDIS_PASSWORD", "")
os.environ.setdefault("RABBITMQ_PASSWORD", "guest")

from mobicoop.common.constants import Frequency, ProposalType  # noqa: E402
from mobicoop.core.carpool.models import Criteria, Proposal  # noqa: E402
from mobicoop.core.carpool.waypoints import build_waypoints  # noqa: E402


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Мок конфигурации для тестов."""
    return {
        "_comment_system": "Системные настройки",
        "PROJECT_NAME": "mobicoop_test",
        "VERSION": "1.0.0-test",
        "DEBUG": True,
        "ENVIRONMENT": "test",
        "LOG_LEVEL": "DEBUG",
        "LOG_TO_FILE": False,
        "LOG_FILE_PATH": "logs/test.log",
        "LOG_FORMAT": "json",
        "LOG_MAX_BYTES": 1048576,
        "DB_HOST": "localhost",
        "DB_PORT": 5432,
        "DB_NAME": "mobicoop_test",
        "DB_USER": "postgres",
        "DB_MIN_POOL_SIZE": 2,
        "DB_MAX_POOL_SIZE": 5,
        "DB_COMMAND_TIMEOUT": 30,
        "REDIS_HOST": "localhost",
        "REDIS_PORT": 6379,
        "REDIS_DB": 1,
        "REDIS_NAMESPACE": "mobicoop_test",
        "REDIS_MAX_CONNECTIONS": 10,
        "PROPOSAL_TTL": 600,
        "RABBITMQ_HOST": "localhost",
        "RABBITMQ_PORT": 5672,
        "RABBITMQ_USER": "guest",
        "RABBITMQ_VHOST": "/",
        "RABBITMQ_EXCHANGE": "mobicoop.test",
        "RABBITMQ_PREFETCH_COUNT": 5,
        "DEFAULT_SEATS_DRIVER": 4,
        "DEFAULT_SEATS_PASSENGER": 2,
        "DEFAULT_MARGIN_TIME": 600,
        "MATCHING_RADIUS_KM": 3.0,
    }


@pytest.fixture
def temp_config_file(tmp_path: Path, mock_config: dict[str, Any]) -> Path:
    """Создаёт временный файл конфигурации."""
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(mock_config, ensure_ascii=False, indent=2))
    return config_file


# =============================================================================
# ФИКСТУРЫ ИНФРАСТРУКТУРЫ (МОКИ)
# =============================================================================

@pytest.fixture
def mock_db() -> MagicMock:
    """Мок менеджера базы данных."""
    db = MagicMock()
    db.fetchrow = AsyncMock(return_value=None)
    db.fetch = AsyncMock(return_value=[])
    db.execute = AsyncMock(return_value="INSERT 0 1")
    db.fetchval = AsyncMock(return_value=None)
    return db


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Мок клиента Redis."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock(return_value=True)
    redis.delete = AsyncMock(return_value=1)
    redis.get_model = AsyncMock(return_value=None)
    redis.set_model = AsyncMock(return_value=True)
    return redis


@pytest.fixture
def mock_event_bus() -> AsyncMock:
    """Мок шины событий."""
    event_bus = AsyncMock()
    event_bus.publish = AsyncMock(return_value=None)
    event_bus.is_connected = True
    return event_bus


# =============================================================================
# ФИКСТУРЫ МОДЕЛЕЙ
# =============================================================================

@pytest.fixture
def nancy_point() -> dict[str, Any]:
    """Адрес отправления (Нанси)."""
    return {
        "houseNumber": "5",
        "street": "Rue de la Monnaie",
        "postalCode": "54000",
        "addressLocality": "Nancy",
        "addressCountry": "France",
        "latitude": 48.6921,
        "longitude": 6.1844,
    }


@pytest.fixture
def metz_point() -> dict[str, Any]:
    """Адрес назначения (Мец)."""
    return {
        "street": "Place d'Armes",
        "postalCode": "57000",
        "addressLocality": "Metz",
        "addressCountry": "France",
        "latitude": 49.1193,
        "longitude": 6.1757,
    }


def make_proposal(
    points: list[dict[str, Any]],
    *,
    user_id: int = 2,
    driver: bool = False,
    passenger: bool = False,
    from_date: date = date(2030, 5, 6),
    from_time: time | None = time(8, 0),
    frequency: Frequency = Frequency.PUNCTUAL,
    proposal_type: ProposalType = ProposalType.ONE_WAY,
    **criteria: Any,
) -> Proposal:
    """Создаёт предложение попутчика для тестов."""
    return Proposal(
        type=proposal_type,
        user_id=user_id,
        criteria=Criteria(
            frequency=frequency,
            driver=driver,
            passenger=passenger,
            seats_driver=3 if driver else 0,
            seats_passenger=1 if passenger else 0,
            from_date=from_date,
            from_time=from_time if frequency == Frequency.PUNCTUAL else None,
            margin_duration=900 if frequency == Frequency.PUNCTUAL else None,
            **criteria,
        ),
        waypoints=build_waypoints(points),
    )


@pytest.fixture
def proposal_factory():
    """Фабрика предложений попутчиков."""
    return make_proposal

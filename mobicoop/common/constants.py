# mobicoop/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AdRole(str, Enum):
    """Роль автора объявления."""
    DRIVER = "driver"
    PASSENGER = "passenger"
    DRIVER_OR_PASSENGER = "driver_or_passenger"


class Frequency(str, Enum):
    """Периодичность поездки."""
    PUNCTUAL = "punctual"
    REGULAR = "regular"


class ProposalType(str, Enum):
    """Тип предложения (задаётся один раз при создании)."""
    ONE_WAY = "one_way"
    OUTWARD = "outward"
    RETURN = "return"


class OrderDirection(str, Enum):
    """Направление сортировки результатов."""
    ASC = "ASC"
    DESC = "DESC"


# Дни недели в порядке ISO (понедельник = 0, как datetime.weekday())
WEEKDAYS: tuple[str, ...] = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

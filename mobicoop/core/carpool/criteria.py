# mobicoop/core/carpool/criteria.py
"""
Построение критериев предложения из объявления.
Разворачивает недельное расписание в поля по дням недели,
для обратного рейса зеркалирует критерии рейса туда.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

from mobicoop.common.constants import WEEKDAYS, AdRole, Frequency
from mobicoop.common.exceptions import AdException
from mobicoop.core.carpool.models import Ad, Criteria


def parse_time(value: Optional[str]) -> Optional[time]:
    """
    Разбирает время в формате HH:MM.

    Args:
        value: Строка времени или None/пустая строка

    Returns:
        Время или None

    Raises:
        AdException: Строка не в формате HH:MM
    """
    if not value:
        return None
    try:
        return datetime.strptime(value, "%H:%M").time()
    except ValueError:
        raise AdException(f"Invalid time format: {value}") from None


class CriteriaBuilder:
    """Строитель критериев рейса туда и обратного рейса."""

    def __init__(
        self,
        default_margin_time: int | None = None,
        default_seats_driver: int | None = None,
        default_seats_passenger: int | None = None,
    ) -> None:
        """
        Инициализация; незаданные значения берутся из settings.carpool.

        Args:
            default_margin_time: Допуск по времени, секунды
            default_seats_driver: Мест у водителя по умолчанию
            default_seats_passenger: Мест для пассажира по умолчанию
        """
        if None in (default_margin_time, default_seats_driver, default_seats_passenger):
            from mobicoop.config import settings

            if default_margin_time is None:
                default_margin_time = settings.carpool.DEFAULT_MARGIN_TIME
            if default_seats_driver is None:
                default_seats_driver = settings.carpool.DEFAULT_SEATS_DRIVER
            if default_seats_passenger is None:
                default_seats_passenger = settings.carpool.DEFAULT_SEATS_PASSENGER

        self.default_margin_time = default_margin_time
        self.default_seats_driver = default_seats_driver
        self.default_seats_passenger = default_seats_passenger

    # =========================================================================
    # РЕЙС ТУДА
    # =========================================================================

    def build_outward(self, ad: Ad) -> Criteria:
        """
        Строит критерии рейса туда.

        Args:
            ad: Объявление

        Returns:
            Заполненные критерии

        Raises:
            AdException: Регулярная поездка без единого дня (кроме поиска)
        """
        criteria = Criteria(
            driver=ad.role in (AdRole.DRIVER, AdRole.DRIVER_OR_PASSENGER),
            passenger=ad.role in (AdRole.PASSENGER, AdRole.DRIVER_OR_PASSENGER),
            seats_driver=ad.seats_driver or self.default_seats_driver,
            seats_passenger=ad.seats_passenger or self.default_seats_passenger,
            solidary=ad.solidary,
            solidary_exclusive=ad.solidary_exclusive,
            price_km=ad.price_km,
            driver_price=ad.outward_driver_price,
            passenger_price=ad.outward_passenger_price,
            strict_date=ad.strict_date,
            strict_punctual=ad.strict_punctual,
            strict_regular=ad.strict_regular,
            luggage=ad.luggage,
            bike=ad.bike,
            back_seats=ad.back_seats,
            from_date=ad.outward_date or date.today(),
        )

        if ad.frequency == Frequency.REGULAR:
            criteria.frequency = Frequency.REGULAR
            criteria.to_date = ad.outward_limit_date
            self._apply_schedule(criteria, ad, direction="outward")
        else:
            criteria.frequency = Frequency.PUNCTUAL
            # Без времени: текущее для публикации, None для поиска
            from_time = parse_time(ad.outward_time)
            if from_time is None and not ad.search:
                from_time = datetime.now().time().replace(microsecond=0)
            criteria.from_time = from_time
            criteria.margin_duration = self.default_margin_time

        return criteria

    # =========================================================================
    # ОБРАТНЫЙ РЕЙС
    # =========================================================================

    def build_return(self, ad: Ad, outward: Criteria) -> Criteria:
        """
        Строит критерии обратного рейса, зеркалируя рейс туда.

        Args:
            ad: Объявление
            outward: Критерии рейса туда

        Returns:
            Заполненные критерии обратного рейса

        Raises:
            AdException: Регулярная поездка без единого дня (кроме поиска)
        """
        criteria = Criteria(
            driver=outward.driver,
            passenger=outward.passenger,
            seats_driver=outward.seats_driver,
            seats_passenger=outward.seats_passenger,
            solidary=outward.solidary,
            solidary_exclusive=outward.solidary_exclusive,
            price_km=outward.price_km,
            driver_price=ad.return_driver_price,
            passenger_price=ad.return_passenger_price,
            strict_date=outward.strict_date,
            strict_punctual=outward.strict_punctual,
            strict_regular=outward.strict_regular,
            luggage=outward.luggage,
            bike=outward.bike,
            back_seats=outward.back_seats,
            # Дата обратного рейса не раньше даты рейса туда
            from_date=ad.return_date or outward.from_date,
        )

        if ad.frequency == Frequency.REGULAR:
            criteria.frequency = Frequency.REGULAR
            criteria.to_date = ad.return_limit_date
            self._apply_schedule(criteria, ad, direction="return")
        else:
            criteria.frequency = Frequency.PUNCTUAL
            from_time = parse_time(ad.return_time)
            if from_time is None and not ad.search:
                from_time = outward.from_time
            criteria.from_time = from_time
            criteria.margin_duration = self.default_margin_time

        return criteria

    # =========================================================================
    # РАСПИСАНИЕ
    # =========================================================================

    def _apply_schedule(self, criteria: Criteria, ad: Ad, direction: str) -> None:
        """
        Переносит расписание объявления в дни недели критериев.

        Args:
            criteria: Заполняемые критерии
            ad: Объявление
            direction: "outward" или "return" (какое время читать)
        """
        has_schedule = False

        for entry in ad.schedule:
            entry_time = parse_time(entry.outward_time if direction == "outward" else entry.return_time)
            if entry_time is None:
                continue
            for day in entry.days:
                has_schedule = True
                criteria.enable_day(day, entry_time, self.default_margin_time)

        if has_schedule:
            return

        if not ad.search:
            raise AdException("At least one day should be selected for a regular trip")

        # Поиск без расписания: все дни недели
        for day in WEEKDAYS:
            criteria.enable_day(day, None, self.default_margin_time)

# mobicoop/core/carpool/results.py
"""
Результаты подбора: построение, фильтрация и сортировка.
"""

from __future__ import annotations

from datetime import date, time
from typing import Any, Mapping, Optional

from mobicoop.common.constants import AdRole, Frequency, OrderDirection
from mobicoop.common.exceptions import AdException
from mobicoop.core.carpool.models import Matching, Proposal, Result

DEFAULT_ORDER: dict[str, str] = {"criteria": "date", "value": OrderDirection.ASC.value}


class ResultManager:
    """Построение, фильтрация и сортировка результатов объявления."""

    # =========================================================================
    # ПОСТРОЕНИЕ
    # =========================================================================

    def create_ad_results(self, proposal: Proposal, counterparts: Mapping[str, Proposal]) -> list[Result]:
        """
        Строит по одному результату на каждого попутчика.

        Совпадения как водителя и как пассажира против одного предложения
        объединяются в результат с ролью driver_or_passenger.

        Args:
            proposal: Предложение автора объявления
            counterparts: Предложения попутчиков по ID

        Returns:
            Результаты в порядке появления совпадений
        """
        grouped: dict[str, list[Matching]] = {}
        # Попутчик-пассажир там, где автор - водитель, и наоборот
        roles: dict[str, set[AdRole]] = {}

        for matching in proposal.matchings_offer:
            grouped.setdefault(matching.proposal_request_id, []).append(matching)
            roles.setdefault(matching.proposal_request_id, set()).add(AdRole.PASSENGER)
        for matching in proposal.matchings_request:
            grouped.setdefault(matching.proposal_offer_id, []).append(matching)
            roles.setdefault(matching.proposal_offer_id, set()).add(AdRole.DRIVER)

        results: list[Result] = []
        for counterpart_id, matchings in grouped.items():
            counterpart = counterparts.get(counterpart_id)
            if counterpart is None:
                continue

            counterpart_roles = roles[counterpart_id]
            if len(counterpart_roles) > 1:
                role = AdRole.DRIVER_OR_PASSENGER
            else:
                role = next(iter(counterpart_roles))

            results.append(self._build_result(counterpart, role, matchings))

        return results

    @staticmethod
    def _build_result(counterpart: Proposal, role: AdRole, matchings: list[Matching]) -> Result:
        criteria = counterpart.criteria
        as_driver = role in (AdRole.DRIVER, AdRole.DRIVER_OR_PASSENGER)

        departure_time: Optional[time] = criteria.from_time
        if criteria.is_regular:
            departure_time = next(
                (criteria.day_time(day) for day in criteria.enabled_days if criteria.day_time(day)),
                None,
            )

        return Result(
            proposal_id=counterpart.id,
            user_id=counterpart.user_id,
            role=role,
            frequency=criteria.frequency,
            departure_date=criteria.from_date,
            departure_time=departure_time,
            origin=counterpart.origin,
            destination=counterpart.destination,
            price=criteria.driver_price if as_driver else criteria.passenger_price,
            seats=criteria.seats_driver if as_driver else criteria.seats_passenger,
            matching_ids=[matching.id for matching in matchings],
            has_return=any(matching.matching_linked_id for matching in matchings),
        )

    # =========================================================================
    # ФИЛЬТРАЦИЯ
    # =========================================================================

    def filter_results(self, results: list[Result], filters: Optional[dict[str, Any]]) -> list[Result]:
        """
        Фильтрует результаты по filters["filters"]: role, frequency, date.
        Неизвестные ключи игнорируются.

        Args:
            results: Результаты
            filters: Фильтры объявления

        Returns:
            Отфильтрованные результаты
        """
        criteria = (filters or {}).get("filters") or {}
        filtered = list(results)

        role = criteria.get("role")
        if role:
            role = self._parse_enum(AdRole, role, "role")
            # Попутчик с обеими ролями подходит под любую
            filtered = [
                result for result in filtered
                if result.role in (role, AdRole.DRIVER_OR_PASSENGER)
            ]

        frequency = criteria.get("frequency")
        if frequency:
            frequency = self._parse_enum(Frequency, frequency, "frequency")
            filtered = [result for result in filtered if result.frequency == frequency]

        from_date = criteria.get("date")
        if from_date:
            if isinstance(from_date, str):
                try:
                    from_date = date.fromisoformat(from_date)
                except ValueError:
                    raise AdException(f"Invalid filter date: {from_date}") from None
            filtered = [
                result for result in filtered
                if result.frequency == Frequency.REGULAR or result.departure_date >= from_date
            ]

        return filtered

    @staticmethod
    def _parse_enum(enum_class, value: Any, name: str):
        try:
            return enum_class(value)
        except ValueError:
            raise AdException(f"Invalid filter {name}: {value}") from None

    # =========================================================================
    # СОРТИРОВКА
    # =========================================================================

    def order_results(self, results: list[Result], filters: Optional[dict[str, Any]]) -> list[Result]:
        """
        Сортирует результаты по filters["order"] (по умолчанию дата по возрастанию).
        Равные элементы упорядочены по id результата.

        Args:
            results: Результаты
            filters: Фильтры объявления

        Returns:
            Отсортированные результаты
        """
        order = (filters or {}).get("order") or DEFAULT_ORDER
        descending = str(order.get("value", OrderDirection.ASC.value)).upper() == OrderDirection.DESC.value

        by_id = sorted(results, key=lambda result: result.id)

        if order.get("criteria") == "price":
            # Результаты без цены всегда в конце
            if descending:
                return sorted(by_id, key=lambda r: (r.price is not None, r.price or 0.0), reverse=True)
            return sorted(by_id, key=lambda r: (r.price is None, r.price or 0.0))

        return sorted(
            by_id,
            key=lambda r: (r.departure_date, r.departure_time or time.min),
            reverse=descending,
        )

# mobicoop/core/carpool/matching.py
"""
Подбор попутчиков для предложения.

Предложение водителя (offer) совпадает с предложением пассажира (request),
если совместимы их даты и время и если точки отправления и назначения
пассажира лежат в радиусе MATCHING_RADIUS_KM от точек водителя.
"""

from __future__ import annotations

from datetime import date, time
from typing import Iterable, Optional

from mobicoop.common.constants import WEEKDAYS
from mobicoop.common.geo_utils import calculate_distance
from mobicoop.core.carpool.models import Address, Criteria, Matching, Proposal


def _seconds(value: time) -> int:
    return value.hour * 3600 + value.minute * 60 + value.second


def _times_compatible(
    time1: Optional[time],
    margin1: Optional[int],
    time2: Optional[time],
    margin2: Optional[int],
) -> bool:
    """Время без значения (поиск без времени) совместимо с любым."""
    if time1 is None or time2 is None:
        return True
    return abs(_seconds(time1) - _seconds(time2)) <= (margin1 or 0) + (margin2 or 0)


def _date_range(criteria: Criteria) -> tuple[date, date]:
    return criteria.from_date, criteria.to_date or date.max


class ProposalMatcher:
    """Подбор совпадений между предложением и кандидатами."""

    def __init__(self, radius_km: float | None = None) -> None:
        if radius_km is None:
            from mobicoop.config import settings
            radius_km = settings.carpool.MATCHING_RADIUS_KM
        self.radius_km = radius_km

    def match(self, proposal: Proposal, candidates: Iterable[Proposal]) -> list[Matching]:
        """
        Находит совпадения и прикрепляет их к предложению.

        Предложение с обеими ролями может получить два совпадения
        с одним кандидатом: как водитель и как пассажир.

        Args:
            proposal: Новое предложение
            candidates: Предложения других пользователей

        Returns:
            Все созданные совпадения
        """
        found: list[Matching] = []

        for candidate in candidates:
            if candidate.id == proposal.id:
                continue
            if proposal.user_id is not None and candidate.user_id == proposal.user_id:
                continue

            if proposal.criteria.driver and candidate.criteria.passenger:
                matching = self.match_pair(offer=proposal, request=candidate)
                if matching is not None:
                    proposal.matchings_offer.append(matching)
                    found.append(matching)

            if proposal.criteria.passenger and candidate.criteria.driver:
                matching = self.match_pair(offer=candidate, request=proposal)
                if matching is not None:
                    proposal.matchings_request.append(matching)
                    found.append(matching)

        return found

    def match_pair(self, offer: Proposal, request: Proposal) -> Optional[Matching]:
        """
        Проверяет пару водитель/пассажир.

        Returns:
            Совпадение или None
        """
        if not self.frequencies_compatible(offer.criteria, request.criteria):
            return None

        distances = self._route_distances(offer, request)
        if distances is None:
            return None

        origin_km, destination_km = distances
        return Matching(
            proposal_offer_id=offer.id,
            proposal_request_id=request.id,
            origin_distance_km=round(origin_km, 3),
            destination_distance_km=round(destination_km, 3),
        )

    # =========================================================================
    # ДАТЫ И ВРЕМЯ
    # =========================================================================

    def frequencies_compatible(self, offer: Criteria, request: Criteria) -> bool:
        """Совместимость дат, дней недели и времени двух критериев."""
        if offer.is_regular != request.is_regular:
            punctual, regular = (request, offer) if offer.is_regular else (offer, request)
            if punctual.strict_punctual or regular.strict_regular:
                return False
            return self._punctual_regular(punctual, regular)

        if offer.is_regular:
            return self._regular_regular(offer, request)
        return self._punctual_punctual(offer, request)

    @staticmethod
    def _punctual_punctual(first: Criteria, second: Criteria) -> bool:
        if first.from_date != second.from_date:
            return False
        return _times_compatible(
            first.from_time, first.margin_duration,
            second.from_time, second.margin_duration,
        )

    @staticmethod
    def _regular_regular(first: Criteria, second: Criteria) -> bool:
        first_start, first_end = _date_range(first)
        second_start, second_end = _date_range(second)
        if first_start > second_end or second_start > first_end:
            return False

        for day in WEEKDAYS:
            if not (first.is_day_enabled(day) and second.is_day_enabled(day)):
                continue
            if _times_compatible(
                first.day_time(day), first.day_margin(day),
                second.day_time(day), second.day_margin(day),
            ):
                return True
        return False

    @staticmethod
    def _punctual_regular(punctual: Criteria, regular: Criteria) -> bool:
        start, end = _date_range(regular)
        if not start <= punctual.from_date <= end:
            return False

        day = WEEKDAYS[punctual.from_date.weekday()]
        if not regular.is_day_enabled(day):
            return False
        return _times_compatible(
            punctual.from_time, punctual.margin_duration,
            regular.day_time(day), regular.day_margin(day),
        )

    # =========================================================================
    # ГЕОГРАФИЯ
    # =========================================================================

    def _route_distances(self, offer: Proposal, request: Proposal) -> Optional[tuple[float, float]]:
        """Расстояния между началами и концами маршрутов, если оба в радиусе."""
        origin_km = self._distance(offer.origin, request.origin)
        if origin_km is None or origin_km > self.radius_km:
            return None

        destination_km = self._distance(offer.destination, request.destination)
        if destination_km is None or destination_km > self.radius_km:
            return None

        return origin_km, destination_km

    @staticmethod
    def _distance(first: Optional[Address], second: Optional[Address]) -> Optional[float]:
        if first is None or second is None:
            return None
        if not (first.has_coordinates and second.has_coordinates):
            return None
        return calculate_distance(first.latitude, first.longitude, second.latitude, second.longitude)

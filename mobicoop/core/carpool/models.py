# mobicoop/core/carpool/models.py
"""
Модели данных совместных поездок: объявление, предложение, критерии,
точки маршрута, совпадения и результаты поиска.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from mobicoop.common.constants import WEEKDAYS, AdRole, Frequency, ProposalType


# =============================================================================
# АДРЕС И ТОЧКИ МАРШРУТА
# =============================================================================

class Address(BaseModel):
    """Адрес точки маршрута."""

    house_number: Optional[str] = None
    street: Optional[str] = None
    street_address: Optional[str] = None
    postal_code: Optional[str] = None
    sub_locality: Optional[str] = None
    address_locality: Optional[str] = None
    local_admin: Optional[str] = None
    county: Optional[str] = None
    macro_county: Optional[str] = None
    region: Optional[str] = None
    macro_region: Optional[str] = None
    address_country: Optional[str] = None
    country_code: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(None, ge=-180.0, le=180.0)
    elevation: Optional[float] = None
    name: Optional[str] = None
    home: bool = False

    @property
    def has_coordinates(self) -> bool:
        """Заданы ли координаты."""
        return self.latitude is not None and self.longitude is not None


class Waypoint(BaseModel):
    """Точка маршрута; destination=True только у последней."""

    position: int = Field(..., ge=0)
    destination: bool = False
    address: Address


# =============================================================================
# КРИТЕРИИ
# =============================================================================

class Criteria(BaseModel):
    """Условия подбора попутчиков для одного предложения."""

    frequency: Frequency = Frequency.PUNCTUAL

    # Роль и места
    driver: bool = False
    passenger: bool = False
    seats_driver: int = Field(0, ge=0)
    seats_passenger: int = Field(0, ge=0)

    # Солидарные поездки
    solidary: bool = False
    solidary_exclusive: bool = False

    # Цены
    price_km: Optional[float] = None
    driver_price: Optional[float] = None
    passenger_price: Optional[float] = None

    # Строгость подбора
    strict_date: bool = False
    strict_punctual: bool = False
    strict_regular: bool = False

    # Прочее
    luggage: bool = False
    bike: bool = False
    back_seats: bool = False

    # Даты и время
    from_date: date
    to_date: Optional[date] = None
    from_time: Optional[time] = None
    margin_duration: Optional[int] = None

    # Расписание регулярной поездки (допуск в секундах)
    mon_check: bool = False
    mon_time: Optional[time] = None
    mon_margin_duration: Optional[int] = None
    tue_check: bool = False
    tue_time: Optional[time] = None
    tue_margin_duration: Optional[int] = None
    wed_check: bool = False
    wed_time: Optional[time] = None
    wed_margin_duration: Optional[int] = None
    thu_check: bool = False
    thu_time: Optional[time] = None
    thu_margin_duration: Optional[int] = None
    fri_check: bool = False
    fri_time: Optional[time] = None
    fri_margin_duration: Optional[int] = None
    sat_check: bool = False
    sat_time: Optional[time] = None
    sat_margin_duration: Optional[int] = None
    sun_check: bool = False
    sun_time: Optional[time] = None
    sun_margin_duration: Optional[int] = None

    class Config:
        from_attributes = True

    def enable_day(self, day: str, day_time: Optional[time], margin: Optional[int]) -> None:
        """Включает день недели с временем и допуском."""
        setattr(self, f"{day}_check", True)
        setattr(self, f"{day}_time", day_time)
        setattr(self, f"{day}_margin_duration", margin)

    def is_day_enabled(self, day: str) -> bool:
        return getattr(self, f"{day}_check")

    def day_time(self, day: str) -> Optional[time]:
        return getattr(self, f"{day}_time")

    def day_margin(self, day: str) -> Optional[int]:
        return getattr(self, f"{day}_margin_duration")

    @property
    def enabled_days(self) -> list[str]:
        """Включённые дни недели в порядке недели."""
        return [day for day in WEEKDAYS if self.is_day_enabled(day)]

    @property
    def is_regular(self) -> bool:
        return self.frequency == Frequency.REGULAR


# =============================================================================
# СОВПАДЕНИЯ И ПРЕДЛОЖЕНИЯ
# =============================================================================

class Matching(BaseModel):
    """Совпадение предложения водителя (offer) и пассажира (request)."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    proposal_offer_id: str
    proposal_request_id: str
    origin_distance_km: float = Field(0.0, ge=0.0)
    destination_distance_km: float = Field(0.0, ge=0.0)
    # Совпадение обратного рейса той же пары
    matching_linked_id: Optional[str] = None
    # Совпадение с той же парой в противоположных ролях
    matching_opposite_id: Optional[str] = None

    def counterpart_of(self, proposal_id: str) -> str:
        """ID второго предложения пары."""
        if self.proposal_offer_id == proposal_id:
            return self.proposal_request_id
        return self.proposal_offer_id


class Proposal(BaseModel):
    """Сохраняемое предложение или поиск поездки."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    type: ProposalType = ProposalType.ONE_WAY
    user_id: Optional[int] = None
    user_delegate_id: Optional[int] = None
    private: bool = False
    comment: Optional[str] = None
    community_ids: list[int] = Field(default_factory=list)
    event_id: Optional[int] = None

    criteria: Criteria
    waypoints: list[Waypoint] = Field(default_factory=list)

    proposal_linked_id: Optional[str] = None

    matchings_offer: list[Matching] = Field(default_factory=list)
    matchings_request: list[Matching] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        from_attributes = True

    @property
    def origin(self) -> Optional[Address]:
        """Адрес отправления (первая точка)."""
        if not self.waypoints:
            return None
        return min(self.waypoints, key=lambda w: w.position).address

    @property
    def destination(self) -> Optional[Address]:
        """Адрес назначения (точка с флагом destination)."""
        for waypoint in self.waypoints:
            if waypoint.destination:
                return waypoint.address
        return None

    @property
    def matchings(self) -> list[Matching]:
        """Все совпадения предложения (как водителя и как пассажира)."""
        return [*self.matchings_offer, *self.matchings_request]


# =============================================================================
# ОБЪЯВЛЕНИЕ И РЕЗУЛЬТАТЫ
# =============================================================================

class ScheduleEntry(BaseModel):
    """Строка недельного расписания: отмеченные дни и время туда/обратно."""

    mon: bool = False
    tue: bool = False
    wed: bool = False
    thu: bool = False
    fri: bool = False
    sat: bool = False
    sun: bool = False
    outward_time: Optional[str] = Field(None, alias="outwardTime", description="HH:MM")
    return_time: Optional[str] = Field(None, alias="returnTime", description="HH:MM")

    class Config:
        populate_by_name = True

    @property
    def days(self) -> list[str]:
        """Отмеченные дни недели."""
        return [day for day in WEEKDAYS if getattr(self, day)]


class Result(BaseModel):
    """Результат подбора: один подходящий попутчик."""

    proposal_id: str = Field(..., description="ID предложения попутчика")
    user_id: Optional[int] = None
    role: AdRole = Field(..., description="Роль попутчика")
    frequency: Frequency
    departure_date: date
    departure_time: Optional[time] = None
    origin: Optional[Address] = None
    destination: Optional[Address] = None
    price: Optional[float] = None
    seats: int = 0
    matching_ids: list[str] = Field(default_factory=list)
    has_return: bool = False

    @property
    def id(self) -> str:
        """Идентификатор результата (один результат на попутчика)."""
        return self.proposal_id


class Ad(BaseModel):
    """Объявление или поиск, пришедший от клиента."""

    id: Optional[str] = None
    search: bool = False
    role: AdRole = AdRole.PASSENGER
    frequency: Frequency = Frequency.PUNCTUAL
    one_way: Optional[bool] = None

    # Сырые адреса (ключи в camelCase, как присылает клиент)
    outward_waypoints: list[dict[str, Any]] = Field(default_factory=list)
    return_waypoints: list[dict[str, Any]] = Field(default_factory=list)

    outward_date: Optional[date] = None
    outward_limit_date: Optional[date] = None
    outward_time: Optional[str] = Field(None, description="HH:MM")
    return_date: Optional[date] = None
    return_limit_date: Optional[date] = None
    return_time: Optional[str] = Field(None, description="HH:MM")
    schedule: list[ScheduleEntry] = Field(default_factory=list)

    price_km: Optional[float] = None
    outward_driver_price: Optional[float] = None
    outward_passenger_price: Optional[float] = None
    return_driver_price: Optional[float] = None
    return_passenger_price: Optional[float] = None

    seats_driver: Optional[int] = None
    seats_passenger: Optional[int] = None

    solidary: bool = False
    solidary_exclusive: bool = False
    strict_date: bool = False
    strict_punctual: bool = False
    strict_regular: bool = False
    luggage: bool = False
    bike: bool = False
    back_seats: bool = False

    user_id: Optional[int] = None
    poster_id: Optional[int] = None
    communities: list[int] = Field(default_factory=list)
    event_id: Optional[int] = None
    comment: Optional[str] = None

    filters: Optional[dict[str, Any]] = None
    results: list[Result] = Field(default_factory=list)

    @property
    def is_round_trip(self) -> bool:
        """Туда-обратно (до вывода типа one_way может быть None)."""
        return self.one_way is False

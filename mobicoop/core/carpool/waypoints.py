# mobicoop/core/carpool/waypoints.py
"""
Построение точек маршрута из сырых адресов клиента.
"""

from __future__ import annotations

from typing import Any

from mobicoop.core.carpool.models import Address, Waypoint

# Ключи клиента (camelCase) -> поля Address
ADDRESS_KEYS: dict[str, str] = {
    "houseNumber": "house_number",
    "street": "street",
    "streetAddress": "street_address",
    "postalCode": "postal_code",
    "subLocality": "sub_locality",
    "addressLocality": "address_locality",
    "localAdmin": "local_admin",
    "county": "county",
    "macroCounty": "macro_county",
    "region": "region",
    "macroRegion": "macro_region",
    "addressCountry": "address_country",
    "countryCode": "country_code",
    "latitude": "latitude",
    "longitude": "longitude",
    "elevation": "elevation",
    "name": "name",
    "home": "home",
}


def build_address(point: dict[str, Any]) -> Address:
    """
    Создаёт адрес, копируя только заданные (не None) поля.

    Args:
        point: Сырой адрес клиента

    Returns:
        Адрес
    """
    fields = {
        field: point[key]
        for key, field in ADDRESS_KEYS.items()
        if point.get(key) is not None
    }
    return Address(**fields)


def build_waypoints(points: list[dict[str, Any]]) -> list[Waypoint]:
    """
    Создаёт точки маршрута с позициями 0..n-1; последняя точка - пункт назначения.

    Args:
        points: Сырые адреса в порядке маршрута

    Returns:
        Список точек маршрута
    """
    last = len(points) - 1
    return [
        Waypoint(position=position, destination=position == last, address=build_address(point))
        for position, point in enumerate(points)
    ]


def address_to_point(address: Address) -> dict[str, Any]:
    """Обратное преобразование: адрес -> сырой адрес клиента (только заданные поля)."""
    return {
        key: getattr(address, field)
        for key, field in ADDRESS_KEYS.items()
        if getattr(address, field) is not None
    }

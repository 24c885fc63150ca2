from __future__ import annotations

import math
from datetime import datetime
from typing import Callable, Dict, Iterable, List

from .components import Delivery, GeoCoordinate, SortKey

EARTH_RADIUS_KM = 6371


def haversine_km(origin: GeoCoordinate, target: GeoCoordinate) -> float:
    """Great-circle distance in kilometres on a sphere of radius 6371 km."""

    d_lat = (target.lat - origin.lat) * math.pi / 180
    d_lng = (target.lng - origin.lng) * math.pi / 180
    a = (
        math.sin(d_lat / 2) * math.sin(d_lat / 2)
        + math.cos(origin.lat * math.pi / 180)
        * math.cos(target.lat * math.pi / 180)
        * math.sin(d_lng / 2)
        * math.sin(d_lng / 2)
    )
    # rounding can push a past 1 for antipodal points
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def _duration_key(delivery: Delivery) -> int:
    return delivery.estimated_minutes or 0


def _created_key(delivery: Delivery) -> datetime:
    return delivery.created_at


def sort_key_function(key: SortKey | str, anchor: GeoCoordinate) -> Callable[[Delivery], object]:
    key = SortKey.parse(key)
    functions: Dict[SortKey, Callable[[Delivery], object]] = {
        SortKey.DISTANCE: lambda delivery: haversine_km(anchor, delivery.coordinate),
        SortKey.DURATION: _duration_key,
        SortKey.CREATED_AT: _created_key,
    }
    return functions[key]


def rank_deliveries(
    deliveries: Iterable[Delivery],
    key: SortKey | str,
    anchor: GeoCoordinate,
) -> List[Delivery]:
    """Return a new list ordered ascending by ``key``.

    ``sorted`` is stable, so deliveries with equal keys keep their input order.
    """
    return sorted(deliveries, key=sort_key_function(key, anchor))


def format_distance(delivery: Delivery, anchor: GeoCoordinate) -> str:
    return f"{haversine_km(anchor, delivery.coordinate):.1f} km"

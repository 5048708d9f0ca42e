"""Geographic calculations - Pure functions.

This module provides great-circle distance, radius membership and
proximity ranking for anything that has a location (devices, alerts,
shelters, resources, statistics buckets).
All functions are pure with no side effects. Inputs are not validated
here; callers reject out-of-range coordinates first.
"""

import math
from dataclasses import dataclass
from typing import Any, Iterable, Protocol


# Earth's radius in kilometers
EARTH_RADIUS_KM = 6371.0


class Located(Protocol):
    """Anything with a latitude and a longitude."""
    latitude: float
    longitude: float


@dataclass(frozen=True)
class RankedItem:
    """An item paired with its distance from a reference point.

    Attributes:
        item: The located object
        distance_km: Great-circle distance to the reference point
    """
    item: Any
    distance_km: float

    def to_dict(self) -> dict[str, Any]:
        data = self.item.to_dict() if hasattr(self.item, "to_dict") else dict(self.item)
        data["distance_km"] = round(self.distance_km, 3)
        return data


def calculate_distance(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Calculate distance between two points using Haversine formula.

    Pure function.

    Args:
        lat1: Latitude of first point
        lon1: Longitude of first point
        lat2: Latitude of second point
        lon2: Longitude of second point

    Returns:
        Distance in kilometers
    """
    # Convert to radians
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    # Haversine formula
    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def is_within_radius(
    center_lat: float,
    center_lon: float,
    latitude: float,
    longitude: float,
    radius_km: float,
) -> bool:
    """Check if a point is within a radius of a center point.

    Pure function. The boundary is inclusive.

    Args:
        center_lat: Center point latitude
        center_lon: Center point longitude
        latitude: Point latitude
        longitude: Point longitude
        radius_km: Radius in kilometers

    Returns:
        True if the point is within radius
    """
    distance = calculate_distance(center_lat, center_lon, latitude, longitude)
    return distance <= radius_km


def rank_by_proximity(
    center_lat: float,
    center_lon: float,
    items: Iterable[Located],
) -> list[RankedItem]:
    """Order located items by distance from a center point, nearest first.

    Pure function. Items at equal distance keep their input order.

    Args:
        center_lat: Center point latitude
        center_lon: Center point longitude
        items: Objects with latitude/longitude attributes

    Returns:
        Items paired with their distance, ascending by distance
    """
    ranked = [
        RankedItem(
            item=item,
            distance_km=calculate_distance(
                center_lat, center_lon, item.latitude, item.longitude
            ),
        )
        for item in items
    ]
    ranked.sort(key=lambda r: r.distance_km)
    return ranked


def filter_within_radius(
    center_lat: float,
    center_lon: float,
    items: Iterable[Located],
    radius_km: float,
) -> list[RankedItem]:
    """Rank located items and keep only those within the radius.

    Pure function.

    Args:
        center_lat: Center point latitude
        center_lon: Center point longitude
        items: Objects with latitude/longitude attributes
        radius_km: Radius in kilometers (inclusive)

    Returns:
        Items within the radius, nearest first
    """
    return [
        r for r in rank_by_proximity(center_lat, center_lon, items)
        if r.distance_km <= radius_km
    ]

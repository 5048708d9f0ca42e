"""Proximity lookups - Wires Functional Core and Imperative Shell.

Finds alerts, shelters, resources and devices around a point. Storage
returns the candidates, core.geo does the distance filtering and ranking.
"""

import logging

from hazard_monitor.core.geo import RankedItem, filter_within_radius
from hazard_monitor.core.validation import validate_coordinates, validate_radius
from hazard_monitor.shell.storage import Store


logger = logging.getLogger(__name__)


DEFAULT_ALERT_RADIUS_KM = 10.0
DEFAULT_SHELTER_RADIUS_KM = 10.0
DEFAULT_RESOURCE_RADIUS_KM = 5.0
DEFAULT_DEVICE_RADIUS_KM = 5.0


class ProximityService:
    """Location-filtered lookups, nearest first."""

    def __init__(self, store: Store) -> None:
        self.store = store

    @staticmethod
    def _validate(latitude: float, longitude: float, radius_km: float) -> None:
        validate_coordinates(latitude, longitude)
        validate_radius(radius_km)

    def alerts_near(
        self,
        latitude: float,
        longitude: float,
        radius_km: float = DEFAULT_ALERT_RADIUS_KM,
    ) -> list[RankedItem]:
        """Alerts within radius_km of a point.

        Args:
            latitude: Center latitude
            longitude: Center longitude
            radius_km: Search radius, 0 < radius_km <= 1000

        Returns:
            Matching alerts with distances, nearest first

        Raises:
            InvalidArgumentError: Invalid coordinates or radius
        """
        self._validate(latitude, longitude, radius_km)
        results = filter_within_radius(
            latitude, longitude, self.store.list_alerts(), radius_km
        )
        logger.debug("Found %d alerts within %.1f km", len(results), radius_km)
        return results

    def shelters_near(
        self,
        latitude: float,
        longitude: float,
        radius_km: float = DEFAULT_SHELTER_RADIUS_KM,
        available_only: bool = False,
    ) -> list[RankedItem]:
        """Shelters within radius_km of a point.

        With available_only, full shelters (occupancy >= capacity) are skipped.
        """
        self._validate(latitude, longitude, radius_km)
        shelters = self.store.list_shelters()
        if available_only:
            shelters = [s for s in shelters if s.is_available]
        return filter_within_radius(latitude, longitude, shelters, radius_km)

    def resources_near(
        self,
        latitude: float,
        longitude: float,
        radius_km: float = DEFAULT_RESOURCE_RADIUS_KM,
    ) -> list[RankedItem]:
        self._validate(latitude, longitude, radius_km)
        return filter_within_radius(
            latitude, longitude, self.store.list_resources(), radius_km
        )

    def devices_near(
        self,
        latitude: float,
        longitude: float,
        radius_km: float = DEFAULT_DEVICE_RADIUS_KM,
    ) -> list[RankedItem]:
        self._validate(latitude, longitude, radius_km)
        return filter_within_radius(
            latitude, longitude, self.store.list_devices(), radius_km
        )

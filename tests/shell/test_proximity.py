"""Tests for proximity lookups."""

from datetime import datetime, timezone

import pytest

from hazard_monitor.core.errors import InvalidArgumentError
from hazard_monitor.core.models import (
    Alert,
    AlertType,
    Device,
    DeviceStatus,
    DeviceType,
    Resource,
    Shelter,
)
from hazard_monitor.proximity import ProximityService
from hazard_monitor.shell.memory_store import InMemoryStore


T1 = datetime(2024, 5, 1, tzinfo=timezone.utc)


@pytest.fixture
def store():
    store = InMemoryStore()
    # 0.01 degrees of latitude is about 1.1 km
    store.add_alert(Alert(AlertType.FIRE, 4, 0.05, 0.0, T1, "5.6 km north"))
    store.add_alert(Alert(AlertType.FLOOD, 5, 0.01, 0.0, T1, "1.1 km north"))
    store.add_alert(Alert(AlertType.FLOOD, 5, 1.0, 0.0, T1, "111 km north"))
    store.add_shelter(Shelter("full", "Gym", "2 Oak St", 50, 50, 0.02, 0.0))
    store.add_shelter(Shelter("open", "Hall", "1 Main St", 100, 10, 0.03, 0.0))
    store.add_resource(Resource("water", "Water", 500, 0.02, 0.0))
    store.add_resource(Resource("far", "Blankets", 20, 0.2, 0.0))
    store.add_device(Device(1, DeviceType.SMOKE_SENSOR, DeviceStatus.OPERATIONAL, 0.0, 0.04))
    store.add_device(Device(2, DeviceType.SMOKE_SENSOR, DeviceStatus.OPERATIONAL, 0.0, 0.3))
    return store


@pytest.fixture
def service(store):
    return ProximityService(store)


class TestAlertsNear:
    def test_default_radius_nearest_first(self, service):
        results = service.alerts_near(0.0, 0.0)

        assert [r.item.description for r in results] == ["1.1 km north", "5.6 km north"]
        assert results[0].distance_km < results[1].distance_km

    def test_larger_radius(self, service):
        assert len(service.alerts_near(0.0, 0.0, radius_km=200)) == 3


class TestSheltersNear:
    def test_all_shelters(self, service):
        results = service.shelters_near(0.0, 0.0)

        assert [r.item.id for r in results] == ["full", "open"]

    def test_available_only_skips_full_shelters(self, service):
        results = service.shelters_near(0.0, 0.0, available_only=True)

        assert [r.item.id for r in results] == ["open"]


class TestResourcesAndDevicesNear:
    def test_resources_default_radius_is_5km(self, service):
        assert [r.item.id for r in service.resources_near(0.0, 0.0)] == ["water"]

    def test_devices_default_radius_is_5km(self, service):
        assert [r.item.id for r in service.devices_near(0.0, 0.0)] == [1]


class TestValidation:
    @pytest.mark.parametrize("radius", [0, -1, 1001])
    def test_radius_out_of_range(self, service, radius):
        with pytest.raises(InvalidArgumentError):
            service.alerts_near(0.0, 0.0, radius)

    def test_bad_coordinates(self, service):
        with pytest.raises(InvalidArgumentError):
            service.shelters_near(91.0, 0.0)

    def test_maximum_radius_allowed(self, service):
        assert len(service.devices_near(0.0, 0.0, 1000)) == 2

"""Tests for the statistics service."""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from hazard_monitor.core.errors import InternalError, InvalidArgumentError
from hazard_monitor.core.models import (
    Alert,
    AlertType,
    Device,
    DeviceStatus,
    DeviceType,
    Resource,
    Shelter,
)
from hazard_monitor.shell.memory_store import InMemoryStore
from hazard_monitor.statistics_service import StatisticsService, subtract_months


NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
WEEK_AGO = NOW - timedelta(days=7)


def make_alert(latitude, longitude, alert_type=AlertType.FLOOD, severity=3, days_ago=1):
    return Alert(
        type=alert_type,
        severity=severity,
        latitude=latitude,
        longitude=longitude,
        timestamp=NOW - timedelta(days=days_ago),
        description="test",
    )


@pytest.fixture
def store():
    store = InMemoryStore()
    store.add_device(Device(1, DeviceType.SMOKE_SENSOR, DeviceStatus.OPERATIONAL, 1.0, 1.0))
    store.add_device(Device(2, DeviceType.SMOKE_SENSOR, DeviceStatus.MAINTENANCE, 5.0, 5.0))
    store.add_shelter(Shelter("s1", "Hall", "1 Main St", 100, 0, 1.0, 1.0))
    store.add_resource(Resource("r1", "Water", 100, 1.0, 1.0))
    store.add_alert(make_alert(1.001, 1.002, severity=5))
    store.add_alert(make_alert(1.004, 1.003, AlertType.FIRE, severity=2))
    store.add_alert(make_alert(5.0, 5.0, AlertType.FIRE, severity=1, days_ago=2))
    store.add_alert(make_alert(7.0, 7.0, days_ago=60))
    return store


@pytest.fixture
def service(store):
    return StatisticsService(store, clock=lambda: NOW)


class TestSubtractMonths:
    def test_simple(self):
        assert subtract_months(NOW, 3) == datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)

    def test_crosses_year(self):
        value = datetime(2024, 2, 10, tzinfo=timezone.utc)
        assert subtract_months(value, 3) == datetime(2023, 11, 10, tzinfo=timezone.utc)

    def test_clamps_day(self):
        value = datetime(2024, 5, 31, tzinfo=timezone.utc)
        assert subtract_months(value, 3) == datetime(2024, 2, 29, tzinfo=timezone.utc)


class TestLocationStatistics:
    """Tests for location_statistics()."""

    def test_buckets_alerts_in_window(self, service):
        results = service.location_statistics(WEEK_AGO, NOW)

        assert [(r.latitude, r.longitude, r.total_incidents) for r in results] == [
            (1.0, 1.0, 2),
            (5.0, 5.0, 1),
        ]

    def test_empty_window_returns_empty_list(self, service):
        start = NOW - timedelta(days=200)
        assert service.location_statistics(start, start + timedelta(days=1)) == []

    def test_idempotent(self, service):
        first = service.location_statistics(WEEK_AGO, NOW)
        second = service.location_statistics(WEEK_AGO, NOW)

        assert first == second

    def test_location_filter(self, service):
        results = service.location_statistics(WEEK_AGO, NOW, 50.0, 1.0, 1.0)

        assert [(r.latitude, r.longitude) for r in results] == [(1.0, 1.0)]

    def test_partial_location_filter_rejected(self, service):
        with pytest.raises(InvalidArgumentError):
            service.location_statistics(WEEK_AGO, NOW, radius_km=10.0)

    def test_invalid_window_rejected(self, service):
        with pytest.raises(InvalidArgumentError):
            service.location_statistics(NOW, WEEK_AGO)

    def test_window_longer_than_a_year_rejected(self, service):
        with pytest.raises(InvalidArgumentError):
            service.location_statistics(NOW - timedelta(days=400), NOW)

    def test_storage_failure_becomes_internal_error(self):
        store = Mock()
        store.list_alerts_in_window.side_effect = RuntimeError("connection reset")
        service = StatisticsService(store, clock=lambda: NOW)

        with pytest.raises(InternalError):
            service.location_statistics(WEEK_AGO, NOW)


class TestOtherQueries:
    def test_device_type_statistics(self, service):
        stats = service.device_type_statistics(WEEK_AGO, NOW)

        assert len(stats) == 1
        assert stats[0].device_type == DeviceType.SMOKE_SENSOR
        assert stats[0].total_devices == 2
        assert stats[0].active_devices == 1
        # Alerts at (1.001, 1.002), (1.004, 1.003) and (5.0, 5.0) sit on a device
        assert stats[0].alerts_generated == 3

    def test_device_type_statistics_without_devices(self):
        service = StatisticsService(InMemoryStore(), clock=lambda: NOW)

        assert service.device_type_statistics(WEEK_AGO, NOW) == []

    def test_alert_trends(self, service):
        trends = service.alert_trends(WEEK_AGO, NOW)

        assert sum(t.count for t in trends) == 3
        assert [t.date for t in trends] == sorted(t.date for t in trends)

    def test_geographic_hotspots(self, service):
        hotspots = service.geographic_hotspots(WEEK_AGO, NOW, top_n=1)

        assert len(hotspots) == 1
        assert hotspots[0].alert_count == 1

    def test_hotspots_default_to_configured_top_n(self, store):
        service = StatisticsService(store, clock=lambda: NOW, default_top_n=2)

        assert len(service.geographic_hotspots(WEEK_AGO, NOW)) == 2

    def test_hotspots_reject_non_positive_top_n(self, service):
        with pytest.raises(InvalidArgumentError):
            service.geographic_hotspots(WEEK_AGO, NOW, top_n=0)


class TestDashboardStatistics:
    """Tests for dashboard_statistics()."""

    def test_default_window_is_three_months(self, service):
        dashboard = service.dashboard_statistics()

        # The 60-day-old alert is inside the default window
        assert dashboard.total_alerts == 4
        assert dashboard.active_devices == 1
        assert dashboard.total_shelters == 1
        assert dashboard.total_resources == 1

    def test_explicit_window(self, service):
        dashboard = service.dashboard_statistics(WEEK_AGO, NOW)

        assert dashboard.total_alerts == 3
        assert len(dashboard.location_statistics) == 2
        assert len(dashboard.geographic_hotspots) == 3

    def test_invalid_window(self, service):
        with pytest.raises(InvalidArgumentError):
            service.dashboard_statistics(NOW, WEEK_AGO)

    def test_to_dict(self, service):
        data = service.dashboard_statistics(WEEK_AGO, NOW).to_dict()

        assert data["total_alerts"] == 3
        assert isinstance(data["location_statistics"], list)

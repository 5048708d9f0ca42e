"""Tests for the in-memory store.

Covers transaction commit/rollback and the snapshot queries.
"""

import threading
from datetime import datetime, timezone

import pytest

from hazard_monitor.core.config import StorageConfig
from hazard_monitor.core.errors import TransientError
from hazard_monitor.core.models import (
    Alert,
    AlertType,
    Device,
    DeviceStatus,
    DeviceType,
    Reading,
    Resource,
    Shelter,
)
from hazard_monitor.shell.memory_store import InMemoryStore
from hazard_monitor.shell.storage import create_store


T1 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
T2 = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)
T3 = datetime(2024, 5, 20, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store():
    store = InMemoryStore()
    store.add_device(Device(1, DeviceType.SMOKE_SENSOR, DeviceStatus.OPERATIONAL, 1.0, 2.0))
    store.add_device(Device(2, DeviceType.SMOKE_SENSOR, DeviceStatus.INACTIVE, 1.0, 2.0))
    return store


def make_alert(timestamp: datetime) -> Alert:
    return Alert(AlertType.FIRE, 4, 1.0, 2.0, timestamp, "smoke")


class TestTransaction:
    """Tests for transaction() commit and rollback."""

    def test_commit_makes_writes_visible(self, store):
        with store.transaction() as session:
            reading = session.readings.add(Reading(1, 10.0, T1))
            alert = session.alerts.add(make_alert(T1))

        assert reading.id is not None
        assert alert.id is not None
        assert store.list_readings() == [reading]
        assert store.list_alerts() == [alert]

    def test_writes_invisible_before_commit(self, store):
        with store.transaction() as session:
            session.readings.add(Reading(1, 10.0, T1))
            assert store.list_readings() == []

    def test_rollback_discards_all_writes(self, store):
        with pytest.raises(RuntimeError):
            with store.transaction() as session:
                session.readings.add(Reading(1, 10.0, T1))
                session.alerts.add(make_alert(T1))
                raise RuntimeError("boom")

        assert store.list_readings() == []
        assert store.list_alerts() == []

    def test_ids_are_unique(self, store):
        with store.transaction() as session:
            r1 = session.readings.add(Reading(1, 1.0, T1))
            r2 = session.readings.add(Reading(1, 2.0, T1))
            a1 = session.alerts.add(make_alert(T1))

        assert len({r1.id, r2.id, a1.id}) == 3

    def test_device_lookup(self, store):
        with store.transaction() as session:
            assert session.devices.get(1).type == DeviceType.SMOKE_SENSOR
            assert session.devices.get(999) is None

    def test_concurrent_transactions_all_commit(self, store):
        def worker():
            for _ in range(50):
                with store.transaction() as session:
                    session.readings.add(Reading(1, 1.0, T1))
                    session.alerts.add(make_alert(T1))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store.list_readings()) == 200
        assert len(store.list_alerts()) == 200


class TestQueries:
    """Tests for snapshot queries."""

    def test_alerts_in_window_inclusive(self, store):
        for ts in (T1, T2, T3):
            store.add_alert(make_alert(ts))

        alerts = store.list_alerts_in_window(T1, T2)

        assert [a.timestamp for a in alerts] == [T1, T2]

    def test_alerts_in_window_accepts_naive_bounds(self, store):
        store.add_alert(make_alert(T2))

        alerts = store.list_alerts_in_window(T1.replace(tzinfo=None), T3.replace(tzinfo=None))

        assert len(alerts) == 1

    def test_readings_for_devices(self, store):
        with store.transaction() as session:
            session.readings.add(Reading(1, 1.0, T1))
            session.readings.add(Reading(2, 2.0, T2))
            session.readings.add(Reading(3, 3.0, T2))
            session.readings.add(Reading(1, 4.0, T3))

        readings = store.list_readings_for_devices([1, 2], T1, T2)

        assert sorted(r.value for r in readings) == [1.0, 2.0]

    def test_counts(self, store):
        store.add_shelter(Shelter("s1", "Hall", "1 Main St", 100, 20, 1.0, 2.0))
        store.add_resource(Resource("r1", "Water", 500, 1.0, 2.0))
        store.add_resource(Resource("r2", "Blankets", 50, 1.0, 2.0))

        assert store.count_operational_devices() == 1
        assert store.count_shelters() == 1
        assert store.count_resources() == 2
        assert len(store.list_devices()) == 2

    def test_add_alert_assigns_id(self, store):
        stored = store.add_alert(make_alert(T1))

        assert stored.id is not None


class TestIsTransient:
    def test_transient_error(self, store):
        assert store.is_transient(TransientError("busy")) is True

    def test_other_errors(self, store):
        assert store.is_transient(RuntimeError("boom")) is False


class TestCreateStore:
    """Tests for the storage factory."""

    def test_memory_backend(self):
        assert isinstance(create_store(StorageConfig(backend="memory")), InMemoryStore)

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown storage backend"):
            create_store(StorageConfig(backend="postgres"))

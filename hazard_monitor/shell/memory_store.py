"""In-memory store - Imperative Shell.

Process-local implementation of the storage port, used for local runs,
scripts and tests. Thread-safe: a store-wide lock is held for the whole
transaction, so concurrent ingestions never observe or produce a
half-written reading/alert pair.
"""

import itertools
import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Iterator

from hazard_monitor.core.errors import TransientError
from hazard_monitor.core.models import (
    Alert,
    Device,
    Reading,
    Resource,
    Shelter,
)
from hazard_monitor.core.validation import as_utc


logger = logging.getLogger(__name__)


class _MemoryDeviceRepository:
    def __init__(self, store: "InMemoryStore") -> None:
        self._store = store

    def get(self, device_id: int) -> Device | None:
        return self._store._devices.get(device_id)


class _MemoryReadingRepository:
    def __init__(self, store: "InMemoryStore") -> None:
        self._store = store
        self.staged: list[Reading] = []

    def add(self, reading: Reading) -> Reading:
        stored = replace(reading, id=reading.id or self._store._next_id())
        self.staged.append(stored)
        return stored


class _MemoryAlertRepository:
    def __init__(self, store: "InMemoryStore") -> None:
        self._store = store
        self.staged: list[Alert] = []

    def add(self, alert: Alert) -> Alert:
        stored = replace(alert, id=alert.id or self._store._next_id())
        self.staged.append(stored)
        return stored


class MemorySession:
    """Repositories for one in-memory transaction.

    Writes are staged here and only reach the store on commit.
    """

    def __init__(self, store: "InMemoryStore") -> None:
        self.devices = _MemoryDeviceRepository(store)
        self.readings = _MemoryReadingRepository(store)
        self.alerts = _MemoryAlertRepository(store)


class InMemoryStore:
    """Storage port backed by Python lists and dicts."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._ids = itertools.count(1)
        self._devices: dict[int, Device] = {}
        self._readings: list[Reading] = []
        self._alerts: list[Alert] = []
        self._shelters: list[Shelter] = []
        self._resources: list[Resource] = []

    def _next_id(self) -> str:
        return str(next(self._ids))

    # ----- Seeding -----

    def add_device(self, device: Device) -> Device:
        with self._lock:
            self._devices[device.id] = device
        return device

    def add_alert(self, alert: Alert) -> Alert:
        """Insert an alert outside of any transaction (seeding/imports)."""
        with self._lock:
            stored = replace(alert, id=alert.id or self._next_id())
            self._alerts.append(stored)
        return stored

    def add_shelter(self, shelter: Shelter) -> Shelter:
        with self._lock:
            self._shelters.append(shelter)
        return shelter

    def add_resource(self, resource: Resource) -> Resource:
        with self._lock:
            self._resources.append(resource)
        return resource

    # ----- Transactions -----

    @contextmanager
    def transaction(self) -> Iterator[MemorySession]:
        """Run a unit of work; commit on success, discard staged writes on error."""
        with self._lock:
            session = MemorySession(self)
            try:
                yield session
            except BaseException:
                logger.debug(
                    "Rolling back %d readings, %d alerts",
                    len(session.readings.staged),
                    len(session.alerts.staged),
                )
                raise
            self._readings.extend(session.readings.staged)
            self._alerts.extend(session.alerts.staged)

    def is_transient(self, error: BaseException) -> bool:
        return isinstance(error, TransientError)

    # ----- Snapshot queries -----

    def list_alerts(self) -> list[Alert]:
        with self._lock:
            return list(self._alerts)

    def list_alerts_in_window(self, from_date: datetime, to_date: datetime) -> list[Alert]:
        from_date, to_date = as_utc(from_date), as_utc(to_date)
        with self._lock:
            return [
                a for a in self._alerts
                if from_date <= as_utc(a.timestamp) <= to_date
            ]

    def list_devices(self) -> list[Device]:
        with self._lock:
            return list(self._devices.values())

    def list_readings(self) -> list[Reading]:
        with self._lock:
            return list(self._readings)

    def list_readings_for_devices(
        self,
        device_ids: Iterable[int],
        from_date: datetime,
        to_date: datetime,
    ) -> list[Reading]:
        ids = set(device_ids)
        from_date, to_date = as_utc(from_date), as_utc(to_date)
        with self._lock:
            return [
                r for r in self._readings
                if r.device_id in ids and from_date <= as_utc(r.timestamp) <= to_date
            ]

    def count_operational_devices(self) -> int:
        with self._lock:
            return sum(1 for d in self._devices.values() if d.is_operational)

    def list_shelters(self) -> list[Shelter]:
        with self._lock:
            return list(self._shelters)

    def count_shelters(self) -> int:
        with self._lock:
            return len(self._shelters)

    def list_resources(self) -> list[Resource]:
        with self._lock:
            return list(self._resources)

    def count_resources(self) -> int:
        with self._lock:
            return len(self._resources)

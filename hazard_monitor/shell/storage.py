"""Storage port - Imperative Shell.

Typed interfaces the services depend on. One small repository per
entity inside a transaction, plus read-only snapshot queries for
statistics and proximity lookups. Adapters live next to this module
(memory_store, firestore_store); services never import an adapter.
"""

import logging
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Iterable, Protocol

from hazard_monitor.core.config import StorageConfig
from hazard_monitor.core.models import (
    Alert,
    Device,
    Reading,
    Resource,
    Shelter,
)


logger = logging.getLogger(__name__)


class DeviceRepository(Protocol):
    def get(self, device_id: int) -> Device | None:
        """Load a device by ID, None if it is not registered."""
        ...


class ReadingRepository(Protocol):
    def add(self, reading: Reading) -> Reading:
        """Stage a reading and return it with its storage ID.

        A reading that already carries an ID is stored under that ID.
        """
        ...


class AlertRepository(Protocol):
    def add(self, alert: Alert) -> Alert:
        """Stage an alert and return it with its storage ID.

        An alert that already carries an ID is stored under that ID.
        """
        ...


class StoreSession(Protocol):
    """Repositories bound to one open transaction."""
    devices: DeviceRepository
    readings: ReadingRepository
    alerts: AlertRepository


class Store(Protocol):
    """Everything the services need from storage.

    transaction() begins a unit of work: leaving the block normally
    commits every staged write at once, leaving it with an exception
    rolls all of them back and re-raises.
    """

    def transaction(self) -> AbstractContextManager[StoreSession]:
        ...

    def is_transient(self, error: BaseException) -> bool:
        """Return True if the error is expected to succeed on retry."""
        ...

    def list_alerts(self) -> list[Alert]:
        ...

    def list_alerts_in_window(self, from_date: datetime, to_date: datetime) -> list[Alert]:
        """Alerts with from_date <= timestamp <= to_date."""
        ...

    def list_devices(self) -> list[Device]:
        ...

    def list_readings_for_devices(
        self,
        device_ids: Iterable[int],
        from_date: datetime,
        to_date: datetime,
    ) -> list[Reading]:
        """Readings of the given devices with from_date <= timestamp <= to_date."""
        ...

    def count_operational_devices(self) -> int:
        ...

    def list_shelters(self) -> list[Shelter]:
        ...

    def count_shelters(self) -> int:
        ...

    def list_resources(self) -> list[Resource]:
        ...

    def count_resources(self) -> int:
        ...


def create_store(config: StorageConfig) -> Store:
    """Build the storage adapter named by the configuration.

    Raises:
        ValueError: If the backend is unknown
    """
    if config.backend == "memory":
        from hazard_monitor.shell.memory_store import InMemoryStore
        logger.info("Using in-memory storage")
        return InMemoryStore()

    if config.backend == "firestore":
        from hazard_monitor.shell.firestore_store import FirestoreConfig, FirestoreStore
        logger.info(
            "Using Firestore storage (database=%s, prefix=%r)",
            config.firestore_database or "(default)",
            config.collection_prefix,
        )
        return FirestoreStore(FirestoreConfig(
            project_id=config.firestore_project,
            database=config.firestore_database,
            collection_prefix=config.collection_prefix,
        ))

    raise ValueError(f"Unknown storage backend: {config.backend}")

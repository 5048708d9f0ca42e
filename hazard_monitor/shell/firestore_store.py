"""Firestore Store - Imperative Shell.

This module persists devices, readings, alerts, shelters and resources in
Google Cloud Firestore, one collection per entity.

Writes made inside a transaction are staged in a WriteBatch and committed
atomically when the unit of work finishes; a failed unit of work simply
never commits its batch. Retries are not done here: the transaction
runner replays the whole unit of work using is_transient(). A timeout
may arrive after the commit was applied, so callers choose reading and
alert IDs before the first attempt and the batch only creates documents.

Document structure:
    devices/{device_id}:   {"id", "type", "status", "latitude", "longitude"}
    readings/{reading_id}: {"device_id", "value", "timestamp"}
    alerts/{alert_id}:     {"type", "severity", "latitude", "longitude",
                            "timestamp", "description"}
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Iterable, Iterator

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from hazard_monitor.core.errors import TransientError
from hazard_monitor.core.models import (
    Alert,
    AlertType,
    Device,
    DeviceStatus,
    DeviceType,
    Reading,
    Resource,
    ResourceStatus,
    Shelter,
)
from hazard_monitor.core.validation import as_utc


logger = logging.getLogger(__name__)


DEVICES_COLLECTION = "devices"
READINGS_COLLECTION = "readings"
ALERTS_COLLECTION = "alerts"
SHELTERS_COLLECTION = "shelters"
RESOURCES_COLLECTION = "resources"

# Contention, timeouts and unavailability; everything else is permanent
TRANSIENT_EXCEPTIONS = (
    TransientError,
    gcp_exceptions.Aborted,
    gcp_exceptions.DeadlineExceeded,
    gcp_exceptions.ServiceUnavailable,
    gcp_exceptions.InternalServerError,
    gcp_exceptions.TooManyRequests,
    ConnectionError,
)


@dataclass
class FirestoreConfig:
    """Configuration for the Firestore store.

    Attributes:
        project_id: GCP project ID (None for default)
        database: Firestore database name (None for default database)
        collection_prefix: Prefix added to every collection name
    """
    project_id: str | None = None
    database: str | None = None
    collection_prefix: str = ""


def device_from_dict(doc_id: str, data: dict[str, Any]) -> Device:
    return Device(
        id=int(data.get("id", doc_id)),
        type=DeviceType(data["type"]),
        status=DeviceStatus(data.get("status", DeviceStatus.OPERATIONAL.value)),
        latitude=float(data["latitude"]),
        longitude=float(data["longitude"]),
    )


def reading_from_dict(doc_id: str, data: dict[str, Any]) -> Reading:
    return Reading(
        id=doc_id,
        device_id=int(data["device_id"]),
        value=float(data["value"]),
        timestamp=data["timestamp"],
    )


def alert_from_dict(doc_id: str, data: dict[str, Any]) -> Alert:
    return Alert(
        id=doc_id,
        type=AlertType(data["type"]),
        severity=int(data["severity"]),
        latitude=float(data["latitude"]),
        longitude=float(data["longitude"]),
        timestamp=data["timestamp"],
        description=data.get("description", ""),
    )


def shelter_from_dict(doc_id: str, data: dict[str, Any]) -> Shelter:
    return Shelter(
        id=doc_id,
        name=data.get("name", ""),
        address=data.get("address", ""),
        capacity=int(data.get("capacity", 0)),
        current_occupancy=int(data.get("current_occupancy", 0)),
        latitude=float(data["latitude"]),
        longitude=float(data["longitude"]),
    )


def resource_from_dict(doc_id: str, data: dict[str, Any]) -> Resource:
    return Resource(
        id=doc_id,
        type=data.get("type", ""),
        quantity=int(data.get("quantity", 0)),
        latitude=float(data["latitude"]),
        longitude=float(data["longitude"]),
        status=ResourceStatus(data.get("status", ResourceStatus.AVAILABLE.value)),
    )


def reading_to_dict(reading: Reading) -> dict[str, Any]:
    return {
        "device_id": reading.device_id,
        "value": reading.value,
        "timestamp": reading.timestamp,
    }


def alert_to_dict(alert: Alert) -> dict[str, Any]:
    return {
        "type": alert.type.value,
        "severity": alert.severity,
        "latitude": alert.latitude,
        "longitude": alert.longitude,
        "timestamp": alert.timestamp,
        "description": alert.description,
    }


class _FirestoreDeviceRepository:
    def __init__(self, store: "FirestoreStore") -> None:
        self._store = store

    def get(self, device_id: int) -> Device | None:
        doc = self._store.collection(DEVICES_COLLECTION).document(str(device_id)).get()
        if not doc.exists:
            return None
        return device_from_dict(doc.id, doc.to_dict())


class _FirestoreReadingRepository:
    def __init__(self, session: "FirestoreSession") -> None:
        self._session = session

    def add(self, reading: Reading) -> Reading:
        doc_ref = self._session.create(READINGS_COLLECTION, reading.id, reading_to_dict(reading))
        return replace(reading, id=doc_ref.id)


class _FirestoreAlertRepository:
    def __init__(self, session: "FirestoreSession") -> None:
        self._session = session

    def add(self, alert: Alert) -> Alert:
        doc_ref = self._session.create(ALERTS_COLLECTION, alert.id, alert_to_dict(alert))
        return replace(alert, id=doc_ref.id)


class FirestoreSession:
    """Repositories sharing one WriteBatch."""

    def __init__(self, store: "FirestoreStore", batch: Any) -> None:
        self.batch = batch
        self.created: list[Any] = []
        self._store = store
        self.devices = _FirestoreDeviceRepository(store)
        self.readings = _FirestoreReadingRepository(self)
        self.alerts = _FirestoreAlertRepository(self)

    def create(self, collection: str, doc_id: str | None, data: dict[str, Any]) -> Any:
        """Stage the creation of a document (auto ID when doc_id is None)."""
        doc_ref = self._store.collection(collection).document(doc_id)
        self.batch.create(doc_ref, data)
        self.created.append(doc_ref)
        return doc_ref

    def already_applied(self) -> bool:
        """True if every document this batch creates is already stored."""
        return bool(self.created) and all(ref.get().exists for ref in self.created)


class FirestoreStore:
    """Storage port backed by Google Cloud Firestore.

    This is part of the imperative shell - it handles database I/O.
    """

    def __init__(self, config: FirestoreConfig | None = None) -> None:
        """Initialize Firestore store.

        Args:
            config: Firestore configuration
        """
        self.config = config or FirestoreConfig()
        self._client: firestore.Client | None = None

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs = {}
            if self.config.project_id:
                kwargs['project'] = self.config.project_id
            if self.config.database:
                kwargs['database'] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client

    def collection(self, name: str) -> Any:
        return self.client.collection(f"{self.config.collection_prefix}{name}")

    @contextmanager
    def transaction(self) -> Iterator[FirestoreSession]:
        """Run a unit of work whose writes commit in a single batch.

        Documents are written with create(), so a replayed unit of work
        that reuses its document IDs cannot store them twice. When the
        commit is rejected because exactly those documents already exist,
        an earlier attempt committed them and this attempt counts as
        committed too.
        """
        session = FirestoreSession(self, self.client.batch())
        try:
            yield session
        except BaseException:
            logger.debug("Discarding uncommitted Firestore batch")
            raise
        try:
            session.batch.commit()
        except gcp_exceptions.AlreadyExists:
            if not session.already_applied():
                raise
            logger.warning(
                "Batch of %d documents was committed by an earlier attempt",
                len(session.created),
            )

    def is_transient(self, error: BaseException) -> bool:
        return isinstance(error, TRANSIENT_EXCEPTIONS)

    def _count(self, query: Any) -> int:
        results = query.count().get()
        return int(results[0][0].value)

    def _window_query(self, name: str, from_date: datetime, to_date: datetime) -> Any:
        return (
            self.collection(name)
            .where(filter=FieldFilter("timestamp", ">=", as_utc(from_date)))
            .where(filter=FieldFilter("timestamp", "<=", as_utc(to_date)))
            .order_by("timestamp")
        )

    def list_alerts(self) -> list[Alert]:
        docs = self.collection(ALERTS_COLLECTION).order_by("timestamp").stream()
        return [alert_from_dict(doc.id, doc.to_dict()) for doc in docs]

    def list_alerts_in_window(self, from_date: datetime, to_date: datetime) -> list[Alert]:
        docs = self._window_query(ALERTS_COLLECTION, from_date, to_date).stream()
        alerts = [alert_from_dict(doc.id, doc.to_dict()) for doc in docs]
        logger.info("Fetched %d alerts from Firestore", len(alerts))
        return alerts

    def list_devices(self) -> list[Device]:
        docs = self.collection(DEVICES_COLLECTION).stream()
        return [device_from_dict(doc.id, doc.to_dict()) for doc in docs]

    def list_readings_for_devices(
        self,
        device_ids: Iterable[int],
        from_date: datetime,
        to_date: datetime,
    ) -> list[Reading]:
        # Filtered client-side: an 'in' filter combined with the timestamp
        # range would need a composite index and caps at 30 values.
        ids = set(device_ids)
        if not ids:
            return []
        docs = self._window_query(READINGS_COLLECTION, from_date, to_date).stream()
        readings = [reading_from_dict(doc.id, doc.to_dict()) for doc in docs]
        return [r for r in readings if r.device_id in ids]

    def count_operational_devices(self) -> int:
        query = self.collection(DEVICES_COLLECTION).where(
            filter=FieldFilter("status", "==", DeviceStatus.OPERATIONAL.value)
        )
        return self._count(query)

    def list_shelters(self) -> list[Shelter]:
        docs = self.collection(SHELTERS_COLLECTION).stream()
        return [shelter_from_dict(doc.id, doc.to_dict()) for doc in docs]

    def count_shelters(self) -> int:
        return self._count(self.collection(SHELTERS_COLLECTION))

    def list_resources(self) -> list[Resource]:
        docs = self.collection(RESOURCES_COLLECTION).stream()
        return [resource_from_dict(doc.id, doc.to_dict()) for doc in docs]

    def count_resources(self) -> int:
        return self._count(self.collection(RESOURCES_COLLECTION))

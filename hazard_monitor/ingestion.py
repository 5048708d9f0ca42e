"""Ingestion Pipeline - Wires Functional Core and Imperative Shell.

This module coordinates the flow of a sensor reading: look up the device,
persist the reading, evaluate the alert rules and persist any resulting
alert. All of it happens in one transaction, so a reading and the alert it
triggers are committed together or not at all.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from hazard_monitor.core.errors import (
    InternalError,
    InvalidArgumentError,
    NotFoundError,
)
from hazard_monitor.core.models import Alert, Reading
from hazard_monitor.core.rules import evaluate_device_reading
from hazard_monitor.core.validation import validate_device_id, validate_reading_value
from hazard_monitor.shell.storage import Store, StoreSession
from hazard_monitor.transaction import RetryPolicy, run_in_transaction


logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


def alert_id_for(reading_id: str) -> str:
    """ID of the alert a reading triggers; at most one alert per reading."""
    return f"{reading_id}-alert"


@dataclass(frozen=True)
class IngestionResult:
    """Result of ingesting one reading.

    Attributes:
        reading: The committed reading
        alert: The committed alert, None if no rule fired
    """
    reading: Reading
    alert: Alert | None = None

    @property
    def alert_generated(self) -> bool:
        return self.alert is not None

    @property
    def message(self) -> str:
        """Human-readable outcome for API responses."""
        if self.alert_generated:
            return "Device data received and alert generated"
        return "Device data received successfully"

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "reading": self.reading.to_dict(),
            "alert": self.alert.to_dict() if self.alert else None,
        }


class IngestionPipeline:
    """Ingests sensor readings and raises alerts atomically.

    Safe to share between threads: each call is an independent unit of
    work and the only shared state is the store.
    """

    def __init__(
        self,
        store: Store,
        retry_policy: RetryPolicy | None = None,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        """Initialize the pipeline.

        Args:
            store: Storage port
            retry_policy: Retry policy for transient storage errors
            clock: Returns the current UTC time (reading timestamps)
            id_factory: Returns a fresh reading ID
        """
        self.store = store
        self.retry_policy = retry_policy or RetryPolicy()
        self.clock = clock
        self.id_factory = id_factory

    def process(self, device_id: int, value: float) -> IngestionResult:
        """Ingest a reading and report the committed reading and alert.

        Args:
            device_id: ID of the reporting device (positive)
            value: Reading value

        Returns:
            IngestionResult with the committed reading and optional alert

        Raises:
            InvalidArgumentError: Non-positive device ID or non-finite value
            NotFoundError: The device is not registered
            InternalError: Any storage failure, including exhausted retries
        """
        validate_device_id(device_id)
        validate_reading_value(value)

        # Fixed before the first attempt so replays write the same documents
        reading = Reading(
            device_id=device_id,
            value=float(value),
            timestamp=self.clock(),
            id=self.id_factory(),
        )

        def unit_of_work(session: StoreSession) -> IngestionResult:
            device = session.devices.get(device_id)
            if device is None:
                raise NotFoundError("device", device_id)

            stored_reading = session.readings.add(reading)

            draft = evaluate_device_reading(device, stored_reading)
            stored_alert = None
            if draft is not None:
                stored_alert = session.alerts.add(draft.to_alert(alert_id_for(reading.id)))

            return IngestionResult(reading=stored_reading, alert=stored_alert)

        try:
            result = run_in_transaction(self.store, unit_of_work, self.retry_policy)
        except (InvalidArgumentError, NotFoundError, InternalError):
            raise
        except Exception as e:
            logger.exception("Storage failure ingesting reading for device %d", device_id)
            raise InternalError("Failed to ingest device reading") from e

        logger.info(
            "Ingested reading %s for device %d (value=%s)",
            result.reading.id,
            device_id,
            result.reading.value,
        )
        if result.alert is not None:
            logger.warning(
                "%s alert (severity %d) raised by device %d: %s",
                result.alert.type.value,
                result.alert.severity,
                device_id,
                result.alert.description,
            )

        return result

    def ingest(self, device_id: int, value: float) -> Reading:
        """Ingest a reading; alert generation is a side effect.

        Returns:
            The committed reading
        """
        return self.process(device_id, value).reading

"""Registry Service - Filtered views of alerts, devices and resources.

Simple lookups for operators: alerts of one type or severity, alerts
raised since a given time, devices by type or status, and resources by
status. Each reads a snapshot from storage and filters it in memory.
"""

import logging
from datetime import datetime
from typing import Callable, TypeVar

from hazard_monitor.core.errors import InternalError, InvalidArgumentError
from hazard_monitor.core.models import (
    Alert,
    AlertType,
    Device,
    DeviceStatus,
    DeviceType,
    Resource,
    ResourceStatus,
)
from hazard_monitor.core.validation import as_utc, validate_severity, validate_since
from hazard_monitor.ingestion import utc_now
from hazard_monitor.shell.storage import Store


logger = logging.getLogger(__name__)

T = TypeVar("T")


class RegistryService:
    """Read-only queries over the stored alerts, devices and resources."""

    def __init__(self, store: Store, clock: Callable[[], datetime] = utc_now) -> None:
        self.store = store
        self.clock = clock

    def _query(self, description: str, query: Callable[[], T]) -> T:
        try:
            return query()
        except InvalidArgumentError:
            raise
        except Exception as e:
            logger.exception("Failed to fetch %s", description)
            raise InternalError(f"Failed to fetch {description}") from e

    # ===== Alerts =====

    def alerts_by_type(self, alert_type: AlertType) -> list[Alert]:
        return self._query(
            f"{alert_type.value} alerts",
            lambda: [a for a in self.store.list_alerts() if a.type == alert_type],
        )

    def alerts_by_severity(self, severity: int) -> list[Alert]:
        """Alerts with exactly the given severity.

        Raises:
            InvalidArgumentError: Severity outside 1..5
        """
        validate_severity(severity)
        return self._query(
            f"severity {severity} alerts",
            lambda: [a for a in self.store.list_alerts() if a.severity == severity],
        )

    def recent_alerts(self, since: datetime) -> list[Alert]:
        """Alerts raised at or after since, newest first.

        Raises:
            InvalidArgumentError: since is in the future or over a year ago
        """
        validate_since(since, self.clock())
        since = as_utc(since)

        def query() -> list[Alert]:
            recent = [a for a in self.store.list_alerts() if as_utc(a.timestamp) >= since]
            return sorted(recent, key=lambda a: as_utc(a.timestamp), reverse=True)

        return self._query("recent alerts", query)

    # ===== Devices =====

    def devices_by_type(self, device_type: DeviceType) -> list[Device]:
        return self._query(
            f"{device_type.value} devices",
            lambda: [d for d in self.store.list_devices() if d.type == device_type],
        )

    def devices_by_status(self, status: DeviceStatus) -> list[Device]:
        return self._query(
            f"{status.value} devices",
            lambda: [d for d in self.store.list_devices() if d.status == status],
        )

    # ===== Resources =====

    def available_resources(self) -> list[Resource]:
        """Resources marked available that still have stock."""
        return self._query(
            "available resources",
            lambda: [
                r for r in self.store.list_resources()
                if r.status == ResourceStatus.AVAILABLE and r.quantity > 0
            ],
        )

    def resources_by_status(self, status: ResourceStatus) -> list[Resource]:
        return self._query(
            f"{status.value} resources",
            lambda: [r for r in self.store.list_resources() if r.status == status],
        )

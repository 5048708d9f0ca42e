"""Statistics Service - Wires Functional Core and Imperative Shell.

Validates the requested window, pulls a snapshot of alerts, devices and
readings from storage and hands it to the pure aggregation functions in
core.statistics. Read-only: nothing here writes to storage.
"""

import calendar
import logging
from datetime import datetime
from typing import Callable, TypeVar

from hazard_monitor.core import statistics as stats
from hazard_monitor.core.errors import InternalError, InvalidArgumentError
from hazard_monitor.core.statistics import (
    AlertTrend,
    DashboardStatistics,
    DeviceTypeStatistics,
    GeographicHotspot,
    LocationStatistics,
)
from hazard_monitor.core.validation import (
    validate_location_filter,
    validate_time_window,
    validate_top_n,
)
from hazard_monitor.ingestion import utc_now
from hazard_monitor.shell.storage import Store


logger = logging.getLogger(__name__)

T = TypeVar("T")


def subtract_months(value: datetime, months: int) -> datetime:
    """Move a datetime back by calendar months, clamping the day.

    2024-05-31 minus 3 months is 2024-02-29.
    """
    month_index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


class StatisticsService:
    """Dashboard statistics over a time window."""

    def __init__(
        self,
        store: Store,
        clock: Callable[[], datetime] = utc_now,
        default_window_months: int = 3,
        default_top_n: int = 10,
    ) -> None:
        """Initialize the service.

        Args:
            store: Storage port
            clock: Returns the current UTC time
            default_window_months: Dashboard window when no dates are given
            default_top_n: Number of hotspots on the dashboard
        """
        self.store = store
        self.clock = clock
        self.default_window_months = default_window_months
        self.default_top_n = default_top_n

    def _query(self, description: str, query: Callable[[], T]) -> T:
        """Run a storage-backed query, hiding unexpected failures."""
        try:
            return query()
        except InvalidArgumentError:
            raise
        except Exception as e:
            logger.exception("Failed to compute %s", description)
            raise InternalError(f"Failed to compute {description}") from e

    def location_statistics(
        self,
        from_date: datetime,
        to_date: datetime,
        radius_km: float | None = None,
        center_lat: float | None = None,
        center_lng: float | None = None,
    ) -> list[LocationStatistics]:
        """Risk buckets (2 decimal places) ranked by risk score.

        Raises:
            InvalidArgumentError: Invalid window or partial/invalid location filter
        """
        validate_time_window(from_date, to_date, self.clock())
        has_filter = validate_location_filter(radius_km, center_lat, center_lng)
        center = (center_lat, center_lng, radius_km) if has_filter else None

        def query() -> list[LocationStatistics]:
            alerts = self.store.list_alerts_in_window(from_date, to_date)
            return stats.location_statistics(alerts, center)

        return self._query("location statistics", query)

    def device_type_statistics(
        self,
        from_date: datetime,
        to_date: datetime,
    ) -> list[DeviceTypeStatistics]:
        """Per-device-type aggregates.

        Raises:
            InvalidArgumentError: Invalid window
        """
        validate_time_window(from_date, to_date, self.clock())

        def query() -> list[DeviceTypeStatistics]:
            devices = self.store.list_devices()
            if not devices:
                return []
            readings = self.store.list_readings_for_devices(
                [d.id for d in devices], from_date, to_date
            )
            alerts = self.store.list_alerts_in_window(from_date, to_date)
            return stats.device_type_statistics(devices, readings, alerts)

        return self._query("device type statistics", query)

    def alert_trends(self, from_date: datetime, to_date: datetime) -> list[AlertTrend]:
        """Daily alert counts per type.

        Raises:
            InvalidArgumentError: Invalid window
        """
        validate_time_window(from_date, to_date, self.clock())

        def query() -> list[AlertTrend]:
            return stats.alert_trends(self.store.list_alerts_in_window(from_date, to_date))

        return self._query("alert trends", query)

    def geographic_hotspots(
        self,
        from_date: datetime,
        to_date: datetime,
        top_n: int | None = None,
    ) -> list[GeographicHotspot]:
        """Top N hotspots (3 decimal places) by alert count.

        top_n defaults to default_top_n.

        Raises:
            InvalidArgumentError: Invalid window or non-positive top_n
        """
        if top_n is None:
            top_n = self.default_top_n
        validate_time_window(from_date, to_date, self.clock())
        validate_top_n(top_n)

        def query() -> list[GeographicHotspot]:
            alerts = self.store.list_alerts_in_window(from_date, to_date)
            return stats.geographic_hotspots(alerts, top_n)

        return self._query("geographic hotspots", query)

    def dashboard_statistics(
        self,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> DashboardStatistics:
        """Everything the dashboard shows, for one window.

        Missing dates default to the last default_window_months months.
        Device, shelter and resource totals cover the whole registry.

        Raises:
            InvalidArgumentError: Invalid window
        """
        now = self.clock()
        from_date = from_date or subtract_months(now, self.default_window_months)
        to_date = to_date or now
        validate_time_window(from_date, to_date, now)

        logger.info(
            "Computing dashboard statistics for %s .. %s",
            from_date.isoformat(),
            to_date.isoformat(),
        )

        def query() -> DashboardStatistics:
            return DashboardStatistics(
                total_alerts=len(self.store.list_alerts_in_window(from_date, to_date)),
                active_devices=self.store.count_operational_devices(),
                total_shelters=self.store.count_shelters(),
                total_resources=self.store.count_resources(),
                location_statistics=self.location_statistics(from_date, to_date),
                device_type_statistics=self.device_type_statistics(from_date, to_date),
                alert_trends=self.alert_trends(from_date, to_date),
                geographic_hotspots=self.geographic_hotspots(
                    from_date, to_date, self.default_top_n
                ),
            )

        return self._query("dashboard statistics", query)

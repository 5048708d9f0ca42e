"""Alert and reading aggregation - Pure functions.

This module turns historical alerts, devices and readings into dashboard
statistics: per-location risk buckets, per-device-type aggregates, daily
alert trends and geographic hotspots.

All functions are pure with no side effects. Inputs are assumed to be
already restricted to the requested time window. Group order is the order
in which a key is first seen in the input, and every sort is stable, so the
same input always yields the same output.
"""

from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Iterable

from hazard_monitor.core.geo import calculate_distance
from hazard_monitor.core.models import (
    Alert,
    AlertType,
    Device,
    DeviceType,
    Reading,
)
from hazard_monitor.core.validation import as_utc


# Decimal places used to bucket coordinates
LOCATION_PRECISION = 2
HOTSPOT_PRECISION = 3

# Max coordinate difference for matching an alert to a device
DEVICE_MATCH_TOLERANCE_DEG = 0.01

EXTREME_TEMPERATURE_TYPES = (AlertType.EXTREME_HEAT, AlertType.EXTREME_COLD)


@dataclass(frozen=True)
class LocationStatistics:
    """Aggregated incidents for one rounded coordinate bucket."""
    latitude: float
    longitude: float
    flood_incidents: int
    fire_incidents: int
    earthquake_incidents: int
    extreme_temperature_incidents: int
    total_incidents: int
    last_incident: datetime
    risk_score: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "flood_incidents": self.flood_incidents,
            "fire_incidents": self.fire_incidents,
            "earthquake_incidents": self.earthquake_incidents,
            "extreme_temperature_incidents": self.extreme_temperature_incidents,
            "total_incidents": self.total_incidents,
            "last_incident": self.last_incident.isoformat(),
            "risk_score": self.risk_score,
        }


@dataclass(frozen=True)
class DeviceTypeStatistics:
    """Aggregates for every device of one type.

    Attributes:
        device_type: The device type
        total_devices: Devices of this type in the registry
        active_devices: Devices of this type that are operational
        alerts_generated: Alerts located at (within 0.01 deg of) a device of this type
        average_value: Mean reading value in the window (0.0 without readings)
        max_value: Highest reading value (0.0 without readings)
        min_value: Lowest reading value (0.0 without readings)
        last_reading: Latest reading time, None without readings
    """
    device_type: DeviceType
    total_devices: int
    active_devices: int
    alerts_generated: int
    average_value: float = 0.0
    max_value: float = 0.0
    min_value: float = 0.0
    last_reading: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "device_type": self.device_type.value,
            "total_devices": self.total_devices,
            "active_devices": self.active_devices,
            "alerts_generated": self.alerts_generated,
            "average_value": self.average_value,
            "max_value": self.max_value,
            "min_value": self.min_value,
            "last_reading": self.last_reading.isoformat() if self.last_reading else None,
        }


@dataclass(frozen=True)
class AlertTrend:
    """Alert count and truncated mean severity for one day and type."""
    date: date
    alert_type: AlertType
    count: int
    severity: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "alert_type": self.alert_type.value,
            "count": self.count,
            "severity": self.severity,
        }


@dataclass(frozen=True)
class GeographicHotspot:
    """A fine-grained bucket with a concentration of alerts."""
    latitude: float
    longitude: float
    alert_count: int
    risk_level: float
    predominant_alert_type: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "alert_count": self.alert_count,
            "risk_level": self.risk_level,
            "predominant_alert_type": self.predominant_alert_type,
        }


@dataclass(frozen=True)
class DashboardStatistics:
    """Everything the dashboard shows for one time window."""
    total_alerts: int
    active_devices: int
    total_shelters: int
    total_resources: int
    location_statistics: list[LocationStatistics] = field(default_factory=list)
    device_type_statistics: list[DeviceTypeStatistics] = field(default_factory=list)
    alert_trends: list[AlertTrend] = field(default_factory=list)
    geographic_hotspots: list[GeographicHotspot] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_alerts": self.total_alerts,
            "active_devices": self.active_devices,
            "total_shelters": self.total_shelters,
            "total_resources": self.total_resources,
            "location_statistics": [s.to_dict() for s in self.location_statistics],
            "device_type_statistics": [s.to_dict() for s in self.device_type_statistics],
            "alert_trends": [t.to_dict() for t in self.alert_trends],
            "geographic_hotspots": [h.to_dict() for h in self.geographic_hotspots],
        }


def calculate_risk_score(alert_count: int, max_severity: int) -> float:
    """Combine incident count and worst severity into a 0-100 score.

    Pure function. The count contributes 10 points per alert up to 70,
    the severity 6 points per level.
    """
    base_score = min(alert_count * 10, 70)
    severity_bonus = max_severity * 6
    return float(min(base_score + severity_bonus, 100))


def bucket_alerts(
    alerts: Iterable[Alert],
    precision: int,
) -> dict[tuple[float, float], list[Alert]]:
    """Group alerts by coordinates rounded to a number of decimal places.

    Pure function. Buckets appear in first-seen order.
    """
    buckets: dict[tuple[float, float], list[Alert]] = {}
    for alert in alerts:
        key = (round(alert.latitude, precision), round(alert.longitude, precision))
        buckets.setdefault(key, []).append(alert)
    return buckets


def _summarize_bucket(key: tuple[float, float], alerts: list[Alert]) -> LocationStatistics:
    types = Counter(alert.type for alert in alerts)
    return LocationStatistics(
        latitude=key[0],
        longitude=key[1],
        flood_incidents=types[AlertType.FLOOD],
        fire_incidents=types[AlertType.FIRE],
        earthquake_incidents=types[AlertType.EARTHQUAKE],
        extreme_temperature_incidents=sum(types[t] for t in EXTREME_TEMPERATURE_TYPES),
        total_incidents=len(alerts),
        last_incident=max(alert.timestamp for alert in alerts),
        risk_score=calculate_risk_score(
            len(alerts), max(alert.severity for alert in alerts)
        ),
    )


def location_statistics(
    alerts: Iterable[Alert],
    center: tuple[float, float, float] | None = None,
) -> list[LocationStatistics]:
    """Aggregate alerts into location buckets ranked by risk.

    Pure function.

    Args:
        alerts: Alerts inside the requested window
        center: Optional (center_lat, center_lng, radius_km); buckets whose
            rounded coordinate is farther than radius_km are dropped

    Returns:
        Location buckets, highest risk score first
    """
    buckets = bucket_alerts(alerts, LOCATION_PRECISION)
    results = [_summarize_bucket(key, group) for key, group in buckets.items()]

    if center is not None:
        center_lat, center_lng, radius_km = center
        results = [
            r for r in results
            if calculate_distance(r.latitude, r.longitude, center_lat, center_lng) <= radius_km
        ]

    return sorted(results, key=lambda r: r.risk_score, reverse=True)


def _matches_any_device(alert: Alert, devices: list[Device]) -> bool:
    """Check if an alert sits within the match tolerance of any device.

    Stands in for a device/alert foreign key, so nearby devices of
    the same type can claim the same alert.
    """
    return any(
        abs(alert.latitude - device.latitude) < DEVICE_MATCH_TOLERANCE_DEG
        and abs(alert.longitude - device.longitude) < DEVICE_MATCH_TOLERANCE_DEG
        for device in devices
    )


def device_type_statistics(
    devices: Iterable[Device],
    readings: Iterable[Reading],
    alerts: Iterable[Alert],
) -> list[DeviceTypeStatistics]:
    """Aggregate devices, readings and alerts per device type.

    Pure function. Each alert counts at most once for a type, but may count
    for several types when devices of different types share a location.

    Args:
        devices: The whole device registry
        readings: Readings inside the requested window
        alerts: Alerts inside the requested window

    Returns:
        One entry per device type present in the registry
    """
    by_type: dict[DeviceType, list[Device]] = {}
    for device in devices:
        by_type.setdefault(device.type, []).append(device)

    readings_by_device: dict[int, list[Reading]] = {}
    for reading in readings:
        readings_by_device.setdefault(reading.device_id, []).append(reading)

    alerts = list(alerts)
    results = []

    for device_type, type_devices in by_type.items():
        type_readings = [
            reading
            for device in type_devices
            for reading in readings_by_device.get(device.id, [])
        ]
        alerts_generated = sum(
            1 for alert in alerts if _matches_any_device(alert, type_devices)
        )

        stats = DeviceTypeStatistics(
            device_type=device_type,
            total_devices=len(type_devices),
            active_devices=sum(1 for d in type_devices if d.is_operational),
            alerts_generated=alerts_generated,
        )

        if type_readings:
            values = [r.value for r in type_readings]
            stats = replace(
                stats,
                average_value=sum(values) / len(values),
                max_value=max(values),
                min_value=min(values),
                last_reading=max(r.timestamp for r in type_readings),
            )

        results.append(stats)

    return results


def alert_trends(alerts: Iterable[Alert]) -> list[AlertTrend]:
    """Count alerts per calendar day (UTC) and alert type.

    Pure function. Severity is the mean severity truncated to an integer,
    not rounded.

    Returns:
        Trends in ascending date order
    """
    groups: dict[tuple[date, AlertType], list[int]] = {}
    for alert in alerts:
        key = (as_utc(alert.timestamp).date(), alert.type)
        groups.setdefault(key, []).append(alert.severity)

    trends = [
        AlertTrend(
            date=day,
            alert_type=alert_type,
            count=len(severities),
            severity=int(sum(severities) / len(severities)),
        )
        for (day, alert_type), severities in groups.items()
    ]
    return sorted(trends, key=lambda t: t.date)


def predominant_alert_type(alerts: list[Alert]) -> AlertType:
    """Return the most frequent alert type; ties go to the first seen.

    Pure function. Expects a non-empty list.
    """
    return Counter(alert.type for alert in alerts).most_common(1)[0][0]


def geographic_hotspots(alerts: Iterable[Alert], top_n: int) -> list[GeographicHotspot]:
    """Rank fine-grained alert buckets by alert count.

    Pure function.

    Args:
        alerts: Alerts inside the requested window
        top_n: Maximum number of hotspots to return (positive)

    Returns:
        Up to top_n hotspots, most alerts first
    """
    buckets = bucket_alerts(alerts, HOTSPOT_PRECISION)
    hotspots = [
        GeographicHotspot(
            latitude=lat,
            longitude=lng,
            alert_count=len(group),
            risk_level=calculate_risk_score(
                len(group), max(alert.severity for alert in group)
            ),
            predominant_alert_type=predominant_alert_type(group).value,
        )
        for (lat, lng), group in buckets.items()
    ]
    hotspots.sort(key=lambda h: h.alert_count, reverse=True)
    return hotspots[:top_n]

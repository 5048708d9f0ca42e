"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- Geo/distance calculations and proximity ranking
- Alert rule evaluation for sensor readings
- Input validation
- Statistics and hotspot aggregation

All functions here are deterministic and have no I/O.
"""

from hazard_monitor.core.models import (
    Alert,
    AlertDraft,
    AlertType,
    Device,
    DeviceStatus,
    DeviceType,
    Reading,
)
from hazard_monitor.core.geo import (
    calculate_distance,
    filter_within_radius,
    is_within_radius,
    rank_by_proximity,
)
from hazard_monitor.core.rules import evaluate_device_reading, evaluate_reading
from hazard_monitor.core.statistics import (
    alert_trends,
    calculate_risk_score,
    device_type_statistics,
    geographic_hotspots,
    location_statistics,
)

__all__ = [
    # Models
    "Alert",
    "AlertDraft",
    "AlertType",
    "Device",
    "DeviceStatus",
    "DeviceType",
    "Reading",
    # Geo
    "calculate_distance",
    "filter_within_radius",
    "is_within_radius",
    "rank_by_proximity",
    # Rules
    "evaluate_device_reading",
    "evaluate_reading",
    # Statistics
    "alert_trends",
    "calculate_risk_score",
    "device_type_statistics",
    "geographic_hotspots",
    "location_statistics",
]

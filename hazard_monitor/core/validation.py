"""Input validation - Pure functions.

Callers validate here before handing values to the geo, rule and
statistics functions, which trust their inputs. Every check raises
InvalidArgumentError with a human-readable message.
"""

import math
from datetime import datetime, timedelta, timezone

from hazard_monitor.core.errors import InvalidArgumentError
from hazard_monitor.core.models import Alert, AlertDraft


MAX_RADIUS_KM = 1000.0
MAX_WINDOW = timedelta(days=365)
MAX_WINDOW_END_AHEAD = timedelta(days=1)
MAX_DESCRIPTION_LENGTH = 1000
MIN_SEVERITY = 1
MAX_SEVERITY = 5
MAX_ALERT_AHEAD = timedelta(hours=1)
MAX_ALERT_AGE = timedelta(days=365)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def validate_device_id(device_id: int) -> None:
    if isinstance(device_id, bool) or not isinstance(device_id, int) or device_id <= 0:
        raise InvalidArgumentError(f"Device ID must be a positive integer, got {device_id!r}")


def validate_reading_value(value: float) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgumentError(f"Reading value must be a finite number, got {value!r}")

    try:
        value = float(value)
    except OverflowError:
        raise InvalidArgumentError("Reading value is too large to represent") from None

    if not math.isfinite(value):
        raise InvalidArgumentError(f"Reading value must be a finite number, got {value!r}")


def validate_coordinates(latitude: float, longitude: float) -> None:
    """Validate a latitude/longitude pair.

    Raises:
        InvalidArgumentError: If either coordinate is out of range or not finite
    """
    if not math.isfinite(latitude) or not -90 <= latitude <= 90:
        raise InvalidArgumentError(f"Latitude {latitude} out of range [-90, 90]")

    if not math.isfinite(longitude) or not -180 <= longitude <= 180:
        raise InvalidArgumentError(f"Longitude {longitude} out of range [-180, 180]")


def validate_radius(radius_km: float, max_km: float = MAX_RADIUS_KM) -> None:
    if not math.isfinite(radius_km) or radius_km <= 0 or radius_km > max_km:
        raise InvalidArgumentError(f"Radius must be in (0, {max_km:g}] km, got {radius_km}")


def validate_location_filter(
    radius_km: float | None,
    center_lat: float | None,
    center_lng: float | None,
) -> bool:
    """Validate an optional (radius, center) filter.

    Either all three values are given or none is.

    Returns:
        True if a filter was supplied

    Raises:
        InvalidArgumentError: If the filter is partial or out of range
    """
    supplied = [v is not None for v in (radius_km, center_lat, center_lng)]
    if not any(supplied):
        return False

    if not all(supplied):
        raise InvalidArgumentError(
            "Location filter requires radius_km, center_lat and center_lng together"
        )

    if not math.isfinite(radius_km) or radius_km <= 0:
        raise InvalidArgumentError(f"Radius must be greater than zero, got {radius_km}")

    validate_coordinates(center_lat, center_lng)
    return True


def validate_time_window(from_date: datetime, to_date: datetime, now: datetime) -> None:
    """Validate a statistics time window.

    Rules:
    - from_date must not be after to_date
    - to_date must not be more than one day past now
    - the window must not span more than 365 days

    Raises:
        InvalidArgumentError: On any violation
    """
    from_date, to_date, now = as_utc(from_date), as_utc(to_date), as_utc(now)

    if from_date > to_date:
        raise InvalidArgumentError("Start date cannot be after end date")

    if to_date > now + MAX_WINDOW_END_AHEAD:
        raise InvalidArgumentError("End date cannot be in the future")

    if to_date - from_date > MAX_WINDOW:
        raise InvalidArgumentError("Time window cannot exceed 365 days")


def validate_top_n(top_n: int) -> None:
    if top_n <= 0:
        raise InvalidArgumentError(f"Number of hotspots must be greater than zero, got {top_n}")


def validate_severity(severity: int) -> None:
    if not MIN_SEVERITY <= severity <= MAX_SEVERITY:
        raise InvalidArgumentError(
            f"Severity must be between {MIN_SEVERITY} and {MAX_SEVERITY}, got {severity}"
        )


def validate_since(since: datetime, now: datetime) -> None:
    """Validate the start of a recent-alerts query.

    Raises:
        InvalidArgumentError: If since is in the future or over a year ago
    """
    since, now = as_utc(since), as_utc(now)

    if since > now:
        raise InvalidArgumentError("Reference date cannot be in the future")

    if since < now - MAX_ALERT_AGE:
        raise InvalidArgumentError("Reference date cannot be more than 1 year in the past")


def validate_alert(alert: Alert | AlertDraft, now: datetime) -> None:
    """Validate a manually authored alert before it is stored.

    Raises:
        InvalidArgumentError: If any field violates the alert invariants
    """
    if not alert.description or not alert.description.strip():
        raise InvalidArgumentError("Alert description is required")

    if len(alert.description) > MAX_DESCRIPTION_LENGTH:
        raise InvalidArgumentError(
            f"Alert description cannot exceed {MAX_DESCRIPTION_LENGTH} characters"
        )

    validate_severity(alert.severity)
    validate_coordinates(alert.latitude, alert.longitude)

    timestamp, now = as_utc(alert.timestamp), as_utc(now)
    if timestamp > now + MAX_ALERT_AHEAD:
        raise InvalidArgumentError("Alert timestamp cannot be more than 1 hour in the future")

    if timestamp < now - MAX_ALERT_AGE:
        raise InvalidArgumentError("Alert timestamp cannot be more than 1 year in the past")

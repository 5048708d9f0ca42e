"""Alert rule evaluation - Pure functions.

This module decides whether a sensor reading should raise a hazard alert.
The thresholds live in a small table keyed by device type, so adding a
sensor kind means adding rows, not code paths. All functions are pure with
no side effects.
"""

from dataclasses import dataclass
from datetime import datetime

from hazard_monitor.core.models import (
    AlertDraft,
    AlertType,
    Device,
    DeviceType,
    Reading,
)


ABOVE = "above"
BELOW = "below"


@dataclass(frozen=True)
class ThresholdRule:
    """A single threshold check for one device type.

    Attributes:
        alert_type: Alert raised when the rule fires
        severity: Severity of the raised alert (1-5)
        threshold: Value the reading is compared against (exclusive)
        direction: 'above' fires on value > threshold, 'below' on value < threshold
        description_template: Format string with a {value} placeholder
    """
    alert_type: AlertType
    severity: int
    threshold: float
    direction: str
    description_template: str

    def matches(self, value: float) -> bool:
        """Check if a value crosses this rule's threshold."""
        if self.direction == ABOVE:
            return value > self.threshold
        return value < self.threshold


RULE_TABLE: dict[DeviceType, tuple[ThresholdRule, ...]] = {
    DeviceType.TEMPERATURE_SENSOR: (
        ThresholdRule(
            alert_type=AlertType.EXTREME_HEAT,
            severity=3,
            threshold=38.0,
            direction=ABOVE,
            description_template="Extreme temperature detected: {value}°C",
        ),
        ThresholdRule(
            alert_type=AlertType.EXTREME_COLD,
            severity=3,
            threshold=15.0,
            direction=BELOW,
            description_template="Extreme cold detected: {value}°C",
        ),
    ),
    DeviceType.WATER_LEVEL_SENSOR: (
        ThresholdRule(
            alert_type=AlertType.FLOOD,
            severity=5,
            threshold=100.0,
            direction=ABOVE,
            description_template="High water level detected: {value}cm",
        ),
    ),
    DeviceType.VIBRATION_SENSOR: (
        ThresholdRule(
            alert_type=AlertType.EARTHQUAKE,
            severity=4,
            threshold=5.0,
            direction=ABOVE,
            description_template="High vibration detected: {value}g",
        ),
    ),
    DeviceType.SMOKE_SENSOR: (
        ThresholdRule(
            alert_type=AlertType.FIRE,
            severity=4,
            threshold=200.0,
            direction=ABOVE,
            description_template="High smoke level detected: {value}ppm",
        ),
    ),
}


def format_value(value: float) -> str:
    """Render a reading value for alert descriptions.

    Integral values drop the trailing '.0' (150.0 -> '150').
    """
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def find_matching_rule(
    device_type: DeviceType,
    value: float,
) -> ThresholdRule | None:
    """Return the first rule for a device type that the value triggers.

    Pure function.
    """
    for rule in RULE_TABLE.get(device_type, ()):
        if rule.matches(value):
            return rule
    return None


def evaluate_reading(
    device_type: DeviceType,
    value: float,
    latitude: float,
    longitude: float,
    timestamp: datetime,
) -> AlertDraft | None:
    """Decide whether a reading should raise an alert.

    Pure function. Never fails: device types without rules and values
    inside the safe range both yield None.

    Args:
        device_type: Type of the device that produced the reading
        value: Reading value
        latitude: Device latitude
        longitude: Device longitude
        timestamp: Reading timestamp

    Returns:
        AlertDraft if a threshold was crossed, else None
    """
    rule = find_matching_rule(device_type, value)
    if rule is None:
        return None

    return AlertDraft(
        type=rule.alert_type,
        severity=rule.severity,
        latitude=latitude,
        longitude=longitude,
        timestamp=timestamp,
        description=rule.description_template.format(value=format_value(value)),
    )


def evaluate_device_reading(device: Device, reading: Reading) -> AlertDraft | None:
    """Evaluate a reading using its device's type and location.

    Pure function. The draft carries the device's coordinates and the
    reading's timestamp.
    """
    return evaluate_reading(
        device.type,
        reading.value,
        device.latitude,
        device.longitude,
        reading.timestamp,
    )

"""Domain models - Pure data structures.

Devices, readings, alerts, shelters and resources as immutable dataclasses.
Each model can render itself as JSON-ready primitives; the HTTP and
Cloud Function layers serialize these dicts directly.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class DeviceType(str, Enum):
    """Kinds of field devices in the registry."""
    TEMPERATURE_SENSOR = "TemperatureSensor"
    HUMIDITY_SENSOR = "HumiditySensor"
    WATER_LEVEL_SENSOR = "WaterLevelSensor"
    VIBRATION_SENSOR = "VibrationSensor"
    SMOKE_SENSOR = "SmokeSensor"
    MOTION_SENSOR = "MotionSensor"
    GATEWAY = "Gateway"


class DeviceStatus(str, Enum):
    """Operational state of a device."""
    OPERATIONAL = "Operational"
    INACTIVE = "Inactive"
    MAINTENANCE = "Maintenance"
    FAULTY = "Faulty"


class AlertType(str, Enum):
    """Hazard categories an alert can describe."""
    FLOOD = "Flood"
    FIRE = "Fire"
    EARTHQUAKE = "Earthquake"
    EXTREME_HEAT = "ExtremeHeat"
    EXTREME_COLD = "ExtremeCold"


class ResourceStatus(str, Enum):
    """Availability of an emergency resource."""
    AVAILABLE = "AVAILABLE"
    IN_USE = "IN_USE"
    EXHAUSTED = "EXHAUSTED"
    DAMAGED = "DAMAGED"
    PENDING = "PENDING"


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class Device:
    """A registered field device.

    Attributes:
        id: Registry ID (positive)
        type: Device kind
        status: Operational state
        latitude: Installation latitude
        longitude: Installation longitude
    """
    id: int
    type: DeviceType
    status: DeviceStatus
    latitude: float
    longitude: float

    @property
    def is_operational(self) -> bool:
        return self.status == DeviceStatus.OPERATIONAL

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "status": self.status.value,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }


@dataclass(frozen=True)
class Reading:
    """A single timestamped sample from a device.

    Attributes:
        device_id: ID of the device that produced the sample
        value: Measured value (unit depends on device type)
        timestamp: When the sample was received (UTC)
        id: Storage ID, None until persisted
    """
    device_id: int
    value: float
    timestamp: datetime
    id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "device_id": self.device_id,
            "value": self.value,
            "timestamp": _isoformat(self.timestamp),
        }


@dataclass(frozen=True)
class AlertDraft:
    """An alert produced by rule evaluation, not yet persisted.

    Attributes:
        type: Hazard category
        severity: 1 (lowest) to 5 (highest)
        latitude: Latitude of the triggering device
        longitude: Longitude of the triggering device
        timestamp: Timestamp of the triggering reading
        description: Human-readable description
    """
    type: AlertType
    severity: int
    latitude: float
    longitude: float
    timestamp: datetime
    description: str

    def to_alert(self, alert_id: str | None = None) -> "Alert":
        """Convert the draft to an Alert, optionally with a storage ID."""
        return Alert(
            type=self.type,
            severity=self.severity,
            latitude=self.latitude,
            longitude=self.longitude,
            timestamp=self.timestamp,
            description=self.description,
            id=alert_id,
        )


@dataclass(frozen=True)
class Alert:
    """A persisted hazard alert."""
    type: AlertType
    severity: int
    latitude: float
    longitude: float
    timestamp: datetime
    description: str
    id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "severity": self.severity,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "timestamp": _isoformat(self.timestamp),
            "description": self.description,
        }


@dataclass(frozen=True)
class Shelter:
    """An emergency shelter.

    Attributes:
        id: Storage ID
        name: Shelter name
        address: Street address
        capacity: Maximum number of occupants
        current_occupancy: Current number of occupants
        latitude: Shelter latitude
        longitude: Shelter longitude
    """
    id: str
    name: str
    address: str
    capacity: int
    current_occupancy: int
    latitude: float
    longitude: float

    @property
    def is_available(self) -> bool:
        return self.current_occupancy < self.capacity

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "capacity": self.capacity,
            "current_occupancy": self.current_occupancy,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }


@dataclass(frozen=True)
class Resource:
    """An emergency resource stockpile (water, medical kits, vehicles...)."""
    id: str
    type: str
    quantity: int
    latitude: float
    longitude: float
    status: ResourceStatus = ResourceStatus.AVAILABLE

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "quantity": self.quantity,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "status": self.status.value,
        }

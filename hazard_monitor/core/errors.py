"""Error taxonomy shared by the core and the shell.

- InvalidArgumentError: malformed input, surfaced unmodified
- NotFoundError: a referenced entity does not exist, never retried
- TransientError: storage contention or connectivity, retried
- InternalError: unexpected failure, surfaced with an opaque message
"""


class HazardMonitorError(Exception):
    """Base class for all hazard monitor errors."""


class InvalidArgumentError(HazardMonitorError, ValueError):
    """Raised when caller-supplied input is malformed or out of range."""


class NotFoundError(HazardMonitorError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: object) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} {entity_id} not found")


class TransientError(HazardMonitorError):
    """Raised by storage adapters for failures expected to succeed on retry."""


class InternalError(HazardMonitorError):
    """Raised for unexpected failures. The message never carries internals."""

"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field


STORAGE_BACKENDS = ("memory", "firestore")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class StorageConfig:
    """Where devices, readings and alerts are stored.

    Attributes:
        backend: 'memory' (process-local) or 'firestore'
        firestore_project: GCP project ID (None for default)
        firestore_database: Firestore database name (None for default database)
        collection_prefix: Prefix for every collection name (e.g. 'staging_')
    """
    backend: str = "memory"
    firestore_project: str | None = None
    firestore_database: str | None = None
    collection_prefix: str = ""


@dataclass
class RetryConfig:
    """Retry policy for storage transactions.

    Attributes:
        max_attempts: Total attempts including the first one
        base_delay_seconds: Delay before the first retry, doubled afterwards
        max_delay_seconds: Upper bound for a single delay
    """
    max_attempts: int = 3
    base_delay_seconds: float = 0.1
    max_delay_seconds: float = 2.0


@dataclass
class StatisticsConfig:
    """Defaults for dashboard queries.

    Attributes:
        default_window_months: Window length when the caller gives no dates
        hotspot_top_n: Number of hotspots returned by the dashboard
    """
    default_window_months: int = 3
    hotspot_top_n: int = 10


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.
    """
    storage: StorageConfig = field(default_factory=StorageConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    statistics: StatisticsConfig = field(default_factory=StatisticsConfig)
    log_level: str = "INFO"


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    if config.storage.backend not in STORAGE_BACKENDS:
        errors.append(ValidationError(
            field="storage.backend",
            message=f"Unknown storage backend '{config.storage.backend}', "
                    f"expected one of {', '.join(STORAGE_BACKENDS)}",
        ))
    elif config.storage.backend == "memory":
        errors.append(ValidationError(
            field="storage.backend",
            message="In-memory storage loses all data on restart",
            severity="warning",
        ))

    if config.retry.max_attempts < 1:
        errors.append(ValidationError(
            field="retry.max_attempts",
            message=f"Must be at least 1, got {config.retry.max_attempts}",
        ))

    if config.retry.base_delay_seconds < 0:
        errors.append(ValidationError(
            field="retry.base_delay_seconds",
            message=f"Must not be negative, got {config.retry.base_delay_seconds}",
        ))

    if config.retry.max_delay_seconds < config.retry.base_delay_seconds:
        errors.append(ValidationError(
            field="retry.max_delay_seconds",
            message=f"max_delay_seconds ({config.retry.max_delay_seconds}) < "
                    f"base_delay_seconds ({config.retry.base_delay_seconds})",
        ))

    if config.statistics.default_window_months < 1:
        errors.append(ValidationError(
            field="statistics.default_window_months",
            message=f"Must be at least 1, got {config.statistics.default_window_months}",
        ))
    elif config.statistics.default_window_months > 12:
        errors.append(ValidationError(
            field="statistics.default_window_months",
            message="Windows longer than 12 months are rejected by statistics queries",
        ))

    if config.statistics.hotspot_top_n < 1:
        errors.append(ValidationError(
            field="statistics.hotspot_top_n",
            message=f"Must be at least 1, got {config.statistics.hotspot_top_n}",
        ))

    if config.log_level not in LOG_LEVELS:
        errors.append(ValidationError(
            field="log_level",
            message=f"Unknown log level '{config.log_level}', "
                    f"expected one of {', '.join(LOG_LEVELS)}",
        ))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )

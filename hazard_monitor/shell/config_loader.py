"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

Models (Config, StorageConfig, ...) are defined in hazard_monitor/core/config.py
to avoid information leakage between layers.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from hazard_monitor.core.config import (
    Config,
    RetryConfig,
    StatisticsConfig,
    StorageConfig,
)


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = "config/config.yaml"


def _is_placeholder(value: Any) -> bool:
    return isinstance(value, str) and value.startswith("${") and value.endswith("}")


def _resolve_value(value: Any) -> Any:
    """Resolve a ${VAR} placeholder from the environment.

    Non-string values and plain strings are returned unchanged. Unset
    variables leave the placeholder in place.
    """
    if not _is_placeholder(value):
        return value

    var_name = value[2:-1]
    env_value = os.environ.get(var_name)
    if env_value:
        return env_value
    logger.warning("Environment variable %s not set", var_name)

    return value


def _optional_str(value: Any) -> str | None:
    """Resolve an optional setting; empty or unresolved values become None."""
    value = _resolve_value(value)
    if value is None or value == "" or _is_placeholder(value):
        return None
    return str(value)


def _parse_storage(data: dict[str, Any]) -> StorageConfig:
    """Parse storage settings from config data."""
    return StorageConfig(
        backend=str(_resolve_value(data.get("backend", "memory"))).lower(),
        firestore_project=_optional_str(data.get("firestore_project")),
        firestore_database=_optional_str(data.get("firestore_database")),
        collection_prefix=_optional_str(data.get("collection_prefix")) or "",
    )


def _parse_retry(data: dict[str, Any]) -> RetryConfig:
    """Parse retry policy settings from config data."""
    return RetryConfig(
        max_attempts=int(data.get("max_attempts", 3)),
        base_delay_seconds=float(data.get("base_delay_seconds", 0.1)),
        max_delay_seconds=float(data.get("max_delay_seconds", 2.0)),
    )


def _parse_statistics(data: dict[str, Any]) -> StatisticsConfig:
    """Parse dashboard defaults from config data."""
    return StatisticsConfig(
        default_window_months=int(data.get("default_window_months", 3)),
        hotspot_top_n=int(data.get("hotspot_top_n", 10)),
    )


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    This is a pure-ish function (only env var expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object
    """
    return Config(
        storage=_parse_storage(data.get("storage") or {}),
        retry=_parse_retry(data.get("retry") or {}),
        statistics=_parse_statistics(data.get("statistics") or {}),
        log_level=str(data.get("log_level", "INFO")).upper(),
    )


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return Config()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return Config()

    config = load_config_from_dict(data)

    logger.info(
        "Loaded config: storage=%s, retry attempts=%d",
        config.storage.backend,
        config.retry.max_attempts,
    )

    return config


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Useful for Cloud Function deployments without a YAML file.

    Environment variables:
        STORAGE_BACKEND: 'memory' or 'firestore' (default: memory)
        FIRESTORE_PROJECT: GCP project ID
        FIRESTORE_DATABASE: Firestore database name
        COLLECTION_PREFIX: Prefix for collection names
        RETRY_MAX_ATTEMPTS: Transaction attempts (default: 3)
        LOG_LEVEL: Logging level (default: INFO)

    Returns:
        Config object from environment
    """
    storage = StorageConfig(
        backend=os.environ.get("STORAGE_BACKEND", "memory").lower(),
        firestore_project=os.environ.get("FIRESTORE_PROJECT") or None,
        firestore_database=os.environ.get("FIRESTORE_DATABASE") or None,
        collection_prefix=os.environ.get("COLLECTION_PREFIX", ""),
    )

    retry = RetryConfig(
        max_attempts=int(os.environ.get("RETRY_MAX_ATTEMPTS", "3")),
    )

    return Config(
        storage=storage,
        retry=retry,
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )


def apply_log_level(config: Config) -> None:
    """Set the root logger to the configured level.

    Entry points configure logging from LOG_LEVEL at import time; this
    applies the level from the loaded configuration once it is known.
    """
    level = getattr(logging, config.log_level, None)
    if not isinstance(level, int):
        logger.warning("Unknown log level %r, keeping current level", config.log_level)
        return
    logging.getLogger().setLevel(level)


def get_config() -> Config:
    """Load configuration from file or environment.

    A CONFIG_PATH or an existing default config file wins; otherwise the
    environment is used.
    """
    config_path = os.environ.get("CONFIG_PATH")

    if config_path or Path(DEFAULT_CONFIG_PATH).exists():
        return load_config(config_path)
    return load_config_from_env()

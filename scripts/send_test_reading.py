#!/usr/bin/env python3
"""Send a synthetic sensor reading through the ingestion pipeline.

With the in-memory backend a matching test device is registered first, so
the script works without any infrastructure. With Firestore the device
must already exist in the devices collection.

Usage:
    # Dry run (evaluate the alert rules only, nothing is stored)
    python scripts/send_test_reading.py --device-type TemperatureSensor --value 55 --dry-run

    # Ingest into the configured store
    python scripts/send_test_reading.py --device-id 7 --device-type WaterLevelSensor --value 12

Environment:
    CONFIG_PATH: Path to config file (default: config/config.yaml)
"""

import argparse
import json
import logging
import os
import sys
from datetime import datetime, timezone

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hazard_monitor.core.errors import HazardMonitorError
from hazard_monitor.core.models import Device, DeviceStatus, DeviceType
from hazard_monitor.core.rules import evaluate_reading
from hazard_monitor.ingestion import IngestionPipeline
from hazard_monitor.shell.config_loader import get_config
from hazard_monitor.shell.storage import create_store
from hazard_monitor.transaction import RetryPolicy

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def dry_run(args: argparse.Namespace) -> int:
    """Evaluate the rules for the reading and print the alert, if any."""
    draft = evaluate_reading(
        DeviceType(args.device_type),
        args.value,
        args.latitude,
        args.longitude,
        datetime.now(timezone.utc),
    )

    if draft is None:
        logger.info("No alert for %s reading %s", args.device_type, args.value)
        return 0

    logger.info("Would raise %s alert (severity %d)", draft.type.value, draft.severity)
    logger.info("  %s", draft.description)
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Send a synthetic sensor reading through the ingestion pipeline",
    )
    parser.add_argument(
        "--device-id",
        type=int,
        default=1,
        help="Device ID (default: 1)",
    )
    parser.add_argument(
        "--device-type",
        choices=[t.value for t in DeviceType],
        default=DeviceType.TEMPERATURE_SENSOR.value,
        help="Device type (default: TemperatureSensor)",
    )
    parser.add_argument(
        "--value",
        type=float,
        required=True,
        help="Reading value",
    )
    parser.add_argument(
        "--latitude",
        type=float,
        default=37.7749,
        help="Device latitude for the test device (default: 37.7749)",
    )
    parser.add_argument(
        "--longitude",
        type=float,
        default=-122.4194,
        help="Device longitude for the test device (default: -122.4194)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Evaluate the alert rules without storing anything",
    )
    args = parser.parse_args()

    if args.dry_run:
        return dry_run(args)

    config = get_config()
    store = create_store(config.storage)

    if config.storage.backend == "memory":
        store.add_device(Device(
            id=args.device_id,
            type=DeviceType(args.device_type),
            status=DeviceStatus.OPERATIONAL,
            latitude=args.latitude,
            longitude=args.longitude,
        ))

    pipeline = IngestionPipeline(store, RetryPolicy.from_config(config.retry))

    try:
        result = pipeline.process(args.device_id, args.value)
    except HazardMonitorError as e:
        logger.error("Ingestion failed: %s", e)
        return 1

    print(json.dumps(result.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())

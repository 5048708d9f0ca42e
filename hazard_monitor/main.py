"""Cloud Function Entry Points.

Thin wrappers that load configuration, build the ingestion pipeline once
per instance and feed it readings from HTTP requests or Pub/Sub messages.
"""

import base64
import json
import logging
import os
from typing import Any

import functions_framework
from flask import Request

from hazard_monitor.core.errors import (
    InternalError,
    InvalidArgumentError,
    NotFoundError,
)
from hazard_monitor.ingestion import IngestionPipeline
from hazard_monitor.shell.config_loader import apply_log_level, get_config
from hazard_monitor.shell.storage import create_store
from hazard_monitor.transaction import RetryPolicy


# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# Reused across invocations on a warm instance
_pipeline: IngestionPipeline | None = None


def _get_pipeline() -> IngestionPipeline:
    """Build the ingestion pipeline on first use."""
    global _pipeline
    if _pipeline is None:
        config = get_config()
        apply_log_level(config)
        _pipeline = IngestionPipeline(
            create_store(config.storage),
            RetryPolicy.from_config(config.retry),
        )
    return _pipeline


def _parse_payload(data: Any) -> tuple[int, float]:
    """Extract (device_id, value) from a decoded JSON payload.

    Raises:
        InvalidArgumentError: If the payload is not an object with both fields
    """
    if not isinstance(data, dict):
        raise InvalidArgumentError("Payload must be a JSON object")

    missing = [k for k in ("device_id", "value") if k not in data]
    if missing:
        raise InvalidArgumentError(f"Missing field(s): {', '.join(missing)}")

    return data["device_id"], data["value"]


@functions_framework.http
def ingest_reading(request: Request) -> tuple[dict[str, Any], int]:
    """HTTP Cloud Function entry point.

    Expects a JSON body {"device_id": <int>, "value": <number>}.

    Args:
        request: Flask request object

    Returns:
        Tuple of (response dict, HTTP status code)
    """
    try:
        device_id, value = _parse_payload(request.get_json(silent=True))
        result = _get_pipeline().process(device_id, value)
        return result.to_dict(), 201

    except InvalidArgumentError as e:
        return {"status": "error", "message": str(e)}, 400

    except NotFoundError as e:
        return {"status": "error", "message": str(e)}, 404

    except InternalError as e:
        return {"status": "error", "message": str(e)}, 500

    except Exception:
        logger.exception("Unexpected error ingesting reading")
        return {"status": "error", "message": "Internal error"}, 500


@functions_framework.cloud_event
def ingest_reading_pubsub(cloud_event: Any) -> None:
    """Pub/Sub Cloud Function entry point.

    The message data is base64-encoded JSON with the same shape as the
    HTTP body. Malformed messages and unknown devices are logged and
    dropped; other failures are raised so Pub/Sub redelivers the message.

    Args:
        cloud_event: CloudEvent from Pub/Sub
    """
    try:
        encoded = cloud_event.data["message"]["data"]
        data = json.loads(base64.b64decode(encoded))
        device_id, value = _parse_payload(data)
    except (KeyError, TypeError, ValueError) as e:
        logger.error("Dropping malformed Pub/Sub message: %s", e)
        return

    try:
        result = _get_pipeline().process(device_id, value)
    except (InvalidArgumentError, NotFoundError) as e:
        logger.error("Dropping reading for device %s: %s", device_id, e)
        return

    logger.info("Completed: %s", result.message)


# For local testing
if __name__ == "__main__":
    import sys

    if len(sys.argv) != 3:
        print("Usage: python -m hazard_monitor.main <device_id> <value>")
        sys.exit(1)

    class MockRequest:
        def __init__(self, body: dict[str, Any]) -> None:
            self._body = body

        def get_json(self, silent: bool = False) -> dict[str, Any]:
            return self._body

    response, status = ingest_reading(
        MockRequest({"device_id": int(sys.argv[1]), "value": float(sys.argv[2])})
    )
    print(f"\nResponse ({status}):")
    print(json.dumps(response, indent=2))

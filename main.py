"""Cloud Function Entry Point - Root Module.

This is the root-level entry point for Google Cloud Functions.
It imports from the hazard_monitor package.
"""

from hazard_monitor.main import (
    ingest_reading,
    ingest_reading_pubsub,
)

__all__ = [
    "ingest_reading",
    "ingest_reading_pubsub",
]

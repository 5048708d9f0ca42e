"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- Storage adapters (in-memory, Firestore)
- Configuration loading (environment/files)

Keep this layer thin and simple. All business logic should be in core.
"""

from hazard_monitor.shell.config_loader import get_config, load_config
from hazard_monitor.shell.memory_store import InMemoryStore
from hazard_monitor.shell.storage import Store, create_store

__all__ = [
    "InMemoryStore",
    "Store",
    "create_store",
    "get_config",
    "load_config",
]

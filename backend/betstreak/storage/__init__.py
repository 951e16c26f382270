"""Storage layer for Betstreak - whole-document persistence of tracker state.

This package provides:
- Document stores (JSON file with atomic writes, in-memory)
- The TrackerState model and load/save helpers
"""

from .documents import DocumentStore, InMemoryStore, JsonFileStore
from .exceptions import StorageUnavailable
from .state import (
    INITIAL_STATUS,
    TrackerState,
    create_default_state,
    format_status,
    initialize_state,
    load_state,
    save_state,
)

__all__ = [
    # Stores
    "DocumentStore",
    "InMemoryStore",
    "JsonFileStore",
    "StorageUnavailable",
    # State
    "INITIAL_STATUS",
    "TrackerState",
    "create_default_state",
    "format_status",
    "initialize_state",
    "load_state",
    "save_state",
]

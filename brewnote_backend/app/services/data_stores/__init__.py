# brewnote_backend/app/services/data_stores/__init__.py
"""
Unified export surface for data store helpers.

Import from here in services/routers, e.g.:
    from brewnote_backend.app.services.data_stores import (
        # Stores
        KeyValueStore, InMemoryStore, JsonFileStore,
        # Repository
        BrewRepository, STORAGE_KEYS,
    )
"""

from __future__ import annotations

# ---- Low-level IO helpers ----
from .io_utils import atomic_write_bytes, read_bytes, dumps_json, loads_json  # noqa: F401

# ---- Key/value backends ----
from .kv_store import KeyValueStore, InMemoryStore, JsonFileStore  # noqa: F401

# ---- Repository ----
from .repository import BrewRepository, STORAGE_KEYS, coerce_model, now_iso  # noqa: F401

__all__ = [
    "atomic_write_bytes", "read_bytes", "dumps_json", "loads_json",
    "KeyValueStore", "InMemoryStore", "JsonFileStore",
    "BrewRepository", "STORAGE_KEYS", "coerce_model", "now_iso",
]

# brewnote_backend/app/services/data_stores/kv_store.py
from __future__ import annotations

from pathlib import Path
from threading import RLock
from typing import Dict, Optional, Protocol, runtime_checkable

from brewnote_backend.app.utils.strings import key_to_filename
from .io_utils import atomic_write_bytes, read_bytes

# Purpose:
# The app only ever needs get/set of opaque blobs by key. Everything above this
# (beans, brews, pending queue, flags) is JSON the repository encodes itself.


@runtime_checkable
class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[bytes]: ...
    def set(self, key: str, value: bytes) -> None: ...


class InMemoryStore:
    """Dict-backed store for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    def keys(self):
        return list(self._data)


class JsonFileStore:
    """One file per key under `root` (./data/store by default)."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self._lock = RLock()

    def path_for(self, key: str) -> Path:
        return self.root / f"{key_to_filename(key)}.json"

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return read_bytes(self.path_for(key))

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            atomic_write_bytes(self.path_for(key), value)

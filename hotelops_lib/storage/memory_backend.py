"""In-process map backend.

Records live in a plain dict keyed by ``<entityType>:<id>``. Used for
tests and ephemeral/dev deployments; everything is lost when the process
exits. Values are deep-copied on the way in and out so callers can never
observe or cause a half-applied mutation.
"""
import copy
import logging
from threading import RLock
from typing import Any, AsyncIterator, Dict, List, Optional

logger = logging.getLogger(__name__)


class MemoryBackend:
    kind = 'memory'
    supports_prefix_scan = True

    def __init__(self) -> None:
        self._lock = RLock()
        self._store: Dict[str, Dict[str, Any]] = {}
        self.connected = False

    async def connect(self) -> None:
        self.connected = True
        logger.info("Memory backend connected (data is not persisted across restarts)")

    async def disconnect(self) -> None:
        self.connected = False
        logger.info("Memory backend disconnected")

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            value = self._store.get(key)
            return copy.deepcopy(value) if value is not None else None

    async def put(self, key: str, record: Dict[str, Any]) -> bool:
        value = copy.deepcopy(record)
        with self._lock:
            replaced = key in self._store
            self._store[key] = value
        return replaced

    async def delete(self, key: str) -> bool:
        with self._lock:
            return self._store.pop(key, None) is not None

    async def scan_by_prefix(self, prefix: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(v) for k, v in self._store.items() if k.startswith(prefix)]

    async def iter_keys(self, prefix: str = "") -> AsyncIterator[str]:
        with self._lock:
            keys = [k for k in self._store if k.startswith(prefix)]
        for k in keys:
            yield k

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

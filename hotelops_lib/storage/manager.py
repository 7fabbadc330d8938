"""StoreManager: process-wide holder of the active DocumentStore.

States are ``Uninitialized`` and ``Ready``. `reconfigure` tears the old
backend down before the new one is connected, so two backends are never
active at once. Callers that fetched a store before a reconfigure keep
their reference to the old (now disconnected) store until they call
`get_store` again.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from .document_store import DocumentStore
from .errors import StoreError, StoreNotInitialized

logger = logging.getLogger(__name__)


def _default_factory(config: Any) -> DocumentStore:
    from . import create_store

    return create_store(config)


class StoreManager:
    def __init__(self, store_factory: Optional[Callable[[Any], DocumentStore]] = None) -> None:
        self._factory = store_factory or _default_factory
        self._lock = asyncio.Lock()
        self._store: Optional[DocumentStore] = None
        self._config: Any = None

    @property
    def config(self) -> Any:
        return self._config

    def is_initialized(self) -> bool:
        return self._store is not None

    def get_store(self) -> DocumentStore:
        if self._store is None:
            raise StoreNotInitialized('Store not initialized. Call initialize() first.')
        return self._store

    async def _activate(self, config: Any) -> None:
        store = self._factory(config)
        try:
            await store.connect()
        except Exception:
            # release whatever half-open client/engine the adapter built
            await store.close()
            raise
        self._store = store
        self._config = config
        describe = getattr(config, 'describe', None)
        logger.info("Document store ready: %s", describe() if describe else store.kind)

    async def initialize(self, config: Any) -> None:
        async with self._lock:
            if self._store is not None:
                raise StoreError('Store already initialized; use reconfigure() to switch backends')
            await self._activate(config)

    async def reconfigure(self, config: Any) -> None:
        """Disconnect the current backend, then bring up `config`.

        If the new backend fails to connect the manager is left
        uninitialized and the error propagates.
        """
        async with self._lock:
            await self._teardown_locked()
            await self._activate(config)

    async def teardown(self) -> None:
        async with self._lock:
            await self._teardown_locked()

    async def _teardown_locked(self) -> None:
        if self._store is None:
            return
        store, self._store = self._store, None
        self._config = None
        try:
            await store.close()
        finally:
            logger.info("Document store torn down (%s)", store.kind)

    def status(self) -> Dict[str, Any]:
        store = self._store
        return {
            'initialized': store is not None,
            'backendKind': store.kind if store is not None else None,
            'indexBacked': store.index_backed if store is not None else None,
        }

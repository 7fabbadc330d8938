"""Document store package for the hotel operations dashboard."""
from typing import Any

from .errors import (
    BackendError,
    BackendUnavailable,
    ConfigurationError,
    IndexInconsistency,
    NotFound,
    PrefixScanUnsupported,
    StoreError,
    StoreNotInitialized,
    ValidationError,
)
from .interfaces import BackendProtocol
from .memory_backend import MemoryBackend
from .document_store import DocumentStore
from .index_manager import IndexManager, ReconcileReport


def create_backend(config: Any) -> BackendProtocol:
    """Build an unconnected backend adapter for a `StoreConfig`-like value.

    `config` needs `backend_kind` and a `setting(name, default)` accessor.
    Driver modules are imported lazily so a memory-only deployment does
    not need SQLAlchemy or redis installed.
    """
    kind = config.backend_kind
    if kind == 'memory':
        return MemoryBackend()
    if kind == 'sql-kv':
        from .sql_backend import SqlKeyValueBackend

        return SqlKeyValueBackend(
            url=config.setting('url'),
            table_name=config.setting('table') or 'kv_store',
            echo=bool(config.setting('echo', False)),
        )
    if kind == 'remote-kv':
        from .remote_backend import RemoteKeyValueBackend

        return RemoteKeyValueBackend(
            url=config.setting('url'),
            client=config.setting('client'),
            atomic_index=bool(config.setting('atomic_index', True)),
        )
    raise ConfigurationError(f"unsupported backend kind '{kind}'")


def create_store(config: Any) -> DocumentStore:
    return DocumentStore(create_backend(config))


__all__ = [
    "BackendError",
    "BackendProtocol",
    "BackendUnavailable",
    "ConfigurationError",
    "DocumentStore",
    "IndexInconsistency",
    "IndexManager",
    "MemoryBackend",
    "NotFound",
    "PrefixScanUnsupported",
    "ReconcileReport",
    "StoreError",
    "StoreNotInitialized",
    "ValidationError",
    "create_backend",
    "create_store",
]

"""Central re-exports for package-local Protocols.

The canonical definitions live beside their implementations.
"""

from typing import Any, Dict, Protocol, runtime_checkable

from hotelops_lib.storage.document_store import DocumentStore
from hotelops_lib.storage.interfaces import (
    AtomicIndexProtocol,
    BackendProtocol,
    SetCapableProtocol,
)


@runtime_checkable
class StoreManagerProtocol(Protocol):
    """Surface of `StoreManager` that the web layer relies on."""

    def is_initialized(self) -> bool: ...

    def get_store(self) -> DocumentStore: ...

    async def reconfigure(self, config: Any) -> None: ...

    def status(self) -> Dict[str, Any]: ...


__all__ = [
    "AtomicIndexProtocol",
    "BackendProtocol",
    "SetCapableProtocol",
    "StoreManagerProtocol",
]

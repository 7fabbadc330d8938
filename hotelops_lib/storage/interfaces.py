from typing import Protocol, Any, AsyncIterator, Dict, List, Optional, runtime_checkable

Record = Dict[str, Any]


@runtime_checkable
class BackendProtocol(Protocol):
    """Uniform low-level contract implemented by every backend adapter.

    Keys are opaque strings (``<entityType>:<id>`` by convention). Values
    are plain record mappings. Implementations raise `BackendUnavailable`
    for connection/timeout failures and return ``None`` for absent keys.
    """

    kind: str
    supports_prefix_scan: bool

    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...

    async def get(self, key: str) -> Optional[Record]: ...

    async def put(self, key: str, record: Record) -> bool:
        """Store `record`; return True when an existing value was replaced."""
        ...

    async def delete(self, key: str) -> bool: ...

    async def scan_by_prefix(self, prefix: str) -> List[Record]: ...

    def iter_keys(self, prefix: str = "") -> AsyncIterator[str]: ...


@runtime_checkable
class SetCapableProtocol(Protocol):
    """Extra surface required from exact-key adapters that keep indexes.

    Each call is a single set mutation at the backend, so individually
    atomic.
    """

    async def set_add(self, key: str, member: str) -> None: ...

    async def set_remove(self, key: str, member: str) -> None: ...

    async def set_members(self, key: str) -> List[str]: ...


@runtime_checkable
class AtomicIndexProtocol(Protocol):
    """Optional: write a record and its index entry in one backend round-trip."""

    atomic_index: bool

    async def put_indexed(self, key: str, record: Record, index_key: str, member: str) -> bool: ...

    async def delete_indexed(self, key: str, index_key: str, member: str) -> bool: ...

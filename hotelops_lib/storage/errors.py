"""Error taxonomy for the document store.

Callers are expected to catch `StoreError` subclasses at their layer.
Adapters translate driver exceptions into `BackendError` /
`BackendUnavailable` at the boundary so the store and the HTTP handlers
never need to know which client library produced a failure.
"""
from __future__ import annotations

from typing import Any, List, Optional


class StoreError(Exception):
    """Base class for all document store errors."""


class ValidationError(StoreError):
    """A record failed its entity rule set and was not written.

    `field` names the first offending field; `errors` carries every
    violation as ``{'field': ..., 'message': ...}`` mappings.
    """

    def __init__(self, entity_type: str, field: str, message: str, errors: Optional[List[dict]] = None) -> None:
        self.entity_type = entity_type
        self.field = field
        self.message = message
        self.errors = errors or [{'field': field, 'message': message}]
        super().__init__(f"{entity_type}.{field}: {message}")

    def to_dict(self) -> dict:
        return {
            'error': 'validation_error',
            'entityType': self.entity_type,
            'field': self.field,
            'message': self.message,
            'errors': self.errors,
        }


class NotFound(StoreError):
    """Raised when a named record does not exist (`update`, snapshot restore)."""

    def __init__(self, entity_type: str, id: str) -> None:
        self.entity_type = entity_type
        self.id = id
        super().__init__(f"{entity_type}:{id} not found")


class BackendError(StoreError):
    """Adapter-level failure that is not a connectivity problem."""


class BackendUnavailable(BackendError):
    """Connection or timeout failure talking to the backend."""


class PrefixScanUnsupported(BackendError, NotImplementedError):
    """The adapter is addressable by exact key only.

    Listing must go through the document store, which consults the
    index manager instead.
    """


class ConfigurationError(StoreError):
    """Invalid or incomplete store configuration."""


class StoreNotInitialized(StoreError):
    """`StoreManager.get_store` called before `initialize`."""


class IndexInconsistency(StoreError):
    """Mismatch between an entity index and the records it points at.

    Never raised inline. Instances are collected by the reconciliation
    sweep and returned in its report so health checks can flag
    corruption.
    """

    def __init__(self, entity_type: str, ghost_ids: List[str], orphan_ids: List[str]) -> None:
        self.entity_type = entity_type
        self.ghost_ids = sorted(ghost_ids)
        self.orphan_ids = sorted(orphan_ids)
        super().__init__(
            f"{entity_type}: {len(self.ghost_ids)} ghost id(s), {len(self.orphan_ids)} unindexed record(s)"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            'entityType': self.entity_type,
            'ghostIds': self.ghost_ids,
            'orphanIds': self.orphan_ids,
        }

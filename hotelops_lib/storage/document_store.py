"""DocumentStore: the CRUD facade used by the HTTP handlers.

Combines a backend adapter with record validation, id/timestamp
assignment and, for exact-key backends, index maintenance. All methods
are coroutines; concurrent writes to the same key are last-write-wins
at the backend.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .catalog import DASHBOARD_COLLECTIONS, SNAPSHOT_TYPE
from .errors import BackendError, NotFound, ValidationError
from .identity import RESERVED_FIELDS, stamp
from .index_manager import INDEX_SUFFIX, SEPARATOR, IndexManager, ReconcileReport, index_key
from .interfaces import AtomicIndexProtocol, BackendProtocol
from .validation import Validator, default_validator

logger = logging.getLogger(__name__)

HEALTH_CHECK_KEY = '__health__:ping'


def make_key(entity_type: str, id: str) -> str:
    return f"{entity_type}{SEPARATOR}{id}"


def split_key(key: str) -> Tuple[str, Optional[str]]:
    """Split ``<entityType>:<id>`` into its parts; id is None for bare keys."""
    entity_type, sep, id = key.partition(SEPARATOR)
    return entity_type, (id if sep else None)


def _check_entity_type(entity_type: str) -> None:
    if not entity_type or SEPARATOR in entity_type:
        raise ValidationError(entity_type, 'entityType', f"entity type must be non-empty and must not contain '{SEPARATOR}'")


def _is_record_id(id: Optional[str]) -> bool:
    return bool(id) and SEPARATOR not in id and id != INDEX_SUFFIX


def _check_id(entity_type: str, id: Optional[str]) -> None:
    if not _is_record_id(id):
        raise ValidationError(
            entity_type, 'id', f"id must be non-empty, must not contain '{SEPARATOR}' and must not be '{INDEX_SUFFIX}'"
        )


def _strip_reserved(data: Mapping[str, Any], entity_type: str, action: str) -> Dict[str, Any]:
    if not isinstance(data, Mapping):
        raise ValidationError(entity_type, '__root__', 'record must be a mapping')
    clean = {k: v for k, v in data.items() if k not in RESERVED_FIELDS}
    if len(clean) != len(data):
        logger.debug("Ignoring caller-supplied reserved fields on %s %s", entity_type, action)
    return clean


class DocumentStore:
    def __init__(
        self,
        backend: BackendProtocol,
        validator: Optional[Validator] = None,
        index_manager: Optional[IndexManager] = None,
    ) -> None:
        self.backend = backend
        self.validator = validator or default_validator()
        if index_manager is None and not backend.supports_prefix_scan:
            index_manager = IndexManager(backend)
        self.index = index_manager

    @property
    def kind(self) -> str:
        return self.backend.kind

    @property
    def index_backed(self) -> bool:
        return self.index is not None

    @property
    def _atomic(self) -> bool:
        return isinstance(self.backend, AtomicIndexProtocol) and bool(self.backend.atomic_index)

    async def connect(self) -> None:
        await self.backend.connect()

    async def close(self) -> None:
        await self.backend.disconnect()

    async def ping(self) -> bool:
        await self.backend.get(HEALTH_CHECK_KEY)
        return True

    async def _write(self, entity_type: str, id: Optional[str], key: str, record: Dict[str, Any]) -> bool:
        if self.index is None or id is None:
            return await self.backend.put(key, record)
        if self._atomic:
            return await self.backend.put_indexed(key, record, index_key(entity_type), id)
        replaced = await self.backend.put(key, record)
        try:
            await self.index.add_to_index(entity_type, id)
        except BackendError:
            logger.error(
                "Record %s was written but its index entry was not; it is hidden from listings until reconciled", key
            )
            raise
        return replaced

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        return await self.backend.get(key)

    async def get_by_id(self, entity_type: str, id: str) -> Optional[Dict[str, Any]]:
        if not _is_record_id(id):
            # `<type>:index` is the id set, never a record
            return None
        return await self.backend.get(make_key(entity_type, id))

    async def set(self, key: str, value: Mapping[str, Any]) -> None:
        """Validate `value` against the entity type named by `key`, then write it."""
        entity_type, id = split_key(key)
        _check_entity_type(entity_type)
        if id is not None:
            _check_id(entity_type, id)
        self.validator.validate(entity_type, value)
        await self._write(entity_type, id, key, dict(value))

    async def get_all(self, entity_type: str) -> List[Dict[str, Any]]:
        """Every live record of `entity_type`, in no particular order."""
        _check_entity_type(entity_type)
        if self.index is None:
            return await self.backend.scan_by_prefix(entity_type + SEPARATOR)

        ids = await self.index.list_index(entity_type)
        found = await asyncio.gather(*(self.backend.get(make_key(entity_type, id)) for id in ids))
        records = []
        for id, record in zip(ids, found):
            if record is None:
                # Left in place for the reconciliation sweep.
                logger.warning("Index for '%s' lists id %s but no record exists; skipping", entity_type, id)
                continue
            records.append(record)
        return records

    async def create(self, entity_type: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        _check_entity_type(entity_type)
        record = stamp(_strip_reserved(data, entity_type, 'create'), is_create=True)
        self.validator.validate(entity_type, record)
        key = make_key(entity_type, record['id'])
        if await self._write(entity_type, record['id'], key, record):
            logger.warning("Generated id collided with an existing record; %s was overwritten", key)
        logger.debug("Created %s", key)
        return record

    async def update(self, entity_type: str, id: str, patch: Mapping[str, Any]) -> Dict[str, Any]:
        """Merge `patch` over the stored record; raise `NotFound` if it is absent."""
        _check_entity_type(entity_type)
        _check_id(entity_type, id)
        key = make_key(entity_type, id)
        existing = await self.backend.get(key)
        if existing is None:
            raise NotFound(entity_type, id)
        merged = {**existing, **_strip_reserved(patch, entity_type, 'update')}
        merged['id'] = existing.get('id', id)
        merged = stamp(merged, is_create=False)
        self.validator.validate(entity_type, merged)
        await self.backend.put(key, merged)
        logger.debug("Updated %s", key)
        return merged

    async def remove(self, entity_type: str, id: str) -> bool:
        """Delete the record and its index entry; False when nothing was there."""
        _check_entity_type(entity_type)
        if not _is_record_id(id):
            logger.debug("Refusing to remove reserved or malformed id %r from %s", id, entity_type)
            return False
        key = make_key(entity_type, id)
        if self.index is None:
            removed = await self.backend.delete(key)
        elif self._atomic:
            removed = await self.backend.delete_indexed(key, index_key(entity_type), id)
        else:
            await self.index.remove_from_index(entity_type, id)
            removed = await self.backend.delete(key)
        if removed:
            logger.debug("Removed %s", key)
        return removed

    def known_entity_types(self) -> List[str]:
        """Entity types this store owns: the dashboard collections, snapshots and any type with rules."""
        return sorted(set(DASHBOARD_COLLECTIONS) | {SNAPSHOT_TYPE} | set(self.validator.entity_types()))

    async def reconcile(self, entity_types: Optional[Iterable[str]] = None, repair: bool = False) -> ReconcileReport:
        """Check (and with `repair`, rebuild) the indexes of `entity_types`.

        Defaults to `known_entity_types`; keys outside those namespaces are
        never read as records or indexed.
        """
        if entity_types is None:
            types = self.known_entity_types()
        else:
            types = sorted(set(entity_types))
            for entity_type in types:
                _check_entity_type(entity_type)
        if self.index is None:
            return ReconcileReport(checked=types if entity_types is not None else [])
        return await self.index.reconcile(types, repair=repair)

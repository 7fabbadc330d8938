"""Per-entity id index for exact-key backends.

Each entity type owns one set-valued key, ``<entityType>:index``, listing
the ids of its live records. The document store maintains it around
record writes in a fixed order:

* create: write the record, then add the id. A failure in between leaves
  a record that `get_all` cannot see but a direct `get` can.
* delete: remove the id, then delete the record. The reverse order could
  leave a ghost id that every later `get_all` would trip over.

`reconcile` is the out-of-band sweep that finds (and optionally repairs)
both kinds of drift by enumerating the keys under each checked type's
namespace. Types it is not asked about are never read or written.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Set

from .errors import IndexInconsistency
from .interfaces import SetCapableProtocol

logger = logging.getLogger(__name__)

SEPARATOR = ':'
INDEX_SUFFIX = 'index'


def index_key(entity_type: str) -> str:
    return f"{entity_type}{SEPARATOR}{INDEX_SUFFIX}"


def is_index_key(key: str) -> bool:
    return key.endswith(SEPARATOR + INDEX_SUFFIX)


@dataclass
class ReconcileReport:
    checked: List[str] = field(default_factory=list)
    inconsistencies: List[IndexInconsistency] = field(default_factory=list)
    repaired: bool = False

    @property
    def ok(self) -> bool:
        return not self.inconsistencies

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ok': self.ok,
            'checked': self.checked,
            'repaired': self.repaired,
            'inconsistencies': [i.to_dict() for i in self.inconsistencies],
        }


class IndexManager:
    def __init__(self, backend: Any) -> None:
        if not isinstance(backend, SetCapableProtocol):
            raise TypeError(f"{type(backend).__name__} does not provide set primitives for indexing")
        self.backend = backend

    async def add_to_index(self, entity_type: str, id: str) -> None:
        await self.backend.set_add(index_key(entity_type), id)

    async def remove_from_index(self, entity_type: str, id: str) -> None:
        await self.backend.set_remove(index_key(entity_type), id)

    async def list_index(self, entity_type: str) -> List[str]:
        return await self.backend.set_members(index_key(entity_type))

    async def _stored_ids(self, entity_type: str) -> Set[str]:
        prefix = f"{entity_type}{SEPARATOR}"
        ids: Set[str] = set()
        async for key in self.backend.iter_keys(prefix):
            id = key[len(prefix):]
            # nested keys (`<type>:<a>:<b>`) are not records of this type
            if id and id != INDEX_SUFFIX and SEPARATOR not in id:
                ids.add(id)
        return ids

    async def reconcile(self, entity_types: Iterable[str], repair: bool = False) -> ReconcileReport:
        """Compare indexes with the stored records.

        Ghost ids (indexed, record missing) and orphans (record present,
        not indexed) are reported per entity type. With `repair=True`
        orphans are added and ghosts removed, which rebuilds the index
        from what the backend actually holds.
        """
        types = sorted(set(entity_types))

        report = ReconcileReport(checked=types)
        for entity_type in types:
            indexed = set(await self.list_index(entity_type))
            present = await self._stored_ids(entity_type)
            ghosts = indexed - present
            orphans = present - indexed
            if not ghosts and not orphans:
                continue
            issue = IndexInconsistency(entity_type, list(ghosts), list(orphans))
            logger.warning("Index inconsistency detected: %s", issue)
            report.inconsistencies.append(issue)
            if repair:
                for id in orphans:
                    await self.add_to_index(entity_type, id)
                for id in ghosts:
                    await self.remove_from_index(entity_type, id)

        if repair and report.inconsistencies:
            report.repaired = True
            logger.info("Repaired %d index(es)", len(report.inconsistencies))
        return report

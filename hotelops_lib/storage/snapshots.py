"""Point-in-time snapshots of the dashboard collections.

A snapshot is an ordinary ``snapshot:<id>`` record whose ``data`` maps
each collection name to the list of its records at capture time.
Restoring replays every captured record through `DocumentStore.set`, so
exact-key backends keep their indexes in step with the restored
records. Records created after the snapshot are left in place.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .catalog import DASHBOARD_COLLECTIONS, SNAPSHOT_TYPE
from .document_store import DocumentStore, make_key
from .errors import NotFound, ValidationError
from .identity import format_timestamp, utc_now

logger = logging.getLogger(__name__)

# compare ignores the server-owned stamps
_VOLATILE_FIELDS = ('createdAt', 'updatedAt')


def _summary(record: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        'id': record.get('id'),
        'createdAt': record.get('createdAt'),
        'description': record.get('description'),
    }


async def create_snapshot(
    store: DocumentStore,
    description: Optional[str] = None,
    collections: Iterable[str] = DASHBOARD_COLLECTIONS,
) -> Dict[str, Any]:
    data: Dict[str, List[Dict[str, Any]]] = {}
    for collection in collections:
        if collection == SNAPSHOT_TYPE:
            continue
        data[collection] = await store.get_all(collection)
    record = await store.create(SNAPSHOT_TYPE, {
        'description': description or f"Snapshot {format_timestamp(utc_now())}",
        'data': data,
    })
    counts = {collection: len(items) for collection, items in data.items()}
    logger.info("Created snapshot %s with %d record(s)", record['id'], sum(counts.values()))
    return {**_summary(record), 'counts': counts}


async def list_snapshots(store: DocumentStore) -> List[Dict[str, Any]]:
    """Snapshot summaries, newest first."""
    summaries = [_summary(r) for r in await store.get_all(SNAPSHOT_TYPE)]
    summaries.sort(key=lambda s: s['createdAt'] or '', reverse=True)
    return summaries


async def load_snapshot(store: DocumentStore, snapshot_id: str) -> Dict[str, Any]:
    snapshot = await store.get_by_id(SNAPSHOT_TYPE, snapshot_id)
    if snapshot is None:
        raise NotFound(SNAPSHOT_TYPE, snapshot_id)
    if not isinstance(snapshot.get('data'), Mapping):
        raise ValidationError(SNAPSHOT_TYPE, 'data', 'snapshot holds no collection data')
    return snapshot


async def restore_snapshot(store: DocumentStore, snapshot_id: str) -> Dict[str, int]:
    """Write every record held by the snapshot back; return per-collection counts."""
    snapshot = await load_snapshot(store, snapshot_id)
    restored: Dict[str, int] = {}
    for collection, items in snapshot['data'].items():
        count = 0
        for item in items or []:
            if not isinstance(item, Mapping) or not item.get('id'):
                logger.warning("Snapshot %s: skipping %s entry without an id", snapshot_id, collection)
                continue
            await store.set(make_key(collection, item['id']), item)
            count += 1
        restored[collection] = count
    logger.info("Restored snapshot %s (%d record(s))", snapshot_id, sum(restored.values()))
    return restored


def _comparable(record: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in record.items() if k not in _VOLATILE_FIELDS}


def diff_snapshot_data(base: Mapping[str, Any], other: Mapping[str, Any]) -> Dict[str, Dict[str, int]]:
    """Count records added, removed and modified per collection going from `base` to `other`."""
    result: Dict[str, Dict[str, int]] = {}
    for collection in sorted(set(base) | set(other)):
        before = {r['id']: r for r in base.get(collection) or [] if isinstance(r, Mapping) and r.get('id')}
        after = {r['id']: r for r in other.get(collection) or [] if isinstance(r, Mapping) and r.get('id')}
        result[collection] = {
            'added': len(after.keys() - before.keys()),
            'removed': len(before.keys() - after.keys()),
            'modified': sum(
                1 for id in before.keys() & after.keys() if _comparable(before[id]) != _comparable(after[id])
            ),
        }
    return result


async def compare_snapshots(store: DocumentStore, base_id: str, other_id: str) -> Dict[str, Any]:
    base = await load_snapshot(store, base_id)
    other = await load_snapshot(store, other_id)
    return {
        'base': _summary(base),
        'other': _summary(other),
        'collections': diff_snapshot_data(base['data'], other['data']),
    }

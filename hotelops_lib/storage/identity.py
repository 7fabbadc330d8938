"""Identifier and timestamp assignment for stored records."""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

RESERVED_FIELDS = ('id', 'createdAt', 'updatedAt')


def new_id() -> str:
    return uuid.uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(dt: datetime) -> str:
    # Fixed precision keeps the strings lexicographically ordered.
    return dt.astimezone(timezone.utc).isoformat(timespec='microseconds')


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def stamp(record: Dict[str, Any], is_create: bool, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Return a copy of `record` with server-owned fields assigned.

    On create `id`, `createdAt` and `updatedAt` are (re)assigned,
    overriding anything the caller supplied. On update only `updatedAt`
    changes, and it always moves forward even if the wall clock has not
    advanced since the previous write.
    """
    ts = now or utc_now()
    out = dict(record)
    if is_create:
        out['id'] = new_id()
        out['createdAt'] = format_timestamp(ts)
        out['updatedAt'] = out['createdAt']
        return out

    previous = _parse_timestamp(record.get('updatedAt'))
    if previous is not None and previous.tzinfo is not None and ts <= previous:
        ts = previous + timedelta(microseconds=1)
    out['updatedAt'] = format_timestamp(ts)
    return out

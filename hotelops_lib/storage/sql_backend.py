"""Relational key/value backend using SQLAlchemy's asyncio engine.

All records share a single table::

    kv_store(key TEXT PRIMARY KEY, value TEXT, created_at, updated_at)

`value` holds the whole record as an opaque JSON blob. Entity listing is
a ``key LIKE '<prefix>%'`` scan with LIKE wildcards in the prefix escaped.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Optional

from sqlalchemy import Column, DateTime, MetaData, Table, Text, delete, insert, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from .errors import BackendError, BackendUnavailable, ConfigurationError
from .serializer import JSONSerializer, Serializer
from hotelops_lib.util import mask_url

logger = logging.getLogger(__name__)

DEFAULT_TABLE = 'kv_store'


def normalize_url(url: str) -> str:
    """Map plain driver URLs onto their asyncio dialects."""
    if url.startswith('postgres://'):
        url = 'postgresql://' + url[len('postgres://'):]
    if url.startswith('postgresql://'):
        return url.replace('postgresql://', 'postgresql+asyncpg://', 1)
    if url.startswith('sqlite://'):
        return url.replace('sqlite://', 'sqlite+aiosqlite://', 1)
    return url


def build_table(metadata: MetaData, name: str = DEFAULT_TABLE) -> Table:
    return Table(
        name,
        metadata,
        Column('key', Text, primary_key=True),
        Column('value', Text, nullable=False),
        Column('created_at', DateTime(timezone=True), nullable=False),
        Column('updated_at', DateTime(timezone=True), nullable=False),
    )


class SqlKeyValueBackend:
    kind = 'sql-kv'
    supports_prefix_scan = True

    def __init__(
        self,
        url: str,
        table_name: str = DEFAULT_TABLE,
        serializer: Optional[Serializer] = None,
        echo: bool = False,
        engine: Optional[AsyncEngine] = None,
    ) -> None:
        if not url and engine is None:
            raise ConfigurationError("sql-kv backend requires a connection url")
        self.url = normalize_url(url) if url else ''
        self.serializer = serializer or JSONSerializer()
        self._echo = echo
        self._engine = engine
        self._metadata = MetaData()
        self.table = build_table(self._metadata, table_name)

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise BackendUnavailable("sql-kv backend is not connected")
        return self._engine

    def _translate(self, exc: BaseException, action: str) -> BackendError:
        if isinstance(exc, (OperationalError, InterfaceError, OSError, asyncio.TimeoutError, ConnectionError)):
            return BackendUnavailable(f"sql-kv {action} failed: {exc}")
        if isinstance(exc, DBAPIError) and exc.connection_invalidated:
            return BackendUnavailable(f"sql-kv {action} failed: {exc}")
        return BackendError(f"sql-kv {action} failed: {exc}")

    async def connect(self) -> None:
        try:
            if self._engine is None:
                self._engine = create_async_engine(self.url, echo=self._echo, pool_pre_ping=True)
            async with self._engine.begin() as conn:
                await conn.run_sync(self._metadata.create_all)
        except (SQLAlchemyError, OSError, asyncio.TimeoutError, ConnectionError) as e:
            raise self._translate(e, 'connect') from e
        logger.info("SQL key/value backend connected: %s (table %s)", mask_url(self.url), self.table.name)

    async def disconnect(self) -> None:
        if self._engine is None:
            return
        engine, self._engine = self._engine, None
        await engine.dispose()
        logger.info("SQL key/value backend disconnected: %s", mask_url(self.url))

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        stmt = select(self.table.c.value).where(self.table.c.key == key)
        try:
            async with self.engine.connect() as conn:
                row = (await conn.execute(stmt)).first()
        except (SQLAlchemyError, OSError, asyncio.TimeoutError, ConnectionError) as e:
            raise self._translate(e, 'get') from e
        if row is None:
            return None
        return self.serializer.load(row[0])

    async def put(self, key: str, record: Dict[str, Any]) -> bool:
        payload = self.serializer.dump(record)
        now = datetime.now(timezone.utc)
        t = self.table
        upsert = update(t).where(t.c.key == key).values(value=payload, updated_at=now)
        try:
            try:
                async with self.engine.begin() as conn:
                    if (await conn.execute(upsert)).rowcount:
                        return True
                    await conn.execute(insert(t).values(key=key, value=payload, created_at=now, updated_at=now))
                    return False
            except IntegrityError:
                # Lost an insert race on the same key: last write wins.
                async with self.engine.begin() as conn:
                    await conn.execute(upsert)
                return True
        except (SQLAlchemyError, OSError, asyncio.TimeoutError, ConnectionError) as e:
            raise self._translate(e, 'put') from e

    async def delete(self, key: str) -> bool:
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(delete(self.table).where(self.table.c.key == key))
        except (SQLAlchemyError, OSError, asyncio.TimeoutError, ConnectionError) as e:
            raise self._translate(e, 'delete') from e
        return bool(result.rowcount)

    async def scan_by_prefix(self, prefix: str) -> List[Dict[str, Any]]:
        t = self.table
        stmt = select(t.c.value).where(t.c.key.startswith(prefix, autoescape=True))
        try:
            async with self.engine.connect() as conn:
                rows = (await conn.execute(stmt)).all()
        except (SQLAlchemyError, OSError, asyncio.TimeoutError, ConnectionError) as e:
            raise self._translate(e, 'scan') from e
        return [self.serializer.load(r[0]) for r in rows]

    async def iter_keys(self, prefix: str = "") -> AsyncIterator[str]:
        t = self.table
        stmt = select(t.c.key)
        if prefix:
            stmt = stmt.where(t.c.key.startswith(prefix, autoescape=True))
        try:
            async with self.engine.connect() as conn:
                keys = [r[0] for r in (await conn.execute(stmt)).all()]
        except (SQLAlchemyError, OSError, asyncio.TimeoutError, ConnectionError) as e:
            raise self._translate(e, 'key listing') from e
        for k in keys:
            yield k

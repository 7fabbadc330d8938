"""Remote exact-key backend on top of redis-py's asyncio client.

Layout: one string key per record (``<entityType>:<id>`` -> JSON) and
one set key per entity type (``<entityType>:index`` -> ids). The store
cannot be scanned by prefix on the read path; listing goes through the
index manager. `iter_keys` uses SCAN and exists only for the
out-of-band reconciliation sweep.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from .errors import BackendError, BackendUnavailable, ConfigurationError, PrefixScanUnsupported
from .serializer import JSONSerializer, Serializer
from hotelops_lib.util import mask_url

logger = logging.getLogger(__name__)


class RemoteKeyValueBackend:
    kind = 'remote-kv'
    supports_prefix_scan = False

    def __init__(
        self,
        url: Optional[str] = None,
        client: Any = None,
        serializer: Optional[Serializer] = None,
        atomic_index: bool = True,
        socket_timeout: float = 5.0,
    ) -> None:
        if client is None and not url:
            raise ConfigurationError("remote-kv backend requires a url")
        self.url = url or ''
        self.atomic_index = atomic_index
        self.serializer = serializer or JSONSerializer()
        self._socket_timeout = socket_timeout
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> Any:
        if self._client is None:
            raise BackendUnavailable("remote-kv backend is not connected")
        return self._client

    def _translate(self, exc: BaseException, action: str) -> BackendError:
        if isinstance(exc, (RedisConnectionError, RedisTimeoutError, OSError, asyncio.TimeoutError)):
            return BackendUnavailable(f"remote-kv {action} failed: {exc}")
        return BackendError(f"remote-kv {action} failed: {exc}")

    async def connect(self) -> None:
        if self._client is None:
            try:
                self._client = redis.from_url(
                    self.url,
                    encoding="utf-8",
                    decode_responses=True,
                    socket_connect_timeout=self._socket_timeout,
                    socket_timeout=self._socket_timeout,
                    socket_keepalive=True,
                )
            except ValueError as e:
                raise ConfigurationError(f"invalid remote-kv url {mask_url(self.url)}: {e}") from e
        try:
            await self._client.ping()
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            raise self._translate(e, 'connect') from e
        logger.info("Remote key/value backend connected: %s", mask_url(self.url) or '<injected client>')

    async def disconnect(self) -> None:
        if self._client is None:
            return
        client, self._client = self._client, None
        if self._owns_client:
            try:
                await client.aclose()
            except (RedisError, OSError) as e:
                logger.warning("Error closing remote key/value connection: %s", e)
        logger.info("Remote key/value backend disconnected")

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            raw = await self.client.get(key)
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            raise self._translate(e, 'get') from e
        if raw is None:
            return None
        return self.serializer.load(raw)

    async def put(self, key: str, record: Dict[str, Any]) -> bool:
        payload = self.serializer.dump(record)
        try:
            previous = await self.client.set(key, payload, get=True)
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            raise self._translate(e, 'put') from e
        return previous is not None

    async def delete(self, key: str) -> bool:
        try:
            removed = await self.client.delete(key)
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            raise self._translate(e, 'delete') from e
        return bool(removed)

    async def scan_by_prefix(self, prefix: str) -> List[Dict[str, Any]]:
        raise PrefixScanUnsupported(
            "remote-kv is addressable by exact key only; list records through the document store"
        )

    async def iter_keys(self, prefix: str = "") -> AsyncIterator[str]:
        try:
            async for key in self.client.scan_iter(match=f"{prefix}*"):
                yield key
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            raise self._translate(e, 'key enumeration') from e

    # set primitives used by the index manager

    async def set_add(self, key: str, member: str) -> None:
        try:
            await self.client.sadd(key, member)
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            raise self._translate(e, 'index add') from e

    async def set_remove(self, key: str, member: str) -> None:
        try:
            await self.client.srem(key, member)
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            raise self._translate(e, 'index remove') from e

    async def set_members(self, key: str) -> List[str]:
        try:
            members = await self.client.smembers(key)
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            raise self._translate(e, 'index read') from e
        return [m.decode('utf-8') if isinstance(m, bytes) else m for m in members]

    # MULTI/EXEC variants writing record and index entry together

    async def put_indexed(self, key: str, record: Dict[str, Any], index_key: str, member: str) -> bool:
        payload = self.serializer.dump(record)
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.set(key, payload, get=True)
                pipe.sadd(index_key, member)
                previous, _ = await pipe.execute()
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            raise self._translate(e, 'indexed put') from e
        return previous is not None

    async def delete_indexed(self, key: str, index_key: str, member: str) -> bool:
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.srem(index_key, member)
                pipe.delete(key)
                _, removed = await pipe.execute()
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            raise self._translate(e, 'indexed delete') from e
        return bool(removed)

from fnmatch import fnmatchcase
from typing import Any, Dict, Iterable, Optional, Set

from redis.exceptions import ConnectionError as RedisConnectionError
from starlette.testclient import TestClient
from hotelops_lib.services.container import ServiceContainer


def register_service_on_client(client: TestClient, name: str, instance: Any) -> None:
    """Register a service instance into the app's DI container for tests.

    Usage in tests:
        from tests.helpers import register_service_on_client
        register_service_on_client(client, 'store_manager', fake_manager)
    """
    container = getattr(client.app.state, 'container', None)
    if container is None:
        container = ServiceContainer()
        client.app.state.container = container

    container.register_singleton(name, instance)


class FakeRedis:
    """In-memory stand-in for the slice of `redis.asyncio.Redis` the remote backend uses.

    Strings and sets share one keyspace like the real server. Commands
    named in `fail_on` raise `redis.exceptions.ConnectionError`, which
    lets tests cut the connection between the two halves of a write.
    """

    def __init__(self, fail_on: Optional[Iterable[str]] = None):
        self.strings: Dict[str, str] = {}
        self.sets: Dict[str, Set[str]] = {}
        self.fail_on: Set[str] = set(fail_on or ())
        self.calls = []
        self.closed = False

    def _run(self, name: str, *args):
        self.calls.append((name,) + args)
        if name in self.fail_on:
            raise RedisConnectionError(f"injected failure on {name}")

    async def ping(self):
        self._run('ping')
        return True

    async def aclose(self):
        self.closed = True

    async def get(self, key):
        self._run('get', key)
        return self.strings.get(key)

    async def set(self, key, value, get=False):
        self._run('set', key)
        previous = self.strings.get(key)
        self.strings[key] = value
        return previous if get else True

    async def delete(self, *keys):
        self._run('delete', *keys)
        removed = 0
        for key in keys:
            if self.strings.pop(key, None) is not None or self.sets.pop(key, None) is not None:
                removed += 1
        return removed

    async def sadd(self, key, *members):
        self._run('sadd', key, *members)
        bucket = self.sets.setdefault(key, set())
        before = len(bucket)
        bucket.update(members)
        return len(bucket) - before

    async def srem(self, key, *members):
        self._run('srem', key, *members)
        bucket = self.sets.get(key, set())
        removed = len(bucket & set(members))
        bucket.difference_update(members)
        if not bucket:
            self.sets.pop(key, None)
        return removed

    async def smembers(self, key):
        self._run('smembers', key)
        return set(self.sets.get(key, set()))

    async def scan_iter(self, match=None):
        self._run('scan')
        for key in sorted(set(self.strings) | set(self.sets)):
            if match is None or fnmatchcase(key, match):
                yield key

    def pipeline(self, transaction=True):
        return FakePipeline(self)


class FakePipeline:
    """Queues commands and applies them in `execute`; nothing runs if any queued command is set to fail."""

    def __init__(self, client: FakeRedis):
        self.client = client
        self.commands = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.commands = []
        return False

    def set(self, *args, **kwargs):
        self.commands.append(('set', args, kwargs))
        return self

    def sadd(self, *args):
        self.commands.append(('sadd', args, {}))
        return self

    def srem(self, *args):
        self.commands.append(('srem', args, {}))
        return self

    def delete(self, *args):
        self.commands.append(('delete', args, {}))
        return self

    async def execute(self):
        self.client.calls.append(('multi',))
        for name, _, _ in self.commands:
            if name in self.client.fail_on:
                raise RedisConnectionError(f"injected failure on {name} inside MULTI")
        results = []
        for name, args, kwargs in self.commands:
            results.append(await getattr(self.client, name)(*args, **kwargs))
        self.commands = []
        return results

from typing import Any, Callable, Dict


class ServiceContainer:
    """Explicit registry of the services composed by `create_app`.

    Services are registered by name either as ready instances or as
    zero-argument factories; a factory runs on first `get` and its result
    is kept. Handlers reach services only through this container (see
    `hotelops_lib.services.resolver`) so tests can swap any of them.
    """

    def __init__(self) -> None:
        self._singletons: Dict[str, Any] = {}
        self._factories: Dict[str, Callable[[], Any]] = {}

    def register_singleton(self, key: str, instance: Any) -> None:
        self._factories.pop(key, None)
        self._singletons[key] = instance

    def register_factory(self, key: str, factory: Callable[[], Any]) -> None:
        self._singletons.pop(key, None)
        self._factories[key] = factory

    def has(self, key: str) -> bool:
        return key in self._singletons or key in self._factories

    def get(self, key: str) -> Any:
        if key in self._singletons:
            return self._singletons[key]
        if key in self._factories:
            inst = self._factories.pop(key)()
            self._singletons[key] = inst
            return inst
        raise KeyError(f"No service registered for key '{key}'")

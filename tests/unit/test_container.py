import pytest

from hotelops_lib.services import ServiceContainer


def test_singleton_and_factory_resolution():
    c = ServiceContainer()
    c.register_singleton('a', 1)
    calls = []
    c.register_factory('b', lambda: calls.append(1) or object())
    assert c.has('a') and c.has('b')
    assert c.get('a') == 1
    first = c.get('b')
    assert c.get('b') is first
    assert calls == [1]


def test_missing_service_raises_key_error():
    with pytest.raises(KeyError):
        ServiceContainer().get('nope')


def test_store_manager_satisfies_protocol():
    from hotelops_lib.services import StoreManagerProtocol
    from hotelops_lib.storage.manager import StoreManager

    assert isinstance(StoreManager(), StoreManagerProtocol)

import time

from fastapi.testclient import TestClient

from hotelops_lib.config.config import StoreConfig
from hotelops_lib.config.health import get_health
from hotelops_lib.main import Config, create_app
from hotelops_lib.storage.manager import StoreManager


def test_get_health_contains_fields():
    h = get_health()
    assert isinstance(h, dict)
    assert h.get("status") == "degraded"
    assert "start_time" in h
    assert "uptime_seconds" in h
    assert isinstance(h["uptime_seconds"], int)


def test_uptime_increases():
    h1 = get_health(StoreManager())
    time.sleep(1)
    h2 = get_health(StoreManager())
    assert h2["uptime_seconds"] >= h1["uptime_seconds"] + 1


def test_health_route_reports_store(tmp_path):
    app = create_app(Config(store=StoreConfig('memory'), server_config_path=tmp_path / 'server_config.yml'))
    with TestClient(app) as client:
        body = client.get('/health').json()
        assert body['status'] == 'ok'
        assert body['store']['initialized'] is True
        assert body['store']['backendKind'] == 'memory'
    # lifespan shutdown tears the store down
    assert app.state.container.get('store_manager').is_initialized() is False


def test_health_degraded_when_store_down(tmp_path):
    from types import SimpleNamespace
    from tests.helpers import register_service_on_client

    app = create_app(Config(store=StoreConfig('memory'), server_config_path=tmp_path / 'server_config.yml'))
    with TestClient(app) as client:
        down = SimpleNamespace(status=lambda: {'initialized': False, 'backendKind': None, 'indexBacked': None})
        register_service_on_client(client, 'store_manager', down)
        body = client.get('/health').json()
        assert body['status'] == 'degraded'
        assert body['store']['initialized'] is False

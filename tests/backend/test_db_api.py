from fastapi.testclient import TestClient

from hotelops_lib.config.config import StoreConfig
from hotelops_lib.main import Config, create_app


def make_client(tmp_path, admin_token=None, store=None):
    app = create_app(Config(
        store=store or StoreConfig('memory'),
        admin_token=admin_token,
        server_config_path=tmp_path / 'server_config.yml',
    ))
    return TestClient(app)


def test_status_counts_collections(tmp_path):
    with make_client(tmp_path) as client:
        client.post('/api/v1/collections/dishes', json={'name': 'Rice', 'price': 50})
        client.post('/api/v1/collections/dishes', json={'name': 'Soup', 'price': 8})
        r = client.get('/api/v1/db/status')
        assert r.status_code == 200
        body = r.json()
        assert body['initialized'] is True
        assert body['backendKind'] == 'memory'
        assert body['collections']['dishes'] == 2
        assert body['collections']['orders'] == 0


def test_status_when_store_is_down(tmp_path):
    broken = StoreConfig('sql-kv', {'url': f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'kv.db'}"})
    with make_client(tmp_path, store=broken) as client:
        body = client.get('/api/v1/db/status').json()
        assert body['initialized'] is False
        assert body['collections'] == {}


def test_connection_test_does_not_touch_active_store(tmp_path):
    with make_client(tmp_path) as client:
        client.post('/api/v1/collections/dishes', json={'name': 'Rice', 'price': 50})
        ok = client.post('/api/v1/db/test', json={'backendKind': 'sql-kv', 'settings': {'url': f"sqlite+aiosqlite:///{tmp_path / 'check.db'}"}})
        assert ok.status_code == 200
        assert ok.json() == {'ok': True, 'backendKind': 'sql-kv'}

        bad = client.post('/api/v1/db/test', json={'type': 'neon', 'connectionString': f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'kv.db'}"})
        assert bad.json()['ok'] is False

        invalid = client.post('/api/v1/db/test', json={'backendKind': 'mongo'})
        assert invalid.status_code == 400

        status = client.get('/api/v1/db/status').json()
        assert status['backendKind'] == 'memory'
        assert status['collections']['dishes'] == 1


def test_reconfigure_requires_admin_token(tmp_path):
    payload = {'backendKind': 'sql-kv', 'settings': {'url': f"sqlite+aiosqlite:///{tmp_path / 'kv.db'}"}}
    with make_client(tmp_path, admin_token='s3cret') as client:
        r = client.put('/api/v1/db/config', json=payload)
        assert r.status_code == 401
        r = client.put('/api/v1/db/config', json=payload, headers={'X-Admin-Token': 'wrong'})
        assert r.status_code == 401

        r = client.put('/api/v1/db/config', json=payload, headers={'X-Admin-Token': 's3cret'})
        assert r.status_code == 200
        assert r.json()['backendKind'] == 'sql-kv'
        assert 'kv.db' in r.json()['config']['settings']['url']

        client.post('/api/v1/collections/dishes', json={'name': 'Rice', 'price': 50})
        assert len(client.get('/api/v1/collections/dishes').json()) == 1


def test_failed_reconfigure_leaves_store_down_until_fixed(tmp_path):
    with make_client(tmp_path) as client:
        broken = {'backendKind': 'sql-kv', 'settings': {'url': f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'kv.db'}"}}
        r = client.put('/api/v1/db/config', json=broken)
        assert r.status_code == 503
        assert client.get('/api/v1/db/status').json()['initialized'] is False
        assert client.get('/api/v1/collections/dishes').status_code == 503

        r = client.put('/api/v1/db/config', json={'backendKind': 'memory'})
        assert r.status_code == 200
        assert client.get('/api/v1/collections/dishes').json() == []


def test_reconfigure_rejects_bad_payload(tmp_path):
    with make_client(tmp_path) as client:
        r = client.put('/api/v1/db/config', json={'backendKind': 'sql-kv'})
        assert r.status_code == 400
        assert r.json()['detail']['error'] == 'invalid_config'
        # a rejected payload never tears down the active store
        assert client.get('/api/v1/db/status').json()['initialized'] is True


def test_reconcile_endpoint_on_scanning_backend(tmp_path):
    with make_client(tmp_path, admin_token='s3cret') as client:
        assert client.post('/api/v1/db/reconcile').status_code == 401
        r = client.post('/api/v1/db/reconcile?repair=true', headers={'X-Admin-Token': 's3cret'})
        assert r.status_code == 200
        assert r.json() == {'ok': True, 'checked': [], 'repaired': False, 'inconsistencies': []}


def test_snapshot_create_list_restore(tmp_path):
    with make_client(tmp_path, admin_token='s3cret') as client:
        rice = client.post('/api/v1/collections/dishes', json={'name': 'Rice', 'price': 50}).json()
        r = client.post('/api/v1/db/snapshots', json={'description': 'lunch menu'})
        assert r.status_code == 201
        snap = r.json()
        assert snap['counts']['dishes'] == 1

        listed = client.get('/api/v1/db/snapshots').json()
        assert [s['id'] for s in listed] == [snap['id']]
        assert listed[0]['description'] == 'lunch menu'

        client.delete(f"/api/v1/collections/dishes/{rice['id']}")
        restore_url = f"/api/v1/db/snapshots/{snap['id']}/restore"
        assert client.post(restore_url).status_code == 401
        assert client.get('/api/v1/collections/dishes').json() == []

        r = client.post(restore_url, headers={'X-Admin-Token': 's3cret'})
        assert r.status_code == 200
        assert r.json()['restored']['dishes'] == 1
        assert [d['id'] for d in client.get('/api/v1/collections/dishes').json()] == [rice['id']]


def test_snapshot_restore_unknown_id(tmp_path):
    with make_client(tmp_path) as client:
        r = client.post('/api/v1/db/snapshots/missing/restore')
        assert r.status_code == 404
        assert r.json()['detail'] == {'error': 'not_found', 'entityType': 'snapshot', 'id': 'missing'}


def test_snapshot_compare(tmp_path):
    with make_client(tmp_path) as client:
        base = client.post('/api/v1/db/snapshots', json={}).json()
        client.post('/api/v1/collections/orders', json={'items': ['tea'], 'tableId': 'T1', 'total': 3})
        other = client.post('/api/v1/db/snapshots', json={}).json()
        r = client.get(f"/api/v1/db/snapshots/{base['id']}/compare/{other['id']}")
        assert r.status_code == 200
        assert r.json()['collections']['orders'] == {'added': 1, 'removed': 0, 'modified': 0}

import pytest

from hotelops_lib.config.config import StoreConfig
from hotelops_lib.storage import create_backend
from hotelops_lib.storage.errors import ConfigurationError
from hotelops_lib.storage.memory_backend import MemoryBackend


def test_default_is_memory():
    cfg = StoreConfig.from_env({})
    assert cfg.backend_kind == 'memory'
    assert cfg.settings is None
    assert isinstance(create_backend(cfg), MemoryBackend)


def test_env_sql_kv():
    cfg = StoreConfig.from_env({'HOTELOPS_STORE_BACKEND': 'sql-kv', 'HOTELOPS_SQL_URL': 'postgres://u:p@db/app'})
    assert cfg.backend_kind == 'sql-kv'
    assert cfg.setting('url') == 'postgres://u:p@db/app'
    assert cfg.setting('table') == 'kv_store'


def test_env_remote_kv_atomic_flag():
    cfg = StoreConfig.from_env({
        'HOTELOPS_STORE_BACKEND': 'remote-kv',
        'HOTELOPS_REDIS_URL': 'redis://localhost:6379/0',
        'HOTELOPS_REDIS_ATOMIC_INDEX': 'off',
    })
    assert cfg.backend_kind == 'remote-kv'
    assert cfg.setting('atomic_index') is False


@pytest.mark.parametrize('legacy,kind', [('neon', 'sql-kv'), ('postgres', 'sql-kv'), ('kv', 'remote-kv'), ('redis', 'remote-kv')])
def test_legacy_db_type(legacy, kind):
    env = {'DB_TYPE': legacy, 'NEON_CONNECTION_STRING': 'postgresql://db/app', 'REDIS_URL': 'redis://cache'}
    assert StoreConfig.from_env(env).backend_kind == kind


def test_missing_url_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        StoreConfig.from_env({'HOTELOPS_STORE_BACKEND': 'sql-kv'})


def test_unknown_kind_rejected():
    with pytest.raises(ConfigurationError):
        StoreConfig('mongo')


def test_from_payload_shapes():
    new = StoreConfig.from_payload({'backendKind': 'remote-kv', 'settings': {'url': 'redis://cache:6379'}})
    old = StoreConfig.from_payload({'type': 'neon', 'connectionString': 'postgresql://db/app'})
    assert new.backend_kind == 'remote-kv'
    assert old.backend_kind == 'sql-kv'
    assert old.setting('url') == 'postgresql://db/app'
    with pytest.raises(ConfigurationError):
        StoreConfig.from_payload({})
    with pytest.raises(ConfigurationError):
        StoreConfig.from_payload({'backendKind': 'memory', 'settings': 'nope'})


def test_describe_masks_credentials():
    cfg = StoreConfig('sql-kv', {'url': 'postgresql://user:secret@db:5432/app'})
    text = str(cfg.describe())
    assert 'secret' not in text
    assert 'db:5432' in text


def test_yaml_store_block_overrides_env(tmp_path):
    path = tmp_path / 'server_config.yml'
    path.write_text('log_level: INFO\nstore:\n  backend_kind: remote-kv\n  settings:\n    url: redis://cache:6379/1\n')
    cfg = StoreConfig.load(path, environ={'HOTELOPS_STORE_BACKEND': 'memory'})
    assert cfg.backend_kind == 'remote-kv'
    assert cfg.setting('url') == 'redis://cache:6379/1'


def test_yaml_without_store_block_uses_env(tmp_path):
    path = tmp_path / 'server_config.yml'
    path.write_text('log_level: INFO\n')
    assert StoreConfig.load(path, environ={}).backend_kind == 'memory'
    assert StoreConfig.load(tmp_path / 'missing.yml', environ={}).backend_kind == 'memory'


def test_create_backend_for_remote_kv():
    from hotelops_lib.storage.remote_backend import RemoteKeyValueBackend

    backend = create_backend(StoreConfig('remote-kv', {'url': 'redis://cache:6379/0', 'atomic_index': False}))
    assert isinstance(backend, RemoteKeyValueBackend)
    assert backend.atomic_index is False

"""Store configuration: which backend to run and its settings.

Read once at process start (environment, optionally overridden by the
`store:` block of the YAML server config) and replaced only through
`StoreManager.reconfigure`.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from hotelops_lib.storage.errors import ConfigurationError
from hotelops_lib.util import mask_url

logger = logging.getLogger(__name__)

BACKEND_KINDS = ('memory', 'sql-kv', 'remote-kv')

# Older deployments set DB_TYPE with driver-flavoured names.
_LEGACY_KINDS = {
    'memory': 'memory',
    'neon': 'sql-kv',
    'postgres': 'sql-kv',
    'postgresql': 'sql-kv',
    'sqlite': 'sql-kv',
    'sql': 'sql-kv',
    'kv': 'remote-kv',
    'redis': 'remote-kv',
    'upstash': 'remote-kv',
}

DEFAULT_SERVER_CONFIG = Path('data/config/server_config.yml')


def _truthy(value: Optional[str], default: bool) -> bool:
    if value is None or value == '':
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass(frozen=True)
class StoreConfig:
    backend_kind: str = 'memory'
    settings: Optional[Dict[str, Any]] = None

    def __post_init__(self) -> None:
        kind = _LEGACY_KINDS.get(self.backend_kind, self.backend_kind)
        if kind not in BACKEND_KINDS:
            raise ConfigurationError(
                f"unsupported backend kind '{self.backend_kind}' (expected one of {', '.join(BACKEND_KINDS)})"
            )
        object.__setattr__(self, 'backend_kind', kind)
        settings = dict(self.settings) if self.settings else None
        if kind in ('sql-kv', 'remote-kv') and not (settings or {}).get('url') and not (settings or {}).get('client'):
            raise ConfigurationError(f"{kind} backend requires settings.url")
        object.__setattr__(self, 'settings', settings)

    def setting(self, name: str, default: Any = None) -> Any:
        return (self.settings or {}).get(name, default)

    def describe(self) -> Dict[str, Any]:
        """Loggable/serializable view with credentials masked."""
        out: Dict[str, Any] = {'backendKind': self.backend_kind}
        if self.settings:
            out['settings'] = {
                k: (mask_url(v) if k == 'url' and isinstance(v, str) else v)
                for k, v in self.settings.items()
                if k != 'client'
            }
        return out

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'StoreConfig':
        env = os.environ if environ is None else environ
        kind = env.get('HOTELOPS_STORE_BACKEND') or env.get('DB_TYPE') or 'memory'
        kind = _LEGACY_KINDS.get(kind.strip().lower(), kind.strip().lower())
        if kind == 'sql-kv':
            url = env.get('HOTELOPS_SQL_URL') or env.get('NEON_CONNECTION_STRING') or env.get('DATABASE_URL')
            return cls(kind, {'url': url, 'table': env.get('HOTELOPS_SQL_TABLE') or 'kv_store'})
        if kind == 'remote-kv':
            url = env.get('HOTELOPS_REDIS_URL') or env.get('REDIS_URL')
            return cls(kind, {'url': url, 'atomic_index': _truthy(env.get('HOTELOPS_REDIS_ATOMIC_INDEX'), True)})
        return cls(kind, None)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> 'StoreConfig':
        """Parse an admin reconfigure payload.

        Accepts ``{backendKind, settings}`` as well as the older
        ``{type, connectionString}`` shape.
        """
        kind = payload.get('backendKind') or payload.get('backend_kind') or payload.get('type')
        if not kind:
            raise ConfigurationError('backendKind is required')
        settings = payload.get('settings')
        if settings is not None and not isinstance(settings, Mapping):
            raise ConfigurationError('settings must be an object or null')
        settings = dict(settings) if settings else {}
        if payload.get('connectionString') and 'url' not in settings:
            settings['url'] = payload['connectionString']
        return cls(str(kind).strip().lower(), settings or None)

    @classmethod
    def load(cls, config_path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> 'StoreConfig':
        """Environment config, overridden by a `store:` block in the YAML server config."""
        cfg_path = config_path or DEFAULT_SERVER_CONFIG
        if cfg_path.exists():
            try:
                with cfg_path.open('r', encoding='utf-8') as f:
                    data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"invalid server config {cfg_path}: {e}") from e
            block = data.get('store') if isinstance(data, dict) else None
            if isinstance(block, dict) and block:
                logger.debug("Using store configuration from %s", cfg_path)
                return cls.from_payload(block)
        return cls.from_env(environ)

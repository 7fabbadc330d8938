from typing import List, Optional

from fastapi import APIRouter, Body, Query, Request
from hotelops_lib.collections.api import ALLOWED_COLLECTIONS
from hotelops_lib.config.config import StoreConfig
from hotelops_lib.middleware import require_admin, store_http_exception
from hotelops_lib.services.resolver import resolve_service, resolve_store
from hotelops_lib.storage import create_store, snapshots
from hotelops_lib.storage.errors import BackendError, ConfigurationError, StoreError

import logging
router = APIRouter()
logger = logging.getLogger(__name__)


@router.get('/v1/db/status')
async def api_db_status(request: Request):
    manager = resolve_service(request, 'store_manager')
    status = manager.status()
    if not status['initialized']:
        return {**status, 'collections': {}}
    store = manager.get_store()
    counts = {}
    for collection in ALLOWED_COLLECTIONS:
        try:
            counts[collection] = len(await store.get_all(collection))
        except StoreError as e:
            logger.warning("Could not count collection %s: %s", collection, e)
            counts[collection] = 'error'
    return {**status, 'config': manager.config.describe() if manager.config else None, 'collections': counts}


@router.post('/v1/db/test')
async def api_db_test(request: Request, payload: dict = Body(default={})):
    """Connect to a proposed backend and ping it; the active store is untouched."""
    try:
        config = StoreConfig.from_payload(payload)
    except ConfigurationError as e:
        raise store_http_exception(e)
    store = create_store(config)
    try:
        await store.connect()
        await store.ping()
    except BackendError as e:
        logger.info("Store connection test failed for %s: %s", config.describe(), e)
        return {'ok': False, 'backendKind': config.backend_kind, 'message': str(e)}
    finally:
        await store.close()
    return {'ok': True, 'backendKind': config.backend_kind}


@router.put('/v1/db/config')
@require_admin
async def api_db_config(request: Request, payload: dict = Body(default={})):
    manager = resolve_service(request, 'store_manager')
    try:
        config = StoreConfig.from_payload(payload)
        await manager.reconfigure(config)
    except StoreError as e:
        logger.error("Store reconfigure failed: %s", e)
        raise store_http_exception(e)
    logger.info("Store reconfigured: %s", config.describe())
    return {**manager.status(), 'config': config.describe()}


@router.post('/v1/db/reconcile')
@require_admin
async def api_db_reconcile(request: Request, repair: bool = False, entity: Optional[List[str]] = Query(default=None)):
    store = resolve_store(request)
    try:
        report = await store.reconcile(entity or None, repair=repair)
    except StoreError as e:
        raise store_http_exception(e)
    return report.to_dict()


@router.get('/v1/db/snapshots')
async def api_snapshot_list(request: Request):
    store = resolve_store(request)
    try:
        return await snapshots.list_snapshots(store)
    except StoreError as e:
        raise store_http_exception(e)


@router.post('/v1/db/snapshots', status_code=201)
async def api_snapshot_create(request: Request, payload: dict = Body(default={})):
    store = resolve_store(request)
    description = (payload or {}).get('description')
    try:
        return await snapshots.create_snapshot(store, description)
    except StoreError as e:
        logger.error("Snapshot creation failed: %s", e)
        raise store_http_exception(e)


@router.get('/v1/db/snapshots/{snapshot_id}/compare/{other_id}')
async def api_snapshot_compare(request: Request, snapshot_id: str, other_id: str):
    store = resolve_store(request)
    try:
        return await snapshots.compare_snapshots(store, snapshot_id, other_id)
    except StoreError as e:
        raise store_http_exception(e)


@router.post('/v1/db/snapshots/{snapshot_id}/restore')
@require_admin
async def api_snapshot_restore(request: Request, snapshot_id: str):
    store = resolve_store(request)
    try:
        restored = await snapshots.restore_snapshot(store, snapshot_id)
    except StoreError as e:
        logger.error("Snapshot restore failed for %s: %s", snapshot_id, e)
        raise store_http_exception(e)
    return {'ok': True, 'id': snapshot_id, 'restored': restored}

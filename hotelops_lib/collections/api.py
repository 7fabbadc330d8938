from fastapi import APIRouter, Body, HTTPException, Request
from hotelops_lib.middleware import store_http_exception
from hotelops_lib.services.resolver import resolve_store
from hotelops_lib.storage.catalog import DASHBOARD_COLLECTIONS
from hotelops_lib.storage.errors import StoreError

import logging
router = APIRouter()
logger = logging.getLogger(__name__)

ALLOWED_COLLECTIONS = DASHBOARD_COLLECTIONS


def _check_collection(collection: str) -> None:
    if collection not in ALLOWED_COLLECTIONS:
        raise HTTPException(status_code=400, detail={'error': 'invalid_collection', 'message': f"Unknown collection '{collection}'"})


@router.get('/v1/collections/{collection}')
async def api_collection_list(request: Request, collection: str):
    _check_collection(collection)
    store = resolve_store(request)
    try:
        return await store.get_all(collection)
    except StoreError as e:
        raise store_http_exception(e)


@router.get('/v1/collections/{collection}/{id}')
async def api_collection_get(request: Request, collection: str, id: str):
    _check_collection(collection)
    store = resolve_store(request)
    try:
        record = await store.get_by_id(collection, id)
    except StoreError as e:
        raise store_http_exception(e)
    if record is None:
        raise HTTPException(status_code=404, detail={'error': 'not_found', 'entityType': collection, 'id': id})
    return record


@router.post('/v1/collections/{collection}', status_code=201)
async def api_collection_create(request: Request, collection: str, payload: dict = Body(default={})):
    _check_collection(collection)
    store = resolve_store(request)
    try:
        record = await store.create(collection, payload)
    except StoreError as e:
        logger.debug("Rejected create on %s: %s", collection, e)
        raise store_http_exception(e)
    return record


@router.put('/v1/collections/{collection}/{id}')
async def api_collection_update(request: Request, collection: str, id: str, payload: dict = Body(default={})):
    _check_collection(collection)
    store = resolve_store(request)
    try:
        return await store.update(collection, id, payload)
    except StoreError as e:
        logger.debug("Rejected update on %s/%s: %s", collection, id, e)
        raise store_http_exception(e)


@router.delete('/v1/collections/{collection}/{id}')
async def api_collection_delete(request: Request, collection: str, id: str):
    _check_collection(collection)
    store = resolve_store(request)
    try:
        removed = await store.remove(collection, id)
    except StoreError as e:
        raise store_http_exception(e)
    return {'ok': True, 'id': id, 'removed': removed}

from typing import Any
from fastapi import HTTPException
from starlette.requests import Request

from hotelops_lib.storage.document_store import DocumentStore
from hotelops_lib.storage.errors import StoreNotInitialized
from hotelops_lib.services.interfaces import StoreManagerProtocol


def resolve_service(request: Request, name: str) -> Any:
    """Resolve a named service from the application's service container.

    Requires `app.state.container` with the named registration, otherwise
    an HTTP 500 is raised.
    """
    container = getattr(request.app.state, 'container', None)
    if container is None:
        raise HTTPException(status_code=500, detail="Service container not configured")
    try:
        return container.get(name)
    except KeyError:
        raise HTTPException(status_code=500, detail=f"Service '{name}' not configured")


def resolve_store(request: Request) -> DocumentStore:
    """Return the currently active document store.

    Resolved per request so handlers always see the backend selected by
    the latest reconfigure. Raises HTTP 503 while the store is down.
    """
    manager: StoreManagerProtocol = resolve_service(request, 'store_manager')
    try:
        return manager.get_store()
    except StoreNotInitialized:
        raise HTTPException(status_code=503, detail={'error': 'store_unavailable', 'message': 'Document store is not initialized'})

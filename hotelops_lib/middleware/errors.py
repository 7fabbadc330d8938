from fastapi import HTTPException

from hotelops_lib.storage.errors import (
    BackendError,
    BackendUnavailable,
    ConfigurationError,
    NotFound,
    StoreError,
    StoreNotInitialized,
    ValidationError,
)
import logging

logger = logging.getLogger(__name__)


def store_http_exception(exc: StoreError) -> HTTPException:
    """Map a store-layer failure onto the HTTP error the handlers return."""
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=400, detail=exc.to_dict())
    if isinstance(exc, NotFound):
        return HTTPException(status_code=404, detail={'error': 'not_found', 'entityType': exc.entity_type, 'id': exc.id})
    if isinstance(exc, (BackendUnavailable, StoreNotInitialized)):
        return HTTPException(status_code=503, detail={'error': 'store_unavailable', 'message': str(exc)})
    if isinstance(exc, ConfigurationError):
        return HTTPException(status_code=400, detail={'error': 'invalid_config', 'message': str(exc)})
    if isinstance(exc, BackendError):
        logger.error("Backend failure: %s", exc)
        return HTTPException(status_code=502, detail={'error': 'backend_error', 'message': str(exc)})
    return HTTPException(status_code=500, detail={'error': 'store_error', 'message': str(exc)})

from typing import Callable, Optional
import functools
import hmac
import inspect
from fastapi import HTTPException
from starlette.requests import Request

from hotelops_lib.services.resolver import resolve_service
import logging

logger = logging.getLogger(__name__)

ADMIN_TOKEN_HEADER = 'X-Admin-Token'


def require_admin(func: Callable) -> Callable:
    """Decorator guarding admin-only endpoints (store reconfigure, reconcile, snapshot restore).

    The caller must send `X-Admin-Token` matching the `admin_token` of the
    application config. When no token is configured the endpoints are
    open, which is the intended mode for local development.
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        request: Optional[Request] = None
        for a in args:
            if isinstance(a, Request):
                request = a
                break
        if not request:
            request = kwargs.get('request')
        if not request:
            logger.warning('Admin access denied: missing request')
            raise HTTPException(status_code=401, detail={'error': 'access_denied', 'message': 'Missing request.'})

        expected = getattr(resolve_service(request, 'app_config'), 'admin_token', None)
        if expected:
            supplied = request.headers.get(ADMIN_TOKEN_HEADER) or ''
            if not hmac.compare_digest(supplied.encode('utf-8'), expected.encode('utf-8')):
                logger.warning('Admin access denied path=%s', request.url.path)
                raise HTTPException(status_code=401, detail={'error': 'access_denied', 'message': 'Admin access required.'})

        return await func(*args, **kwargs)

    # preserve signature for FastAPI parameter injection
    wrapper.__signature__ = inspect.signature(func)

    return wrapper

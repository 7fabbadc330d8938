from fastapi import APIRouter, Request
from hotelops_lib.services.resolver import resolve_service
from .health import get_health

router = APIRouter()


@router.get('/health')
async def api_health(request: Request):
    return get_health(resolve_service(request, 'store_manager'))

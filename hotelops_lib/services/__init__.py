"""Services package: DI container and the protocols it hands out."""
from .container import ServiceContainer
from .interfaces import (
    BackendProtocol,
    StoreManagerProtocol,
)

__all__ = [
    "ServiceContainer",
    "BackendProtocol",
    "StoreManagerProtocol",
]

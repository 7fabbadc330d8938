from .admin import ADMIN_TOKEN_HEADER, require_admin
from .errors import store_http_exception

__all__ = [
	"ADMIN_TOKEN_HEADER",
	"require_admin",
	"store_http_exception",
]

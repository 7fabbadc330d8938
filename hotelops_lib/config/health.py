"""Server health utilities.

Provides a simple `get_health` function returning server status,
start time, uptime in seconds and whether the document store is ready.
"""
from datetime import datetime, timezone
import time

# record process start time at import
_START_TIME = time.time()

def get_health(store_manager=None) -> dict:
    """Return a dict representing server health.

    Fields:
    - status: 'ok', or 'degraded' when the store is not initialized
    - start_time: ISO 8601 UTC timestamp when the process started
    - uptime_seconds: integer seconds since start
    - store: manager status (initialized, backendKind, indexBacked)
    """
    now = time.time()
    uptime = int(now - _START_TIME)
    start_dt = datetime.fromtimestamp(_START_TIME, tz=timezone.utc)
    store = store_manager.status() if store_manager is not None else {'initialized': False, 'backendKind': None}
    return {
        "status": "ok" if store.get('initialized') else "degraded",
        "start_time": start_dt.isoformat(),
        "uptime_seconds": uptime,
        "store": store,
    }

from typing import Any, Dict, Protocol, Union
from datetime import date, datetime
from decimal import Decimal
import json

from .errors import BackendError


class Serializer(Protocol):
    """Serialize/deserialize records for backends that store text.

    Implementations should be symmetric: `dump` -> str, `load` <- str.
    """

    def dump(self, value: Dict[str, Any]) -> str: ...

    def load(self, data: str) -> Dict[str, Any]: ...


def _default(o: Any) -> Any:
    if isinstance(o, (datetime, date)):
        return o.isoformat()
    if isinstance(o, Decimal):
        return float(o)
    if isinstance(o, (set, frozenset)):
        return sorted(o)
    raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")


class JSONSerializer:
    """Serializer using JSON (text). Records are stored as opaque blobs."""

    def dump(self, value: Dict[str, Any]) -> str:
        try:
            return json.dumps(value, default=_default, ensure_ascii=False, separators=(',', ':'))
        except (TypeError, ValueError) as e:
            raise BackendError(f"record is not serializable: {e}") from e

    def load(self, data: Union[str, bytes]) -> Dict[str, Any]:
        if isinstance(data, (bytes, bytearray)):
            data = data.decode("utf-8")
        try:
            value = json.loads(data)
        except ValueError as e:
            raise BackendError(f"stored value is not valid JSON: {e}") from e
        if not isinstance(value, dict):
            raise BackendError("stored value is not a record mapping")
        return value

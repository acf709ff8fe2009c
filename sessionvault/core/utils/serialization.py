"""
Serialization of session payloads at the store boundary.

The store persists a session's data mapping as text; the serializer decides
how application values are rendered. The default keeps payloads as JSON.
"""

import json
from datetime import date, datetime
from typing import Any, Dict, Mapping, Protocol, runtime_checkable
from uuid import UUID


class SessionSerializationError(ValueError):
    """Raised when session data cannot be serialized or deserialized"""
    pass


@runtime_checkable
class SessionSerializer(Protocol):
    def dumps(self, data: Mapping[str, Any]) -> str:
        ...

    def loads(self, payload: str) -> Dict[str, Any]:
        ...


class JsonSessionSerializer:
    """
    JSON session serializer.

    Datetimes and dates are stored as ISO-8601 strings, UUIDs as strings and
    sets as lists; they come back in those plain forms.
    """

    def dumps(self, data: Mapping[str, Any]) -> str:
        try:
            return json.dumps(dict(data), default=self._json_default, sort_keys=True)
        except (TypeError, ValueError) as e:
            raise SessionSerializationError(f"Session data is not serializable: {e}") from e

    def loads(self, payload: str) -> Dict[str, Any]:
        if not payload:
            return {}
        try:
            data = json.loads(payload)
        except ValueError as e:
            raise SessionSerializationError(f"Stored session data is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise SessionSerializationError("Stored session data is not a JSON object")
        return data

    def _json_default(self, obj: Any) -> Any:
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, (set, frozenset)):
            return list(obj)
        raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")

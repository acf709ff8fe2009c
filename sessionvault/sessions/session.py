from typing import Any, Dict, Iterator, Mapping, MutableMapping, Optional

# Reserved key for the session id; never persisted with the session data
SESSION_ID_KEY = "_id"


class Session(MutableMapping[str, Any]):
    """
    Request-scoped view of a session document.

    Wraps the document's data mapping, the session id and a dirty flag.
    Any write through the mapping interface marks the session as changed,
    which is what makes the manager persist it. Mutating a nested value in
    place does not; reassign the key instead.
    """

    def __init__(self, data: Optional[Mapping[str, Any]] = None, session_id: Optional[str] = None):
        self._data: Dict[str, Any] = dict(data or {})
        self.id = session_id
        self.has_changed = False

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value
        self.has_changed = True

    def __delitem__(self, key: str) -> None:
        del self._data[key]
        self.has_changed = True

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def clear(self) -> None:
        if self._data:
            self._data.clear()
            self.has_changed = True

    def to_dict(self) -> Dict[str, Any]:
        """Copy of the visible session data"""
        return dict(self._data)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Session(keys={len(self._data)}, changed={self.has_changed})>"

"""In-memory storage, used by tests and by the app when no data dir is wanted."""

import copy
import json
from typing import Any, Optional

from rt_admin.services.storage.interface import KeyValueStore


class InMemoryStore(KeyValueStore):
    """
    Dict-backed store.

    Values are round-tripped through JSON on write so that anything this
    store accepts would also survive JsonFileStore.
    """

    def __init__(self, initial: Optional[dict[str, Any]] = None, **kwargs):
        super().__init__(**kwargs)
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def _read_raw(self, key: str) -> Optional[Any]:
        value = self._data.get(key)
        if isinstance(value, str):
            # Raw JSON text, as a browser would have stored it
            return json.loads(value)
        return copy.deepcopy(value)

    def _write_raw(self, key: str, value: Any) -> None:
        self._data[key] = json.loads(json.dumps(value))

    def _delete_raw(self, key: str) -> None:
        self._data.pop(key, None)

    def raw(self, key: str) -> Any:
        """The stored envelope, for inspection in tests."""
        return copy.deepcopy(self._data.get(key))

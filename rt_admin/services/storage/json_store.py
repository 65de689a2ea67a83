"""
JSON File Storage Implementation

One <key>.json file per storage key under a data directory. This is the
desktop equivalent of browser local storage: single user, single writer,
written through on every mutation.

Writes go to a temporary file first and are then renamed over the target,
so a crash mid-write leaves the previous value intact.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from rt_admin.activity import ActivityLogger
from rt_admin.config import get_settings
from rt_admin.services.storage.interface import KeyValueStore, StorageError


class JsonFileStore(KeyValueStore):
    """File-per-key JSON store."""

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        schema_version: Optional[int] = None,
        activity: Optional[ActivityLogger] = None,
    ):
        settings = get_settings().storage
        super().__init__(
            schema_version=schema_version or settings.schema_version,
            activity=activity,
        )
        self._data_dir = Path(data_dir or settings.data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path(self, key: str) -> Path:
        return self._data_dir / f"{key}.json"

    def _read_raw(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        with path.open(encoding="utf-8") as handle:
            return json.load(handle)

    def _write_raw(self, key: str, value: Any) -> None:
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create data directory {self._data_dir}: {e}") from e

        fd, tmp_name = tempfile.mkstemp(dir=self._data_dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(value, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self._path(key))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _delete_raw(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

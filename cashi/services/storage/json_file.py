"""
JSON File Storage Implementation

DESIGN DECISION: The default medium is a single JSON object on disk that
maps record keys to string values - the same shape browser localStorage
gives the ledger. Because values stay strings, the persistence adapter
serializes identically whichever medium it talks to.

TRADEOFFS:
- The whole file is rewritten on every set (fine for a personal ledger)
- No cross-process locking (single writer by design)
- Writes go to a temporary sibling first and are renamed into place,
  so a crash mid-write leaves the previous file intact
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

from cashi.services.storage.interface import (
    CorruptRecordError,
    KeyValueStore,
    StorageError,
    StorageWriteError,
)


class JsonFileKeyValueStore(KeyValueStore):
    """
    Key-value medium persisted as one JSON file.

    A missing file reads as an empty store; it is created on first set.
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        """Load and check the whole file."""
        if not self._path.exists():
            return {}

        try:
            with self._path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CorruptRecordError(f"Storage file {self._path} is not valid JSON: {e}")
        except OSError as e:
            raise StorageError(f"Could not read storage file {self._path}: {e}")

        if not isinstance(data, dict):
            raise CorruptRecordError(
                f"Storage file {self._path} must hold a JSON object, got {type(data).__name__}"
            )
        for key, value in data.items():
            if not isinstance(value, str):
                raise CorruptRecordError(
                    f"Value for key '{key}' in {self._path} is not a string"
                )
        return data

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value

        tmp_name = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                json.dump(data, handle, indent=2, sort_keys=True)
            os.replace(tmp_name, self._path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageWriteError(f"Could not write storage file {self._path}: {e}")

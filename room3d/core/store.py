"""Key-value stores backing layout persistence.

The editor only needs ``get``/``put`` on string keys. ``put_many`` lets a
store commit several keys in a single write; the JSON file store uses it to
keep a snapshot from being written partially.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Mapping

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Minimal durable key-value contract."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value stored under key, or None."""
        pass

    @abstractmethod
    def put(self, key: str, value: str) -> None:
        pass

    def put_many(self, values: Mapping[str, str]) -> None:
        """Write several keys. Subclasses may override to make this atomic."""
        for key, value in values.items():
            self.put(key, value)

    def contains(self, key: str) -> bool:
        return self.get(key) is not None


class MemoryStore(KeyValueStore):
    """In-process store, mainly for tests and embedding."""

    def __init__(self, initial: Mapping[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        self._data[key] = value

    def put_many(self, values: Mapping[str, str]) -> None:
        self._data.update(values)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStore(KeyValueStore):
    """Store all keys in one JSON object on disk.

    Every write rewrites the whole file through a temp file and an atomic
    rename, so readers never observe a half-written layout.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path) as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Layout store {self.path} does not contain a JSON object")
        return data

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

        temp_path = self.path.with_suffix(".tmp")
        with open(temp_path, "w") as f:
            json.dump(data, f, indent=2)

        temp_path.replace(self.path)
        logger.debug(f"Layout store written: {self.path}")

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def put(self, key: str, value: str) -> None:
        self.put_many({key: value})

    def put_many(self, values: Mapping[str, str]) -> None:
        data = self._read()
        data.update(values)
        self._write(data)
